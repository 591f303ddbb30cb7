"""
Tests for engine/overview.py — best-effort overview and school summary.
"""

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine.overview import (
    SCHOOL_UNIT_ID,
    InMemoryUnitSource,
    compute_overview,
    compute_school_summary,
)
from engine.parser import load_sample_payload, parse_payload
from engine.profile import ProfileOptions
from engine.records import Unit

SAMPLE_JSON = os.path.join(os.path.dirname(__file__), "..", "sample_data", "sample_units.json")


@pytest.fixture
def parsed():
    return parse_payload(load_sample_payload(SAMPLE_JSON))


@pytest.fixture
def options(parsed):
    return ProfileOptions(as_of=parsed.as_of)


class FlakySource(InMemoryUnitSource):
    """Lists one unit more than it can load."""

    def list_units(self):
        return super().list_units() + [Unit("ghost", "A Ghost Class")]


class TestComputeOverview:
    """Tests for compute_overview."""

    def test_profiles_sorted_by_name(self, parsed, options):
        source = InMemoryUnitSource(parsed.period.period_id, reversed(parsed.units))
        result = compute_overview(source, parsed.period, options, max_workers=2)
        assert [p.unit_name for p in result.profiles] == ["Form 1A", "Form 1B", "Form 2A"]
        assert result.skipped_unit_ids == []
        assert result.period_id == "2025-2026"

    def test_failing_unit_is_skipped(self, parsed, options, caplog):
        source = FlakySource(parsed.period.period_id, parsed.units)
        with caplog.at_level(logging.WARNING, logger="engine.overview"):
            result = compute_overview(source, parsed.period, options)
        assert len(result.profiles) == 3
        assert result.skipped_unit_ids == ["ghost"]
        assert any(r.getMessage() == "UNIT_PROFILE_SKIPPED" for r in caplog.records)

    def test_empty_source(self, parsed, options):
        result = compute_overview(InMemoryUnitSource("2025-2026", []), parsed.period, options)
        assert result.profiles == []

    def test_same_result_every_run(self, parsed, options):
        source = InMemoryUnitSource(parsed.period.period_id, parsed.units)
        first = compute_overview(source, parsed.period, options, max_workers=4)
        second = compute_overview(source, parsed.period, options, max_workers=1)
        assert first == second


class TestComputeSchoolSummary:
    """Tests for compute_school_summary."""

    @pytest.fixture
    def summary(self, parsed, options):
        source = InMemoryUnitSource(parsed.period.period_id, parsed.units)
        return compute_school_summary(source, parsed.period, options, school_name="Test School")

    def test_identity(self, summary):
        assert summary.profile.unit_id == SCHOOL_UNIT_ID
        assert summary.profile.unit_name == "Test School"
        assert summary.profile.total_sub_units == 3

    def test_merges_every_unit(self, summary):
        assert summary.total_classes == 3
        assert summary.profile.total_students == 7
        assert summary.profile.academic.average_grade == 61.82
        assert summary.profile.finance.total_expected == 350000.0

    def test_teachers_counted_once(self, summary):
        assert summary.profile.staffing.total_teachers == 4
        assert summary.profile.staffing.subjects_offered == 3

    def test_shared_teacher_absence_deduplicated(self, summary):
        assert summary.profile.staffing.teacher_attendance_rate == 99.86

    def test_utilization(self, summary):
        assert summary.teacher_utilization_rate == 15.0
        assert summary.class_capacity_utilization == 7.78

    def test_skips_unloadable_unit(self, parsed, options):
        source = FlakySource(parsed.period.period_id, parsed.units)
        summary = compute_school_summary(source, parsed.period, options)
        assert summary.skipped_unit_ids == ["ghost"]
        assert summary.total_classes == 3

    def test_no_units(self, parsed, options):
        summary = compute_school_summary(InMemoryUnitSource("2025-2026", []), parsed.period, options)
        assert summary.total_classes == 0
        assert summary.teacher_utilization_rate == 0.0
        assert summary.class_capacity_utilization == 0.0
