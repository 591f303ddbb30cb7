"""
Tests for routes/analyze.py and main.py — HTTP endpoints over the sample payload.
"""

import copy
import importlib
import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine.parser import load_sample_payload
from main import app

SAMPLE_JSON = os.path.join(os.path.dirname(__file__), "..", "sample_data", "sample_units.json")


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def payload():
    return load_sample_payload(SAMPLE_JSON)


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_config(self, client):
        body = client.get("/api/config").json()
        assert {"school_name", "pass_mark", "mark_scale_max"} <= set(body)

    def test_dotenv_values_reach_routes(self, monkeypatch):
        """Settings from .env apply to the routers as well as /api/config."""
        import dotenv

        def fake_load_dotenv(*args, **kwargs):
            monkeypatch.setenv("MARK_SCALE_MAX", "100")
            return True

        monkeypatch.delenv("MARK_SCALE_MAX", raising=False)
        monkeypatch.setattr(dotenv, "load_dotenv", fake_load_dotenv)
        monkeypatch.delitem(sys.modules, "main")
        monkeypatch.delitem(sys.modules, "routes.analyze")

        fresh_main = importlib.import_module("main")
        assert fresh_main.MARK_SCALE_MAX == 100.0
        assert sys.modules["routes.analyze"].MARK_SCALE_MAX == 100.0


class TestProfileEndpoint:

    def test_profile(self, client, payload):
        response = client.post("/api/analyze/profile/form1a", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["unit_name"] == "Form 1A"
        assert body["academic"]["average_grade"] == 65.0

    def test_unknown_unit_is_404(self, client, payload):
        assert client.post("/api/analyze/profile/nope", json=payload).status_code == 404

    def test_malformed_payload_is_400(self, client):
        assert client.post("/api/analyze/profile/form1a", json={"units": []}).status_code == 400


class TestOverviewEndpoints:

    def test_overview(self, client, payload):
        body = client.post("/api/analyze/overview", json=payload).json()
        assert [p["unit_name"] for p in body["profiles"]] == ["Form 1A", "Form 1B", "Form 2A"]
        assert body["skipped_unit_ids"] == []

    def test_school(self, client, payload):
        body = client.post("/api/analyze/school", json=payload).json()
        assert body["total_classes"] == 3
        assert body["profile"]["total_students"] == 7


class TestCompareEndpoint:

    def test_compare(self, client, payload):
        body = client.post("/api/analyze/compare/form1a/form1b", json=payload).json()
        assert body["dimensions"]["academic_performance"]["better"] == "A"
        assert body["dimensions"]["academic_performance"]["deltas"]["average_grade"] == 7.0

    def test_compare_missing_unit(self, client, payload):
        assert client.post("/api/analyze/compare/form1a/nope", json=payload).status_code == 404


class TestRankingsEndpoint:

    def test_rankings(self, client, payload):
        response = client.post("/api/analyze/rankings?criterion=academic", json=payload)
        assert response.status_code == 200
        ranked = response.json()["rankings"]
        assert [r["rank"] for r in ranked] == [1, 2, 3]
        assert ranked[0]["profile"]["unit_id"] == "form1a"

    def test_invalid_criterion_is_400(self, client, payload):
        response = client.post("/api/analyze/rankings?criterion=popularity", json=payload)
        assert response.status_code == 400

    def test_criteria(self, client):
        body = client.get("/api/analyze/criteria").json()
        assert body["ranking_criteria"]["discipline"]["direction"] == "lower"
        assert len(body["comparison_metrics"]) == 5


class TestInsightEndpoints:

    def test_insights(self, client, payload):
        body = client.post("/api/analyze/insights/form1a", json=payload).json()
        assert {"strengths", "weaknesses", "opportunities", "threats", "alerts", "summary"} <= set(body)

    def test_summary(self, client, payload):
        body = client.post("/api/analyze/summary/form1a", json=payload).json()
        assert body["key_metrics"]["fee_collection_rate"] == 65.0
        assert body["alerts"][0]["severity"] == "high"


class TestTrendsEndpoint:

    @pytest.fixture
    def history(self, payload):
        earlier = copy.deepcopy(payload)
        earlier["period"] = {"id": "2024-2025", "start_date": "2024-09-01"}
        earlier["as_of"] = "2024-09-30"
        return {"history": [payload, earlier]}

    def test_trends(self, client, history):
        response = client.post(
            "/api/analyze/trends/form1a?date_from=2024-01-01&date_to=2025-12-31", json=history
        )
        assert response.status_code == 200
        body = response.json()
        assert [p["period_id"] for p in body["academic_trends"]["points"]] == ["2024-2025", "2025-2026"]
        assert body["predictions"]["next_period_performance"] == 65.0

    def test_inverted_range_is_400(self, client, history):
        response = client.post(
            "/api/analyze/trends/form1a?date_from=2025-12-31&date_to=2024-01-01", json=history
        )
        assert response.status_code == 400

    def test_missing_range_is_400(self, client, history):
        assert client.post("/api/analyze/trends/form1a", json=history).status_code == 400

    def test_unknown_unit_is_404(self, client, history):
        response = client.post(
            "/api/analyze/trends/nope?date_from=2024-01-01&date_to=2025-12-31", json=history
        )
        assert response.status_code == 404


class TestValidateEndpoint:

    def test_sample_is_valid(self, client, payload):
        body = client.post("/api/analyze/validate", json=payload).json()
        assert body["valid"] is True

    def test_malformed_is_invalid(self, client):
        body = client.post("/api/analyze/validate", json={"units": []}).json()
        assert body["valid"] is False
        assert body["issues"][0]["type"] == "malformed_payload"

    def test_sample_endpoint(self, client):
        body = client.get("/api/analyze/sample").json()
        assert body["period"]["id"] == "2025-2026"
