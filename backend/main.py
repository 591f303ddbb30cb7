"""
Class Profile Analytics — organizational performance aggregation engine.
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment before the routers read their defaults
load_dotenv()

from routes.analyze import router as analyze_router  # noqa: E402

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
PASS_MARK = float(os.getenv("PASS_MARK", "50"))
MARK_SCALE_MAX = float(os.getenv("MARK_SCALE_MAX", "20"))
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title="Class Profile Analytics API",
    description=(
        "Per-class academic, demographic, attendance, financial, discipline "
        "and staffing profiles, with comparisons, rankings and insights."
    ),
    version="1.0.0",
)

# CORS for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze_router, prefix="/api/analyze", tags=["Analytics"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "school_name": SCHOOL_NAME,
        "pass_mark": PASS_MARK,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "pass_mark": PASS_MARK,
        "mark_scale_max": MARK_SCALE_MAX,
    }
