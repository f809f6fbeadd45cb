"""Step tracking diagnostics — HTTP entry point.

Exposes the diagnostic engine to the support chatbot backend. Each request
carries a scripted scenario (probe name → scripted result), builds a fresh
engine with scripted checkers for it, runs one diagnosis and returns the
DiagnosticReport as JSON.

Endpoints:
    POST /api/diagnose          → run and return the report
    POST /api/diagnose/stream   → run and stream check events as NDJSON,
                                  followed by the report
    GET  /reports/latest        → most recent report
    GET  /reports/{report_id}   → a specific report
    GET  /health                → liveness

Run locally:
    uvicorn main:app --reload      (or: python main.py)
"""

import asyncio
import json
import logging
import logging.handlers
import os
import pathlib
from datetime import date

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

load_dotenv()

from core.config import EngineSettings
from core.engine import DiagnosticEngine
from schemas.report import DiagnosticReport
from stubs import register_scenario

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_FILE = pathlib.Path(__file__).parent / "step_diagnostics.log"
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_file_handler = logging.handlers.RotatingFileHandler(
    LOG_FILE, maxBytes=1_000_000, backupCount=3, encoding="utf-8",
)
_file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

_root_logger = logging.getLogger()
_root_logger.setLevel(logging.INFO)
_root_logger.addHandler(_file_handler)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App + CORS
# ---------------------------------------------------------------------------

app = FastAPI(title="Step Tracking Diagnostics")

# ALLOWED_ORIGINS env var overrides the default for production deployments.
_origins = os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

settings = EngineSettings.from_env()

# ---------------------------------------------------------------------------
# Report store
# ---------------------------------------------------------------------------

# In-memory store: report_id → DiagnosticReport. Lost on restart.
_store: dict[str, DiagnosticReport] = {}
_latest_id: str | None = None


def _save(report: DiagnosticReport) -> None:
    """Write a report to the store and update the latest pointer."""
    global _latest_id
    _store[report.report_id] = report
    _latest_id = report.report_id


# ---------------------------------------------------------------------------
# Request handling
# ---------------------------------------------------------------------------

async def _build_engine(request: Request) -> DiagnosticEngine:
    """Parse the request body into a ready-to-run engine.

    The body is either a bare probe map, or a scenario file object with
    "probes" and an optional "today" (ISO date) pinning freshness.

    Raises:
        HTTPException: 400 if the body is not valid JSON or not a valid
            scenario.
    """
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Malformed JSON: {exc}")

    try:
        if isinstance(body, dict) and "probes" in body:
            probes = body["probes"]
            today = date.fromisoformat(body["today"]) if body.get("today") else None
        else:
            probes, today = body, None

        engine = DiagnosticEngine(
            settings=settings,
            today=(lambda: today) if today else date.today,
        )
        register_scenario(engine, probes)
    except (TypeError, ValueError) as exc:
        logger.warning("Rejected diagnose request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))

    return engine


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Diagnose
# ---------------------------------------------------------------------------

@app.post("/api/diagnose", response_model=DiagnosticReport)
async def diagnose(request: Request):
    """Run one diagnosis for the posted scenario and return the report."""
    engine = await _build_engine(request)
    report = await engine.run_diagnostic()
    _save(report)

    logger.info(
        "Diagnosis %s complete. status=%s primary=%s.",
        report.report_id,
        report.tracking_status.value,
        report.primary_issue.issue_type.value if report.primary_issue else None,
    )
    return report


async def _stream_diagnosis(engine: DiagnosticEngine):
    """Yield NDJSON lines: one per check event, then the report.

    If the consumer stops early (client disconnect), the in-flight run is
    cancelled along with its checkers.
    """
    eq: asyncio.Queue = asyncio.Queue()

    async def run() -> DiagnosticReport:
        try:
            return await engine.run_diagnostic(event_queue=eq)
        finally:
            await eq.put(None)

    task = asyncio.create_task(run())
    try:
        while True:
            event = await eq.get()
            if event is None:
                break
            yield json.dumps({"type": "check_event", **event.model_dump(mode="json")}) + "\n"

        report = await task
        _save(report)
        yield json.dumps({"type": "report", **report.model_dump(mode="json")}) + "\n"
    finally:
        if not task.done():
            logger.info("Stream closed before the diagnosis finished. Cancelling run.")
            task.cancel()


@app.post("/api/diagnose/stream")
async def diagnose_stream(request: Request):
    """Run one diagnosis and stream check events as NDJSON, then the report."""
    engine = await _build_engine(request)
    return StreamingResponse(_stream_diagnosis(engine), media_type="application/x-ndjson")


# ---------------------------------------------------------------------------
# Results API
# ---------------------------------------------------------------------------

@app.get("/reports/latest", response_model=DiagnosticReport)
def get_latest_report():
    """Return the most recent report. 404 if no diagnosis has run yet."""
    if _latest_id is None or _latest_id not in _store:
        raise HTTPException(status_code=404, detail="No reports yet.")
    return _store[_latest_id]


@app.get("/reports/{report_id}", response_model=DiagnosticReport)
def get_report(report_id: str):
    """Return a specific report by ID. 404 if unknown."""
    if report_id not in _store:
        raise HTTPException(status_code=404, detail=f"Report '{report_id}' not found.")
    return _store[report_id]


if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
