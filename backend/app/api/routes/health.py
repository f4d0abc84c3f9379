from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import get_settings
from app.db.bootstrap import schema_report
from app.services.reports import ledger_consistency_report

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "service": get_settings().project_name}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


def _database_check(db: Session) -> dict:
    try:
        connection = db.connection()
        report = schema_report(connection)
    except SQLAlchemyError as exc:
        logger.warning("Readiness check could not reach the database: %s", exc)
        return {"ok": False, "dialect": None, "missing_tables": [], "missing_columns": {}, "error": str(exc)}
    return {
        "ok": report.ok,
        "dialect": connection.dialect.name,
        "missing_tables": report.missing_tables,
        "missing_columns": report.missing_columns,
        "error": None,
    }


def _ledger_summary(db: Session) -> dict:
    """Cache drift and overload per reviewer. Reported only, never gates readiness."""
    rows = ledger_consistency_report(db)
    return {
        "faculty": len(rows),
        "active_load": sum(row["live_load"] for row in rows),
        "drifted_faculty": [row["faculty_id"] for row in rows if row["cache_drift"]],
        "over_capacity_faculty": [row["faculty_id"] for row in rows if row["over_capacity"]],
    }


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    database = _database_check(db)
    payload = {
        "status": "ready" if database["ok"] else "degraded",
        "timestamp": _now(),
        "database": database,
        "ledger": _ledger_summary(db) if database["ok"] else None,
    }
    return JSONResponse(status_code=200 if database["ok"] else 503, content=payload)
