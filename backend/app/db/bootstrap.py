from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import Connection, inspect, text

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "faculty": {"id", "email", "is_available", "max_capacity", "current_load"},
    "submissions": {"id", "status", "submitted_at"},
    "submission_assignments": {
        "id",
        "submission_id",
        "faculty_id",
        "status",
        "version",
        "locked_by",
        "locked_at",
        "reallocation_count",
        "last_reallocated_at",
        "submission_weight",
    },
    "assignment_logs": {"id", "submission_id", "action_type", "from_faculty_id", "to_faculty_id", "admin_id"},
}


@dataclass
class SchemaReport:
    missing_tables: list[str] = field(default_factory=list)
    missing_columns: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.missing_tables and not self.missing_columns


# Columns added to ledger and faculty tables after their first release.
ADDITIVE_COLUMNS: dict[str, dict[str, str]] = {
    "faculty": {
        "is_available": "BOOLEAN NOT NULL DEFAULT TRUE",
        "max_capacity": "INTEGER NOT NULL DEFAULT 10",
        "current_load": "INTEGER NOT NULL DEFAULT 0",
    },
    "submission_assignments": {
        "version": "INTEGER NOT NULL DEFAULT 1",
        "locked_by": "VARCHAR(100)",
        "locked_at": "TIMESTAMP",
        "reallocation_count": "INTEGER NOT NULL DEFAULT 0",
        "last_reallocated_at": "TIMESTAMP",
        "submission_weight": "INTEGER NOT NULL DEFAULT 1",
    },
    "assignment_logs": {
        "actor_role": "VARCHAR(20) NOT NULL DEFAULT 'system'",
    },
}


def _ensure_additive_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        for table_name, columns in ADDITIVE_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name, ddl in columns.items():
                if column_name in existing:
                    continue
                column_ddl = ddl
                if connection.dialect.name == "postgresql" and ddl.startswith("TIMESTAMP"):
                    column_ddl = ddl.replace("TIMESTAMP", "TIMESTAMP WITH TIME ZONE", 1)
                connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_ddl}"))
                logger.info("Added column %s.%s", table_name, column_name)


def schema_report(connection: Connection) -> SchemaReport:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    report = SchemaReport()
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            report.missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            report.missing_columns[table_name] = missing
    return report


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        report = schema_report(connection)
    if report.missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(sorted(report.missing_tables))}")
    if report.missing_columns:
        missing = [f"{table}.{column}" for table, columns in report.missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(missing)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_additive_columns()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
