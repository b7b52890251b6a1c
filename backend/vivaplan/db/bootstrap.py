from __future__ import annotations

import logging

from sqlalchemy import inspect

from vivaplan.db.base import Base
from vivaplan.db.session import engine
import vivaplan.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "user_code"},
    "presentations": {"id", "date", "start_time", "end_time", "venue_id"},
    "timetables": {"id", "group_id", "schedule"},
    "reschedule_requests": {"id", "presentation_id", "status", "requested_date"},
    "id_sequences": {"category", "last_value"},
}


def missing_schema(connection) -> list[str]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing: list[str] = []
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing.extend(f"{table_name}.{column}" for column in sorted(required - existing))
    return missing


def ensure_runtime_schema() -> None:
    """Create missing tables and fail fast when an older database lacks required columns."""
    try:
        Base.metadata.create_all(bind=engine)
        with engine.connect() as connection:
            missing = missing_schema(connection)
        if missing:
            raise RuntimeError(f"Missing required schema objects: {', '.join(missing)}")
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed. Run `alembic upgrade head`.") from exc
