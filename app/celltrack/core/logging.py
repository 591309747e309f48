from __future__ import annotations

import json
import logging

from app.celltrack.core.config import settings


def configure_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")


def log_json(logger: logging.Logger, payload: dict, level: int = logging.INFO) -> None:
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def log_operation(logger: logging.Logger, operation: str, *, actor, **fields) -> None:
    """Emit one structured line for a committed business operation."""
    payload = {
        "event": "operation",
        "operation": operation,
        "actor": actor.name,
        "actor_role": actor.role,
        "trace_id": actor.trace_id,
    }
    payload.update(fields)
    log_json(logger, payload)
