from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace

from oap.api.middleware.request_id import get_request_id

# ``extra`` keys copied into the JSON line when present on the record.
_EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "order_id",
    "pickup_number",
    "status",
    "from_status",
    "to_status",
    "total_cents",
    "fallback_count",
    "fields",
    "kind",
    "reference",
    "item_name",
    "event_type",
    "channel",
    "receivers",
    "role",
    "connections",
    "key",
    "actor",
    "reason",
    "value",
    "backoff_seconds",
    "error_code",
)

_configured = False


def _trace_fields() -> tuple[str | None, str | None]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None, None
    return format(span_context.trace_id, "032x"), format(span_context.span_id, "016x")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        trace_id, span_id = _trace_fields()
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
            "trace_id": trace_id,
            "span_id": span_id,
        }
        payload.update(
            {
                key: getattr(record, key)
                for key in _EXTRA_FIELDS
                if getattr(record, key, None) is not None
            }
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging() -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    # uvicorn's own access log duplicates the access middleware.
    logging.getLogger("uvicorn.access").disabled = True
    _configured = True
