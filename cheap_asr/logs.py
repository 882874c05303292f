from __future__ import annotations

import json
import logging
import time
from typing import Any

from opentelemetry import trace

from cheap_asr.config import settings

logging.basicConfig(level=settings.log_level)
_logger = logging.getLogger(settings.service_name)


def jlog(event: str = "", severity: str = "INFO", **fields: Any) -> None:
    ctx = trace.get_current_span().get_span_context()
    record: dict[str, Any] = {
        "event": event,
        "severity": severity,
        "service": settings.service_name,
        "env": settings.environment,
        "ts": time.time(),
        "trace_id": f"{ctx.trace_id:032x}" if ctx.trace_id else None,
        "span_id": f"{ctx.span_id:016x}" if ctx.span_id else None,
    }
    record.update(fields)
    _logger.log(getattr(logging, severity, logging.INFO), json.dumps(record, ensure_ascii=False, default=str))
