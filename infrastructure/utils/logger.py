"""JSON logger utility for the provisioning pass.

Emits one JSON object per record with environment and stack fields when
available, so synth output can be filtered the same way Lambda logs are.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        env = getattr(record, "environment", None) or os.environ.get("ENVIRONMENT")
        if env:
            payload["environment"] = env
        stack = getattr(record, "stack", None)
        if stack:
            payload["stack"] = stack
        for key in ("function", "variant", "change_key", "returncode"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        payload["timestamp"] = record.created
        return json.dumps(payload, ensure_ascii=False)


class _Adapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: Dict[str, Any]):  # type: ignore[override]
        extra = self.extra.copy() if isinstance(self.extra, dict) else {}
        if "extra" in kwargs and isinstance(kwargs["extra"], dict):
            extra.update(kwargs["extra"])
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, stack: Optional[str] = None) -> logging.LoggerAdapter:
    """Return a JSON-formatted logger adapter with an optional stack field."""
    base = logging.getLogger(name)
    if not base.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
        base.addHandler(handler)
    base.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    extras: Dict[str, Any] = {"environment": os.environ.get("ENVIRONMENT")}
    if stack:
        extras["stack"] = stack
    return _Adapter(base, extras)
