"""Logging setup for the API and the worker.

Both processes call ``setup_logging`` once at import time. Records carry
the id of the request being served (empty in the worker) in JSON and text
output alike, and anything that looks like a Mailgun key, an LLM provider
key or a bearer token is masked before it is written.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional

# Set by RequestContextMiddleware for the duration of a request.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "LiteLLM")

_MASK = "***"

_SECRETS = (
    re.compile(r"\bkey-[0-9a-zA-Z]{20,}\b"),                     # Mailgun private key
    re.compile(r"\bsk-(?:ant-|proj-)?[0-9a-zA-Z_\-]{20,}\b"),     # OpenAI / Anthropic
    re.compile(r"\bAIza[0-9A-Za-z_\-]{30,}\b"),                   # Google (Gemini)
    re.compile(r"(?i)(?<=bearer )[0-9a-zA-Z._\-]{20,}"),
    re.compile(r"(?i)(?<=api_key=)[^\s&,'\"]{8,}"),
)


def mask_secrets(text: str) -> str:
    for pattern in _SECRETS:
        text = pattern.sub(_MASK, text)
    return text


class _RequestContextFilter(logging.Filter):
    """Attach ``request_id`` and mask secrets in message and traceback."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = mask_secrets(str(record.msg))
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = mask_secrets(record.exc_text)
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra={...}`` fields become top-level keys."""

    _STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"request_id", "message"}

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.request_id != "-":
            entry["request_id"] = record.request_id
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in self._STANDARD_ATTRS and key not in entry
        )
        if record.exc_text:
            entry["exception"] = record.exc_text
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Replace the root handlers with a single stdout handler.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to INFO.
        log_format: ``"json"`` (default) or ``"text"``.
    """
    level = (log_level or "INFO").upper()
    use_json = (log_format or "json").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_RequestContextFilter())
    handler.setFormatter(_JsonFormatter() if use_json else logging.Formatter(TEXT_FORMAT, "%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
