"""Structured Logging - JSON records carrying ledger context.

Invariants:
    - Every record has timestamp, level, logger and message
    - Ledger context passed through `extra` (operation, company, invoice_id,
      token_id, sequence, error_code, path) is emitted as top-level keys, and
      only when set
    - setup_logging is idempotent: calling it again replaces the ledger handler
      instead of stacking a second one

Design Decisions:
    - One handler on the root logger, tagged so it can be found and replaced
    - sqlalchemy.engine never logs below WARNING, whatever the root level
"""

import json
import logging
from datetime import datetime, timezone

LEDGER_CONTEXT_FIELDS = (
    "operation", "company", "invoice_id", "token_id",
    "sequence", "error_code", "path",
)

_HANDLER_NAME = "invoice_ledger"


def ledger_context(record: logging.LogRecord) -> dict:
    """Ledger fields set on the record via `extra`, in a stable order."""
    return {
        key: record.__dict__[key]
        for key in LEDGER_CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **ledger_context(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for local runs; ledger context appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = ledger_context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the ledger handler on the root logger. Returns it."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)
    logging.getLogger("sqlalchemy.engine").setLevel(max(root_level, logging.WARNING))
    return handler
