"""Logging setup and rewrite tracing for the plan builder.

Every rewrite the builder fires is logged at DEBUG through ``log_rewrite``,
which attaches a ``rewrite`` mapping (rule, case and any ids involved) to
the record. ``StructuredFormatter`` emits that mapping as top level JSON
keys; ``StandardFormatter`` appends it to the message as ``key=value``
pairs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "query_unnest"
REWRITE_ATTR = "rewrite"
CONTEXT_ATTR = "session"


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    fields.update(getattr(record, CONTEXT_ATTR, None) or {})
    fields.update(getattr(record, REWRITE_ATTR, None) or {})
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, rewrite fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class StandardFormatter(logging.Formatter):
    """Human readable lines, e.g. ``... DEBUG - Pulling Map [rule=decorrelate case=pull_map]``."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _record_fields(record)
        if not fields:
            return line
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{line} [{rendered}]"


def setup_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root handlers for a CLI run.

    Output goes to stderr so the rendered plan on stdout stays clean.

    Args:
        level: Logging level name; DEBUG shows every rewrite
        structured: Emit JSON lines instead of plain text
        log_file: Also write records to this file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = StructuredFormatter() if structured else StandardFormatter()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_rewrite(
    logger: logging.Logger,
    rule: str,
    case: str,
    message: str,
    **fields: Any,
) -> None:
    """Log a fired rewrite at DEBUG with its rule, case and extra ids.

    Example:
        >>> log_rewrite(logger, "decorrelate", "pull_map", "Pulling Map", columns=[5])
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(message, extra={REWRITE_ATTR: {"rule": rule, "case": case, **fields}})


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Attach per-run fields (such as the CLI scenario) to every record."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra[CONTEXT_ATTR] = dict(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def get_contextual_logger(name: str, context: Dict[str, Any]) -> SessionLoggerAdapter:
    return SessionLoggerAdapter(get_logger(name), context)
