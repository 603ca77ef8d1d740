"""Structured key=value logging for the guide pipeline.

Context fields (guide, brand, tier, section, generation attempt) are rendered
in a fixed order right after the message; any other fields passed through
`log_with_context` follow in call order.
"""

import logging
import sys
from typing import Any

CONTEXT_FIELDS = ("guide_id", "brand", "tier", "section_id", "model", "attempt")


class StructuredFormatter(logging.Formatter):
    """key=value formatter that understands guide context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        log_data.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{k}={v}" for k, v in log_data.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the structured formatter attached.

    Level is DEBUG when TONEGUIDE_ENV is "dev" and INFO otherwise (also INFO
    when settings cannot be loaded, e.g. no OPENAI_API_KEY yet).
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        try:
            from toneguide.core.config import get_settings

            env = get_settings().TONEGUIDE_ENV
        except Exception:
            env = None
        logger.setLevel(logging.DEBUG if env == "dev" else logging.INFO)

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """
    Log a message with context fields.

    Known context fields (see CONTEXT_FIELDS) become record attributes; the
    rest are rendered from `extra_data`. None values are dropped.

    Example:
        log_with_context(logger, logging.INFO, "Assembled guide", guide_id=gid, tier="pro")
    """
    extra: dict[str, Any] = {}
    extra_data: dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if key in CONTEXT_FIELDS:
            extra[key] = value
        else:
            extra_data[key] = value

    extra["extra_data"] = extra_data
    logger.log(level, msg, extra=extra)
