# jsonrpc_invoker/core/logging.py

"""Logging helpers

Invoker log calls attach the call they belong to (method, URL, and where
known the error code or HTTP status) through ``extra=call_context(...)``.
Both formatters render that context; records without it format as plain
log lines.
"""

import logging
import sys
import json
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional
from jsonrpc_invoker.core.config import settings

# Record attributes set by call_context(), in rendering order
CALL_FIELDS = ("rpc_method", "rpc_url", "rpc_code", "http_status")


def call_context(method: str, url: str, **fields: Any) -> Dict[str, Any]:
    """
    Build the ``extra`` mapping for a log call about one invocation

    Args:
        method: JSON-RPC method name
        url: Endpoint URL
        **fields: Optional ``code`` (JSON-RPC error code) and ``status`` (HTTP status)

    Returns:
        Mapping suitable for ``logger.info(..., extra=...)``
    """
    context: Dict[str, Any] = {"rpc_method": method, "rpc_url": url}
    if fields.get("code") is not None:
        context["rpc_code"] = fields["code"]
    if fields.get("status") is not None:
        context["http_status"] = fields["status"]
    return context


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        name[len("rpc_"):] if name.startswith("rpc_") else name: getattr(record, name)
        for name in CALL_FIELDS
        if hasattr(record, name)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the call context under "call" """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _record_context(record)
        if context:
            log_data["call"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter: `[time] LEVEL | logger | message | key=value ...`"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        log_line = f"[{timestamp}] {record.levelname:8s} | {record.name:20s} | {record.getMessage()}"

        context = _record_context(record)
        if context:
            log_line += " | " + " ".join(f"{key}={value}" for key, value in context.items())

        if record.exc_info:
            log_line += f"\n{self.formatException(record.exc_info)}"

        return log_line


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None
) -> logging.Handler:
    """
    Configure logging for an application using the invoker

    The library never calls this itself. Falls back to LOG_LEVEL / LOG_FORMAT
    from settings.

    Args:
        level: Log level name (e.g. "DEBUG"); unknown names mean INFO
        fmt: "json" for structured output, anything else for simple text
        stream: Output stream (defaults to stdout)

    Returns:
        The handler installed on the root logger
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    fmt = fmt or settings.LOG_FORMAT

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if fmt.lower() == "json" else SimpleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # Keep per-request transport chatter out of invoker logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured: level={level_name}, format={fmt}")
    return handler
