"""
Structured logging configuration using structlog.

Log lines from both structlog and stdlib loggers go through one formatter, so
request ids and the trade being handled show up on every line. ``LOG_FORMAT``
picks the renderer: ``json``, ``console``, or ``auto`` (console at DEBUG).
"""

import logging
import sys
from typing import Any, Dict, Optional, TextIO

import structlog

from .config import settings

SERVICE_NAME = "intent-copilot"

# Keys owned by bind_trade_context; rebinding drops whichever no longer apply
TRADE_KEYS = ("draft_mode", "chain_id", "pair", "side", "token")

NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "anthropic")


def add_service(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def trade_fields(draft: Any) -> Dict[str, Any]:
    """Loggable summary of a draft: mode and chain, plus its pair or side."""
    fields: Dict[str, Any] = {"draft_mode": draft.mode, "chain_id": draft.chain_id}
    if draft.mode == "swap":
        fields["pair"] = f"{draft.source_token}->{draft.dest_token}"
    elif draft.mode == "conditional_order":
        fields["side"] = draft.action
        fields["token"] = draft.token
    return fields


def bind_trade_context(draft: Any) -> Dict[str, Any]:
    """Attach ``draft`` to every later log line in this context."""
    fields = trade_fields(draft)
    structlog.contextvars.unbind_contextvars(*TRADE_KEYS)
    structlog.contextvars.bind_contextvars(**fields)
    return fields


def select_renderer(log_format: str, level: int) -> structlog.types.Processor:
    fmt = (log_format or "auto").lower()
    if fmt == "auto":
        fmt = "console" if level == logging.DEBUG else "json"
    if fmt == "console":
        return structlog.dev.ConsoleRenderer()
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    raise ValueError(f"Unknown log format: {log_format!r} (expected json, console or auto)")


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default: settings.log_level)
        log_format: Override renderer (default: settings.log_format)
        stream: Where log lines go (default: stderr; the CLI prints to stdout)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    renderer = select_renderer(log_format or settings.log_format, level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
