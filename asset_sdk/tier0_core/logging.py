"""
asset_sdk.tier0_core.logging
─────────────────────────────
Structured logs via structlog. The core is pure, so it only ever logs at
debug level (decode failures, validation summaries); hosts decide where the
records go.

Encoded records can be large and may carry user content, so byte payloads
bound to a log call are truncated before rendering.

Configure via: ASSET_LOG_LEVEL, ASSET_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from asset_sdk.tier0_core.config import get_config


# ── Configuration ─────────────────────────────────────────────────────────────

def _configure_structlog() -> None:
    config = get_config()
    log_level = config.log_level.upper()
    level = getattr(logging, log_level, logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _truncate_payload_processor,
    ]

    if config.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    sdk_logger = logging.getLogger("asset_sdk")
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(level)


# ── Payload truncation processor ──────────────────────────────────────────────

PAYLOAD_PREVIEW_BYTES = 32


def _truncate_payload_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Replace raw byte values with a short hex preview and their length."""
    for key, value in list(event_dict.items()):
        if isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            preview = raw[:PAYLOAD_PREVIEW_BYTES].hex()
            if len(raw) > PAYLOAD_PREVIEW_BYTES:
                preview += "..."
            event_dict[key] = f"<{len(raw)} bytes {preview}>"
    return event_dict


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name.

    Usage:
        log = get_logger(__name__)
        log.debug("codec.decode_failed", record_type="Asset", offset=12)
    """
    global _configured
    if not _configured:
        _configure_structlog()
        _configured = True
    return structlog.get_logger(name or __name__)


__sdk_export__ = {
    "exports": ["get_logger"],
    "description": "structlog-based structured logging with payload truncation",
    "tier": "tier0_core",
    "module": "logging",
}
