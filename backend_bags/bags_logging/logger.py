"""
structlog setup for Backend Bags.

Every module logs through get_logger(__name__) with a snake_case event and
keyword fields:

    logger.info("claims_report_built", wallet=wallet[:8] + "...", claim_count=2)

Output keys: timestamp (ISO 8601 UTC), level, event_type, message, logger.
Values carrying a Helius "api-key=" query are masked before rendering, so RPC
URLs and httpx error strings can be logged as-is.

LOG_LEVEL (default INFO) and LOG_FORMAT ("json" or "console") are read once at
import. No backend_bags imports here; everything else imports this package.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

_API_KEY_PARAM = "api-key="


def mask_url(url: str) -> str:
    """Hide an api-key query value so RPC URLs can be logged."""
    if _API_KEY_PARAM in url:
        return url.split(_API_KEY_PARAM)[0] + _API_KEY_PARAM + "***"
    return url


def _mask_api_keys(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if isinstance(value, str) and _API_KEY_PARAM in value:
            event_dict[key] = mask_url(value)
    return event_dict


def _add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' becomes event_type; message mirrors it unless given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            _mask_api_keys,
            _add_timestamp,
            _event_type,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, LOG_LEVEL, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name).bind(logger=name)
