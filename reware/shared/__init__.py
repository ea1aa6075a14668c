"""Shared utilities: logging setup and cross-cutting helpers. No business logic."""

from reware.shared.telemetry import get_logger, setup_logging
from reware.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "setup_logging",
    "get_logger",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
]
