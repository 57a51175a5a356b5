"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any

_REDACTED_SUFFIX = "***"


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def redact_secret(value: str | None, *, visible: int = 8) -> str:
    """Keep only a short prefix of a caller-provided secret."""
    if not value:
        return _REDACTED_SUFFIX

    # Short secrets would be fully disclosed by the fixed-size prefix.
    shown = min(visible, len(value) // 2)
    return f"{value[:shown]}{_REDACTED_SUFFIX}"
