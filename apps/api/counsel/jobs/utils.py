"""Shared helpers for worker job handlers."""

from __future__ import annotations

import hashlib


def mask_email(email: str | None) -> str:
    """Log-safe form of an email: short prefix, domain and a stable hash suffix."""
    if not email:
        return ""
    local, _, domain = email.strip().lower().partition("@")
    digest = hashlib.sha256(email.strip().lower().encode()).hexdigest()[:8]
    prefix = local[:2]
    return f"{prefix}...@{domain}#{digest}" if domain else f"{prefix}...#{digest}"
