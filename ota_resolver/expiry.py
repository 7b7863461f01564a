"""Expiry helpers for signed download links."""

from __future__ import annotations

import re
import time
from typing import Callable
from urllib.parse import urlparse

from .labels import get_expired_label

_SIGNED_DIGITS_RE = re.compile(r"[+-]?[0-9]+")
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1


def extract_expires_timestamp(url: str) -> int | None:
    try:
        query = urlparse(url).query
    except ValueError:
        return None
    if not query:
        return None
    for segment in query.split("&"):
        if segment.startswith("Expires="):
            return _parse_long(segment[len("Expires="):])
    return None


def _parse_long(raw: str) -> int | None:
    if not _SIGNED_DIGITS_RE.fullmatch(raw) or len(raw.lstrip("+-").lstrip("0")) > 19:
        return None
    value = int(raw)
    if value < _LONG_MIN or value > _LONG_MAX:
        return None
    return value


def format_remaining_time(
    expires_seconds: int,
    now: Callable[[], float] | None = None,
    expired_label: str | None = None,
) -> str:
    current = int((now or time.time)())
    remaining = expires_seconds - current
    if remaining <= 0:
        return expired_label if expired_label is not None else get_expired_label()

    days = remaining // 86400
    hours = (remaining % 86400) // 3600
    minutes = (remaining % 3600) // 60
    seconds = remaining % 60

    parts: list[int] = []
    if days > 0:
        parts.append(days)
    if parts or hours > 0:
        parts.append(hours)
    if parts or minutes > 0:
        parts.append(minutes)
    parts.append(seconds)
    return ":".join(str(part) for part in parts)
