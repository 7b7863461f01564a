"""Localized user-facing strings."""

from __future__ import annotations

_EXPIRED_LABELS = {
    "en": "Expired",
    "zh": "已过期",
}


def get_expired_label(language: str | None = None) -> str:
    if not language:
        return _EXPIRED_LABELS["en"]
    primary = language.replace("-", "_").split("_", 1)[0].lower()
    return _EXPIRED_LABELS.get(primary, _EXPIRED_LABELS["en"])
