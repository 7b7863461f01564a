"""Line logger for verbose and per-hop debug output."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any

_MAX_VALUE_LEN = 160


def log(verbose: bool, message: str, **fields: Any) -> None:
    if not verbose:
        return
    _write_line(f"[{_ts()} UTC] {message}{_format_fields(fields)}\n")


def log_debug(debug: bool, message: str, **fields: Any) -> None:
    if not debug:
        return
    _write_line(f"[{_ts()} UTC][DEBUG] {message}{_format_fields(fields)}\n")


def set_log_file(path: str | None) -> None:
    global _LOG_FILE
    _LOG_FILE = path


def _format_fields(fields: dict[str, Any]) -> str:
    if not fields:
        return ""
    parts = [f"{key}={_shorten(str(value))}" for key, value in fields.items()]
    return " " + " ".join(parts)


def _shorten(value: str) -> str:
    # Signed download URLs carry long query strings.
    if len(value) <= _MAX_VALUE_LEN:
        return value
    return value[: _MAX_VALUE_LEN - 3] + "..."


def _ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _write_line(line: str) -> None:
    if _LOG_FILE:
        with open(_LOG_FILE, "a", encoding="utf-8") as handle:
            handle.write(line)
    else:
        sys.stderr.write(line)


_LOG_FILE: str | None = None
