"""Device property providers and platform build values."""

from __future__ import annotations

import locale
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from .log_utils import log_debug

_GETPROP_LINE_RE = re.compile(r"^\[(?P<key>[^\]]+)\]:\s*\[(?P<value>.*)\]\s*$")


class PropertyProvider(Protocol):
    def get(self, key: str, default: str | None = None) -> str | None:
        ...


@dataclass
class MappingPropertyProvider:
    values: Mapping[str, str]

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self.values.get(key)
        return value if value else default


@dataclass
class GetpropPropertyProvider:
    """Reads properties by running ``getprop <key>``.

    Use ``command=("adb", "shell", "getprop")`` to query an attached device
    from a workstation. Any failure of the command yields the default.
    """

    command: Sequence[str] = ("getprop",)
    timeout_seconds: float = 5.0
    debug: bool = False

    def get(self, key: str, default: str | None = None) -> str | None:
        if not self.command or shutil.which(self.command[0]) is None:
            return default
        cmd = [*self.command, key]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout_seconds, check=False
            )
        except (OSError, subprocess.SubprocessError) as exc:
            log_debug(self.debug, "getprop failed", key=key, exc=exc)
            return default
        if result.returncode != 0:
            log_debug(self.debug, "getprop failed", key=key, returncode=result.returncode)
            return default
        value = (result.stdout or "").strip()
        return value if value else default


def parse_getprop_dump(text: str) -> dict[str, str]:
    """Parse ``getprop`` output (``[key]: [value]``) or build.prop lines."""
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        match = _GETPROP_LINE_RE.match(line)
        if match:
            values[match.group("key").strip()] = match.group("value").strip()
            continue
        if "=" in line:
            key, value = line.split("=", 1)
            key = key.strip()
            if key:
                values[key] = value.strip()
    return values


def load_getprop_dump(path: str | Path) -> MappingPropertyProvider:
    content = Path(path).read_text(encoding="utf-8", errors="replace")
    return MappingPropertyProvider(parse_getprop_dump(content))


@dataclass(frozen=True)
class DeviceInfo:
    release: str
    model: str
    brand: str
    locale: str

    @staticmethod
    def from_properties(properties: PropertyProvider) -> "DeviceInfo":
        return DeviceInfo(
            release=properties.get("ro.build.version.release", "") or "",
            model=properties.get("ro.product.model", "") or "",
            brand=properties.get("ro.product.brand", "") or "",
            locale=host_locale(),
        )


def host_locale() -> str:
    try:
        language, _ = locale.getlocale()
    except ValueError:
        language = None
    if not language or language in {"C", "POSIX"}:
        return "en_US"
    return language.split(".", 1)[0]
