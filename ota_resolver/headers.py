"""Request headers expected by the OTA download gateway."""

from __future__ import annotations

import time
from typing import Callable
from urllib.parse import urlparse

from .config import DEFAULT_USER_ID
from .properties import DeviceInfo, PropertyProvider


def build_headers(
    url: str,
    properties: PropertyProvider,
    device: DeviceInfo | None = None,
    now_ms: Callable[[], int] | None = None,
    user_id: str = DEFAULT_USER_ID,
) -> dict[str, str]:
    device = device or DeviceInfo.from_properties(properties)
    clock = now_ms or _current_millis
    headers: dict[str, str] = {}

    headers["language"] = properties.get("persist.sys.locale") or device.locale
    headers["androidVersion"] = f"Android {device.release}"
    headers["colorOSVersion"] = _color_os_version(properties)
    _put_optional(headers, "otaVersion", properties.get("ro.build.version.ota"))
    headers["model"] = properties.get("ro.product.name") or device.model
    headers["mode"] = properties.get("sys.ota.test") or "0"
    _put_optional(headers, "nvCarrier", properties.get("ro.build.oplus_nv_id"))
    headers["brand"] = device.brand
    _put_optional(headers, "osType", properties.get("ro.oplus.image.my_stock.type"))
    headers["operator"] = (
        properties.get("persist.sys.channel.info")
        or properties.get("ro.oplus.pipeline.carrier")
        or "default"
    )
    _put_optional(headers, "prjNum", properties.get("ro.separate.soft"))
    _put_optional(headers, "id", extract_id(url))
    headers["ts"] = str(clock())
    headers["userId"] = user_id
    return headers


def extract_id(url: str) -> str:
    query = urlparse(url).query
    if not query:
        return ""
    for segment in query.split("&"):
        if segment.startswith("g="):
            return segment[len("g="):]
    return ""


def _color_os_version(properties: PropertyProvider) -> str:
    version = properties.get("ro.build.version.oplusrom") or ""
    return "ColorOS" + version.replace("V", "")


def _put_optional(headers: dict[str, str], name: str, value: str | None) -> None:
    if value:
        headers[name] = value


def _current_millis() -> int:
    return time.time_ns() // 1_000_000
