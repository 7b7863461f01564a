"""Manual redirect walking for OTA download links."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urljoin

import requests

from .config import ResolverConfig
from .errors import RedirectMissingLocation, ResolutionCancelled, TooManyRedirects, UnexpectedStatus
from .headers import build_headers
from .log_utils import log, log_debug
from .properties import DeviceInfo, GetpropPropertyProvider, PropertyProvider, load_getprop_dump
from .transport import CancelToken, mount_tracking


@dataclass
class RedirectResolver:
    """Follows ``downloadCheck`` redirects one hop at a time.

    Transport-level redirect following is disabled so every 3xx is seen, and
    headers are rebuilt for each hop. The walk stops at the first ``Location``
    that no longer carries the marker and returns that value verbatim.
    Bodies are never read; each response is closed once its status and
    headers have been inspected.
    """

    properties: PropertyProvider
    config: ResolverConfig = field(default_factory=ResolverConfig)
    device: DeviceInfo | None = None
    session_factory: Callable[[], requests.Session] = requests.Session
    now_ms: Callable[[], int] | None = None

    def resolve(self, original_url: str, cancel_token: CancelToken | None = None) -> str:
        if self.config.marker not in original_url:
            log_debug(self.config.debug, "no marker, returning url unchanged", url=original_url)
            return original_url

        token = cancel_token if cancel_token is not None else CancelToken()
        device = self.device or DeviceInfo.from_properties(self.properties)
        with self.session_factory() as session:
            if isinstance(session, requests.Session):
                mount_tracking(session, token)
            final_url = self._walk(session, original_url, device, token)
        log(self.config.verbose, "Resolved download url", url=final_url)
        return final_url

    def _walk(
        self,
        session: requests.Session,
        original_url: str,
        device: DeviceInfo,
        token: CancelToken,
    ) -> str:
        marker = self.config.marker
        current = original_url
        hop = 0
        while hop < self.config.max_hops:
            hop += 1
            _check_cancelled(token)
            headers = build_headers(
                current,
                self.properties,
                device=device,
                now_ms=self.now_ms,
                user_id=self.config.user_id,
            )
            log_debug(self.config.debug, "hop request", hop=hop, url=current)
            response = None
            try:
                response = self._request_no_redirect(session, current, headers, token)
                _check_cancelled(token)
                code = response.status_code
                log_debug(self.config.debug, "hop response", hop=hop, status=code)
                if 300 <= code <= 399:
                    location = response.headers.get("Location")
                    if location is None:
                        raise RedirectMissingLocation()
                    next_url = urljoin(current, location)
                    if marker not in location:
                        log_debug(self.config.debug, "marker gone, early exit", location=location)
                        return location
                    current = next_url
                    continue
                if code == 200:
                    return response.url
                raise UnexpectedStatus(code)
            except requests.RequestException as exc:
                if token.cancelled:
                    raise ResolutionCancelled() from exc
                log_debug(self.config.debug, "hop failed", hop=hop, exc=exc)
                raise
            finally:
                token.attach_response(None)
                if response is not None:
                    response.close()
        raise TooManyRedirects()

    def _request_no_redirect(
        self,
        session: requests.Session,
        url: str,
        headers: dict[str, str],
        token: CancelToken,
    ) -> requests.Response:
        response = session.request(
            "GET",
            url,
            allow_redirects=False,
            stream=True,
            timeout=self.config.timeout,
            headers=headers,
        )
        token.attach_response(response)
        return response


def _check_cancelled(token: CancelToken) -> None:
    if token.cancelled:
        raise ResolutionCancelled()


def properties_from_config(config: ResolverConfig) -> PropertyProvider:
    if config.props_file:
        return load_getprop_dump(config.props_file)
    return GetpropPropertyProvider(debug=config.debug)


def resolve_url(
    url: str,
    properties: PropertyProvider | None = None,
    config: ResolverConfig | None = None,
) -> str:
    config = config or ResolverConfig()
    if properties is None:
        properties = properties_from_config(config)
    return RedirectResolver(properties=properties, config=config).resolve(url)


async def resolve_url_async(
    url: str,
    properties: PropertyProvider | None = None,
    config: ResolverConfig | None = None,
    resolver: RedirectResolver | None = None,
) -> str:
    """Run ``resolve`` on a worker thread; cancelling the task aborts the live hop."""
    if resolver is None:
        config = config or ResolverConfig()
        if properties is None:
            properties = properties_from_config(config)
        resolver = RedirectResolver(properties=properties, config=config)
    token = CancelToken()
    try:
        return await asyncio.to_thread(resolver.resolve, url, token)
    except asyncio.CancelledError:
        token.cancel()
        raise
