"""Failure kinds raised while resolving a download URL."""

from __future__ import annotations

import requests


class ResolveError(OSError):
    """Base class for classified resolution failures."""


class RedirectMissingLocation(ResolveError):
    def __init__(self, message: str = "Redirect without Location header") -> None:
        super().__init__(message)


class UnexpectedStatus(ResolveError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Unexpected response code: {status_code}")
        self.status_code = status_code


class TooManyRedirects(ResolveError):
    def __init__(self, message: str = "Too many redirects") -> None:
        super().__init__(message)


class ResolutionCancelled(ResolveError):
    def __init__(self, message: str = "Resolution cancelled") -> None:
        super().__init__(message)


# Connect/read failures surface as the transport's own exception type.
TransportError = requests.RequestException
