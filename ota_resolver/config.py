"""Configuration helpers for the OTA URL resolver."""

import os
from pathlib import Path
from dataclasses import dataclass

DEFAULT_MARKER = "downloadCheck"
DEFAULT_USER_ID = "oplus-ota|16000015"
_TRUE_VALUES = {"1", "true", "yes"}
_ENV_PREFIX = "OTA_RESOLVER_"


@dataclass(frozen=True)
class ResolverConfig:
    max_hops: int = 10
    connect_timeout_seconds: float = 15.0
    read_timeout_seconds: float = 15.0
    marker: str = DEFAULT_MARKER
    user_id: str = DEFAULT_USER_ID
    props_file: str | None = None
    language: str | None = None
    verbose: bool = False
    debug: bool = False

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout_seconds, self.read_timeout_seconds)

    @staticmethod
    def from_env() -> "ResolverConfig":
        _load_dotenv()
        defaults = ResolverConfig()
        return ResolverConfig(
            max_hops=_parse_int(os.getenv("OTA_RESOLVER_MAX_HOPS"), defaults.max_hops),
            connect_timeout_seconds=_parse_float(
                os.getenv("OTA_RESOLVER_CONNECT_TIMEOUT"), defaults.connect_timeout_seconds
            ),
            read_timeout_seconds=_parse_float(
                os.getenv("OTA_RESOLVER_READ_TIMEOUT"), defaults.read_timeout_seconds
            ),
            marker=os.getenv("OTA_RESOLVER_MARKER") or defaults.marker,
            user_id=os.getenv("OTA_RESOLVER_USER_ID") or defaults.user_id,
            props_file=os.getenv("OTA_RESOLVER_PROPS_FILE"),
            language=os.getenv("OTA_RESOLVER_LANGUAGE"),
            verbose=os.getenv("OTA_RESOLVER_VERBOSE", "false").lower() in _TRUE_VALUES,
            debug=os.getenv("OTA_RESOLVER_DEBUG", "false").lower() in _TRUE_VALUES,
        )


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _load_dotenv(path: Path = Path(".env")) -> None:
    """Copy OTA_RESOLVER_* entries from a dotenv file into the environment.

    Variables already set in the environment win. Accepts an optional
    ``export`` prefix and trailing ``# comments`` on unquoted values.
    """
    if not path.is_file():
        return
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        return

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if not key.startswith(_ENV_PREFIX) or key in os.environ:
            continue
        os.environ[key] = _unquote(value)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value.split(" #", 1)[0].rstrip()
