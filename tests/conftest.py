from __future__ import annotations

import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from ota_resolver.properties import DeviceInfo, MappingPropertyProvider


class FakeResponse:
    def __init__(self, status_code: int, url: str, location: str | None = None) -> None:
        self.status_code = status_code
        self.url = url
        self.headers = CaseInsensitiveDict()
        if location is not None:
            self.headers["Location"] = location
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Replays scripted hops; each entry is a FakeResponse or an exception."""

    def __init__(self, script: list) -> None:
        self.script = list(script)
        self.calls: list[dict] = []
        self.responses: list[FakeResponse] = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.script:
            raise AssertionError(f"unexpected request to {url}")
        step = self.script.pop(0)
        if isinstance(step, BaseException):
            raise step
        self.responses.append(step)
        return step

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@pytest.fixture
def properties():
    return MappingPropertyProvider(
        {
            "persist.sys.locale": "zh-CN",
            "ro.build.version.release": "15",
            "ro.product.model": "PJZ110",
            "ro.product.brand": "OnePlus",
            "ro.build.version.oplusrom": "V15.0",
            "ro.build.version.ota": "PJZ110_11.F.13_2130_202501010000",
            "ro.product.name": "PJZ110",
            "ro.build.oplus_nv_id": "10010111",
            "ro.separate.soft": "23801",
        }
    )


@pytest.fixture
def device():
    return DeviceInfo(release="15", model="PJZ110", brand="OnePlus", locale="en_US")


@pytest.fixture
def hop():
    return FakeResponse


@pytest.fixture
def make_session():
    return FakeSession


def local_session() -> requests.Session:
    session = requests.Session()
    session.trust_env = False
    return session


@pytest.fixture
def session_factory():
    return local_session


class _GatewayHandler(BaseHTTPRequestHandler):
    """/start redirects to /slow, which answers 200 and trickles its body."""

    chunk = b"x" * 1_000_000
    chunk_delay = 2.0

    def do_GET(self):
        self.server.seen.append(
            {"path": self.path, "id": self.headers.get("id"), "userId": self.headers.get("userId")}
        )
        if self.path.startswith("/start/"):
            self.send_response(302)
            self.send_header("Location", "/slow/downloadCheck?g=SLOW1")
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        self.send_response(200)
        self.send_header("Content-Length", str(len(self.chunk) * 3))
        self.end_headers()
        try:
            for _ in range(3):
                time.sleep(self.chunk_delay)
                self.wfile.write(self.chunk)
        except OSError:
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def gateway_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _GatewayHandler)
    server.daemon_threads = True
    server.seen = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    yield server
    server.shutdown()
    server.server_close()


class SilentServer:
    """Accepts one request and never answers; records when the client hangs up."""

    def __init__(self) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self._listener.settimeout(10)
        self.url = f"http://127.0.0.1:{self._listener.getsockname()[1]}/x/downloadCheck?g=1"
        self.request_seen = threading.Event()
        self.client_closed = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError:
            return
        with conn:
            conn.settimeout(10)
            data = b""
            try:
                while b"\r\n\r\n" not in data:
                    chunk = conn.recv(4096)
                    if not chunk:
                        return
                    data += chunk
                self.request_seen.set()
                while conn.recv(4096):
                    pass
            except OSError:
                return
            self.client_closed.set()

    def close(self) -> None:
        self._listener.close()


@pytest.fixture
def silent_server():
    server = SilentServer()
    yield server
    server.close()
