import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from loggly_shipper import facade
from loggly_shipper.log_setup import disable_debug_output


class RecordingEndpoint:
    """In-memory log endpoint for httpx.MockTransport.

    Records every request and answers with ``status`` (200 by default).
    Setting ``fail_with`` makes it raise a transport error instead.
    """

    def __init__(self, status: int = 200):
        self.status = status
        self.fail_with = None
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        with self._lock:
            self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        return httpx.Response(self.status, text="ok")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def bodies(self) -> list[bytes]:
        with self._lock:
            return [r.content for r in self.requests]

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.requests)


@pytest.fixture
def endpoint():
    return RecordingEndpoint()


@pytest.fixture(autouse=True)
def reset_process_logger():
    """Keep the process-wide logger and debug handler from leaking between tests."""
    yield
    facade.shutdown_logger(flush=False)
    disable_debug_output()


@pytest.fixture
def no_proxy_env(monkeypatch):
    """Loopback requests must not be routed through a proxy from the environment."""
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def http_receiver(no_proxy_env):
    """Run a loopback HTTP server that records POSTs. Yields (server, base_url)."""
    received = []

    class Handler(BaseHTTPRequestHandler):
        def do_POST(self):
            length = int(self.headers.get("Content-Length", 0))
            received.append(
                {
                    "path": self.path,
                    "content_type": self.headers.get("Content-Type"),
                    "body": self.rfile.read(length),
                }
            )
            self.send_response(self.server.status)
            self.end_headers()
            self.wfile.write(b"ok")

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    server.status = 200
    server.received = received
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    yield server, f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
