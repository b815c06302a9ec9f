from __future__ import annotations

import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlparse


def find_port(host: str, preferred: int) -> int:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, preferred))
            return sock.getsockname()[1]
    except OSError:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, 0))
            return sock.getsockname()[1]


class LoopbackReceiver:
    """One-shot local HTTP server that captures the OAuth redirect."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = find_port(host, port)
        self.code: Optional[str] = None
        self.error: Optional[str] = None
        self.state: Optional[str] = None
        self._received = threading.Event()
        self._server: Optional[HTTPServer] = None

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def _handler(self) -> type[BaseHTTPRequestHandler]:
        receiver = self

        class _Handler(BaseHTTPRequestHandler):
            def do_GET(self):  # noqa: N802
                params = parse_qs(urlparse(self.path).query)
                if not params:
                    self.send_response(404)
                    self.end_headers()
                    return
                receiver.code = (params.get("code") or [None])[0]
                receiver.error = (params.get("error") or [None])[0]
                receiver.state = (params.get("state") or [None])[0]
                message = "Authentication complete. You may close this window." if not receiver.error else "Authentication failed."
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(f"<html><body><h2>{message}</h2></body></html>".encode("utf-8"))
                receiver._received.set()

            def log_message(self, fmt: str, *args):  # noqa: D401
                """Silence default request logging."""

        return _Handler

    def __enter__(self) -> "LoopbackReceiver":
        self._server = HTTPServer((self.host, self.port), self._handler())
        thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        thread.start()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None

    def wait(self, timeout: float) -> bool:
        return self._received.wait(timeout=timeout)
