import gzip
import logging
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from fallbackserver.config import ServerConfig
from fallbackserver.server import FallbackServer

INDEX_HTML = b"<html>A</html>"
APP_JS = b"console.log('app');\n"
GZIP_PAYLOAD = b"hello from the origin\n" * 200
SLOW_BODY = b"dripping"


class OriginHandler(BaseHTTPRequestHandler):
    """Stand-in for the remote origin; records every request it receives."""

    def do_GET(self):
        # the target as sent; http.server collapses a leading "//" in self.path
        self.server.seen.append((self.requestline.split()[1], dict(self.headers)))

        if self.path.startswith("/missing.js"):
            self._send(404, b"not here", [("Content-Type", "text/plain")])
        elif self.path == "/compressed.txt":
            body = gzip.compress(GZIP_PAYLOAD)
            self._send(200, body, [("Content-Type", "text/plain"), ("Content-Encoding", "gzip")])
        elif self.path.startswith("/echo"):
            self._send(200, self.path.encode("utf-8"), [
                ("Content-Type", "text/plain; charset=utf-8"),
                ("X-Origin", "yes"),
                ("Set-Cookie", "session=abc"),
                ("Keep-Alive", "timeout=5"),
            ])
        elif self.path == "/untyped/data.json":
            self._send(200, b"{}", [])
        elif self.path == "/slow":
            self._drip(SLOW_BODY, 0.5)
        elif self.path == "/broken":
            self._send(500, b"upstream exploded", [("Content-Type", "text/plain")])
        else:
            self._send(200, b"origin:" + self.path.encode("utf-8"), [("Content-Type", "text/html")])

    def _send(self, status, body, headers):
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _drip(self, body, interval):
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        for i in range(len(body)):
            try:
                self.wfile.write(body[i:i + 1])
            except OSError:
                return
            time.sleep(interval)

    def log_message(self, fmt, *args):
        return


@pytest.fixture
def public(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "app.js").write_bytes(APP_JS)
    (root / "css").mkdir()
    (root / "css" / "site.css").write_bytes(b"body { margin: 0; }")
    (tmp_path / "secret.txt").write_bytes(b"outside the root")
    return root


@pytest.fixture
def origin():
    httpd = HTTPServer(("127.0.0.1", 0), OriginHandler)
    httpd.seen = []
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    httpd.url = f"http://127.0.0.1:{httpd.server_address[1]}"
    yield httpd
    httpd.shutdown()
    httpd.server_close()
    thread.join(timeout=5)


@pytest.fixture
def server(public, origin):
    config = ServerConfig(port=0, root=str(public), remote_origin=origin.url, banner=False, timeout=5)
    srv = FallbackServer(config)
    srv.bind()
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.stop()
    thread.join(timeout=5)


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("fallbackserver")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def raw_request(port, data):
    """Send raw bytes to the server and split its reply into (status, headers, body)."""
    with socket.create_connection(("127.0.0.1", port), timeout=10) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    reply = b"".join(chunks)
    head, _, body = reply.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split()[1])
    headers = {}
    for line in lines[1:]:
        name, value = line.split(":", 1)
        headers[name.strip().lower()] = value.strip()
    return status, headers, body


def raw_get(port, target, method="GET"):
    return raw_request(port, f"{method} {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("latin-1"))
