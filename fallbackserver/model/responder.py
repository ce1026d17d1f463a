"""
Fallback Server - Responders
License: MIT License
Description: Response builders for the two kinds of resolved target.

FileResponder turns a LocalFile into a response straight from disk.
ProxyResponder fetches a RemoteProxy URL with requests and relays it.
"""

import logging
import socket
import threading
import time
from typing import Optional

import requests

from .headers import DEFAULT_POLICY, HeaderPolicy
from .mime import content_type_for, content_type_for_url
from .types import LocalReadFailure, RemoteFailure, Response

logger = logging.getLogger("fallbackserver.responder")

CHUNK_SIZE = 8192

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

DEFAULT_TIMEOUT = 30
USER_AGENT = "Mozilla/5.0 (compatible; FallbackServer/1.0; +local development)"


def _abort(upstream: requests.Response, expired: threading.Event):
    """Wake a read blocked on the upstream socket once the deadline has passed."""
    expired.set()
    connection = getattr(upstream.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug(f"Upstream socket already closed: {e}")


class FileResponder:
    """Serves files that the router has already located under the root."""

    def read(self, path: str) -> bytes:
        try:
            with open(path, "rb") as file:
                return file.read()
        except OSError as e:
            raise LocalReadFailure(f"{path}: {e}") from e

    def serve(self, path: str) -> Response:
        try:
            body = self.read(path)
        except LocalReadFailure as e:
            logger.error(f"Failed to read local file {e}")
            return Response.text(500, "Internal Server Error")

        response = Response(status=200, content_type=content_type_for(path), body=body)
        for name, value in NO_CACHE_HEADERS.items():
            response.set_header(name, value)
        response.set_header("Content-Length", str(len(body)))
        return response


class ProxyResponder:
    """
    Relays a GET to the remote origin.

    Attributes:
        session (requests.Session): Session used for every upstream request
        policy (HeaderPolicy): Which upstream headers are copied to the client
        timeout (float): Upstream timeout in seconds
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        policy: HeaderPolicy = DEFAULT_POLICY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.session = session or requests.Session()
        self.policy = policy
        self.timeout = timeout
        self.headers = {
            "User-Agent": USER_AGENT,
            "Accept": "*/*",
        }

    def fetch(self, url: str) -> Response:
        """
        Fetch `url` once and build the relayed response.

        The whole exchange, body included, must finish within `timeout`
        seconds; requests alone only bounds each connect and each read.
        Raises RemoteFailure for anything requests reports as an error and
        when the deadline passes. Non-2xx statuses are not errors; they are
        relayed as-is.
        """
        deadline = time.monotonic() + self.timeout
        expired = threading.Event()
        try:
            with self.session.get(url, headers=self.headers, timeout=self.timeout, stream=True) as upstream:
                watchdog = threading.Timer(max(0.0, deadline - time.monotonic()), _abort, args=(upstream, expired))
                watchdog.daemon = True
                watchdog.start()
                try:
                    # iter_content decodes gzip/deflate as it goes
                    chunks = []
                    for chunk in upstream.iter_content(chunk_size=CHUNK_SIZE):
                        if expired.is_set() or time.monotonic() > deadline:
                            raise RemoteFailure(url, self._timeout_error())
                        chunks.append(chunk)
                finally:
                    watchdog.cancel()
                status = upstream.status_code
                upstream_type = upstream.headers.get("Content-Type")
                relayed = self.policy.filter(upstream.headers)
        except requests.RequestException as e:
            if expired.is_set():
                raise RemoteFailure(url, self._timeout_error()) from e
            raise RemoteFailure(url, e) from e

        # The watchdog can end a close-delimited body early without an error.
        if expired.is_set():
            raise RemoteFailure(url, self._timeout_error())

        body = b"".join(chunks)

        response = Response(
            status=status,
            content_type=upstream_type or content_type_for_url(url),
            body=body,
        )
        for name, value in relayed.items():
            response.set_header(name, value)
        response.set_header("Content-Length", str(len(body)))
        return response

    def _timeout_error(self) -> requests.Timeout:
        return requests.Timeout(f"no complete response within {self.timeout:g}s")

    def proxy(self, url: str) -> Response:
        try:
            response = self.fetch(url)
        except RemoteFailure as e:
            logger.error(f"Proxy request to {e.url} failed: {e.reason}")
            return Response.text(502, "Bad Gateway")

        logger.debug(f"Proxied {url} -> {response.status} ({len(response.body)} bytes)")
        return response

    def close(self):
        self.session.close()
