# =============================================================================
# Core Types & Errors
# =============================================================================

from dataclasses import dataclass, field
from typing import Dict, Optional, Union


class FallbackServerError(Exception):
    """Base class for every error the server knows how to answer."""

    status = 500


class PathTraversal(FallbackServerError):
    """The request path normalizes to somewhere outside the root directory."""

    status = 403


class LocalReadFailure(FallbackServerError):
    status = 500


class RemoteFailure(FallbackServerError):
    status = 502

    def __init__(self, url: str, reason: Exception):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class UnhandledDispatchError(FallbackServerError):
    status = 500


class BadRequest(FallbackServerError):
    status = 400

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


class RootDirectoryMissing(FallbackServerError):
    pass


@dataclass(frozen=True)
class Request:
    """
    A parsed request head.

    `path` is percent-decoded and has no query; `raw_path` is the target as
    sent. `headers` holds one value per name: when a header is repeated, the
    last occurrence wins.
    """

    method: str
    path: str
    raw_path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LocalFile:
    path: str


@dataclass(frozen=True)
class RemoteProxy:
    url: str


ResolvedTarget = Union[LocalFile, RemoteProxy]


@dataclass
class Response:
    """
    An HTTP response under construction.

    Header names are unique ignoring case; setting a header that already
    exists replaces its value but keeps its original position.
    """

    status: int = 200
    content_type: str = "application/octet-stream"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def set_header(self, name: str, value: str) -> None:
        existing = self._find(name)
        if existing is not None:
            self.headers[existing] = value
        else:
            self.headers[name] = value

    def get_header(self, name: str) -> Optional[str]:
        existing = self._find(name)
        return self.headers[existing] if existing is not None else None

    def _find(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None

    @classmethod
    def text(cls, status: int, message: str) -> "Response":
        body = message.encode("utf-8")
        response = cls(status=status, content_type="text/plain; charset=utf-8", body=body)
        response.set_header("Content-Length", str(len(body)))
        return response
