"""Local static-file development server with a remote-origin fallback proxy."""

from .config import ServerConfig, parse_args
from .model.headers import DEFAULT_POLICY, HeaderPolicy
from .model.responder import FileResponder, ProxyResponder
from .model.routing import Router
from .model.types import (
    BadRequest,
    FallbackServerError,
    LocalFile,
    LocalReadFailure,
    PathTraversal,
    RemoteFailure,
    RemoteProxy,
    Request,
    Response,
    RootDirectoryMissing,
    UnhandledDispatchError,
)
from .server import FallbackServer

__all__ = [
    # Server
    "FallbackServer",
    "ServerConfig",
    "parse_args",
    # Routing & responders
    "Router",
    "FileResponder",
    "ProxyResponder",
    "HeaderPolicy",
    "DEFAULT_POLICY",
    # Types
    "Request",
    "Response",
    "LocalFile",
    "RemoteProxy",
    # Errors
    "FallbackServerError",
    "PathTraversal",
    "LocalReadFailure",
    "RemoteFailure",
    "UnhandledDispatchError",
    "BadRequest",
    "RootDirectoryMissing",
]
