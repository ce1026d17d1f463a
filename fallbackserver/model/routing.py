"""
Fallback Server - Routing
License: MIT License
Description: Maps request paths to a local file under the root directory or
             to the remote origin, rejecting paths that escape the root.
"""

import os

from .types import LocalFile, PathTraversal, RemoteProxy, ResolvedTarget


def is_descendant(candidate: str, root: str) -> bool:
    """
    Check that `candidate` is `root` itself or lies below it.

    Both paths must already be absolute and normalized. The comparison is
    bounded by the path separator, so `/srv/public-evil` is not inside
    `/srv/public`. Case folding follows the platform (os.path.normcase).
    """
    candidate = os.path.normcase(candidate)
    root = os.path.normcase(root)
    if candidate == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return candidate.startswith(prefix)


class Router:
    """
    Maps a request path to a local file under the root directory or to the
    remote origin.

    Attributes:
        root (str): Absolute, normalized root directory
        remote_origin (str): Base URL used when no local file matches
    """

    def __init__(self, root: str, remote_origin: str):
        self.root = os.path.normpath(os.path.abspath(root))
        self.remote_origin = remote_origin.rstrip("/")

    def local_candidate(self, request_path: str) -> str:
        """
        Build the normalized filesystem path for a request path.

        Raises PathTraversal if it escapes the root. Never touches the disk.
        """
        if "\x00" in request_path:
            raise PathTraversal(request_path)

        if request_path == "/":
            relative = "index.html"
        else:
            relative = request_path.lstrip("/")

        candidate = os.path.normpath(os.path.join(self.root, relative))
        if not is_descendant(candidate, self.root):
            raise PathTraversal(request_path)
        return candidate

    def remote_url(self, raw_path: str) -> str:
        if not raw_path.startswith("/"):
            raw_path = "/" + raw_path
        return self.remote_origin + raw_path

    def resolve(self, request_path: str, raw_path: str) -> ResolvedTarget:
        """
        Resolve a request to its target.

        Args:
            request_path (str): Decoded absolute path, without query string
            raw_path (str): Path and query exactly as the client sent them

        Returns:
            LocalFile if a regular file exists under the root, else RemoteProxy
            pointing at the remote origin with the raw path appended.
        """
        candidate = self.local_candidate(request_path)
        if os.path.isfile(candidate):
            return LocalFile(candidate)
        return RemoteProxy(self.remote_url(raw_path))
