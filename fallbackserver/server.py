"""
Fallback Server
License: MIT License
Description: A single-threaded development server. Every request is answered
             from the root directory when a matching file exists and relayed
             to the remote origin otherwise.
"""

import logging
import os
import signal
import socket
import threading
from typing import Optional, Tuple

from .banner import print_banner
from .config import ServerConfig
from .model.responder import FileResponder, ProxyResponder
from .model.routing import Router
from .model.types import (
    BadRequest,
    LocalFile,
    PathTraversal,
    Request,
    Response,
    RootDirectoryMissing,
    UnhandledDispatchError,
)
from .wire import parse_request, read_head, write_response

CLIENT_TIMEOUT = 10


class FallbackServer:
    """
    Owns the listening socket and runs the accept loop.

    Attributes:
        config (ServerConfig): Startup configuration
        root (str): Absolute root directory
        router (Router): Resolves request paths to targets
        file_responder (FileResponder): Builds responses for local files
        proxy_responder (ProxyResponder): Builds responses from the remote origin
        server_socket (socket): The listening socket, None until bind()
        running (bool): Flag indicating if the accept loop should keep going
    """

    def __init__(
        self,
        config: ServerConfig,
        file_responder: Optional[FileResponder] = None,
        proxy_responder: Optional[ProxyResponder] = None,
    ):
        self.config = config
        self.root = os.path.normpath(os.path.abspath(config.root))
        self.router = Router(self.root, config.remote_origin)
        self.file_responder = file_responder or FileResponder()
        self.proxy_responder = proxy_responder or ProxyResponder(timeout=config.timeout)
        self.server_socket = None
        self.port = None
        self.running = False
        self.logger = logging.getLogger("fallbackserver")

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}/"

    def bind(self):
        """
        Validate the root directory and open the listening socket.

        Raises RootDirectoryMissing before any socket is created.
        """
        if not os.path.isdir(self.root):
            raise RootDirectoryMissing(f"Root directory does not exist: {self.root}")

        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.server_socket.bind((self.config.host, self.config.port))
        except OSError:
            self.cleanup()
            raise
        self.server_socket.listen(5)
        self.server_socket.settimeout(1)
        self.port = self.server_socket.getsockname()[1]

    def dispatch(self, request: Request) -> Tuple[Response, str]:
        """Resolve and answer one request. Returns the response and how it was produced."""
        try:
            target = self.router.resolve(request.path, request.raw_path)
        except PathTraversal:
            self.logger.warning(f"Rejected path outside root: {request.raw_path}")
            return Response.text(403, "Forbidden"), "forbidden"

        if isinstance(target, LocalFile):
            return self.file_responder.serve(target.path), "local"
        return self.proxy_responder.proxy(target.url), "proxy"

    def handle_client(self, client_socket, client_addr=None):
        """
        Read one request from the client, answer it and close the connection.

        Nothing raised while handling a request escapes this method.
        """
        request = None
        try:
            client_socket.settimeout(CLIENT_TIMEOUT)
            head = read_head(client_socket)
            if not head:
                return

            request = parse_request(head)
            response, kind = self.dispatch(request)
            write_response(client_socket, response, include_body=request.method != "HEAD")
            self.logger.info(f"{request.method} {request.raw_path} -> {response.status} ({kind})")

        except BadRequest as e:
            self.logger.warning(f"Bad request from {client_addr}: {e}")
            self._send_error(client_socket, Response.text(e.status, str(e)))
        except Exception as e:
            error = UnhandledDispatchError(str(e))
            target = request.raw_path if request else "<unparsed request>"
            self.logger.exception(f"Unhandled error while handling {target}: {error}")
            self._send_error(client_socket, Response.text(error.status, "Internal Server Error"))
        finally:
            client_socket.close()

    def _send_error(self, client_socket, response: Response):
        try:
            write_response(client_socket, response)
        except OSError as e:
            self.logger.debug(f"Could not deliver {response.status} response: {e}")

    def serve_forever(self):
        """Accept connections one at a time until stop() is called."""
        self.running = True
        while self.running:
            listener = self.server_socket
            if listener is None:
                break
            try:
                client_socket, addr = listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self.running:
                    self.logger.error(f"Socket error: {e}")
                continue

            self.handle_client(client_socket, addr)

    def signal_handler(self, sig, frame):
        self.logger.info("Shutting down the server...")
        self.stop()

    def start(self):
        """Bind, announce the configuration and serve until stopped."""
        self.bind()

        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, self.signal_handler)
            signal.signal(signal.SIGTERM, self.signal_handler)

        self.logger.info(f"Fallback server started on {self.config.host}:{self.port}")
        self.logger.info(f"Root directory: {self.root}")
        self.logger.info(f"Remote origin: {self.router.remote_origin}")
        print(self.url, flush=True)
        if self.config.banner:
            print_banner(self.config, self.root, self.url)

        try:
            self.serve_forever()
        finally:
            self.cleanup()

    def stop(self):
        self.running = False
        self.cleanup()

    def cleanup(self):
        if self.server_socket:
            self.server_socket.close()
            self.server_socket = None
        self.proxy_responder.close()
