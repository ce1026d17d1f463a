import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

DEFAULT_PORT = 8080
DEFAULT_HOST = "127.0.0.1"
DEFAULT_ORIGIN = "https://climate-tpbpqp.manus.space"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ServerConfig:
    port: int = DEFAULT_PORT
    root: str = "."
    remote_origin: str = DEFAULT_ORIGIN
    host: str = DEFAULT_HOST
    timeout: float = DEFAULT_TIMEOUT
    log_file: Optional[str] = None
    verbose: bool = False
    banner: bool = True


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def build_parser(env: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fallback-server",
        description="Serve static files locally, proxying anything missing to a remote origin",
    )
    parser.add_argument("-p", "--port", type=_port, default=env.get("FALLBACK_PORT", str(DEFAULT_PORT)),
                        help="Port to listen on (env FALLBACK_PORT)")
    parser.add_argument("-r", "--root", default=env.get("FALLBACK_ROOT", os.getcwd()),
                        help="Directory to serve local files from (env FALLBACK_ROOT)")
    parser.add_argument("-o", "--origin", dest="remote_origin", default=env.get("FALLBACK_ORIGIN", DEFAULT_ORIGIN),
                        help="Remote origin for missing files (env FALLBACK_ORIGIN)")
    parser.add_argument("-H", "--host", default=env.get("FALLBACK_HOST", DEFAULT_HOST),
                        help="Bind address (env FALLBACK_HOST)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="Upstream timeout in seconds")
    parser.add_argument("--log-file", default=None, help="Also write logs to this rotating file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--no-banner", dest="banner", action="store_false", help="Skip the startup panel")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """
    Build a ServerConfig from command-line flags, falling back to
    FALLBACK_* environment variables and then to the defaults.
    """
    parser = build_parser(os.environ if env is None else env)
    args = parser.parse_args(argv)
    return ServerConfig(
        port=args.port,
        root=args.root,
        remote_origin=args.remote_origin,
        host=args.host,
        timeout=args.timeout,
        log_file=args.log_file,
        verbose=args.verbose,
        banner=args.banner,
    )
