"""
Fallback Server - Wire Format
License: MIT License
Description: Minimal HTTP/1.1 handling on a raw client socket. Reads the
             request head, parses it and serializes responses.
"""

import socket
from http import HTTPStatus
from urllib.parse import unquote, urlsplit

from .model.types import BadRequest, Request, Response

BUFFER_SIZE = 8192
MAX_HEAD_BYTES = 64 * 1024


def read_head(client_socket: socket.socket, max_bytes: int = MAX_HEAD_BYTES) -> bytes:
    """
    Receive bytes until the blank line that ends the request head.

    Returns whatever arrived if the client closes early; an empty result means
    the client sent nothing at all.
    """
    buf = bytearray()
    while b"\r\n\r\n" not in buf:
        if len(buf) > max_bytes:
            raise BadRequest("request head too large", status=431)
        data = client_socket.recv(BUFFER_SIZE)
        if not data:
            break
        buf.extend(data)
    head, _, _ = bytes(buf).partition(b"\r\n\r\n")
    return head


def parse_request(head: bytes) -> Request:
    text = head.decode("iso-8859-1")
    lines = text.split("\r\n")
    parts = lines[0].split()
    if len(parts) != 3:
        raise BadRequest(f"invalid request line: {lines[0]!r}")
    method, target, version = parts
    if not version.startswith("HTTP/"):
        raise BadRequest(f"invalid protocol version: {version!r}")

    # A repeated header keeps its last value.
    headers = {}
    for line in lines[1:]:
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        headers[name.strip()] = value.strip()

    if target.startswith("/"):
        # Origin-form is taken verbatim; urlsplit would read "//host/x" as a netloc.
        raw_path = target
        path, _, _ = target.partition("?")
    else:
        # Absolute-form (GET http://host/x HTTP/1.1) keeps only path+query.
        split = urlsplit(target)
        if not split.scheme or not split.netloc:
            raise BadRequest(f"invalid request target: {target!r}")
        path = split.path or "/"
        raw_path = f"{path}?{split.query}" if split.query else path

    return Request(
        method=method.upper(),
        path=unquote(path),
        raw_path=raw_path,
        version=version,
        headers=headers,
    )


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"


def serialize(response: Response, include_body: bool = True) -> bytes:
    lines = [f"HTTP/1.1 {response.status} {reason_phrase(response.status)}"]
    lines.append(f"Content-Type: {response.content_type}")
    for name, value in response.headers.items():
        if name.lower() in ("content-type", "connection"):
            continue
        lines.append(f"{name}: {value}")
    if response.get_header("Content-Length") is None:
        lines.append(f"Content-Length: {len(response.body)}")
    lines.append("Connection: close")

    head = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1", "replace")
    return head + response.body if include_body else head


def write_response(client_socket: socket.socket, response: Response, include_body: bool = True) -> None:
    client_socket.sendall(serialize(response, include_body))
