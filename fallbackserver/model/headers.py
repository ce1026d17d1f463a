from typing import Dict, Iterable, Mapping

# Hop-by-hop and session headers that must not reach the client.
TRANSPORT_HEADERS = (
    "Transfer-Encoding",
    "Connection",
    "Keep-Alive",
    "Content-Encoding",
    "Content-Length",
    "Set-Cookie",
)

# Recomputed locally once the body has been decompressed and measured.
CONTENT_HEADERS = (
    "Content-Type",
    "Content-Length",
    "Content-Encoding",
)


class HeaderPolicy:
    """Allow-by-default relay policy with a case-insensitive deny-list."""

    def __init__(self, denied: Iterable[str]):
        self.denied = frozenset(name.lower() for name in denied)

    def allows(self, name: str) -> bool:
        return name.lower() not in self.denied

    def filter(self, headers: Mapping[str, str]) -> Dict[str, str]:
        """Return the relayable headers, keeping the upstream order."""
        return {name: value for name, value in headers.items() if self.allows(name)}


DEFAULT_POLICY = HeaderPolicy(TRANSPORT_HEADERS + CONTENT_HEADERS)
