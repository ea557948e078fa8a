"""Request/response snapshots the filters and archive builder read.

The snapshots are plain data so filters and the archive builder never touch
the live Starlette objects (whose bodies are streams).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response


def _decode_headers(raw: list[tuple[bytes, bytes]]) -> list[tuple[str, str]]:
    return [(k.decode("latin-1"), v.decode("latin-1")) for k, v in raw]


@dataclass(frozen=True)
class RequestSnapshot:
    """The parts of a request written to the ``request`` archive entry."""

    method: str
    path: str
    protocol: str = "HTTP/1.1"
    host: str = ""
    query_string: str = ""
    headers: list[tuple[str, str]] = field(default_factory=list)

    @property
    def content_type(self) -> Optional[str]:
        """Declared media type without parameters, lowercased."""
        for name, value in self.headers:
            if name.lower() == "content-type":
                return value.split(";", 1)[0].strip().lower() or None
        return None

    @classmethod
    def from_request(cls, request: Request) -> "RequestSnapshot":
        query = request.url.query
        return cls(
            method=request.method,
            path=request.url.path,
            protocol=f"HTTP/{request.scope.get('http_version', '1.1')}",
            host=request.headers.get("host", request.url.netloc),
            query_string=f"?{query}" if query else "",
            headers=_decode_headers(list(request.headers.raw)),
        )


@dataclass(frozen=True)
class ResponseSnapshot:
    """Status and headers of the response the handler produced."""

    status_code: int
    headers: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_response(cls, response: Response) -> "ResponseSnapshot":
        return cls(
            status_code=response.status_code,
            headers=_decode_headers(list(response.raw_headers)),
        )


@dataclass(frozen=True)
class CaptureContext:
    """Everything known about one finished exchange."""

    correlation_id: str
    request: RequestSnapshot
    response: Optional[ResponseSnapshot] = None

    @property
    def status_code(self) -> int:
        """Response status, or 0 when the handler produced no response."""
        return self.response.status_code if self.response is not None else 0

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600
