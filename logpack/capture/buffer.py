"""Non-destructive capture of request and response bodies.

The request body is read through ``Request.body()``. Starlette caches the
bytes on the request and replays them to the downstream app, so the handler
still sees an unconsumed stream.

The response produced by ``call_next`` is a stream. It is drained into
memory and re-emitted as a plain Response with the same status and raw
headers, so the client receives exactly the bytes the handler wrote.
"""

from typing import Iterable, Optional

from starlette.requests import Request
from starlette.responses import Response

DEFAULT_PASSTHROUGH_MEDIA_TYPES = ("text/event-stream",)


def declared_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length header, None when missing or malformed."""
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def decode_body(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


async def read_request_body(request: Request) -> str:
    """Read the request body without consuming it for downstream readers.

    Reads at most the declared Content-Length. A malformed length falls back
    to whatever the client sent.
    """
    body = await request.body()
    length = declared_length(request.headers.get("content-length"))
    if length is not None:
        body = body[:length]
    return decode_body(body)


def is_passthrough(response: Response, media_types: Iterable[str]) -> bool:
    """Whether the response must be streamed through untouched (e.g. SSE)."""
    content_type = response.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in {m.lower() for m in media_types}


async def buffer_response(response: Response) -> tuple[Response, bytes]:
    """Drain a streaming response and return an equivalent buffered one.

    The replacement keeps the status code and the raw header list
    (duplicates and order included) and carries exactly the drained bytes.
    """
    chunks: list[bytes] = []
    async for chunk in response.body_iterator:
        if isinstance(chunk, str):
            chunk = chunk.encode(response.charset)
        chunks.append(chunk)
    body = b"".join(chunks)

    replayed = Response(
        content=body,
        status_code=response.status_code,
        background=response.background,
    )
    replayed.raw_headers = list(response.raw_headers)
    return replayed, body
