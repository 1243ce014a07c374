"""Line readers for streamed HTTP bodies.

Works for both NDJSON and SSE ``data:`` framing: a leading ``data: `` is
stripped from each line, and blank lines and the ``[DONE]`` terminator are
dropped before the consumer sees anything.
"""

from __future__ import annotations

import codecs
import inspect
import logging
from typing import Any, AsyncIterable, Callable

import httpx

from quipubase.types import to_jsonable

logger = logging.getLogger(__name__)

DONE_TOKEN = "[DONE]"
DATA_PREFIX = "data: "

LineCallback = Callable[[str], Any]


class QuipuBaseError(Exception):
    """Base class for errors raised by this client itself."""


class NoResponseBody(QuipuBaseError):
    """A streaming request came back without a body to read."""


def _clean(raw: str) -> str | None:
    line = raw[len(DATA_PREFIX):] if raw.startswith(DATA_PREFIX) else raw
    line = line.strip()
    if not line or line == DONE_TOKEN:
        return None
    return line


class LineReader:
    """Incremental splitter: buffers partial lines across chunk boundaries.

    Emitted lines carry a trailing newline. Bytes are decoded as UTF-8
    incrementally, so a multi-byte character split between chunks is safe.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._buffer = ""

    def feed(self, chunk: str | bytes) -> list[str]:
        """Add a chunk and return every line completed by it."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        *complete, self._buffer = self._buffer.split("\n")
        return [f"{line}\n" for line in map(_clean, complete) if line is not None]

    def flush(self) -> list[str]:
        """Return whatever is left once the source is exhausted."""
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        line = _clean(remainder) if remainder else None
        return [] if line is None else [f"{line}\n"]


async def deliver(callback: Callable[[Any], Any], value: Any) -> None:
    """Invoke a consumer callback, awaiting it if it is a coroutine function."""
    result = callback(value)
    if inspect.isawaitable(result):
        await result


async def read_lines(
    chunks: AsyncIterable[str | bytes], callback: LineCallback
) -> None:
    """Feed every chunk through a LineReader, calling ``callback`` per line."""
    reader = LineReader()
    async for chunk in chunks:
        for line in reader.feed(chunk):
            await deliver(callback, line)
    for line in reader.flush():
        await deliver(callback, line)


async def use_stream(
    client: httpx.AsyncClient,
    url: str,
    data: Any,
    callback: LineCallback,
    **kwargs: Any,
) -> None:
    """POST ``data`` as JSON and stream the response body line by line.

    Extra keyword arguments go to ``client.stream``. Raises NoResponseBody
    when the server answers without a body.
    """
    logger.debug("POST %s (streaming)", url)
    async with client.stream("POST", url, json=to_jsonable(data), **kwargs) as response:
        if response.status_code == 204 or response.headers.get("content-length") == "0":
            raise NoResponseBody(f"No response body from {url}")
        await read_lines(response.aiter_bytes(), callback)
