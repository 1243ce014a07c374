"""Event subscription transports: push (SSE) and pull (chunked NDJSON).

Both implement the Subscriber protocol and hand the caller a Subscription
whose ``close()`` stops delivery. They differ in how promptly that happens:

    push - the read task is cancelled, so delivery stops at once
    pull - a flag is checked before each chunk; a read already waiting on
           the server is not interrupted
"""
# pylint: disable=protected-access  # subscribers drive the Subscription handles they create

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from quipubase.stream import LineReader, deliver
from quipubase.types import SSEEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[SSEEvent[Any]], Any]

# Only unnamed (or explicitly "message") SSE events reach the callback.
DEFAULT_EVENT_TYPE = "message"


class Subscription:
    """Handle on a running subscription."""

    def __init__(self, url: str, cancel_on_close: bool) -> None:
        self.url = url
        self._cancel_on_close = cancel_on_close
        self._closed = False
        self._task: asyncio.Task | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def done(self) -> bool:
        """True once the read loop has exited."""
        return self._task is None or self._task.done()

    def close(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        logger.info("Closing subscription to %s", self.url)
        if self._cancel_on_close and self._task and not self._task.done():
            self._task.cancel()

    def cancel(self) -> None:
        """Close and cancel the read task whatever the mode."""
        self.close()
        if self._task and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the read loop to finish, re-raising whatever ended it."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not (self._closed and self._task.cancelled()):
                raise

    def _start(self, coro: Any) -> None:
        self._task = asyncio.create_task(coro)

    def _finish(self) -> None:
        self._closed = True


@runtime_checkable
class Subscriber(Protocol):
    """Strategy for turning an events URL into a stream of SSEEvent callbacks."""

    async def subscribe(
        self, client: httpx.AsyncClient, url: str, callback: EventCallback
    ) -> Subscription: ...


def _parse_event(payload: str) -> SSEEvent[Any]:
    return SSEEvent[Any].model_validate(json.loads(payload))


class PushSubscriber:
    """Persistent ``text/event-stream`` connection.

    Messages are framed per SSE: ``data:`` lines accumulate until a blank
    line, then the joined payload is JSON-decoded. Messages carrying a named
    ``event:`` type are skipped. A payload that is not a valid SSEEvent is
    logged and dropped without ending the stream; a transport error is
    logged and does end it.
    """

    async def subscribe(
        self, client: httpx.AsyncClient, url: str, callback: EventCallback
    ) -> Subscription:
        subscription = Subscription(url, cancel_on_close=True)
        subscription._start(self._read_loop(client, url, callback, subscription))
        return subscription

    async def _read_loop(
        self,
        client: httpx.AsyncClient,
        url: str,
        callback: EventCallback,
        subscription: Subscription,
    ) -> None:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        try:
            async with client.stream("GET", url, headers=headers) as response:
                response.raise_for_status()
                logger.info("Event stream open: %s", url)
                data_lines: list[str] = []
                event_type = DEFAULT_EVENT_TYPE
                async for line in response.aiter_lines():
                    if not line:
                        if data_lines and event_type == DEFAULT_EVENT_TYPE:
                            await self._dispatch("\n".join(data_lines), url, callback)
                        data_lines = []
                        event_type = DEFAULT_EVENT_TYPE
                        continue
                    if line.startswith(":"):
                        continue  # keep-alive comment
                    field, _, value = line.partition(":")
                    value = value[1:] if value.startswith(" ") else value
                    if field == "data":
                        data_lines.append(value)
                    elif field == "event":
                        event_type = value or DEFAULT_EVENT_TYPE
        except httpx.HTTPError:
            logger.error("Event stream error for %s", url, exc_info=True)
        finally:
            subscription._finish()

    @staticmethod
    async def _dispatch(payload: str, url: str, callback: EventCallback) -> None:
        try:
            event = _parse_event(payload)
        except (json.JSONDecodeError, ValidationError):
            logger.error("Dropping unparseable event from %s: %r", url, payload, exc_info=True)
            return
        await deliver(callback, event)


class PullSubscriber:
    """Plain GET whose body is read chunk by chunk as line-delimited JSON.

    A malformed line raises ``json.JSONDecodeError`` out of the read task;
    it surfaces from ``Subscription.wait()``.
    """

    async def subscribe(
        self, client: httpx.AsyncClient, url: str, callback: EventCallback
    ) -> Subscription:
        subscription = Subscription(url, cancel_on_close=False)
        subscription._start(self._read_loop(client, url, callback, subscription))
        return subscription

    async def _read_loop(
        self,
        client: httpx.AsyncClient,
        url: str,
        callback: EventCallback,
        subscription: Subscription,
    ) -> None:
        reader = LineReader()
        try:
            async with client.stream("GET", url) as response:
                logger.info("Polling event stream: %s", url)
                async for chunk in response.aiter_bytes():
                    if subscription.closed:
                        return
                    for line in reader.feed(chunk):
                        await deliver(callback, _parse_event(line))
                for line in reader.flush():
                    await deliver(callback, _parse_event(line))
        finally:
            subscription._finish()


_SUBSCRIBERS: dict[str, type] = {
    "push": PushSubscriber,
    "pull": PullSubscriber,
}


def subscriber_for_mode(mode: str) -> Subscriber:
    """Return a fresh Subscriber for ``"push"`` or ``"pull"``."""
    try:
        return _SUBSCRIBERS[mode]()
    except KeyError:
        raise ValueError(
            f"unknown subscribe mode {mode!r}; expected one of {sorted(_SUBSCRIBERS)}"
        ) from None
