"""HTTP client for the Quipubase document-collection service.

Document CRUD and queries all go through one PUT dispatch carrying an
ActionRequest; collection management uses plain REST verbs; events are
published with POST and consumed through a pluggable Subscriber.

Responses are JSON-decoded unconditionally. A non-JSON error body raises
a decode error rather than coming back as a Status.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

import httpx

from quipubase.config import ClientConfig
from quipubase.schema import generate_json_schema
from quipubase.stream import LineCallback, use_stream
from quipubase.subscribe import EventCallback, Subscriber, Subscription, subscriber_for_mode
from quipubase.types import ActionRequest, Event, JsonSchema, to_jsonable

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLLECTIONS_ENDPOINT = "/v1/collections"
EVENTS_ENDPOINT = "/v1/events"


def build_url(base_url: str, endpoint: str, id: str | None = None) -> str:  # pylint: disable=redefined-builtin
    """Concatenate base URL, endpoint and ``/id``. No escaping or normalization."""
    return f"{base_url}{endpoint}{f'/{id}' if id else ''}"


class QuipuBase(Generic[T]):
    """Async client for one Quipubase deployment.

    ``T`` is the document type the caller expects back; it is a static hint
    only and responses are not validated against it.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        config: ClientConfig | None = None,
        subscriber: Subscriber | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        config = config or ClientConfig()
        self.base_url = base_url or config.base_url
        self._subscriber = subscriber or subscriber_for_mode(config.subscribe_mode)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)
        self._subscriptions: set[Subscription] = set()

    @classmethod
    def from_env(cls, **kwargs: Any) -> QuipuBase[Any]:
        """Construct from QUIPUBASE_* environment variables."""
        return cls(config=ClientConfig.from_env(), **kwargs)

    def build_url(self, endpoint: str, id: str | None = None) -> str:  # pylint: disable=redefined-builtin
        return build_url(self.base_url, endpoint, id)

    def get_json_schema(self, data: Mapping[str, Any], collection_id: str) -> JsonSchema:
        """Infer a schema describing ``data``, titled after the collection."""
        return generate_json_schema(data, collection_id)

    async def fetch(
        self,
        action_request: ActionRequest,
        collection_id: str,
        endpoint: str = COLLECTIONS_ENDPOINT,
    ) -> Any:
        """Dispatch an ActionRequest to a collection and return the decoded JSON."""
        url = self.build_url(endpoint, collection_id)
        logger.debug("PUT %s event=%s", url, action_request.event.value)
        r = await self._client.put(url, json=action_request.to_dict())
        return r.json()

    # -- Collection management --

    async def create_collection(self, schema: JsonSchema) -> dict[str, Any]:
        """Create a collection; the reply is shaped like CollectionType."""
        url = self.build_url(COLLECTIONS_ENDPOINT)
        logger.debug("POST %s", url)
        r = await self._client.post(url, json=to_jsonable(schema))
        return r.json()

    async def get_collection(self, collection_id: str) -> dict[str, Any]:
        url = self.build_url(COLLECTIONS_ENDPOINT, collection_id)
        logger.debug("GET %s", url)
        r = await self._client.get(url)
        return r.json()

    async def delete_collection(self, collection_id: str) -> dict[str, bool]:
        url = self.build_url(COLLECTIONS_ENDPOINT, collection_id)
        logger.debug("DELETE %s", url)
        r = await self._client.delete(url, headers={"Content-Type": "application/json"})
        return r.json()

    async def list_collections(self, limit: int = 100, offset: int = 0) -> list[Any]:
        url = self.build_url(COLLECTIONS_ENDPOINT)
        logger.debug("GET %s limit=%d offset=%d", url, limit, offset)
        r = await self._client.get(url, params={"limit": limit, "offset": offset})
        return r.json()

    # -- Document operations --

    async def create(self, collection_id: str, data: T) -> T:
        request = ActionRequest(event=Event.CREATE, data=to_jsonable(data))
        return await self.fetch(request, collection_id)

    async def read(self, collection_id: str, id: str) -> T:  # pylint: disable=redefined-builtin
        request = ActionRequest(event=Event.READ, id=id)
        return await self.fetch(request, collection_id)

    async def update(self, collection_id: str, id: str, data: Mapping[str, Any]) -> T:  # pylint: disable=redefined-builtin
        request = ActionRequest(event=Event.UPDATE, id=id, data=to_jsonable(data))
        return await self.fetch(request, collection_id)

    async def delete(self, collection_id: str, id: str) -> dict[str, Any]:  # pylint: disable=redefined-builtin
        """Delete one document; the reply is shaped like Status."""
        request = ActionRequest(event=Event.DELETE, id=id)
        return await self.fetch(request, collection_id)

    async def query(self, collection_id: str, data: Mapping[str, Any]) -> list[T]:
        """Find documents matching the partial document ``data``."""
        request = ActionRequest(event=Event.QUERY, data=to_jsonable(data))
        return await self.fetch(request, collection_id)

    # -- Pub/sub --

    async def publish_event(
        self, collection_id: str, action_request: ActionRequest
    ) -> Any:
        url = self.build_url(EVENTS_ENDPOINT, collection_id)
        logger.debug("POST %s event=%s", url, action_request.event.value)
        r = await self._client.post(url, json=action_request.to_dict())
        return r.json()

    async def subscribe_to_events(
        self, collection_id: str, callback: EventCallback
    ) -> Subscription:
        """Start delivering the collection's events to ``callback``.

        Returns a Subscription; call its ``close()`` to stop.
        """
        url = self.build_url(EVENTS_ENDPOINT, collection_id)
        self._subscriptions = {s for s in self._subscriptions if not s.done}
        subscription = await self._subscriber.subscribe(self._client, url, callback)
        self._subscriptions.add(subscription)
        return subscription

    async def stream(
        self,
        endpoint: str,
        data: Any,
        callback: LineCallback,
        id: str | None = None,  # pylint: disable=redefined-builtin
    ) -> None:
        """POST ``data`` to an endpoint and feed each streamed line to ``callback``."""
        await use_stream(self._client, self.build_url(endpoint, id), data, callback)

    # -- Lifecycle --

    async def close(self) -> None:
        """Stop live subscriptions and release the HTTP client.

        An injected HTTP client is left open for its owner.
        """
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> QuipuBase[T]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
