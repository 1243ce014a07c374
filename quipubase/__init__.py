"""Async Python client for the Quipubase document-collection service."""

from quipubase.client import QuipuBase, build_url
from quipubase.config import ClientConfig
from quipubase.logging_config import log_init
from quipubase.schema import generate_json_schema, infer_schema
from quipubase.stream import LineReader, NoResponseBody, QuipuBaseError, read_lines, use_stream
from quipubase.subscribe import (
    PullSubscriber,
    PushSubscriber,
    Subscriber,
    Subscription,
    subscriber_for_mode,
)
from quipubase.types import (
    ActionRequest,
    CollectionType,
    Event,
    JsonSchema,
    SSEEvent,
    Status,
)

__all__ = [
    "ActionRequest",
    "ClientConfig",
    "CollectionType",
    "Event",
    "JsonSchema",
    "LineReader",
    "NoResponseBody",
    "PullSubscriber",
    "PushSubscriber",
    "QuipuBase",
    "QuipuBaseError",
    "SSEEvent",
    "Status",
    "Subscriber",
    "Subscription",
    "build_url",
    "generate_json_schema",
    "infer_schema",
    "log_init",
    "read_lines",
    "subscriber_for_mode",
    "use_stream",
]
