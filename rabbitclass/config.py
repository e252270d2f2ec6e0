"""Connection, consumer and producer configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class ConnectionConfiguration:
    """Where and how to log in to the broker."""

    hostname: str
    username: str
    password: str = field(repr=False)
    vhost: str
    port: int


@dataclass
class ConsumerConfiguration:
    """Settings shared by every kind of consumer."""

    channel_id: int = field(kw_only=True)


@dataclass
class DirectConsumerConfiguration(ConsumerConfiguration):
    """Consume straight from a named queue."""

    queue: str
    channel_id: int = field(default=1, kw_only=True)


@dataclass
class SubscriberConfiguration(ConsumerConfiguration):
    """Subscribe to a fanout exchange."""

    exchange: str
    channel_id: int = field(default=1, kw_only=True)


@dataclass
class TopicConsumerConfiguration(ConsumerConfiguration):
    """Subscribe to a topic exchange with one binding per topic."""

    exchange: str
    topics: list[str]
    channel_id: int = field(default=1, kw_only=True)

    def __post_init__(self) -> None:
        if isinstance(self.topics, str):
            raise TypeError("topics must be a sequence of strings, not a string")
        self.topics = list(self.topics)


@dataclass
class ProducerConfiguration:
    """Settings shared by every kind of producer."""

    channel_id: int = field(kw_only=True)


@dataclass
class DirectProducerConfiguration(ProducerConfiguration):
    """Publish straight to a named queue through the default exchange."""

    queue: str
    channel_id: int = field(default=1, kw_only=True)


@dataclass
class PublisherConfiguration(ProducerConfiguration):
    """Publish to a fanout exchange."""

    exchange: str
    channel_id: int = field(default=1, kw_only=True)


@dataclass
class TopicProducerConfiguration(ProducerConfiguration):
    """Publish to a topic exchange."""

    exchange: str
    channel_id: int = field(default=1, kw_only=True)


_CONNECTION_FIELDS = (
    ("hostname", str),
    ("username", str),
    ("password", str),
    ("vhost", str),
    ("port", int),
)


def _valid(value: object, kind: type) -> bool:
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


def load_connection_configuration(config_path: PathLike) -> ConnectionConfiguration:
    """Read a JSON file holding hostname, username, password, vhost and port."""
    with open(config_path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("connection configuration must be a JSON object")

    values = {}
    for key, kind in _CONNECTION_FIELDS:
        value = data.get(key)
        if not _valid(value, kind):
            raise ValueError(f"configuration field {key!r} must be of type {kind.__name__}")
        values[key] = value
    return ConnectionConfiguration(**values)