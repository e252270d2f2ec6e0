"""Blocking AMQP producers: direct queue, fanout publisher and topic producer."""

from __future__ import annotations

import abc
from typing import Any

import pika
import pika.exceptions

from .config import (
    ConnectionConfiguration,
    DirectProducerConfiguration,
    ProducerConfiguration,
    PublisherConfiguration,
    TopicProducerConfiguration,
)
from .consumer import (
    ConnectionFactory,
    RabbitMQError,
    _checked,
    _connect,
    _open_channel,
    _require,
    _shutdown,
)

_RESPONSE_NONE = 0
_RESPONSE_LIBRARY_EXCEPTION = 2
_RESPONSE_SERVER_EXCEPTION = 3

_SERVER_ERRORS = (
    pika.exceptions.ChannelClosedByBroker,
    pika.exceptions.ConnectionClosedByBroker,
)


def _detailed_error(message: str, exc: BaseException | None) -> RabbitMQError:
    if exc is None:
        code, reason = _RESPONSE_NONE, "no response from server"
    elif isinstance(exc, _SERVER_ERRORS):
        code, reason = _RESPONSE_SERVER_EXCEPTION, "server error"
    else:
        code, reason = _RESPONSE_LIBRARY_EXCEPTION, "lib error"
    return RabbitMQError(f"{message} [code: {code}, reason: {reason}]")


def _as_bytes(msg: str | bytes) -> bytes:
    return msg if isinstance(msg, bytes) else msg.encode("utf-8")


class RabbitMQProducer(abc.ABC):
    """Connection and channel handling common to all producers.

    Every subclass must define a ``send`` method.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not callable(getattr(cls, "send", None)):
            raise TypeError(f"{cls.__name__} must define a send(...) method")

    def __init__(self, connection_factory: ConnectionFactory = pika.BlockingConnection) -> None:
        self._connection_factory = connection_factory
        self._connection: Any = None
        self._channel: Any = None

    def login(self, config: ConnectionConfiguration) -> None:
        """Open the connection and authenticate."""
        self._connection = _connect(self._connection_factory, config)

    @abc.abstractmethod
    def prepare(self, config: ProducerConfiguration) -> None:
        """Open the channel and declare whatever the producer publishes to."""

    def close(self) -> None:
        """Close the channel and the connection, ignoring failures."""
        _shutdown(self._connection, self._channel)
        self._channel = None
        self._connection = None

    def __enter__(self) -> "RabbitMQProducer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _open_channel(self, channel_id: int) -> Any:
        self._channel = _open_channel(self._connection, channel_id)
        return self._channel

    def _declare_exchange(self, exchange: str, exchange_type: str) -> None:
        _checked(
            "declare exchange failed",
            self._channel.exchange_declare,
            exchange=exchange,
            exchange_type=exchange_type,
            passive=False,
            durable=True,
            auto_delete=False,
            internal=False,
        )

    def _publish(self, exchange: str, routing_key: str, msg: str | bytes) -> None:
        if self._channel is None:
            raise _detailed_error("publish failed", None)
        try:
            self._channel.basic_publish(
                exchange=exchange, routing_key=routing_key, body=_as_bytes(msg)
            )
        except pika.exceptions.AMQPError as exc:
            raise _detailed_error("publish failed", exc) from exc


class RabbitMQDirectProducer(RabbitMQProducer):
    """Publish to a named queue through the default exchange."""

    def prepare(self, config: ProducerConfiguration) -> None:
        self._open_channel(config.channel_id)

    def send(self, config: ProducerConfiguration, msg: str | bytes) -> None:
        direct = _require(config, DirectProducerConfiguration)
        self._publish("", direct.queue, msg)


class RabbitMQPublisher(RabbitMQProducer):
    """Publish to a durable fanout exchange."""

    def prepare(self, config: ProducerConfiguration) -> None:
        publisher = _require(config, PublisherConfiguration)
        self._open_channel(publisher.channel_id)
        self._declare_exchange(publisher.exchange, "fanout")

    def send(self, config: ProducerConfiguration, msg: str | bytes) -> None:
        publisher = _require(config, PublisherConfiguration)
        self._publish(publisher.exchange, "", msg)


class RabbitMQTopicProducer(RabbitMQProducer):
    """Publish to a durable topic exchange under a routing key."""

    def prepare(self, config: ProducerConfiguration) -> None:
        topic = _require(config, TopicProducerConfiguration)
        self._open_channel(topic.channel_id)
        self._declare_exchange(topic.exchange, "topic")

    def send(self, config: ProducerConfiguration, key: str, msg: str | bytes) -> None:
        topic = _require(config, TopicProducerConfiguration)
        self._publish(topic.exchange, key, msg)