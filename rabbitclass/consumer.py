"""Blocking AMQP consumers: direct queue, fanout subscriber and topic consumer."""

from __future__ import annotations

import abc
import collections
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import pika
import pika.exceptions

from .config import (
    ConnectionConfiguration,
    ConsumerConfiguration,
    DirectConsumerConfiguration,
    SubscriberConfiguration,
    TopicConsumerConfiguration,
)

FRAME_MAX = 131072

ConsumerCallback = Callable[[int, str, bytes], None]
ConnectionFactory = Callable[[pika.ConnectionParameters], Any]


class RabbitMQError(RuntimeError):
    """A broker operation failed."""


_LOGIN_ERRORS = (
    pika.exceptions.ProbableAuthenticationError,
    pika.exceptions.ProbableAccessDeniedError,
    pika.exceptions.AuthenticationError,
)


def _connect(factory: ConnectionFactory, config: ConnectionConfiguration) -> Any:
    parameters = pika.ConnectionParameters(
        host=config.hostname,
        port=config.port,
        virtual_host=config.vhost,
        credentials=pika.PlainCredentials(config.username, config.password),
        frame_max=FRAME_MAX,
        heartbeat=0,
    )
    try:
        return factory(parameters)
    except _LOGIN_ERRORS as exc:
        raise RabbitMQError("Login failed") from exc
    except (pika.exceptions.AMQPConnectionError, OSError) as exc:
        raise RabbitMQError("socket open failed") from exc


def _open_channel(connection: Any, channel_id: int) -> Any:
    if connection is None:
        raise RabbitMQError("channel open failed")
    try:
        return connection.channel(channel_number=channel_id)
    except pika.exceptions.AMQPError as exc:
        raise RabbitMQError("channel open failed") from exc


def _shutdown(connection: Any, channel: Any) -> None:
    try:
        if channel is not None and channel.is_open:
            channel.close()
    except pika.exceptions.AMQPError:
        pass
    try:
        if connection is not None and connection.is_open:
            connection.close()
    except pika.exceptions.AMQPError:
        pass


def _checked(message: str, operation: Callable[..., Any], **kwargs: Any) -> Any:
    try:
        return operation(**kwargs)
    except pika.exceptions.AMQPError as exc:
        raise RabbitMQError(message) from exc


def _require(config: Any, kind: type) -> Any:
    if not isinstance(config, kind):
        raise TypeError(f"expected {kind.__name__}, got {type(config).__name__}")
    return config


@dataclass(frozen=True)
class _Delivery:
    channel: int
    consumer_tag: str
    delivery_tag: int
    redelivered: bool
    routing_key: str
    body: bytes


class RabbitMQConsumer(abc.ABC):
    """Connection, channel and delivery handling common to all consumers."""

    def __init__(self, connection_factory: ConnectionFactory = pika.BlockingConnection) -> None:
        self._connection_factory = connection_factory
        self._connection: Any = None
        self._channel: Any = None
        self._callback: Optional[ConsumerCallback] = None
        self._deliveries: collections.deque[_Delivery] = collections.deque()

    def login(self, config: ConnectionConfiguration) -> None:
        """Open the connection and authenticate."""
        self._connection = _connect(self._connection_factory, config)

    @abc.abstractmethod
    def prepare(self, config: ConsumerConfiguration, callback: ConsumerCallback) -> None:
        """Set up the channel and start consuming; messages go to ``callback``."""

    def consume(self) -> None:
        """Block until one message arrives, report its envelope and hand it to the callback."""
        if self._connection is None:
            raise RabbitMQError("consume message failed")
        try:
            while not self._deliveries:
                self._connection.process_data_events(time_limit=None)
        except pika.exceptions.AMQPError as exc:
            raise RabbitMQError("consume message failed") from exc

        delivery = self._deliveries.popleft()
        print(
            f"CHAN: {delivery.channel}\n"
            f"CNSMR TAG: {delivery.consumer_tag}\n"
            f"DLVRY TAG: {delivery.delivery_tag}\n"
            f"RDLVRED: {'true' if delivery.redelivered else 'false'}\n"
            f"RTNG KEY: {delivery.routing_key}\n",
            end="",
        )
        if self._callback is not None:
            self._callback(delivery.channel, delivery.consumer_tag, delivery.body)

    def set_callback(self, callback: ConsumerCallback) -> None:
        """Replace the function that receives message bodies."""
        self._callback = callback

    def close(self) -> None:
        """Close the channel and the connection, ignoring failures."""
        _shutdown(self._connection, self._channel)
        self._channel = None
        self._connection = None

    def __enter__(self) -> "RabbitMQConsumer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _open_channel(self, channel_id: int) -> Any:
        self._channel = _open_channel(self._connection, channel_id)
        return self._channel

    def _on_message(self, channel: Any, method: Any, properties: Any, body: bytes) -> None:
        self._deliveries.append(
            _Delivery(
                channel=channel.channel_number,
                consumer_tag=method.consumer_tag,
                delivery_tag=method.delivery_tag,
                redelivered=bool(method.redelivered),
                routing_key=method.routing_key,
                body=body,
            )
        )

    def _declare_and_bind(self, exchange: str, exchange_type: str, exclusive: bool,
                          routing_keys: list[str]) -> str:
        channel = self._channel
        _checked(
            "declare exchange failed",
            channel.exchange_declare,
            exchange=exchange,
            exchange_type=exchange_type,
            passive=False,
            durable=True,
            auto_delete=False,
            internal=False,
        )
        # An empty queue name lets the broker choose one.
        result = _checked(
            "declare queue failed",
            channel.queue_declare,
            queue="",
            passive=False,
            durable=False,
            exclusive=exclusive,
            auto_delete=True,
        )
        queue_name = result.method.queue
        for key in routing_keys:
            _checked(
                "bind queue failed",
                channel.queue_bind,
                queue=queue_name,
                exchange=exchange,
                routing_key=key,
            )
        return queue_name


class RabbitMQDirectConsumer(RabbitMQConsumer):
    """Consume from an existing named queue with automatic acknowledgement."""

    def prepare(self, config: ConsumerConfiguration, callback: ConsumerCallback) -> None:
        direct = _require(config, DirectConsumerConfiguration)
        channel = self._open_channel(direct.channel_id)
        _checked(
            "basic consume failed",
            channel.basic_consume,
            queue=direct.queue,
            on_message_callback=self._on_message,
            auto_ack=True,
        )
        self.set_callback(callback)


class RabbitMQSubscriber(RabbitMQConsumer):
    """Consume from a private queue bound to a fanout exchange."""

    def prepare(self, config: ConsumerConfiguration, callback: ConsumerCallback) -> None:
        subscriber = _require(config, SubscriberConfiguration)
        channel = self._open_channel(subscriber.channel_id)
        queue_name = self._declare_and_bind(subscriber.exchange, "fanout", False, [""])
        _checked(
            "basic consume failed",
            channel.basic_consume,
            queue=queue_name,
            on_message_callback=self._on_message,
            auto_ack=False,
        )
        self.set_callback(callback)


class RabbitMQTopicConsumer(RabbitMQConsumer):
    """Consume from an exclusive queue bound to a topic exchange once per topic."""

    def prepare(self, config: ConsumerConfiguration, callback: ConsumerCallback) -> None:
        topic = _require(config, TopicConsumerConfiguration)
        channel = self._open_channel(topic.channel_id)
        queue_name = self._declare_and_bind(topic.exchange, "topic", True, topic.topics)
        print(f"QN {queue_name}")
        _checked(
            "basic consume failed",
            channel.basic_consume,
            queue=queue_name,
            on_message_callback=self._on_message,
            auto_ack=False,
        )
        self.set_callback(callback)