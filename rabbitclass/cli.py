"""Command-line entry points for the example producers and consumers."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from pathlib import Path

import pika

from .config import (
    ConsumerConfiguration,
    DirectConsumerConfiguration,
    DirectProducerConfiguration,
    PublisherConfiguration,
    SubscriberConfiguration,
    TopicConsumerConfiguration,
    TopicProducerConfiguration,
    load_connection_configuration,
)
from .consumer import (
    RabbitMQConsumer,
    RabbitMQDirectConsumer,
    RabbitMQSubscriber,
    RabbitMQTopicConsumer,
)
from .producer import RabbitMQDirectProducer, RabbitMQPublisher, RabbitMQTopicProducer
from .randomint import RandomInt

CONFIG_PATH = Path("config/config.json")

DIRECT_ID_UPPER = (1 << 17) - 1
PUBSUB_ID_UPPER = 16383
TOPIC_MESSAGE = "test topic prod"


class _UsageError(RuntimeError):
    """Required command-line arguments are missing."""


def _arguments(argv: Sequence[str] | None, needed: int, message: str) -> list[str]:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < needed:
        raise _UsageError(message)
    return args


def _text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def _print_cb(channel_id: int, consumer_tag: str, body: bytes) -> None:
    print(f"CB\n{_text(body)}")


def _print_message(channel_id: int, consumer_tag: str, body: bytes) -> None:
    print(f"MESSAGE +++ {_text(body)}")


class _CallableCallback:
    """A callback object that reports the channel along with the body."""

    def __init__(self) -> None:
        print("G CTOR")

    def __call__(self, channel_id: int, consumer_tag: str, body: bytes) -> None:
        print(f"CALLABLE {channel_id} {_text(body)}")


def _run_consumer(consumer: RabbitMQConsumer, config: ConsumerConfiguration, callback) -> int:
    connection_config = load_connection_configuration(CONFIG_PATH)
    with consumer:
        consumer.login(connection_config)
        consumer.prepare(config, callback)
        try:
            while True:
                consumer.consume()
        except KeyboardInterrupt:
            return 0


def consumer_main(argv: Sequence[str] | None = None) -> int:
    """Consume from a named queue forever, printing every message."""
    args = _arguments(argv, 1, "Queue name missing")
    config = DirectConsumerConfiguration(args[0])
    return _run_consumer(RabbitMQDirectConsumer(pika.BlockingConnection), config, _print_cb)


def subscriber_main(argv: Sequence[str] | None = None) -> int:
    """Subscribe to a fanout exchange forever, printing every message."""
    args = _arguments(argv, 1, "Exchange name missing")
    print("SUBSCRIBE")
    config = SubscriberConfiguration(args[0])
    _CallableCallback()
    return _run_consumer(RabbitMQSubscriber(pika.BlockingConnection), config, _print_message)


def topicconsumer_main(argv: Sequence[str] | None = None) -> int:
    """Subscribe to a topic exchange under the given topics, printing every message."""
    args = _arguments(argv, 2, "Queue and topic names missing")
    print("SUBSCRIBE")
    topics = args[1:]
    for topic in topics:
        print(f"Topic: {topic}")
    config = TopicConsumerConfiguration(args[0], topics)
    return _run_consumer(RabbitMQTopicConsumer(pika.BlockingConnection), config, _print_message)


def producer_main(argv: Sequence[str] | None = None) -> int:
    """Send one JSON message with a random id to a named queue."""
    args = _arguments(argv, 1, "Queue name missing")
    connection_config = load_connection_configuration(CONFIG_PATH)
    config = DirectProducerConfiguration(args[0])
    with RabbitMQDirectProducer(pika.BlockingConnection) as producer:
        producer.login(connection_config)
        producer.prepare(config)
        random_id = RandomInt(0, DIRECT_ID_UPPER)
        payload = {"msg": "test producer message", "id": random_id()}
        producer.send(config, json.dumps(payload, sort_keys=True, separators=(",", ":")))
    return 0


def publisher_main(argv: Sequence[str] | None = None) -> int:
    """Publish one numbered message to a fanout exchange."""
    args = _arguments(argv, 1, "Exchange name missing")
    print("PUBLISH")
    connection_config = load_connection_configuration(CONFIG_PATH)
    config = PublisherConfiguration(args[0])
    with RabbitMQPublisher(pika.BlockingConnection) as publisher:
        publisher.login(connection_config)
        publisher.prepare(config)
        random_id = RandomInt(0, PUBSUB_ID_UPPER)
        publisher.send(config, f"pubsub message {random_id()}")
    return 0


def topicproducer_main(argv: Sequence[str] | None = None) -> int:
    """Publish one message to a topic exchange under a routing key."""
    args = _arguments(argv, 2, "Exchange name and routing key missing")
    print("TOPIC PUBLISH")
    connection_config = load_connection_configuration(CONFIG_PATH)
    config = TopicProducerConfiguration(args[0])
    with RabbitMQTopicProducer(pika.BlockingConnection) as producer:
        producer.login(connection_config)
        producer.prepare(config)
        producer.send(config, args[1], TOPIC_MESSAGE)
    return 0