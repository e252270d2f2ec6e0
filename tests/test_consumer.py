from types import SimpleNamespace

import pika.exceptions
import pytest

from rabbitclass.config import (
    ConnectionConfiguration,
    DirectConsumerConfiguration,
    SubscriberConfiguration,
    TopicConsumerConfiguration,
)
from rabbitclass.consumer import (
    RabbitMQConsumer,
    RabbitMQDirectConsumer,
    RabbitMQError,
    RabbitMQSubscriber,
    RabbitMQTopicConsumer,
)


class FakeChannel:
    def __init__(self, number, fail=None):
        self.channel_number = number
        self.is_open = True
        self.calls = []
        self.consumers = []
        self.fail = fail or {}

    def _record(self, name, kwargs):
        self.calls.append((name, kwargs))
        if name in self.fail:
            raise self.fail[name]

    def exchange_declare(self, **kwargs):
        self._record("exchange_declare", kwargs)

    def queue_declare(self, **kwargs):
        self._record("queue_declare", kwargs)
        return SimpleNamespace(method=SimpleNamespace(queue="amq.gen-fake"))

    def queue_bind(self, **kwargs):
        self._record("queue_bind", kwargs)

    def basic_consume(self, **kwargs):
        self._record("basic_consume", kwargs)
        self.consumers.append(kwargs["on_message_callback"])
        return "ctag"

    def close(self):
        self.is_open = False


class FakeConnection:
    def __init__(self, parameters, fail=None):
        self.parameters = parameters
        self.is_open = True
        self.channels = []
        self.pending = []
        self.fail = fail or {}

    def channel(self, channel_number=None):
        if "channel" in self.fail:
            raise self.fail["channel"]
        chan = FakeChannel(channel_number, self.fail)
        self.channels.append(chan)
        return chan

    def deliver(self, body, routing_key="key", delivery_tag=7, redelivered=False):
        self.pending.append((body, routing_key, delivery_tag, redelivered))

    def process_data_events(self, time_limit=None):
        if "process" in self.fail:
            raise self.fail["process"]
        body, key, tag, redelivered = self.pending.pop(0)
        method = SimpleNamespace(
            consumer_tag="ctag", delivery_tag=tag, redelivered=redelivered, routing_key=key
        )
        for chan in self.channels:
            for cb in chan.consumers:
                cb(chan, method, None, body)

    def close(self):
        self.is_open = False


def _conn_config():
    password = "password"
    return ConnectionConfiguration("localhost", "guest", password, "/", 5672)


def _logged_in(cls, fail=None):
    holder = {}

    def factory(parameters):
        holder["conn"] = FakeConnection(parameters, fail)
        return holder["conn"]

    consumer = cls(connection_factory=factory)
    consumer.login(_conn_config())
    return consumer, holder["conn"]


def test_login_builds_parameters():
    _, conn = _logged_in(RabbitMQDirectConsumer)
    params = conn.parameters
    assert params.host == "localhost"
    assert params.port == 5672
    assert params.virtual_host == "/"
    assert params.credentials.username == "guest"
    assert params.frame_max == 131072


def test_login_auth_failure():
    def factory(parameters):
        raise pika.exceptions.ProbableAuthenticationError("denied")

    consumer = RabbitMQDirectConsumer(connection_factory=factory)
    with pytest.raises(RabbitMQError, match="Login failed"):
        consumer.login(_conn_config())


def test_login_socket_failure():
    def factory(parameters):
        raise pika.exceptions.AMQPConnectionError("refused")

    consumer = RabbitMQDirectConsumer(connection_factory=factory)
    with pytest.raises(RabbitMQError, match="socket open failed"):
        consumer.login(_conn_config())


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        RabbitMQConsumer()


def test_prepare_without_login_fails():
    consumer = RabbitMQDirectConsumer(connection_factory=lambda p: None)
    with pytest.raises(RabbitMQError, match="channel open failed"):
        consumer.prepare(DirectConsumerConfiguration("q"), lambda *a: None)


def test_channel_open_failure():
    consumer, _ = _logged_in(
        RabbitMQDirectConsumer, {"channel": pika.exceptions.ChannelClosedByBroker(404, "x")}
    )
    with pytest.raises(RabbitMQError, match="channel open failed"):
        consumer.prepare(DirectConsumerConfiguration("q"), lambda *a: None)


def test_direct_consumer_consumes_with_auto_ack(capsys):
    consumer, conn = _logged_in(RabbitMQDirectConsumer)
    received = []
    consumer.prepare(DirectConsumerConfiguration("jobs"), lambda *a: received.append(a))
    chan = conn.channels[0]
    assert chan.channel_number == 1
    name, kwargs = chan.calls[0]
    assert name == "basic_consume"
    assert kwargs["queue"] == "jobs"
    assert kwargs["auto_ack"] is True

    conn.deliver(b"hello")
    consumer.consume()
    assert received == [(1, "ctag", b"hello")]
    out = capsys.readouterr().out
    assert out == "CHAN: 1\nCNSMR TAG: ctag\nDLVRY TAG: 7\nRDLVRED: false\nRTNG KEY: key\n"


def test_direct_consumer_wrong_config_type():
    consumer, _ = _logged_in(RabbitMQDirectConsumer)
    with pytest.raises(TypeError):
        consumer.prepare(SubscriberConfiguration("ex"), lambda *a: None)


def test_basic_consume_failure():
    consumer, _ = _logged_in(
        RabbitMQDirectConsumer, {"basic_consume": pika.exceptions.ChannelClosedByBroker(404, "x")}
    )
    with pytest.raises(RabbitMQError, match="basic consume failed"):
        consumer.prepare(DirectConsumerConfiguration("q"), lambda *a: None)


def test_subscriber_declares_fanout_and_binds():
    consumer, conn = _logged_in(RabbitMQSubscriber)
    consumer.prepare(SubscriberConfiguration("news", channel_id=3), lambda *a: None)
    chan = conn.channels[0]
    assert chan.channel_number == 3
    names = [name for name, _ in chan.calls]
    assert names == ["exchange_declare", "queue_declare", "queue_bind", "basic_consume"]
    calls = dict(chan.calls)
    assert calls["exchange_declare"]["exchange_type"] == "fanout"
    assert calls["exchange_declare"]["durable"] is True
    assert calls["queue_declare"]["queue"] == ""
    assert calls["queue_declare"]["exclusive"] is False
    assert calls["queue_declare"]["auto_delete"] is True
    assert calls["queue_bind"] == {"queue": "amq.gen-fake", "exchange": "news", "routing_key": ""}
    assert calls["basic_consume"]["auto_ack"] is False


@pytest.mark.parametrize(
    "failing,message",
    [
        ("exchange_declare", "declare exchange failed"),
        ("queue_declare", "declare queue failed"),
        ("queue_bind", "bind queue failed"),
    ],
)
def test_subscriber_step_failures(failing, message):
    consumer, _ = _logged_in(
        RabbitMQSubscriber, {failing: pika.exceptions.ChannelClosedByBroker(406, "x")}
    )
    with pytest.raises(RabbitMQError, match=message):
        consumer.prepare(SubscriberConfiguration("news"), lambda *a: None)


def test_topic_consumer_binds_each_topic(capsys):
    consumer, conn = _logged_in(RabbitMQTopicConsumer)
    consumer.prepare(TopicConsumerConfiguration("logs", ["a.*", "*.b"]), lambda *a: None)
    chan = conn.channels[0]
    binds = [kw["routing_key"] for name, kw in chan.calls if name == "queue_bind"]
    assert binds == ["a.*", "*.b"]
    calls = dict(chan.calls)
    assert calls["exchange_declare"]["exchange_type"] == "topic"
    assert calls["queue_declare"]["exclusive"] is True
    assert "QN amq.gen-fake" in capsys.readouterr().out


def test_set_callback_replaces_callback(capsys):
    consumer, conn = _logged_in(RabbitMQTopicConsumer)
    first, second = [], []
    consumer.prepare(TopicConsumerConfiguration("logs", ["#"]), lambda *a: first.append(a))
    consumer.set_callback(lambda *a: second.append(a[2]))
    conn.deliver(b"x", routing_key="a.b", redelivered=True)
    consumer.consume()
    assert first == []
    assert second == [b"x"]
    assert "RDLVRED: true\nRTNG KEY: a.b\n" in capsys.readouterr().out


def test_consume_failure():
    consumer, conn = _logged_in(
        RabbitMQDirectConsumer, {"process": pika.exceptions.StreamLostError("lost")}
    )
    consumer.prepare(DirectConsumerConfiguration("q"), lambda *a: None)
    with pytest.raises(RabbitMQError, match="consume message failed"):
        consumer.consume()


def test_consume_without_login():
    consumer = RabbitMQDirectConsumer(connection_factory=lambda p: None)
    with pytest.raises(RabbitMQError, match="consume message failed"):
        consumer.consume()


def test_context_manager_closes():
    consumer, conn = _logged_in(RabbitMQDirectConsumer)
    with consumer as entered:
        entered.prepare(DirectConsumerConfiguration("q"), lambda *a: None)
    assert conn.is_open is False
    assert conn.channels[0].is_open is False