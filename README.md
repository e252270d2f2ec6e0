# rabbitclass

Small, class-based RabbitMQ clients built on `pika`. It covers three
messaging patterns:

- **direct**: consume from a named queue, or publish straight to it through
  the default exchange
- **fanout**: publish to a durable fanout exchange, or subscribe with a
  broker-named queue bound to it
- **topic**: publish to a durable topic exchange with a routing key, or
  consume from an exclusive queue bound once for each topic you choose

## Installation

```
pip install .
```

## Connection configuration

Every command reads its broker settings from `config/config.json`, relative
to the current directory. The path is fixed; there is no option to change it.
All five fields are required, `port` as an integer and the rest as strings:

```json
{
  "hostname": "localhost",
  "username": "user",
  "password": "password",
  "vhost": "/",
  "port": 5672
}
```

`rabbitclass.config.load_connection_configuration(path)` reads such a file
and returns a `ConnectionConfiguration`. It raises `ValueError` when a field
is missing or has the wrong type.

## Commands

Consume messages from a queue, and send one JSON test message to it
(`{"id":<random>,"msg":"test producer message"}`):

```
rabbit-consumer QUEUE
rabbit-producer QUEUE
```

Subscribe to a fanout exchange, and publish one message
(`pubsub message <random number>`) to it:

```
rabbit-subscriber EXCHANGE
rabbit-publisher EXCHANGE
```

Consume selected topics from a topic exchange, and publish one message
(`test topic prod`) under a routing key:

```
rabbit-topicconsumer EXCHANGE TOPIC [TOPIC ...]
rabbit-topicproducer EXCHANGE ROUTING_KEY
```

When a required argument is missing, a command stops with an error naming
what is missing.

The consuming commands run until they are interrupted with Ctrl-C. For each
delivery they print its envelope (channel, consumer tag, delivery tag,
redelivered flag and routing key) and then the message body.
`rabbit-topicconsumer` also prints the name of the queue the broker created.

## Library use

The configuration classes live in `rabbitclass.config`, the consumers
(`RabbitMQDirectConsumer`, `RabbitMQSubscriber`, `RabbitMQTopicConsumer`) in
`rabbitclass.consumer`, and the producers (`RabbitMQDirectProducer`,
`RabbitMQPublisher`, `RabbitMQTopicProducer`) in `rabbitclass.producer`.
Each configuration takes an optional keyword `channel_id` (default 1).

```python
from rabbitclass.config import (
    TopicConsumerConfiguration,
    TopicProducerConfiguration,
    load_connection_configuration,
)
from rabbitclass.consumer import RabbitMQTopicConsumer
from rabbitclass.producer import RabbitMQTopicProducer

connection = load_connection_configuration("config/config.json")

producer_config = TopicProducerConfiguration("logs")
with RabbitMQTopicProducer() as producer:
    producer.login(connection)
    producer.prepare(producer_config)
    producer.send(producer_config, "app.error", "something broke")

def on_message(channel_id, consumer_tag, body):
    print(channel_id, body.decode())

consumer_config = TopicConsumerConfiguration("logs", ["app.*"])
with RabbitMQTopicConsumer() as consumer:
    consumer.login(connection)
    consumer.prepare(consumer_config, on_message)
    while True:
        consumer.consume()
```

`consume()` blocks until one message arrives, prints its envelope and passes
the channel number, consumer tag and body (as `bytes`) to the callback.
`send()` accepts `str` (encoded as UTF-8) or `bytes`.

A failed broker operation raises `rabbitclass.consumer.RabbitMQError`, whose
message names the operation that failed. Publishing failures add a code and
a reason, for example `publish failed [code: 3, reason: server error]`.

`rabbitclass.randomint.RandomInt(lower, upper)` is a small callable that
returns uniformly distributed integers in the closed range.

## What it does not do

- The direct consumer acknowledges automatically; the subscriber and the
  topic consumer consume without automatic acknowledgement and never
  acknowledge deliveries themselves.
- There is no TLS, no reconnection and no retry; a lost connection ends the
  command with an error.
- Messages are published without properties (no persistence, content type
  or headers).