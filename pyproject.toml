[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rabbitclass"
version = "0.0.1"
description = "Small class-based RabbitMQ consumers and producers for direct queues, fanout and topic exchanges"
requires-python = ">=3.10"
dependencies = [
    "pika",
]
keywords = ["rabbitmq", "amqp", "messaging", "pubsub", "topic", "queue"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
rabbit-consumer = "rabbitclass.cli:consumer_main"
rabbit-producer = "rabbitclass.cli:producer_main"
rabbit-publisher = "rabbitclass.cli:publisher_main"
rabbit-subscriber = "rabbitclass.cli:subscriber_main"
rabbit-topicconsumer = "rabbitclass.cli:topicconsumer_main"
rabbit-topicproducer = "rabbitclass.cli:topicproducer_main"

[tool.hatch.build.targets.wheel]
packages = ["rabbitclass"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
