"""Class-based RabbitMQ consumers and producers for direct, fanout and topic messaging."""

__version__ = "0.0.1"