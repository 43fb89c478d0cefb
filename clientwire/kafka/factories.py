"""Producer and consumer factories wrapping confluent-kafka client construction."""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from confluent_kafka import Consumer, Message, Producer

from ..exceptions import ConfigurationError
from ..utils.logging import setup_logger
from .tls import KafkaTlsSource

logger = setup_logger(__name__, context={"component": "KafkaFactories"})

DEFAULT_MAX_POLL_RECORDS = 500


class _ClientFactory:
    """Holds a librdkafka configuration plus an optional typed TLS source."""

    def __init__(
        self,
        configuration: Mapping[str, Any],
        *,
        tls: KafkaTlsSource | None = None,
    ) -> None:
        self._configuration: dict[str, Any] = dict(configuration)
        self.tls = tls

    @property
    def configuration(self) -> dict[str, Any]:
        """Copy of the configuration, without rendered TLS settings."""

        return dict(self._configuration)

    def update_configuration(self, updates: Mapping[str, Any]) -> None:
        """Merge ``updates`` into the configuration (used by customizers)."""

        self._configuration.update(updates)

    def client_config(self) -> dict[str, Any]:
        """Configuration handed to the client constructor."""

        config = dict(self._configuration)
        if self.tls is not None:
            config.update(self.tls.to_client_config())
        return config


class ProducerFactory(_ClientFactory):
    """Creates ``confluent_kafka.Producer`` instances from a shared configuration.

    When a transaction id prefix is set every producer gets a distinct
    ``transactional.id`` made from the prefix and a running counter.
    """

    def __init__(
        self,
        configuration: Mapping[str, Any],
        *,
        tls: KafkaTlsSource | None = None,
        transaction_id_prefix: str | None = None,
    ) -> None:
        super().__init__(configuration, tls=tls)
        self.transaction_id_prefix = transaction_id_prefix
        self._transaction_ids = itertools.count()

    @property
    def transaction_capable(self) -> bool:
        return bool(self.transaction_id_prefix)

    def next_transactional_id(self, prefix: str | None = None) -> str:
        prefix = prefix or self.transaction_id_prefix
        if not prefix:
            raise ConfigurationError("Producer factory has no transaction id prefix")
        return f"{prefix}{next(self._transaction_ids)}"

    def create_producer(self, transaction_id_prefix: str | None = None) -> Producer:
        """Create a producer; ``transaction_id_prefix`` overrides the factory prefix."""

        config = self.client_config()
        if transaction_id_prefix or self.transaction_capable:
            config["transactional.id"] = self.next_transactional_id(transaction_id_prefix)
        logger.debug(
            "Creating Kafka producer",
            extra={"client": "producer", "status": "creating"},
        )
        return Producer(config)


class ConsumerFactory(_ClientFactory):
    """Creates ``confluent_kafka.Consumer`` instances from a shared configuration.

    librdkafka has no ``max.poll.records``; ``max_poll_records`` instead caps
    the batches returned by :meth:`poll_batch`.
    """

    def __init__(
        self,
        configuration: Mapping[str, Any],
        *,
        tls: KafkaTlsSource | None = None,
        max_poll_records: int | None = None,
    ) -> None:
        super().__init__(configuration, tls=tls)
        self.max_poll_records = max_poll_records

    def create_consumer(
        self,
        group_id: str | None = None,
        client_id_suffix: str | None = None,
    ) -> Consumer:
        """Create a consumer, optionally overriding the group and suffixing the client id.

        Raises:
            ConfigurationError: If no consumer group is configured or given.
        """

        config = self.client_config()
        if group_id:
            config["group.id"] = group_id
        if not config.get("group.id"):
            raise ConfigurationError("A consumer group id is required to create a Kafka consumer")
        if client_id_suffix and config.get("client.id"):
            config["client.id"] = f"{config['client.id']}{client_id_suffix}"
        logger.debug(
            "Creating Kafka consumer",
            extra={"client": "consumer", "status": "creating"},
        )
        return Consumer(config)

    def poll_batch(self, consumer: Consumer, timeout: float = 1.0) -> list[Message]:
        """Return up to ``max_poll_records`` messages from ``consumer``."""

        return consumer.consume(
            num_messages=self.max_poll_records or DEFAULT_MAX_POLL_RECORDS,
            timeout=timeout,
        )


class ProducerFactoryCustomizer(ABC):
    """Hook invoked with the producer factory right after it is constructed.

    Customizers run in ``order`` (lower first); those without one run last.
    """

    @abstractmethod
    def customize(self, factory: ProducerFactory) -> None: ...


class ConsumerFactoryCustomizer(ABC):
    """Hook invoked with the consumer factory right after it is constructed."""

    @abstractmethod
    def customize(self, factory: ConsumerFactory) -> None: ...
