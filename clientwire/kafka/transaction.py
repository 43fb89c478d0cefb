"""Local Kafka transactions bound to a transactional producer factory."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from confluent_kafka import KafkaException, Producer

from ..exceptions import ConfigurationError, InvalidStateError, TransactionError
from ..utils.logging import setup_logger
from .factories import ProducerFactory

logger = setup_logger(__name__, context={"component": "KafkaTransactionManager"})


class KafkaTransactionManager:
    """Begins, commits and aborts transactions on a single transactional producer."""

    def __init__(self, producer_factory: ProducerFactory) -> None:
        if not producer_factory.transaction_capable:
            raise ConfigurationError(
                "KafkaTransactionManager requires a producer factory with a transaction id prefix"
            )
        self.producer_factory = producer_factory
        self._producer: Producer | None = None
        self._initialized = False
        self._active = False

    @property
    def producer(self) -> Producer:
        if self._producer is None:
            self._producer = self.producer_factory.create_producer()
        return self._producer

    @property
    def active(self) -> bool:
        return self._active

    def begin(self) -> Producer:
        """Start a transaction and return the producer taking part in it."""

        if self._active:
            raise InvalidStateError("A Kafka transaction is already in progress")
        producer = self.producer
        try:
            if not self._initialized:
                producer.init_transactions()
                self._initialized = True
            producer.begin_transaction()
        except KafkaException as exc:
            raise TransactionError(f"Unable to begin Kafka transaction: {exc}") from exc
        self._active = True
        logger.debug("Kafka transaction started", extra={"status": "begin"})
        return producer

    def commit(self) -> None:
        self._require_active()
        try:
            self.producer.commit_transaction()
        except KafkaException as exc:
            raise TransactionError(f"Unable to commit Kafka transaction: {exc}") from exc
        finally:
            self._active = False
        logger.debug("Kafka transaction committed", extra={"status": "commit"})

    def rollback(self) -> None:
        self._require_active()
        try:
            self.producer.abort_transaction()
        except KafkaException as exc:
            raise TransactionError(f"Unable to abort Kafka transaction: {exc}") from exc
        finally:
            self._active = False
        logger.debug("Kafka transaction rolled back", extra={"status": "rollback"})

    @contextmanager
    def transaction(self) -> Iterator[Producer]:
        """Commit on normal exit, roll back when the block raises."""

        producer = self.begin()
        try:
            yield producer
        except BaseException:
            try:
                self.rollback()
            except TransactionError as exc:
                logger.error("%s", exc, extra={"status": "rollback_failed"})
            raise
        self.commit()

    def _require_active(self) -> None:
        if not self._active:
            raise InvalidStateError("No Kafka transaction is in progress")
