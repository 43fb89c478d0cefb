"""High level send API over a producer factory."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

from confluent_kafka import KafkaError, KafkaException, Message, Producer

from ..exceptions import ConfigurationError, TransactionError
from ..utils.logging import setup_logger
from .factories import ProducerFactory

logger = setup_logger(__name__, context={"component": "KafkaTemplate"})

T = TypeVar("T")


class ProducerListener:
    """Callbacks for the outcome of every record sent through a template."""

    def on_success(self, topic: str, key: Any, value: Any, message: Message) -> None:
        """Called once the broker acknowledged the record."""

    def on_error(self, topic: str, key: Any, value: Any, error: KafkaError) -> None:
        """Called when delivery failed."""


class LoggingProducerListener(ProducerListener):
    """Logs failed deliveries; successful ones are silent."""

    def __init__(self, include_contents: bool = True, max_content_logged: int = 100) -> None:
        self.include_contents = include_contents
        self.max_content_logged = max_content_logged

    def on_error(self, topic: str, key: Any, value: Any, error: KafkaError) -> None:
        details = f"topic={topic}"
        if self.include_contents:
            details += f" key={self._trim(key)} value={self._trim(value)}"
        logger.error(
            "Exception thrown when sending a message with %s: %s",
            details,
            error,
            extra={"client": "producer", "status": "error"},
        )

    def _trim(self, content: Any) -> str:
        text = repr(content)
        if len(text) > self.max_content_logged:
            return text[: self.max_content_logged] + "..."
        return text


class MessageConverter(ABC):
    """Turns application values into record bytes."""

    @abstractmethod
    def to_bytes(self, value: Any) -> bytes | None: ...


class JsonMessageConverter(MessageConverter):
    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def to_bytes(self, value: Any) -> bytes | None:
        if value is None:
            return None
        return json.dumps(value, default=str, sort_keys=True).encode(self.encoding)


def _to_bytes(value: Any) -> bytes | None:
    if value is None or isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(
        f"Cannot send value of type '{type(value).__name__}' without a message converter"
    )


class KafkaTemplate:
    """Sends records through a lazily created producer.

    Attributes:
        default_topic: Topic used by :meth:`send_default`.
        transaction_id_prefix: Overrides the factory prefix for this template's producer.
        observation_enabled: Log every delivery outcome with its partition and offset.
        producer_listener: Receives delivery outcomes.
        message_converter: Converts non-bytes values before sending.
    """

    def __init__(self, producer_factory: ProducerFactory) -> None:
        self.producer_factory = producer_factory
        self.default_topic: str | None = None
        self.transaction_id_prefix: str | None = None
        self.observation_enabled = False
        self.producer_listener: ProducerListener | None = None
        self.message_converter: MessageConverter | None = None
        self._producer: Producer | None = None
        self._transactions_initialized = False

    @property
    def transactional(self) -> bool:
        return bool(self.transaction_id_prefix) or self.producer_factory.transaction_capable

    @property
    def producer(self) -> Producer:
        if self._producer is None:
            self._producer = self.producer_factory.create_producer(self.transaction_id_prefix)
        return self._producer

    def _serialize(self, value: Any) -> bytes | None:
        if self.message_converter is not None and not isinstance(value, (bytes, type(None))):
            return self.message_converter.to_bytes(value)
        return _to_bytes(value)

    def send(
        self,
        topic: str,
        value: Any,
        key: Any = None,
        headers: dict[str, str] | None = None,
        partition: int | None = None,
    ) -> None:
        """Queue a record for delivery; the listener is told about the outcome."""

        listener = self.producer_listener
        observe = self.observation_enabled

        def _on_delivery(error: KafkaError | None, message: Message) -> None:
            if observe:
                self._observe(topic, error, message)
            if listener is None:
                return
            if error is not None:
                listener.on_error(topic, key, value, error)
            else:
                listener.on_success(topic, key, value, message)

        kwargs: dict[str, Any] = {
            "value": self._serialize(value),
            "key": _to_bytes(key),
            "on_delivery": _on_delivery,
        }
        if headers:
            kwargs["headers"] = [(name, header.encode("utf-8")) for name, header in headers.items()]
        if partition is not None:
            kwargs["partition"] = partition
        self.producer.produce(topic, **kwargs)
        self.producer.poll(0)

    @staticmethod
    def _observe(topic: str, error: KafkaError | None, message: Message) -> None:
        if error is not None:
            logger.info(
                "Send to %s failed: %s",
                topic,
                error,
                extra={"client": "producer", "status": "failed"},
            )
            return
        logger.info(
            "Sent record to %s [%s] at offset %s",
            topic,
            message.partition(),
            message.offset(),
            extra={"client": "producer", "status": "sent"},
        )

    def send_default(self, value: Any, key: Any = None, headers: dict[str, str] | None = None) -> None:
        """Send to :attr:`default_topic`.

        Raises:
            ConfigurationError: If no default topic is set.
        """

        if not self.default_topic:
            raise ConfigurationError("No default topic configured for this KafkaTemplate")
        self.send(self.default_topic, value, key=key, headers=headers)

    def flush(self, timeout: float = 10.0) -> int:
        """Wait for outstanding deliveries; return the number still queued."""

        if self._producer is None:
            return 0
        return self._producer.flush(timeout)

    def execute_in_transaction(self, callback: Callable[[KafkaTemplate], T]) -> T:
        """Run ``callback`` inside a producer transaction, aborting it on error.

        Raises:
            ConfigurationError: If the template is not transactional.
            TransactionError: If the broker rejects the transaction.
        """

        if not self.transactional:
            raise ConfigurationError("KafkaTemplate is not transactional")
        producer = self.producer
        try:
            if not self._transactions_initialized:
                producer.init_transactions()
                self._transactions_initialized = True
            producer.begin_transaction()
        except KafkaException as exc:
            raise TransactionError(f"Unable to begin Kafka transaction: {exc}") from exc

        try:
            result = callback(self)
        except Exception:
            self._abort(producer)
            raise

        try:
            producer.commit_transaction()
        except KafkaException as exc:
            self._abort(producer)
            raise TransactionError(f"Unable to commit Kafka transaction: {exc}") from exc
        return result

    @staticmethod
    def _abort(producer: Producer) -> None:
        # Abort failures are logged; the error that triggered the abort propagates.
        try:
            producer.abort_transaction()
        except KafkaException as exc:
            logger.error(
                "Unable to abort Kafka transaction: %s",
                exc,
                extra={"client": "producer", "status": "abort_failed"},
            )

    def close(self, timeout: float = 10.0) -> None:
        """Flush outstanding messages and drop the producer."""

        if self._producer is not None:
            self._producer.flush(timeout)
            self._producer = None
            self._transactions_initialized = False
