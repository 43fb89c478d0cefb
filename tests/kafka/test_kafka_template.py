"""Tests for the Kafka template and transaction manager."""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest
from confluent_kafka import KafkaException

from clientwire.exceptions import ConfigurationError, InvalidStateError, TransactionError
from clientwire.kafka.factories import ProducerFactory
from clientwire.kafka.template import (
    JsonMessageConverter,
    KafkaTemplate,
    LoggingProducerListener,
    ProducerListener,
)
from clientwire.kafka.transaction import KafkaTransactionManager


class _RecordingListener(ProducerListener):
    def __init__(self) -> None:
        self.successes: list[tuple[str, Any]] = []
        self.errors: list[tuple[str, Any]] = []

    def on_success(self, topic, key, value, message) -> None:
        self.successes.append((topic, value))

    def on_error(self, topic, key, value, error) -> None:
        self.errors.append((topic, error))


def test_send_produces_and_reports_delivery(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({"bootstrap.servers": "broker:9092"}))
    listener = _RecordingListener()
    template.producer_listener = listener

    template.send("orders", "payload", key="k1", headers={"source": "test"})

    producer = fake_kafka_clients.instances[0]
    topic, kwargs = producer.produced[0]
    assert topic == "orders"
    assert kwargs["value"] == b"payload"
    assert kwargs["key"] == b"k1"
    assert kwargs["headers"] == [("source", b"test")]
    assert producer.polls == [0]

    kwargs["on_delivery"](None, object())
    kwargs["on_delivery"]("broker down", None)
    assert listener.successes == [("orders", "payload")]
    assert listener.errors == [("orders", "broker down")]


class _DeliveredMessage:
    def partition(self) -> int:
        return 2

    def offset(self) -> int:
        return 41


def test_observation_logs_delivery_outcomes(fake_kafka_clients, caplog: pytest.LogCaptureFixture) -> None:
    template = KafkaTemplate(ProducerFactory({}))
    template.send("quiet", b"0")
    template.observation_enabled = True
    template.send("orders", b"1")

    producer = fake_kafka_clients.instances[0]
    with caplog.at_level(logging.INFO, logger="clientwire.kafka.template"):
        producer.produced[0][1]["on_delivery"](None, _DeliveredMessage())
        producer.produced[1][1]["on_delivery"](None, _DeliveredMessage())
        producer.produced[1][1]["on_delivery"]("broker down", None)

    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["Sent record to orders [2] at offset 41", "Send to orders failed: broker down"]


def test_producer_is_created_lazily_once(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}))

    assert fake_kafka_clients.instances == []
    template.send("a", b"1")
    template.send("b", b"2")

    assert len(fake_kafka_clients.instances) == 1


def test_message_converter_serializes_structured_values(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}))
    template.message_converter = JsonMessageConverter()

    template.send("orders", {"id": 1, "total": 9.5})

    _, kwargs = fake_kafka_clients.instances[0].produced[0]
    assert json.loads(kwargs["value"]) == {"id": 1, "total": 9.5}


def test_structured_values_need_a_converter(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}))

    with pytest.raises(TypeError, match="message converter"):
        template.send("orders", {"id": 1})


def test_send_default_requires_default_topic(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}))

    with pytest.raises(ConfigurationError, match="default topic"):
        template.send_default(b"x")

    template.default_topic = "fallback"
    template.send_default(b"x")
    assert fake_kafka_clients.instances[0].produced[0][0] == "fallback"


def test_template_prefix_makes_producer_transactional(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}))
    template.transaction_id_prefix = "tmpl-"

    result = template.execute_in_transaction(lambda t: t.send("orders", b"x") or "done")

    producer = fake_kafka_clients.instances[0]
    assert result == "done"
    assert producer.config["transactional.id"] == "tmpl-0"
    assert producer.calls == ["init", "begin", "commit"]


def test_execute_in_transaction_aborts_on_error(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}, transaction_id_prefix="tx-"))

    def _fail(_: KafkaTemplate) -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        template.execute_in_transaction(_fail)
    assert fake_kafka_clients.instances[0].calls == ["init", "begin", "abort"]


def test_non_transactional_template_rejects_transactions(fake_kafka_clients) -> None:
    with pytest.raises(ConfigurationError):
        KafkaTemplate(ProducerFactory({})).execute_in_transaction(lambda t: None)


def test_close_flushes_and_drops_producer(fake_kafka_clients) -> None:
    template = KafkaTemplate(ProducerFactory({}))
    assert template.flush() == 0

    template.send("a", b"1")
    template.close(timeout=2)

    assert fake_kafka_clients.instances[0].flushes == [2]
    template.send("a", b"2")
    assert len(fake_kafka_clients.instances) == 2


def test_logging_listener_logs_errors_with_trimmed_contents(caplog: pytest.LogCaptureFixture) -> None:
    listener = LoggingProducerListener(max_content_logged=5)

    with caplog.at_level(logging.ERROR, logger="clientwire.kafka.template"):
        listener.on_success("orders", None, "quiet", object())
        listener.on_error("orders", "key", "a-very-long-value", "timed out")

    assert len(caplog.records) == 1
    message = caplog.records[0].getMessage()
    assert "topic=orders" in message
    assert "'a-ve..." in message
    assert "timed out" in message


def test_transaction_manager_requires_transactional_factory() -> None:
    with pytest.raises(ConfigurationError):
        KafkaTransactionManager(ProducerFactory({}))


def test_transaction_context_commits_and_rolls_back(fake_kafka_clients) -> None:
    manager = KafkaTransactionManager(ProducerFactory({}, transaction_id_prefix="tx-"))

    with manager.transaction() as producer:
        producer.produce("orders", value=b"1")
    with pytest.raises(ValueError):
        with manager.transaction():
            raise ValueError("rollback")

    producer = fake_kafka_clients.instances[0]
    assert producer.calls == ["init", "begin", "commit", "begin", "abort"]
    assert not manager.active


def test_transaction_manager_guards_state(fake_kafka_clients) -> None:
    manager = KafkaTransactionManager(ProducerFactory({}, transaction_id_prefix="tx-"))

    with pytest.raises(InvalidStateError):
        manager.commit()
    manager.begin()
    with pytest.raises(InvalidStateError):
        manager.begin()


def test_broker_failures_become_transaction_errors(fake_kafka_clients, monkeypatch) -> None:
    manager = KafkaTransactionManager(ProducerFactory({}, transaction_id_prefix="tx-"))
    manager.begin()

    def _fail(*args: Any) -> None:
        raise KafkaException("fenced")

    monkeypatch.setattr(fake_kafka_clients.instances[0], "commit_transaction", _fail)

    with pytest.raises(TransactionError, match="commit"):
        manager.commit()
    assert not manager.active


def _failing_abort(*args: Any) -> None:
    raise KafkaException("abort rejected")


def test_callback_error_survives_a_failed_abort(fake_kafka_clients, monkeypatch) -> None:
    template = KafkaTemplate(ProducerFactory({}, transaction_id_prefix="tx-"))
    monkeypatch.setattr(template.producer, "abort_transaction", _failing_abort)

    def _fail(_: KafkaTemplate) -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        template.execute_in_transaction(_fail)


def test_commit_error_survives_a_failed_abort(fake_kafka_clients, monkeypatch) -> None:
    template = KafkaTemplate(ProducerFactory({}, transaction_id_prefix="tx-"))

    def _fenced(*args: Any) -> None:
        raise KafkaException("fenced")

    monkeypatch.setattr(template.producer, "commit_transaction", _fenced)
    monkeypatch.setattr(template.producer, "abort_transaction", _failing_abort)

    with pytest.raises(TransactionError, match="commit"):
        template.execute_in_transaction(lambda t: None)


def test_transaction_block_error_survives_a_failed_rollback(fake_kafka_clients, monkeypatch) -> None:
    manager = KafkaTransactionManager(ProducerFactory({}, transaction_id_prefix="tx-"))
    monkeypatch.setattr(manager.producer, "abort_transaction", _failing_abort)

    with pytest.raises(ValueError, match="original"):
        with manager.transaction():
            raise ValueError("original")
    assert not manager.active
