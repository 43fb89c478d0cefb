"""Tests for Kafka properties and their librdkafka rendering."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from clientwire.kafka.properties import IsolationLevel, JaasControlFlag, KafkaProperties


def test_defaults_only_render_bootstrap_servers() -> None:
    properties = KafkaProperties()

    assert properties.build_producer_properties() == {"bootstrap.servers": "localhost:9092"}
    assert properties.build_consumer_properties() == {"bootstrap.servers": "localhost:9092"}
    assert properties.build_admin_properties() == {"bootstrap.servers": "localhost:9092"}


def test_producer_values_are_mapped_and_role_overrides_common() -> None:
    properties = KafkaProperties.model_validate(
        {
            "bootstrap_servers": "one:9092, two:9092",
            "client_id": "common",
            "properties": {"socket.keepalive.enable": True, "linger.ms": 1},
            "producer": {
                "acks": -1,
                "batch_size": "16KB",
                "client_id": "producer",
                "compression_type": "zstd",
                "linger": "5ms",
                "retries": 3,
                "properties": {"enable.idempotence": True},
            },
        }
    )

    config = properties.build_producer_properties()

    assert config == {
        "bootstrap.servers": "one:9092,two:9092",
        "client.id": "producer",
        "socket.keepalive.enable": True,
        "linger.ms": 5,
        "acks": "-1",
        "batch.size": 16384,
        "compression.type": "zstd",
        "retries": 3,
        "enable.idempotence": True,
    }


def test_linger_keeps_every_millisecond() -> None:
    properties = KafkaProperties.model_validate({"producer": {"linger": "1005ms"}})

    assert properties.build_producer_properties()["linger.ms"] == 1005


def test_consumer_durations_are_rendered_in_milliseconds() -> None:
    properties = KafkaProperties.model_validate(
        {
            "consumer": {
                "auto_commit_interval": "1s",
                "auto_offset_reset": "earliest",
                "enable_auto_commit": False,
                "fetch_max_wait": 0.5,
                "fetch_min_size": "1KB",
                "group_id": "orders",
                "heartbeat_interval": timedelta(seconds=3),
                "isolation_level": "read_committed",
                "max_poll_interval": "5m",
                "max_poll_records": 50,
                "session_timeout": "45s",
            }
        }
    )

    config = properties.build_consumer_properties()

    assert config["auto.commit.interval.ms"] == 1000
    assert config["auto.offset.reset"] == "earliest"
    assert config["enable.auto.commit"] is False
    assert config["fetch.wait.max.ms"] == 500
    assert config["fetch.min.bytes"] == 1024
    assert config["group.id"] == "orders"
    assert config["heartbeat.interval.ms"] == 3000
    assert config["isolation.level"] == "read_committed"
    assert config["max.poll.interval.ms"] == 300000
    assert config["session.timeout.ms"] == 45000
    assert "max.poll.records" not in config
    assert properties.consumer.isolation_level is IsolationLevel.READ_COMMITTED


def test_security_protocol_is_written_for_common_and_role() -> None:
    properties = KafkaProperties.model_validate(
        {"security": {"protocol": "SSL"}, "admin": {"security": {"protocol": "SASL_SSL"}}}
    )

    assert properties.build_producer_properties()["security.protocol"] == "SSL"
    assert properties.build_admin_properties()["security.protocol"] == "SASL_SSL"


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        KafkaProperties.model_validate({"producer": {"acknowledgements": "all"}})


def test_jaas_and_retry_defaults() -> None:
    properties = KafkaProperties.model_validate({"jaas": {"control_flag": "SUFFICIENT"}})

    assert properties.jaas.enabled is False
    assert properties.jaas.login_module == "com.sun.security.auth.module.Krb5LoginModule"
    assert properties.jaas.control_flag is JaasControlFlag.SUFFICIENT
    assert properties.retry.topic.enabled is False
    assert properties.retry.topic.attempts == 3
    assert properties.retry.topic.backoff.delay == timedelta(seconds=1)
    assert properties.retry.topic.backoff.multiplier is None
    assert properties.admin.auto_create is True
    assert properties.admin.fail_fast is False


def test_retry_attempts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        KafkaProperties.model_validate({"retry": {"topic": {"attempts": 0}}})
