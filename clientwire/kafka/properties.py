"""Kafka client properties and their mapping onto librdkafka configuration keys."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.units import parse_data_size, parse_duration, to_millis

DEFAULT_BOOTSTRAP_SERVERS = ["localhost:9092"]


def _split_servers(value: Any) -> Any:
    if isinstance(value, str):
        return [server.strip() for server in value.split(",") if server.strip()]
    return value


def _put_if_present(config: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        config[key] = value


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SecurityProperties(_Section):
    protocol: str | None = None


class SslReference(_Section):
    """Reference to a registered SSL bundle."""

    bundle: str | None = None


class IsolationLevel(str, Enum):
    READ_UNCOMMITTED = "read_uncommitted"
    READ_COMMITTED = "read_committed"


class JaasControlFlag(str, Enum):
    REQUIRED = "required"
    REQUISITE = "requisite"
    SUFFICIENT = "sufficient"
    OPTIONAL = "optional"


class _ClientSection(_Section):
    """Settings every client role shares."""

    bootstrap_servers: list[str] | None = None
    client_id: str | None = None
    security: SecurityProperties = Field(default_factory=SecurityProperties)
    ssl: SslReference = Field(default_factory=SslReference)
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("bootstrap_servers", mode="before")
    @classmethod
    def _parse_servers(cls, value: Any) -> Any:
        return _split_servers(value)


class ProducerProperties(_ClientSection):
    acks: str | None = None
    batch_size: int | None = None
    compression_type: str | None = None
    linger: timedelta | None = None
    retries: int | None = None
    transaction_id_prefix: str | None = None

    @field_validator("acks", mode="before")
    @classmethod
    def _acks_as_string(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    @field_validator("batch_size", mode="before")
    @classmethod
    def _parse_batch_size(cls, value: Any) -> Any:
        return parse_data_size(value)

    @field_validator("linger", mode="before")
    @classmethod
    def _parse_linger(cls, value: Any) -> Any:
        return parse_duration(value)

    def build_properties(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        _put_if_present(config, "acks", self.acks)
        _put_if_present(config, "batch.size", self.batch_size)
        if self.bootstrap_servers:
            config["bootstrap.servers"] = ",".join(self.bootstrap_servers)
        _put_if_present(config, "client.id", self.client_id)
        _put_if_present(config, "compression.type", self.compression_type)
        _put_if_present(config, "linger.ms", to_millis(self.linger))
        _put_if_present(config, "retries", self.retries)
        _put_if_present(config, "security.protocol", self.security.protocol)
        config.update(self.properties)
        return config


class ConsumerProperties(_ClientSection):
    auto_commit_interval: timedelta | None = None
    auto_offset_reset: str | None = None
    enable_auto_commit: bool | None = None
    fetch_max_wait: timedelta | None = None
    fetch_min_size: int | None = None
    group_id: str | None = None
    heartbeat_interval: timedelta | None = None
    isolation_level: IsolationLevel | None = None
    max_poll_interval: timedelta | None = None
    max_poll_records: int | None = Field(default=None, ge=1)
    session_timeout: timedelta | None = None

    @field_validator(
        "auto_commit_interval",
        "fetch_max_wait",
        "heartbeat_interval",
        "max_poll_interval",
        "session_timeout",
        mode="before",
    )
    @classmethod
    def _parse_durations(cls, value: Any) -> Any:
        return parse_duration(value)

    @field_validator("fetch_min_size", mode="before")
    @classmethod
    def _parse_fetch_min_size(cls, value: Any) -> Any:
        return parse_data_size(value)

    def build_properties(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        _put_if_present(config, "auto.commit.interval.ms", to_millis(self.auto_commit_interval))
        _put_if_present(config, "auto.offset.reset", self.auto_offset_reset)
        if self.bootstrap_servers:
            config["bootstrap.servers"] = ",".join(self.bootstrap_servers)
        _put_if_present(config, "client.id", self.client_id)
        _put_if_present(config, "enable.auto.commit", self.enable_auto_commit)
        _put_if_present(config, "fetch.wait.max.ms", to_millis(self.fetch_max_wait))
        _put_if_present(config, "fetch.min.bytes", self.fetch_min_size)
        _put_if_present(config, "group.id", self.group_id)
        _put_if_present(config, "heartbeat.interval.ms", to_millis(self.heartbeat_interval))
        if self.isolation_level is not None:
            config["isolation.level"] = self.isolation_level.value
        _put_if_present(config, "max.poll.interval.ms", to_millis(self.max_poll_interval))
        _put_if_present(config, "session.timeout.ms", to_millis(self.session_timeout))
        _put_if_present(config, "security.protocol", self.security.protocol)
        config.update(self.properties)
        return config


class AdminProperties(_ClientSection):
    close_timeout: timedelta | None = None
    operation_timeout: timedelta | None = None
    fail_fast: bool = False
    modify_topic_configs: bool = False
    auto_create: bool = True

    @field_validator("close_timeout", "operation_timeout", mode="before")
    @classmethod
    def _parse_timeouts(cls, value: Any) -> Any:
        return parse_duration(value)

    def build_properties(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if self.bootstrap_servers:
            config["bootstrap.servers"] = ",".join(self.bootstrap_servers)
        _put_if_present(config, "client.id", self.client_id)
        _put_if_present(config, "security.protocol", self.security.protocol)
        config.update(self.properties)
        return config


class TemplateProperties(_Section):
    default_topic: str | None = None
    transaction_id_prefix: str | None = None
    observation_enabled: bool = False


class JaasProperties(_Section):
    enabled: bool = False
    login_module: str = "com.sun.security.auth.module.Krb5LoginModule"
    control_flag: JaasControlFlag = JaasControlFlag.REQUIRED
    options: dict[str, str] = Field(default_factory=dict)

    @field_validator("control_flag", mode="before")
    @classmethod
    def _lowercase_flag(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class BackoffProperties(_Section):
    """Backoff between retry-topic deliveries; only ``delay`` has a default."""

    delay: timedelta | None = timedelta(seconds=1)
    max_delay: timedelta | None = None
    multiplier: float | None = Field(default=None, ge=0)
    random: bool | None = None

    @field_validator("delay", "max_delay", mode="before")
    @classmethod
    def _parse_delays(cls, value: Any) -> Any:
        return parse_duration(value)


class RetryTopicProperties(_Section):
    enabled: bool = False
    attempts: int = Field(default=3, ge=1)
    backoff: BackoffProperties = Field(default_factory=BackoffProperties)


class RetryProperties(_Section):
    topic: RetryTopicProperties = Field(default_factory=RetryTopicProperties)


class KafkaProperties(_Section):
    """Externalized Kafka configuration.

    Common values apply to every client role; a role section overrides them.
    Values left as ``None`` are never written so the client library default
    stays in effect.
    """

    bootstrap_servers: list[str] = Field(default_factory=lambda: list(DEFAULT_BOOTSTRAP_SERVERS))
    client_id: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    security: SecurityProperties = Field(default_factory=SecurityProperties)
    ssl: SslReference = Field(default_factory=SslReference)
    producer: ProducerProperties = Field(default_factory=ProducerProperties)
    consumer: ConsumerProperties = Field(default_factory=ConsumerProperties)
    admin: AdminProperties = Field(default_factory=AdminProperties)
    template: TemplateProperties = Field(default_factory=TemplateProperties)
    jaas: JaasProperties = Field(default_factory=JaasProperties)
    retry: RetryProperties = Field(default_factory=RetryProperties)

    @field_validator("bootstrap_servers", mode="before")
    @classmethod
    def _parse_servers(cls, value: Any) -> Any:
        return _split_servers(value)

    def _build_common_properties(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if self.bootstrap_servers:
            config["bootstrap.servers"] = ",".join(self.bootstrap_servers)
        _put_if_present(config, "client.id", self.client_id)
        _put_if_present(config, "security.protocol", self.security.protocol)
        config.update(self.properties)
        return config

    def build_producer_properties(self) -> dict[str, Any]:
        """Return librdkafka producer configuration built from these properties."""

        config = self._build_common_properties()
        config.update(self.producer.build_properties())
        return config

    def build_consumer_properties(self) -> dict[str, Any]:
        """Return librdkafka consumer configuration built from these properties."""

        config = self._build_common_properties()
        config.update(self.consumer.build_properties())
        return config

    def build_admin_properties(self) -> dict[str, Any]:
        """Return librdkafka admin client configuration built from these properties."""

        config = self._build_common_properties()
        config.update(self.admin.build_properties())
        return config
