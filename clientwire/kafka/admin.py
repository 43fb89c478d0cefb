"""Kafka admin wrapper that provisions declared topics at startup."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient, ConfigResource, NewTopic, ResourceType

from ..exceptions import KafkaAdminError
from ..utils.logging import setup_logger
from .tls import KafkaTlsSource

logger = setup_logger(__name__, context={"component": "KafkaAdmin", "client": "admin"})


@dataclass(slots=True)
class TopicSpec:
    """Topic the admin should make sure exists."""

    name: str
    num_partitions: int = 1
    replication_factor: int = 1
    config: dict[str, str] = field(default_factory=dict)

    def to_new_topic(self) -> NewTopic:
        return NewTopic(
            self.name,
            num_partitions=self.num_partitions,
            replication_factor=self.replication_factor,
            config=dict(self.config),
        )


class KafkaAdmin:
    """Creates admin clients and, when asked, the topics an application declares.

    Attributes:
        close_timeout: Seconds to wait for pending topic operations to
            complete before giving up on them; unbounded when ``None``.
        operation_timeout: Seconds to wait for topic operations.
        fatal_if_broker_not_available: Raise instead of logging when the
            cluster cannot be reached.
        modify_topic_configs: Update the config of topics that already exist.
        auto_create: Create declared topics that are missing.
    """

    def __init__(self, configuration: Mapping[str, Any], *, tls: KafkaTlsSource | None = None) -> None:
        self._configuration: dict[str, Any] = dict(configuration)
        self.tls = tls
        self.close_timeout: int | None = None
        self.operation_timeout: int | None = None
        self.fatal_if_broker_not_available = False
        self.modify_topic_configs = False
        self.auto_create = True

    @property
    def configuration(self) -> dict[str, Any]:
        return dict(self._configuration)

    def client_config(self) -> dict[str, Any]:
        config = dict(self._configuration)
        if self.tls is not None:
            config.update(self.tls.to_client_config())
        return config

    def create_client(self) -> AdminClient:
        return AdminClient(self.client_config())

    def initialize(self, topics: Iterable[TopicSpec]) -> list[str]:
        """Create missing ``topics`` and return the names created.

        Broker failures raise :class:`KafkaAdminError` when
        ``fatal_if_broker_not_available`` is set and are logged otherwise.
        """

        declared = list(topics)
        if not declared:
            return []
        timeout = self.operation_timeout if self.operation_timeout is not None else 30
        try:
            client = self.create_client()
            existing = set(client.list_topics(timeout=timeout).topics.keys())
            created = self._create_missing(client, declared, existing, timeout) if self.auto_create else []
            if self.modify_topic_configs:
                self._modify_existing_configs(client, declared, existing)
        except (KafkaException, KafkaAdminError) as exc:
            if self.fatal_if_broker_not_available:
                if isinstance(exc, KafkaAdminError):
                    raise
                raise KafkaAdminError(f"Could not configure topics: {exc}") from exc
            logger.error(
                "Could not configure topics: %s",
                exc,
                extra={"status": "error"},
            )
            return []
        return created

    def _create_missing(
        self,
        client: AdminClient,
        declared: list[TopicSpec],
        existing: set[str],
        timeout: int,
    ) -> list[str]:
        to_create = [topic.to_new_topic() for topic in declared if topic.name not in existing]
        if not to_create:
            logger.info("All declared topics already exist", extra={"status": "noop"})
            return []

        created: list[str] = []
        failures: dict[str, str] = {}
        futures = client.create_topics(to_create, operation_timeout=timeout)
        for name, future in futures.items():
            try:
                future.result(timeout=self.close_timeout)
            except (KafkaException, TimeoutError) as exc:
                failures[name] = str(exc) or "timed out"
                continue
            created.append(name)
            logger.info("Created topic %s", name, extra={"status": "created"})
        if failures:
            raise KafkaAdminError(
                "Failed to create topics: "
                + ", ".join(f"{name} ({reason})" for name, reason in sorted(failures.items()))
            )
        return created

    def _modify_existing_configs(
        self,
        client: AdminClient,
        declared: list[TopicSpec],
        existing: set[str],
    ) -> list[str]:
        resources = [
            ConfigResource(ResourceType.TOPIC, topic.name, set_config=dict(topic.config))
            for topic in declared
            if topic.name in existing and topic.config
        ]
        if not resources:
            return []

        modified: list[str] = []
        for resource, future in client.alter_configs(resources).items():
            try:
                future.result(timeout=self.close_timeout)
            except (KafkaException, TimeoutError) as exc:
                raise KafkaAdminError(
                    f"Failed to modify config of topic {resource.name}: {exc}"
                ) from exc
            modified.append(resource.name)
            logger.info("Modified config of topic %s", resource.name, extra={"status": "modified"})
        return modified
