"""Where the Kafka brokers are, separated from how the clients are tuned."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigurationError
from ..sslbundle.bundle import SslBundle
from ..sslbundle.registry import SslBundles
from .properties import KafkaProperties, SslReference


@dataclass(frozen=True, slots=True)
class KafkaConnectionConfiguration:
    """Connection settings for one client role."""

    bootstrap_servers: list[str]
    security_protocol: str | None = None
    ssl_bundle: SslBundle | None = None


class KafkaConnectionDetails(ABC):
    """Supplies bootstrap servers, security protocol and SSL bundle per client role.

    Subclasses usually only implement ``bootstrap_servers``; every role falls
    back to the common values unless overridden.
    """

    @property
    @abstractmethod
    def bootstrap_servers(self) -> list[str]: ...

    @property
    def security_protocol(self) -> str | None:
        return None

    @property
    def ssl_bundle(self) -> SslBundle | None:
        return None

    def _common(self) -> KafkaConnectionConfiguration:
        return KafkaConnectionConfiguration(
            bootstrap_servers=list(self.bootstrap_servers),
            security_protocol=self.security_protocol,
            ssl_bundle=self.ssl_bundle,
        )

    @property
    def producer(self) -> KafkaConnectionConfiguration:
        return self._common()

    @property
    def consumer(self) -> KafkaConnectionConfiguration:
        return self._common()

    @property
    def admin(self) -> KafkaConnectionConfiguration:
        return self._common()


class PropertiesKafkaConnectionDetails(KafkaConnectionDetails):
    """Connection details read from :class:`KafkaProperties`."""

    def __init__(self, properties: KafkaProperties, ssl_bundles: SslBundles | None = None) -> None:
        self._properties = properties
        self._ssl_bundles = ssl_bundles

    @property
    def bootstrap_servers(self) -> list[str]:
        return list(self._properties.bootstrap_servers)

    @property
    def security_protocol(self) -> str | None:
        return self._properties.security.protocol

    @property
    def ssl_bundle(self) -> SslBundle | None:
        return self._resolve_bundle(self._properties.ssl)

    @property
    def producer(self) -> KafkaConnectionConfiguration:
        producer = self._properties.producer
        return self._for_role(producer.bootstrap_servers, producer.security.protocol, producer.ssl)

    @property
    def consumer(self) -> KafkaConnectionConfiguration:
        consumer = self._properties.consumer
        return self._for_role(consumer.bootstrap_servers, consumer.security.protocol, consumer.ssl)

    @property
    def admin(self) -> KafkaConnectionConfiguration:
        admin = self._properties.admin
        return self._for_role(admin.bootstrap_servers, admin.security.protocol, admin.ssl)

    def _for_role(
        self,
        bootstrap_servers: list[str] | None,
        security_protocol: str | None,
        ssl: SslReference,
    ) -> KafkaConnectionConfiguration:
        bundle = self._resolve_bundle(ssl) if ssl.bundle else self.ssl_bundle
        return KafkaConnectionConfiguration(
            bootstrap_servers=list(bootstrap_servers or self.bootstrap_servers),
            security_protocol=security_protocol or self.security_protocol,
            ssl_bundle=bundle,
        )

    def _resolve_bundle(self, ssl: SslReference) -> SslBundle | None:
        if not ssl.bundle:
            return None
        if self._ssl_bundles is None:
            raise ConfigurationError(
                f"SSL bundle '{ssl.bundle}' is configured but no SSL bundle registry is available"
            )
        return self._ssl_bundles.get_bundle(ssl.bundle)


def apply_security_protocol(config: dict[str, Any], security_protocol: str | None) -> None:
    """Write ``security.protocol`` only when a non-empty protocol is given."""

    if security_protocol:
        config["security.protocol"] = security_protocol
