"""Entry point that assembles every configured client into a registry."""

from __future__ import annotations

from .configuration import KAFKA, MONGO, ServiceConfiguration, ensure_runtime_configuration
from .context import ClientRegistry
from .kafka.configuration import KafkaAutoConfiguration
from .mongo.configuration import MongoAutoConfiguration
from .sslbundle.properties import build_ssl_bundles
from .sslbundle.registry import SslBundles
from .utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "Bootstrap"})

SSL_BUNDLES = "ssl_bundles"


def configure_clients(
    service_config: ServiceConfiguration | None = None,
    registry: ClientRegistry | None = None,
) -> ClientRegistry:
    """Build the SSL bundle registry and run the Kafka and MongoDB autoconfiguration.

    Objects already in ``registry`` take precedence over the defaults. An SSL
    bundle registry registered up front is used instead of the configured one.
    """

    if service_config is None:
        service_config = ensure_runtime_configuration()
    if registry is None:
        registry = ClientRegistry()

    ssl_bundles = registry.get_if_unique(SslBundles)
    if ssl_bundles is None:
        ssl_bundles = registry.register(SSL_BUNDLES, build_ssl_bundles(service_config.ssl))

    if service_config.is_enabled(KAFKA):
        KafkaAutoConfiguration(service_config.kafka, ssl_bundles).configure(registry)
    else:
        logger.info("Kafka autoconfiguration excluded", extra={"status": "excluded"})

    if service_config.is_enabled(MONGO):
        MongoAutoConfiguration(service_config.mongo, ssl_bundles).configure(registry)
    else:
        logger.info("MongoDB autoconfiguration excluded", extra={"status": "excluded"})

    return registry


def close_clients(registry: ClientRegistry) -> None:
    """Release what :func:`configure_clients` set up, such as JAAS login files."""

    KafkaAutoConfiguration.shutdown(registry)
