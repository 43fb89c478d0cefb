"""CLI utility that prints the client configuration clientwire would use."""

from __future__ import annotations

import json
import re
from typing import Any

import click

from ..configuration import KAFKA, MONGO, ServiceConfiguration, get_service_configuration
from ..context import ClientRegistry, assemble
from ..exceptions import ClientWireError
from ..kafka.admin import KafkaAdmin
from ..kafka.configuration import KafkaAutoConfiguration
from ..kafka.factories import ConsumerFactory, ProducerFactory
from ..mongo.configuration import MongoAutoConfiguration
from ..mongo.settings import MongoClientSettings
from ..sslbundle.properties import build_ssl_bundles
from ..utils.config import get_settings

REDACTED = "******"
_SENSITIVE_MARKERS = ("password", "secret", "jaas.config", "token")
_URI_CREDENTIALS = re.compile(r"(?P<scheme>mongodb(?:\+srv)?://)(?P<user>[^:@/]+):[^@/]*@")

# Steps that only build configuration; clients, templates and JAAS files are skipped.
_KAFKA_STEPS = {"kafka_connection_details", "kafka_producer_factory", "kafka_consumer_factory", "kafka_admin"}
_MONGO_STEPS = {"mongo_connection_details", "standard_mongo_settings_customizer", "mongo_client_settings"}


def redact(config: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``config`` with secret values masked."""

    redacted: dict[str, Any] = {}
    for key, value in config.items():
        if any(marker in key.lower() for marker in _SENSITIVE_MARKERS):
            redacted[key] = REDACTED
        elif isinstance(value, str):
            redacted[key] = _URI_CREDENTIALS.sub(rf"\g<scheme>\g<user>:{REDACTED}@", value)
        else:
            redacted[key] = value
    return redacted


def describe_clients(service_config: ServiceConfiguration) -> dict[str, Any]:
    """Resolve client configuration without creating any client."""

    bundles = build_ssl_bundles(service_config.ssl)
    registry = ClientRegistry()
    output: dict[str, Any] = {
        "environment": service_config.environment,
        "ssl_bundles": bundles.bundle_names,
    }

    if service_config.is_enabled(KAFKA):
        kafka = KafkaAutoConfiguration(service_config.kafka, bundles)
        assemble([step for step in kafka.assembly_steps() if step.name in _KAFKA_STEPS], registry)
        output["kafka"] = {
            "producer": redact(registry.get_by_type(ProducerFactory).client_config()),
            "consumer": redact(registry.get_by_type(ConsumerFactory).client_config()),
            "admin": redact(registry.get_by_type(KafkaAdmin).client_config()),
        }

    if service_config.is_enabled(MONGO):
        mongo = MongoAutoConfiguration(service_config.mongo, bundles)
        assemble([step for step in mongo.assembly_steps() if step.name in _MONGO_STEPS], registry)
        output["mongo"] = redact(registry.get_by_type(MongoClientSettings).to_client_kwargs())

    return output


@click.command()
@click.option(
    "--profile",
    default=None,
    help="Configuration profile to load (defaults to CLIENTWIRE_CONFIG_PROFILE or the environment)",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding settings.base.yaml and profile overrides",
)
def describe(profile: str | None, config_dir: str | None) -> None:
    """
    Print the resolved Kafka and MongoDB client configuration as JSON.

    Secrets are masked. No connection is opened.

    Examples:

        # Default profile
        clientwire-describe

        # Production templates from another directory
        clientwire-describe --profile production --config-dir /etc/clientwire
    """
    settings = get_settings()
    updates: dict[str, Any] = {}
    if profile:
        updates["config_profile"] = profile.strip().lower()
    if config_dir:
        updates["config_dir"] = config_dir
    if updates:
        settings = settings.model_copy(update=updates)

    try:
        service_config = get_service_configuration(settings=settings, reload=True)
        output = describe_clients(service_config)
    except ClientWireError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(output, indent=2, sort_keys=True, default=str))


if __name__ == "__main__":
    describe()
