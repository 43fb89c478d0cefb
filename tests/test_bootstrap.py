"""Tests for assembling every client from the service configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from clientwire.bootstrap import SSL_BUNDLES, close_clients, configure_clients
from clientwire.configuration import ServiceConfiguration
from clientwire.context import ClientRegistry
from clientwire.kafka.factories import ProducerFactory
from clientwire.kafka.jaas import KafkaJaasLoginModuleInitializer
from clientwire.sslbundle import DefaultSslBundleRegistry, PemSslStoreDetails, SslBundle, SslStoreBundle


class _FakeMongoClient:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs


@pytest.fixture(autouse=True)
def _fake_mongo(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("clientwire.mongo.configuration.MongoClient", _FakeMongoClient)


def _service_config(raw: dict[str, Any]) -> ServiceConfiguration:
    return ServiceConfiguration.model_validate(raw)


def test_configure_clients_wires_kafka_and_mongo() -> None:
    registry = configure_clients(
        _service_config(
            {
                "ssl": {"bundle": {"pem": {"kafka": {"truststore": {"certificate": "/certs/ca.pem"}}}}},
                "kafka": {"ssl": {"bundle": "kafka"}},
            }
        )
    )

    assert registry.get(SSL_BUNDLES).bundle_names == ["kafka"]
    assert registry.get_by_type(ProducerFactory).client_config()["ssl.ca.location"] == "/certs/ca.pem"
    assert "mongo_client" in registry


def test_excluded_autoconfiguration_is_skipped() -> None:
    registry = configure_clients(_service_config({"autoconfigure": {"exclude": ["kafka"]}}))

    assert not registry.contains(ProducerFactory)
    assert "mongo_client" in registry


def test_registered_bundle_registry_is_reused() -> None:
    registry = ClientRegistry()
    bundles = registry.register("my_bundles", DefaultSslBundleRegistry())

    configure_clients(_service_config({"autoconfigure": {"exclude": ["mongo"]}}), registry)

    assert registry.get_by_type(DefaultSslBundleRegistry) is bundles
    assert SSL_BUNDLES not in registry


def test_configure_clients_loads_configuration_when_not_given(write_templates) -> None:
    write_templates("kafka:\n  client_id: from-template\nautoconfigure:\n  exclude: [mongo]\n")

    registry = configure_clients()

    assert registry.get_by_type(ProducerFactory).configuration["client.id"] == "from-template"


class _VaultBundles:
    """Bundle source that is not a DefaultSslBundleRegistry."""

    def __init__(self) -> None:
        self.requested: list[str] = []

    def get_bundle(self, name: str) -> SslBundle:
        self.requested.append(name)
        return SslBundle(SslStoreBundle(trust_store=PemSslStoreDetails(certificate="/vault/ca.pem")))

    @property
    def bundle_names(self) -> list[str]:
        return ["vault"]


def test_any_registered_bundle_source_is_reused() -> None:
    registry = ClientRegistry()
    bundles = registry.register("vault_bundles", _VaultBundles())

    configure_clients(
        _service_config({"kafka": {"ssl": {"bundle": "vault"}}, "autoconfigure": {"exclude": ["mongo"]}}),
        registry,
    )

    assert SSL_BUNDLES not in registry
    assert "vault" in bundles.requested
    assert registry.get_by_type(ProducerFactory).client_config()["ssl.ca.location"] == "/vault/ca.pem"


def test_close_clients_removes_installed_jaas_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))

    registry = configure_clients(_service_config({"kafka": {"jaas": {"enabled": True}}}))
    jaas = registry.get_by_type(KafkaJaasLoginModuleInitializer)
    assert "Krb5LoginModule required" in jaas.config_file.read_text()
    assert str(jaas.config_file) in os.environ["KAFKA_OPTS"]

    close_clients(registry)

    assert not jaas.config_file.exists()
    assert "KAFKA_OPTS" not in os.environ
