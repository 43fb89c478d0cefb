"""Tests for SSL bundle properties, the registry and context creation."""

from __future__ import annotations

import ssl

import pytest

from clientwire.exceptions import ConfigurationError, NoSuchSslBundleError
from clientwire.sslbundle import (
    DefaultSslBundleRegistry,
    PemSslStoreDetails,
    SslBundle,
    SslOptions,
    SslProperties,
    SslStoreBundle,
    build_ssl_bundles,
)


def _properties() -> SslProperties:
    return SslProperties.model_validate(
        {
            "bundle": {
                "pem": {
                    "kafka": {
                        "keystore": {
                            "certificate": "/certs/client.pem",
                            "private_key": "/certs/client.key",
                            "private_key_password": "changeit",
                        },
                        "truststore": {"certificate": "/certs/ca.pem"},
                    },
                    "restricted": {
                        "options": {
                            "ciphers": "TLS_AES_128_GCM_SHA256, TLS_AES_256_GCM_SHA384",
                            "enabled_protocols": ["TLSv1.3"],
                        }
                    },
                }
            }
        }
    )


def test_build_ssl_bundles_registers_every_pem_definition() -> None:
    registry = build_ssl_bundles(_properties())

    assert registry.bundle_names == ["kafka", "restricted"]
    kafka = registry.get_bundle("kafka")
    assert kafka.trust_certificate == "/certs/ca.pem"
    assert kafka.key_certificate == "/certs/client.pem"
    assert kafka.private_key == "/certs/client.key"
    assert kafka.private_key_password == "changeit"
    assert not kafka.options.is_specified()


def test_comma_separated_options_are_split() -> None:
    restricted = build_ssl_bundles(_properties()).get_bundle("restricted")

    assert restricted.options.ciphers == ("TLS_AES_128_GCM_SHA256", "TLS_AES_256_GCM_SHA384")
    assert restricted.options.enabled_protocols == ("TLSv1.3",)
    assert restricted.options.is_specified()
    assert restricted.stores.key_store is None


def test_unknown_bundle_raises_key_error_subclass() -> None:
    registry = DefaultSslBundleRegistry()

    with pytest.raises(NoSuchSslBundleError) as excinfo:
        registry.get_bundle("missing")

    assert isinstance(excinfo.value, KeyError)
    assert excinfo.value.bundle_name == "missing"
    assert str(excinfo.value) == "SSL bundle name 'missing' cannot be found"


def test_duplicate_and_blank_names_are_rejected() -> None:
    registry = DefaultSslBundleRegistry({"one": SslBundle.system_default()})

    with pytest.raises(ConfigurationError):
        registry.register_bundle("one", SslBundle.system_default())
    with pytest.raises(ConfigurationError):
        registry.register_bundle("  ", SslBundle.system_default())
    assert len(registry) == 1
    assert "one" in registry


def test_system_default_bundle_creates_verifying_client_context() -> None:
    context = SslBundle.system_default().create_ssl_context()

    assert isinstance(context, ssl.SSLContext)
    assert context.verify_mode == ssl.CERT_REQUIRED
    assert context.check_hostname is True


def test_enabled_protocols_bound_context_versions() -> None:
    bundle = SslBundle(options=SslOptions(enabled_protocols=("TLSv1.3", "TLSv1.2")))

    context = bundle.create_ssl_context()

    assert context.minimum_version == ssl.TLSVersion.TLSv1_2
    assert context.maximum_version == ssl.TLSVersion.TLSv1_3


def test_unknown_protocol_is_rejected() -> None:
    bundle = SslBundle(options=SslOptions(enabled_protocols=("SSLv3",)))

    with pytest.raises(ConfigurationError, match="Unsupported TLS protocol"):
        bundle.create_ssl_context()


def test_private_key_without_certificate_is_rejected() -> None:
    bundle = SslBundle(
        stores=SslStoreBundle(key_store=PemSslStoreDetails(private_key="/certs/client.key"))
    )

    with pytest.raises(ConfigurationError, match="without a certificate"):
        bundle.create_ssl_context()
