"""Render an SSL bundle into librdkafka ``ssl.*`` settings at client creation time."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..sslbundle.bundle import SslBundle
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "KafkaTlsSource"})


@dataclass(frozen=True, slots=True)
class KafkaTlsSource:
    """Typed TLS source attached to a Kafka client factory.

    The bundle travels with the factory and is only turned into librdkafka
    settings when a client is created.
    """

    bundle: SslBundle

    def to_client_config(self) -> dict[str, Any]:
        """Return the ``ssl.*`` keys describing this bundle."""

        bundle = self.bundle
        config: dict[str, Any] = {}
        if bundle.trust_certificate:
            config["ssl.ca.location"] = bundle.trust_certificate
        if bundle.key_certificate:
            config["ssl.certificate.location"] = bundle.key_certificate
        if bundle.private_key:
            config["ssl.key.location"] = bundle.private_key
        if bundle.private_key_password:
            config["ssl.key.password"] = bundle.private_key_password
        if bundle.options.ciphers:
            config["ssl.cipher.suites"] = ":".join(bundle.options.ciphers)
        if bundle.options.enabled_protocols:
            logger.warning(
                "librdkafka has no per-client TLS protocol setting; ignoring enabled protocols %s",
                ", ".join(bundle.options.enabled_protocols),
                extra={"status": "ignored"},
            )
        return config


def tls_source_for(bundle: SslBundle | None) -> KafkaTlsSource | None:
    """Wrap ``bundle`` as a TLS source, or return None when there is no bundle."""

    return KafkaTlsSource(bundle) if bundle is not None else None
