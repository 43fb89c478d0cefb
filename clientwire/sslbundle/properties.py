"""Configuration models describing PEM based SSL bundles."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .bundle import PemSslStoreDetails, SslBundle, SslBundleKey, SslOptions, SslStoreBundle
from .registry import DefaultSslBundleRegistry


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class PemStoreProperties(BaseModel):
    """Locations of a PEM certificate and (optionally) its private key."""

    model_config = ConfigDict(extra="forbid")

    certificate: str | None = None
    private_key: str | None = None
    private_key_password: str | None = None

    def to_details(self) -> PemSslStoreDetails | None:
        details = PemSslStoreDetails(
            certificate=self.certificate,
            private_key=self.private_key,
            private_key_password=self.private_key_password,
        )
        return None if details.is_empty() else details


class BundleKeyProperties(BaseModel):
    model_config = ConfigDict(extra="forbid")

    alias: str | None = None
    password: str | None = None


class BundleOptionsProperties(BaseModel):
    """Cipher suites and protocol versions; ``None`` means "not specified"."""

    model_config = ConfigDict(extra="forbid")

    ciphers: list[str] | None = None
    enabled_protocols: list[str] | None = None

    @field_validator("ciphers", "enabled_protocols", mode="before")
    @classmethod
    def _split_comma_separated(cls, value: Any) -> Any:
        return _split_csv(value)


class PemBundleProperties(BaseModel):
    """A single PEM bundle definition."""

    model_config = ConfigDict(extra="forbid")

    key: BundleKeyProperties = Field(default_factory=BundleKeyProperties)
    options: BundleOptionsProperties = Field(default_factory=BundleOptionsProperties)
    protocol: str = "TLS"
    keystore: PemStoreProperties = Field(default_factory=PemStoreProperties)
    truststore: PemStoreProperties = Field(default_factory=PemStoreProperties)

    def to_bundle(self) -> SslBundle:
        options = self.options
        return SslBundle(
            stores=SslStoreBundle(
                key_store=self.keystore.to_details(),
                trust_store=self.truststore.to_details(),
            ),
            key=SslBundleKey(alias=self.key.alias, password=self.key.password),
            options=SslOptions(
                ciphers=tuple(options.ciphers) if options.ciphers is not None else None,
                enabled_protocols=(
                    tuple(options.enabled_protocols)
                    if options.enabled_protocols is not None
                    else None
                ),
            ),
            protocol=self.protocol,
        )


class SslBundleSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pem: dict[str, PemBundleProperties] = Field(default_factory=dict)


class SslProperties(BaseModel):
    """Top-level ``ssl`` configuration section."""

    model_config = ConfigDict(extra="forbid")

    bundle: SslBundleSection = Field(default_factory=SslBundleSection)


def build_ssl_bundles(properties: SslProperties) -> DefaultSslBundleRegistry:
    """Create a registry holding one bundle per configured PEM definition."""

    registry = DefaultSslBundleRegistry()
    for name, definition in properties.bundle.pem.items():
        registry.register_bundle(name, definition.to_bundle())
    return registry
