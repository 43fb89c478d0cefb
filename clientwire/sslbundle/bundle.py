"""SSL bundles: named TLS key/trust material plus protocol options."""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from typing import ClassVar

from ..exceptions import ConfigurationError

_TLS_VERSIONS: dict[str, ssl.TLSVersion] = {
    "TLSv1.2": ssl.TLSVersion.TLSv1_2,
    "TLSv1.3": ssl.TLSVersion.TLSv1_3,
}


@dataclass(frozen=True, slots=True)
class SslOptions:
    """Cipher and protocol restrictions applied on top of the bundle material."""

    ciphers: tuple[str, ...] | None = None
    enabled_protocols: tuple[str, ...] | None = None

    NONE: ClassVar[SslOptions]

    def is_specified(self) -> bool:
        """Return True when either ciphers or enabled protocols were configured."""

        return self.ciphers is not None or self.enabled_protocols is not None


SslOptions.NONE = SslOptions()


@dataclass(frozen=True, slots=True)
class SslBundleKey:
    """Alias and password used to select the private key from the key store."""

    alias: str | None = None
    password: str | None = None

    NONE: ClassVar[SslBundleKey]


SslBundleKey.NONE = SslBundleKey()


@dataclass(frozen=True, slots=True)
class PemSslStoreDetails:
    """File locations of PEM encoded certificate and private key material."""

    certificate: str | None = None
    private_key: str | None = None
    private_key_password: str | None = None

    def is_empty(self) -> bool:
        return self.certificate is None and self.private_key is None


@dataclass(frozen=True, slots=True)
class SslStoreBundle:
    """Key store (client identity) and trust store (accepted CAs)."""

    key_store: PemSslStoreDetails | None = None
    trust_store: PemSslStoreDetails | None = None

    NONE: ClassVar[SslStoreBundle]


SslStoreBundle.NONE = SslStoreBundle()


@dataclass(frozen=True, slots=True)
class SslBundle:
    """A named bundle of TLS material that can produce a client ``ssl.SSLContext``."""

    stores: SslStoreBundle = field(default=SslStoreBundle.NONE)
    key: SslBundleKey = field(default=SslBundleKey.NONE)
    options: SslOptions = field(default=SslOptions.NONE)
    protocol: str = "TLS"

    @classmethod
    def system_default(cls) -> SslBundle:
        """Bundle that trusts the platform CAs and presents no client certificate."""

        return cls()

    @property
    def trust_certificate(self) -> str | None:
        trust_store = self.stores.trust_store
        return trust_store.certificate if trust_store else None

    @property
    def key_certificate(self) -> str | None:
        key_store = self.stores.key_store
        return key_store.certificate if key_store else None

    @property
    def private_key(self) -> str | None:
        key_store = self.stores.key_store
        return key_store.private_key if key_store else None

    @property
    def private_key_password(self) -> str | None:
        key_store = self.stores.key_store
        if key_store and key_store.private_key_password is not None:
            return key_store.private_key_password
        return self.key.password

    def create_ssl_context(self) -> ssl.SSLContext:
        """Build a client-side context from the bundle's stores and options.

        Raises:
            ConfigurationError: If an enabled protocol is not a known TLS version
                or the key store lists a private key without a certificate.
        """

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        if self.trust_certificate:
            context.load_verify_locations(cafile=self.trust_certificate)
        else:
            context.load_default_certs(ssl.Purpose.SERVER_AUTH)

        if self.key_certificate:
            context.load_cert_chain(
                certfile=self.key_certificate,
                keyfile=self.private_key,
                password=self.private_key_password,
            )
        elif self.private_key:
            raise ConfigurationError("A private key was configured without a certificate")

        if self.options.ciphers:
            context.set_ciphers(":".join(self.options.ciphers))
        if self.options.enabled_protocols:
            versions = []
            for name in self.options.enabled_protocols:
                if name not in _TLS_VERSIONS:
                    raise ConfigurationError(
                        f"Unsupported TLS protocol '{name}'. "
                        f"Supported protocols: {', '.join(sorted(_TLS_VERSIONS))}"
                    )
                versions.append(_TLS_VERSIONS[name])
            context.minimum_version = min(versions)
            context.maximum_version = max(versions)
        return context
