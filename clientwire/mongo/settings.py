"""Builder for the keyword arguments handed to ``pymongo.MongoClient``."""

from __future__ import annotations

import ssl
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import InvalidStateError
from ..sslbundle.bundle import SslBundle
from .connection_details import ConnectionString
from .properties import UuidRepresentationName

# pymongo's names for the ``uuidRepresentation`` URI option.
UUID_REPRESENTATIONS: dict[UuidRepresentationName, str] = {
    UuidRepresentationName.UNSPECIFIED: "unspecified",
    UuidRepresentationName.STANDARD: "standard",
    UuidRepresentationName.C_SHARP_LEGACY: "csharpLegacy",
    UuidRepresentationName.JAVA_LEGACY: "javaLegacy",
    UuidRepresentationName.PYTHON_LEGACY: "pythonLegacy",
}


class SslSettingsBuilder:
    """TLS part of the client settings. ``enabled`` stays ``None`` until set."""

    def __init__(self) -> None:
        self.is_enabled: bool | None = None
        self.ssl_context: ssl.SSLContext | None = None
        self.bundle: SslBundle | None = None

    def enabled(self, enabled: bool) -> SslSettingsBuilder:
        self.is_enabled = enabled
        return self

    def context(self, ssl_context: ssl.SSLContext, bundle: SslBundle | None = None) -> SslSettingsBuilder:
        self.ssl_context = ssl_context
        self.bundle = bundle
        return self


@dataclass(frozen=True)
class MongoClientSettings:
    connection_string: ConnectionString | None = None
    uuid_representation: UuidRepresentationName | None = None
    ssl_enabled: bool | None = None
    ssl_context: ssl.SSLContext | None = None
    ssl_bundle: SslBundle | None = None
    options: dict[str, Any] = field(default_factory=dict)

    def to_client_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for ``pymongo.MongoClient``.

        pymongo loads TLS material from files, so the bundle's PEM locations
        are passed along with ``tls=True``.

        Raises:
            InvalidStateError: If the bundle keeps its private key in a file
                separate from the client certificate.
        """

        kwargs: dict[str, Any] = {}
        if self.connection_string is not None:
            kwargs["host"] = self.connection_string.uri
        if self.uuid_representation is not None:
            kwargs["uuidRepresentation"] = UUID_REPRESENTATIONS[self.uuid_representation]
        if self.ssl_enabled is not None:
            kwargs["tls"] = self.ssl_enabled
        if self.ssl_enabled and self.ssl_bundle is not None:
            kwargs.update(_bundle_tls_kwargs(self.ssl_bundle))
        kwargs.update(self.options)
        return kwargs


def _bundle_tls_kwargs(bundle: SslBundle) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    if bundle.trust_certificate:
        kwargs["tlsCAFile"] = bundle.trust_certificate
    if bundle.key_certificate:
        if bundle.private_key and bundle.private_key != bundle.key_certificate:
            raise InvalidStateError(
                "MongoDB requires the client certificate and private key in a single PEM file"
            )
        kwargs["tlsCertificateKeyFile"] = bundle.key_certificate
        if bundle.private_key_password:
            kwargs["tlsCertificateKeyFilePassword"] = bundle.private_key_password
    return kwargs


class MongoClientSettingsBuilder:
    """Mutable settings that customizers adjust before the client is created."""

    def __init__(self) -> None:
        self._connection_string: ConnectionString | None = None
        self._uuid_representation: UuidRepresentationName | None = None
        self._ssl = SslSettingsBuilder()
        self._options: dict[str, Any] = {}

    def uuid_representation(self, representation: UuidRepresentationName) -> MongoClientSettingsBuilder:
        self._uuid_representation = representation
        return self

    def apply_connection_string(self, connection_string: ConnectionString) -> MongoClientSettingsBuilder:
        self._connection_string = connection_string
        return self

    def apply_to_ssl_settings(
        self, block: Callable[[SslSettingsBuilder], Any]
    ) -> MongoClientSettingsBuilder:
        block(self._ssl)
        return self

    def option(self, name: str, value: Any) -> MongoClientSettingsBuilder:
        """Set any other ``MongoClient`` keyword argument, such as ``appname``."""

        self._options[name] = value
        return self

    def build(self) -> MongoClientSettings:
        return MongoClientSettings(
            connection_string=self._connection_string,
            uuid_representation=self._uuid_representation,
            ssl_enabled=self._ssl.is_enabled,
            ssl_context=self._ssl.ssl_context,
            ssl_bundle=self._ssl.bundle,
            options=dict(self._options),
        )
