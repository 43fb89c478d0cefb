"""Customizers applied to the MongoDB client settings builder."""

from __future__ import annotations

import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..exceptions import InvalidStateError
from ..sslbundle.bundle import SslBundle
from ..sslbundle.registry import SslBundles
from ..utils.logging import setup_logger
from .connection_details import ConnectionString, MongoConnectionDetails
from .properties import MongoSslProperties, UuidRepresentationName
from .settings import MongoClientSettingsBuilder, SslSettingsBuilder

logger = setup_logger(__name__, context={"component": "MongoCustomizer", "client": "mongo"})


class MongoClientSettingsBuilderCustomizer(ABC):
    """Hook that adjusts the settings builder before the client is built."""

    @abstractmethod
    def customize(self, builder: MongoClientSettingsBuilder) -> None: ...


@dataclass(frozen=True, slots=True)
class LegacyConnection:
    """Raw connection string plus SSL properties resolved against a bundle registry."""

    connection_string: ConnectionString
    ssl: MongoSslProperties
    ssl_bundles: SslBundles | None = None


@dataclass(frozen=True, slots=True)
class DetailsConnection:
    """Connection string and SSL bundle both come from connection details."""

    details: MongoConnectionDetails


MongoConnection = LegacyConnection | DetailsConnection


def _check_options(bundle: SslBundle) -> None:
    if bundle.options.is_specified():
        logger.error("Rejected SSL bundle with protocol options", extra={"status": "invalid"})
        raise InvalidStateError("SSL options cannot be specified with MongoDB")


class StandardMongoClientSettingsBuilderCustomizer(MongoClientSettingsBuilderCustomizer):
    """Applies the UUID representation, the connection string and TLS.

    With a :class:`DetailsConnection`, TLS is enabled only when the details
    expose a bundle; otherwise the TLS settings are left untouched. With a
    :class:`LegacyConnection`, the ``ssl.enabled`` flag decides and a bundle
    name is then required.
    """

    def __init__(
        self,
        connection: MongoConnection,
        uuid_representation: UuidRepresentationName,
        order: int = 0,
    ) -> None:
        if isinstance(connection, LegacyConnection) and connection.ssl.enabled:
            if not connection.ssl.bundle:
                raise InvalidStateError("An SSL bundle name is required when MongoDB SSL is enabled")
            if connection.ssl_bundles is None:
                raise InvalidStateError(
                    f"SSL bundle '{connection.ssl.bundle}' is configured but no SSL bundle registry is available"
                )
        self.connection = connection
        self.uuid_representation = uuid_representation
        self.order = order

    @classmethod
    def legacy(
        cls,
        connection_string: ConnectionString,
        uuid_representation: UuidRepresentationName,
        ssl: MongoSslProperties,
        ssl_bundles: SslBundles | None,
    ) -> StandardMongoClientSettingsBuilderCustomizer:
        """Build from a raw connection string. Prefer passing connection details."""

        warnings.warn(
            "StandardMongoClientSettingsBuilderCustomizer.legacy is deprecated; "
            "pass a DetailsConnection instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return cls(LegacyConnection(connection_string, ssl, ssl_bundles), uuid_representation)

    def customize(self, builder: MongoClientSettingsBuilder) -> None:
        builder.uuid_representation(self.uuid_representation)
        connection = self.connection
        if isinstance(connection, DetailsConnection):
            builder.apply_connection_string(connection.details.connection_string)
            builder.apply_to_ssl_settings(self.configure_ssl_if_needed)
        else:
            builder.apply_connection_string(connection.connection_string)
            if connection.ssl.enabled:
                builder.apply_to_ssl_settings(self.configure_ssl)

    def configure_ssl(self, settings: SslSettingsBuilder) -> None:
        """Enable TLS with the bundle named in the legacy SSL properties."""

        connection = self.connection
        if not isinstance(connection, LegacyConnection):
            raise InvalidStateError("configure_ssl requires a legacy connection")
        bundle = connection.ssl_bundles.get_bundle(connection.ssl.bundle)
        _check_options(bundle)
        settings.enabled(True)
        settings.context(bundle.create_ssl_context(), bundle)

    def configure_ssl_if_needed(self, settings: SslSettingsBuilder) -> None:
        """Enable TLS only when the connection details expose a bundle."""

        connection = self.connection
        if not isinstance(connection, DetailsConnection):
            raise InvalidStateError("configure_ssl_if_needed requires connection details")
        bundle = connection.details.ssl_bundle
        if bundle is None:
            return
        _check_options(bundle)
        settings.enabled(True)
        settings.context(bundle.create_ssl_context(), bundle)
