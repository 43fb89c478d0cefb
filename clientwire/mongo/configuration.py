"""Assemble the MongoDB client described by :class:`MongoProperties`."""

from __future__ import annotations

from pymongo import MongoClient

from ..context import AssemblyStep, ClientRegistry, assemble
from ..sslbundle.registry import SslBundles
from ..utils.logging import setup_logger
from .connection_details import MongoConnectionDetails, PropertiesMongoConnectionDetails
from .customizer import (
    DetailsConnection,
    MongoClientSettingsBuilderCustomizer,
    StandardMongoClientSettingsBuilderCustomizer,
)
from .properties import MongoProperties
from .settings import MongoClientSettings, MongoClientSettingsBuilder

logger = setup_logger(__name__, context={"component": "MongoAutoConfiguration", "client": "mongo"})


class MongoAutoConfiguration:
    """Builds the settings and an unconnected ``MongoClient`` unless already registered."""

    def __init__(self, properties: MongoProperties, ssl_bundles: SslBundles | None = None) -> None:
        self.properties = properties
        self.ssl_bundles = ssl_bundles

    def mongo_connection_details(self, registry: ClientRegistry) -> MongoConnectionDetails:
        return PropertiesMongoConnectionDetails(self.properties, self.ssl_bundles)

    def standard_mongo_settings_customizer(
        self, registry: ClientRegistry
    ) -> StandardMongoClientSettingsBuilderCustomizer:
        details = registry.get_by_type(MongoConnectionDetails)
        return StandardMongoClientSettingsBuilderCustomizer(
            DetailsConnection(details),
            self.properties.uuid_representation,
        )

    def mongo_client_settings(self, registry: ClientRegistry) -> MongoClientSettings:
        builder = MongoClientSettingsBuilder()
        for customizer in registry.ordered(MongoClientSettingsBuilderCustomizer):
            customizer.customize(builder)
        return builder.build()

    def mongo_client(self, registry: ClientRegistry) -> MongoClient:
        settings = registry.get_by_type(MongoClientSettings)
        # connect=False keeps startup free of network I/O.
        return MongoClient(connect=False, **settings.to_client_kwargs())

    def assembly_steps(self) -> list[AssemblyStep]:
        return [
            AssemblyStep("mongo_connection_details", MongoConnectionDetails, self.mongo_connection_details),
            AssemblyStep(
                "standard_mongo_settings_customizer",
                StandardMongoClientSettingsBuilderCustomizer,
                self.standard_mongo_settings_customizer,
            ),
            AssemblyStep("mongo_client_settings", MongoClientSettings, self.mongo_client_settings),
            AssemblyStep("mongo_client", MongoClient, self.mongo_client),
        ]

    def configure(self, registry: ClientRegistry) -> list[str]:
        """Run every MongoDB assembly step against ``registry``."""

        registered = assemble(self.assembly_steps(), registry)
        logger.info(
            "MongoDB autoconfiguration registered %d client(s)",
            len(registered),
            extra={"status": "configured"},
        )
        return registered
