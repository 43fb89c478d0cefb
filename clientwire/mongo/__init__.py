"""MongoDB client settings, customizers and their autoconfiguration."""

from .configuration import MongoAutoConfiguration
from .connection_details import ConnectionString, MongoConnectionDetails, PropertiesMongoConnectionDetails
from .customizer import (
    DetailsConnection,
    LegacyConnection,
    MongoClientSettingsBuilderCustomizer,
    MongoConnection,
    StandardMongoClientSettingsBuilderCustomizer,
)
from .properties import MongoProperties, MongoSslProperties, UuidRepresentationName
from .settings import MongoClientSettings, MongoClientSettingsBuilder, SslSettingsBuilder

__all__ = [
    "ConnectionString",
    "DetailsConnection",
    "LegacyConnection",
    "MongoAutoConfiguration",
    "MongoClientSettings",
    "MongoClientSettingsBuilder",
    "MongoClientSettingsBuilderCustomizer",
    "MongoConnection",
    "MongoConnectionDetails",
    "MongoProperties",
    "MongoSslProperties",
    "PropertiesMongoConnectionDetails",
    "SslSettingsBuilder",
    "StandardMongoClientSettingsBuilderCustomizer",
    "UuidRepresentationName",
]
