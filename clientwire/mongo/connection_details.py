"""Where the MongoDB deployment is and which SSL bundle reaches it."""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from typing import Any

from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.uri_parser import parse_uri

from ..exceptions import ConfigurationError
from ..sslbundle.bundle import SslBundle
from ..sslbundle.registry import SslBundles
from .properties import MongoProperties

_SCHEMES = ("mongodb://", "mongodb+srv://")


class ConnectionString:
    """A validated MongoDB connection string.

    Parsing is deferred until ``options`` or ``database`` is read, since SRV
    records are resolved during parsing.
    """

    def __init__(self, uri: str) -> None:
        if not uri.startswith(_SCHEMES):
            raise ConfigurationError(
                f"Invalid MongoDB connection string; expected one of {', '.join(_SCHEMES)}"
            )
        self.uri = uri

    @cached_property
    def _parsed(self) -> dict[str, Any]:
        try:
            return parse_uri(self.uri)
        except PyMongoConfigurationError as exc:
            raise ConfigurationError(f"Invalid MongoDB connection string: {exc}") from exc

    @property
    def database(self) -> str | None:
        return self._parsed.get("database")

    @property
    def options(self) -> dict[str, Any]:
        """Parsed URI options with lower-cased names."""

        return {name.lower(): value for name, value in (self._parsed.get("options") or {}).items()}

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ConnectionString) and other.uri == self.uri

    def __hash__(self) -> int:
        return hash(self.uri)

    def __repr__(self) -> str:
        return f"ConnectionString({self.uri!r})"


class MongoConnectionDetails(ABC):
    @property
    @abstractmethod
    def connection_string(self) -> ConnectionString: ...

    @property
    def ssl_bundle(self) -> SslBundle | None:
        return None


class PropertiesMongoConnectionDetails(MongoConnectionDetails):
    """Connection details read from :class:`MongoProperties`."""

    def __init__(self, properties: MongoProperties, ssl_bundles: SslBundles | None = None) -> None:
        self._properties = properties
        self._ssl_bundles = ssl_bundles

    @property
    def connection_string(self) -> ConnectionString:
        return ConnectionString(self._properties.determine_uri())

    @property
    def ssl_bundle(self) -> SslBundle | None:
        ssl = self._properties.ssl
        if not ssl.enabled:
            return None
        if not ssl.bundle:
            return SslBundle.system_default()
        if self._ssl_bundles is None:
            raise ConfigurationError(
                f"SSL bundle '{ssl.bundle}' is configured but no SSL bundle registry is available"
            )
        return self._ssl_bundles.get_bundle(ssl.bundle)
