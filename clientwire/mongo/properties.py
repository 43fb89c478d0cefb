"""MongoDB client properties."""

from __future__ import annotations

from enum import Enum
from typing import Any
from urllib.parse import quote_plus, urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_URI = "mongodb://localhost/test"
DEFAULT_PORT = 27017


class UuidRepresentationName(str, Enum):
    UNSPECIFIED = "unspecified"
    STANDARD = "standard"
    C_SHARP_LEGACY = "c_sharp_legacy"
    JAVA_LEGACY = "java_legacy"
    PYTHON_LEGACY = "python_legacy"


class MongoSslProperties(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    bundle: str | None = None


class MongoProperties(BaseModel):
    """Connection settings for MongoDB.

    Either ``uri`` or the discrete host fields are used, never both.
    """

    model_config = ConfigDict(extra="forbid")

    uri: str | None = None
    host: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    additional_hosts: list[str] = Field(default_factory=list)
    database: str | None = None
    authentication_database: str | None = None
    username: str | None = None
    password: str | None = None
    replica_set_name: str | None = None
    uuid_representation: UuidRepresentationName = UuidRepresentationName.JAVA_LEGACY
    ssl: MongoSslProperties = Field(default_factory=MongoSslProperties)

    @field_validator("uuid_representation", mode="before")
    @classmethod
    def _normalize_uuid_representation(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @field_validator("additional_hosts", mode="before")
    @classmethod
    def _split_hosts(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [host.strip() for host in value.split(",") if host.strip()]
        return value

    def _uses_discrete_fields(self) -> bool:
        return any(
            value is not None
            for value in (self.host, self.port, self.username, self.replica_set_name)
        ) or bool(self.additional_hosts)

    def determine_uri(self) -> str:
        """Return ``uri`` when set, else a connection string built from the discrete fields."""

        if self.uri is not None:
            return self.uri
        if not self._uses_discrete_fields() and self.database is None:
            return DEFAULT_URI

        credentials = ""
        if self.username is not None:
            credentials = quote_plus(self.username)
            if self.password is not None:
                credentials += ":" + quote_plus(self.password)
            credentials += "@"
        hosts = [f"{self.host or 'localhost'}:{self.port or DEFAULT_PORT}", *self.additional_hosts]
        options: dict[str, str] = {}
        if self.authentication_database is not None:
            options["authSource"] = self.authentication_database
        if self.replica_set_name is not None:
            options["replicaSet"] = self.replica_set_name
        uri = f"mongodb://{credentials}{','.join(hosts)}/{self.database or 'test'}"
        if options:
            uri += "?" + urlencode(options)
        return uri
