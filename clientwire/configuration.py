"""Service configuration: templates, environment overrides and runtime secrets."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError
from .kafka.properties import KafkaProperties
from .mongo.properties import MongoProperties
from .sslbundle.properties import SslProperties
from .utils.config import (
    ENV_PREFIX,
    GlobalSettings,
    SecretsManagerSettings,
    apply_env_overrides,
    fetch_secrets_from_manager,
    get_settings,
    inject_secrets_into_environment,
    load_profile_templates,
)
from .utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "ServiceConfiguration"})

KAFKA = "kafka"
MONGO = "mongo"
AUTOCONFIGURATIONS = (KAFKA, MONGO)


class AutoconfigureSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    exclude: list[str] = Field(default_factory=list)

    @field_validator("exclude", mode="before")
    @classmethod
    def _split_exclude(cls, value: object) -> object:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("exclude")
    @classmethod
    def _known_names(cls, value: list[str]) -> list[str]:
        normalized = [item.lower() for item in value]
        unknown = sorted(set(normalized) - set(AUTOCONFIGURATIONS))
        if unknown:
            raise ValueError(
                f"Unknown autoconfiguration(s) {', '.join(unknown)}; "
                f"expected any of {', '.join(AUTOCONFIGURATIONS)}"
            )
        return normalized


class ServiceConfiguration(BaseModel):
    """Validated client configuration merged from templates and environment overrides."""

    # Process-level settings such as log_level share the environment prefix.
    model_config = ConfigDict(extra="ignore")

    version: int = Field(default=1, ge=1)
    environment: str = "development"
    required_env: list[str] = Field(default_factory=list)
    autoconfigure: AutoconfigureSettings = Field(default_factory=AutoconfigureSettings)
    kafka: KafkaProperties = Field(default_factory=KafkaProperties)
    mongo: MongoProperties = Field(default_factory=MongoProperties)
    ssl: SslProperties = Field(default_factory=SslProperties)
    secrets_manager: SecretsManagerSettings = Field(default_factory=SecretsManagerSettings)

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.lower()

    def is_enabled(self, autoconfiguration: str) -> bool:
        return autoconfiguration.lower() not in self.autoconfigure.exclude


@lru_cache(maxsize=8)
def _load_service_configuration_cached(config_dir: str, profile: str) -> ServiceConfiguration:
    """Load and cache the service configuration for a given profile."""

    merged = apply_env_overrides(load_profile_templates(Path(config_dir), profile), ENV_PREFIX)
    try:
        return ServiceConfiguration.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration template for profile '{profile}': {exc}"
        ) from exc


def get_service_configuration(
    settings: GlobalSettings | None = None,
    *,
    reload: bool = False,
) -> ServiceConfiguration:
    """Return the merged service configuration for the active profile."""

    if settings is None:
        settings = get_settings()
    if reload:
        _load_service_configuration_cached.cache_clear()
    return _load_service_configuration_cached(str(settings.config_dir), settings.active_profile)


def load_runtime_secrets(
    settings: GlobalSettings,
    service_config: ServiceConfiguration,
) -> dict[str, str]:
    """Load secrets defined in configuration or environment and inject them."""

    secrets_cfg = settings.secrets_manager
    config_cfg = service_config.secrets_manager

    if not (secrets_cfg.enabled or config_cfg.enabled):
        return {}

    secret_name = secrets_cfg.secret_name or config_cfg.secret_name
    if not secret_name:
        raise ConfigurationError(
            "Secrets Manager integration enabled but no secret_name configured"
        )

    secrets = fetch_secrets_from_manager(
        secret_name=secret_name,
        region=secrets_cfg.region or config_cfg.region or settings.aws.region,
        profile=secrets_cfg.profile or config_cfg.profile,
        endpoint_url=secrets_cfg.endpoint_url or config_cfg.endpoint_url,
    )
    inject_secrets_into_environment(
        secrets, overwrite=secrets_cfg.overwrite_env or config_cfg.overwrite_env
    )
    return secrets


def ensure_runtime_configuration(settings: GlobalSettings | None = None) -> ServiceConfiguration:
    """Load secrets, enforce required environment variables and return the final configuration.

    Secrets are injected before the configuration is re-read so that
    ``CLIENTWIRE_`` overrides delivered through Secrets Manager take effect.
    """

    settings = settings or get_settings()
    service_config = get_service_configuration(settings=settings, reload=True)

    secrets = load_runtime_secrets(settings, service_config)
    if secrets:
        logger.info("Loaded %d secrets from AWS Secrets Manager", len(secrets))
        settings = get_settings(reload=True)
        service_config = get_service_configuration(settings=settings, reload=True)

    required_env: set[str] = set(service_config.required_env)
    required_env.update(service_config.secrets_manager.required_env)
    missing = sorted(var for var in required_env if not os.environ.get(var))
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: "
            f"{', '.join(missing)}. Configure them via configuration templates, "
            "Secrets Manager, or .env files."
        )
    return service_config
