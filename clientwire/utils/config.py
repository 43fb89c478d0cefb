"""Configuration loader and settings helpers for clientwire."""

import base64
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from boto3.session import Session
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import (
    BaseModel,
    ConfigDict,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError

ENV_PREFIX = "CLIENTWIRE_"

logger = logging.getLogger(__name__)


def load_yaml_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If file not found or invalid YAML
    """
    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            return config if config else {}
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")


def apply_env_overrides(config: dict[str, Any], prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """
    Override configuration values with environment variables.

    Environment variables should be prefixed (default: CLIENTWIRE_) and use __ for nesting.
    Example: CLIENTWIRE_KAFKA__PRODUCER__ACKS overrides config['kafka']['producer']['acks']

    Args:
        config: Base configuration dictionary
        prefix: Environment variable prefix

    Returns:
        Configuration with environment overrides applied

    Raises:
        ConfigurationError: If an override targets a scalar value as if it were a section
    """
    for key, value in sorted(os.environ.items()):
        if not key.startswith(prefix):
            continue

        # Remove prefix and split by __
        config_key = key[len(prefix) :].lower()
        keys = config_key.split("__")

        # Navigate/create nested structure
        current = config
        for k in keys[:-1]:
            if k not in current or current[k] is None:
                current[k] = {}
            if not isinstance(current[k], dict):
                raise ConfigurationError(
                    f"Environment override '{key}' addresses '{k}' as a section but it is a value"
                )
            current = current[k]

        # Set the value
        current[keys[-1]] = value

    return config


class AWSSettings(BaseModel):
    """AWS-specific configuration options derived from global settings."""

    model_config = ConfigDict(extra="forbid")

    region: str | None = None


class SecretsManagerSettings(BaseModel):
    """AWS Secrets Manager integration settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    secret_name: str | None = None
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None
    overwrite_env: bool = False
    required_env: list[str] = []


class GlobalSettings(BaseSettings):
    """Global process settings sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"
    config_profile: str | None = None
    log_level: str = "INFO"
    config_dir: Path = Path("config")
    aws: AWSSettings = AWSSettings()
    secrets_manager: SecretsManagerSettings = SecretsManagerSettings()

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Ensure log level values are uppercase for logging config."""

        return value.upper()

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.lower()

    @field_validator("config_dir", mode="before")
    @classmethod
    def _expand_paths(cls, value: Any) -> Any:
        """Allow string paths and expand user markers."""

        if isinstance(value, Path):
            return value
        if isinstance(value, str):
            return Path(value).expanduser()
        return value

    @field_validator("config_profile", mode="before")
    @classmethod
    def _normalize_config_profile(cls, value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError("config_profile must be a non-empty string if provided")
        return value.strip().lower()

    @property
    def active_profile(self) -> str:
        """Profile used to pick the configuration template override."""

        return (self.config_profile or self.environment).lower()


def deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries without mutating the inputs."""

    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def load_profile_templates(config_dir: str | Path, profile: str) -> dict[str, Any]:
    """Load ``settings.base.yaml`` and deep-merge ``settings.<profile>.yaml`` over it.

    Missing templates are not an error; every section has usable defaults.
    """

    directory = Path(config_dir)
    base_path = directory / "settings.base.yaml"
    base_config: dict[str, Any] = {}
    if base_path.exists():
        base_config = load_yaml_config(base_path)
    else:
        logger.debug("No base configuration template at '%s'", base_path)

    profile_path = directory / f"settings.{profile}.yaml"
    profile_config: dict[str, Any] = {}
    if profile_path.exists():
        profile_config = load_yaml_config(profile_path)
    else:
        logger.debug("No configuration override found for profile '%s'", profile)

    merged = deep_merge_dicts(base_config, profile_config)
    merged.setdefault("environment", profile)
    return merged


def fetch_secrets_from_manager(
    *,
    secret_name: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
) -> dict[str, str]:
    """Retrieve secrets from AWS Secrets Manager."""

    session_kwargs: dict[str, Any] = {}
    if region:
        session_kwargs["region_name"] = region
    if profile:
        session_kwargs["profile_name"] = profile

    session = Session(**session_kwargs)
    client = session.client("secretsmanager", endpoint_url=endpoint_url)

    try:
        response = client.get_secret_value(SecretId=secret_name)
    except (BotoCoreError, ClientError) as exc:  # pragma: no cover - dependency errors
        raise ConfigurationError(
            f"Unable to retrieve secret '{secret_name}' from AWS Secrets Manager: {exc}"
        ) from exc

    secret_string = response.get("SecretString")
    if secret_string is None:
        secret_binary = response.get("SecretBinary")
        if secret_binary is None:
            return {}
        if isinstance(secret_binary, (bytes, bytearray)):
            secret_string = base64.b64decode(secret_binary).decode("utf-8")
        else:  # pragma: no cover - defensive branch
            secret_string = str(secret_binary)

    try:
        payload = json.loads(secret_string)
    except json.JSONDecodeError as exc:  # pragma: no cover - invalid payload
        raise ConfigurationError(
            "Secrets Manager payload must be valid JSON mapping of environment variables"
        ) from exc

    if not isinstance(payload, dict):  # pragma: no cover - invalid shape
        raise ConfigurationError(
            "Secrets Manager payload must be a JSON object of key/value pairs"
        )

    secrets: dict[str, str] = {}
    for key, value in payload.items():
        if not isinstance(key, str):
            logger.debug("Skipping non-string secret key: %s", key)
            continue
        if value is None:
            continue
        if isinstance(value, (dict, list, tuple)):
            secrets[key] = json.dumps(value)
        else:
            secrets[key] = str(value)

    return secrets


def inject_secrets_into_environment(secrets: dict[str, str], *, overwrite: bool) -> None:
    """Inject secrets into os.environ respecting overwrite flag."""

    if not secrets:
        return

    for key, value in secrets.items():
        env_key = key if key.isupper() else key.upper()
        if not env_key.startswith(ENV_PREFIX):
            logger.debug(
                "Ignoring secret '%s' because it does not use %s prefix", env_key, ENV_PREFIX
            )
            continue
        if not overwrite and env_key in os.environ:
            continue
        os.environ[env_key] = value


@lru_cache(maxsize=1)
def _get_settings_cached() -> GlobalSettings:
    return GlobalSettings()


def get_settings(*, reload: bool = False) -> GlobalSettings:
    """Return cached settings, optionally forcing a reload."""

    if reload:
        _get_settings_cached.cache_clear()
    return _get_settings_cached()


