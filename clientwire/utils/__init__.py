"""Utilities package initialization."""
from .config import (
    GlobalSettings,
    apply_env_overrides,
    deep_merge_dicts,
    get_settings,
    load_profile_templates,
    load_yaml_config,
)
from .logging import log_assembly_step, setup_logger
from .units import parse_data_size, parse_duration

__all__ = [
    "GlobalSettings",
    "apply_env_overrides",
    "deep_merge_dicts",
    "get_settings",
    "load_profile_templates",
    "load_yaml_config",
    "log_assembly_step",
    "setup_logger",
    "parse_data_size",
    "parse_duration",
]
