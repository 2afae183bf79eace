"""Configuration management for formletter."""

from .loader import Config, load_config, save_config
from .models import ClusteringSettings, ConfigModel, PostgresConfig

__all__ = [
    "Config",
    "ConfigModel",
    "ClusteringSettings",
    "PostgresConfig",
    "load_config",
    "save_config",
]
