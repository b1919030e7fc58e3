"""
Configuration loaders.

App config:       reads config.yaml, resolves env vars for secrets.
Simulation settings: reads settings.default.json (or override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    DataConfig,
    JournalConfig,
    SettingsConfig,
    load_config,
)
from config.sim_settings import (
    Settings,
    SettingsError,
    load_settings,
    settings_from_request,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "DataConfig",
    "JournalConfig",
    "SettingsConfig",
    "load_config",
    # Simulation settings (JSON + schema)
    "Settings",
    "SettingsError",
    "load_settings",
    "settings_from_request",
]
