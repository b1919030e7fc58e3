"""
Config loader: YAML file -> frozen dataclass tree.

API secrets resolved from environment variables (APCA_API_KEY_ID, APCA_API_SECRET_KEY).
Config file holds only non-secret values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class DataConfig:
    source: str = "synthetic"           # "synthetic" | "alpaca"
    bar_store_path: str = "data/bars.db"
    max_bars: int = 100
    symbol_map: dict[str, str] = field(default_factory=dict)
    api_key: str = ""
    api_secret: str = ""


@dataclass(frozen=True)
class SettingsConfig:
    path: str = ""                      # settings JSON; empty -> packaged defaults


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    asset: str
    timeframe: str
    data: DataConfig
    settings: SettingsConfig
    journal: JournalConfig
    alerting: AlertingConfig = AlertingConfig()


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    API keys are resolved from environment variables:
      - APCA_API_KEY_ID
      - APCA_API_SECRET_KEY
    These follow Alpaca's standard env var names.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    data_raw = raw.get("data") or {}
    symbol_map = data_raw.get("symbol_map") or {}
    if not isinstance(symbol_map, dict):
        raise ValueError("data.symbol_map must be a mapping of asset -> ticker")
    max_bars = int(data_raw.get("max_bars", 100))
    if max_bars < 2:
        raise ValueError(f"data.max_bars must be at least 2, got {max_bars}")
    data_cfg = DataConfig(
        source=data_raw.get("source", "synthetic"),
        bar_store_path=data_raw.get("bar_store_path", "data/bars.db"),
        max_bars=max_bars,
        symbol_map={str(k).lower(): str(v) for k, v in symbol_map.items()},
        api_key=os.environ.get("APCA_API_KEY_ID", ""),
        api_secret=os.environ.get("APCA_API_SECRET_KEY", ""),
    )

    s_raw = raw.get("settings") or {}
    s_cfg = SettingsConfig(path=str(s_raw.get("path", "") or ""))

    j_raw = raw.get("journal") or {}
    j_cfg = JournalConfig(
        path=j_raw.get("path", "data/journal.jsonl"),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting") or {}
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=str(a_raw.get("webhook_url", "")),
    )

    return AppConfig(
        asset=str(raw.get("asset", "silver")).lower(),
        timeframe=str(raw.get("timeframe", "1h")),
        data=data_cfg,
        settings=s_cfg,
        journal=j_cfg,
        alerting=a_cfg,
    )
