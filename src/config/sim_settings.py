"""
Simulation settings loader: JSON -> frozen dataclass, validated against JSON Schema.

Default values:      docs/config/settings.default.json
Schema:              docs/config/settings.schema.json

Keys are camelCase, matching the settings object callers send with a
backtest request. Loading layers, later wins:

1. the base file (default or ``config_path``),
2. a per-asset override ``settings.{ASSET}.json`` next to the base file,
3. caller ``overrides`` (e.g. the ``settings`` object of a request).

The merged mapping is validated before the dataclass is built.

Usage:
    from config.sim_settings import load_settings
    s = load_settings()                                  # defaults
    s = load_settings(overrides={"asset": "gold"})       # + settings.GOLD.json if present
    s.stop_loss  # -> 7000.0
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import jsonschema

from sim_core.validation import ValidationError

logger = logging.getLogger("botsim.config")

# ---------------------------------------------------------------------------
# Project root detection (walk up from this file to find pyproject.toml)
# ---------------------------------------------------------------------------


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml.

    Falls back to CWD when installed without the source tree.
    """
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_SETTINGS_PATH = _PROJECT_ROOT / "docs" / "config" / "settings.default.json"
DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "settings.schema.json"

_NUMERIC_KEYS = (
    "initialCapital",
    "maxPositionSize",
    "positionSize",
    "orderFee",
    "spreadPips",
    "stopLoss",
    "takeProfit",
)


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for one simulation run."""

    initial_capital: float = 2000.0
    max_position_size: float = 1.0
    position_size: float = 0.5          # already capped at max_position_size
    use_order_fee: bool = True
    order_fee: float = 7.0
    use_spread: bool = True
    spread_pips: float = 2.0
    stop_loss: float = 7000.0           # points
    take_profit: float = 300.0          # points
    trade_type: str = "both"            # "long" | "short" | "both"
    asset: str = "silver"
    timeframe: str = "1h"
    use_obv: bool = True
    use_heikin_ashi: bool = True
    obv_period: int = 5

    def to_dict(self) -> dict[str, Any]:
        """camelCase mapping, the inverse of the loader."""
        return {
            "initialCapital": self.initial_capital,
            "maxPositionSize": self.max_position_size,
            "positionSize": self.position_size,
            "useOrderFee": self.use_order_fee,
            "orderFee": self.order_fee,
            "useSpread": self.use_spread,
            "spreadPips": self.spread_pips,
            "stopLoss": self.stop_loss,
            "takeProfit": self.take_profit,
            "tradeType": self.trade_type,
            "asset": self.asset,
            "timeframe": self.timeframe,
            "useOBV": self.use_obv,
            "useHeikinAshi": self.use_heikin_ashi,
            "obvPeriod": self.obv_period,
        }


class SettingsError(ValidationError):
    """Raised when settings loading or validation fails."""


# ---------------------------------------------------------------------------
# Deep merge for per-asset and caller overrides
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base* (override keys win)."""
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, Mapping):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"{label} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{label} must be a JSON object, got {type(data).__name__}")
    return data


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    """Validate *data* against the JSON Schema at *schema_path*."""
    if not schema_path.exists():
        raise SettingsError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        where = ".".join(str(p) for p in exc.absolute_path) or "<root>"
        raise SettingsError(f"Settings validation failed at {where}: {exc.message}") from exc
    for key in _NUMERIC_KEYS:
        if not math.isfinite(float(data[key])):
            raise SettingsError(f"Settings validation failed at {key}: value is not finite")


def _build_settings(data: dict[str, Any]) -> Settings:
    """Convert a validated mapping into Settings."""
    max_size = float(data["maxPositionSize"])
    return Settings(
        initial_capital=float(data["initialCapital"]),
        max_position_size=max_size,
        position_size=min(float(data["positionSize"]), max_size),
        use_order_fee=data["useOrderFee"],
        order_fee=float(data["orderFee"]),
        use_spread=data["useSpread"],
        spread_pips=float(data["spreadPips"]),
        stop_loss=float(data["stopLoss"]),
        take_profit=float(data["takeProfit"]),
        trade_type=data["tradeType"],
        asset=data["asset"],
        timeframe=data["timeframe"],
        use_obv=data["useOBV"],
        use_heikin_ashi=data["useHeikinAshi"],
        obv_period=int(data["obvPeriod"]),
    )


def load_settings(
    config_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load, merge, and validate simulation settings.

    Parameters
    ----------
    config_path:
        Base settings JSON. Defaults to ``docs/config/settings.default.json``.
    schema_path:
        JSON Schema file. Defaults to ``docs/config/settings.schema.json``.
    overrides:
        camelCase keys applied last. The asset used to look up the
        per-asset file is taken from here when present, else from the
        base file.

    Raises
    ------
    SettingsError
        If a file is missing or unparseable, or the merged settings fail
        schema validation.
    """
    cfg_path = Path(config_path) if config_path else DEFAULT_SETTINGS_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    if not cfg_path.exists():
        raise SettingsError(f"Settings file not found: {cfg_path}")

    data = _read_json(cfg_path, "Settings file")
    overrides = dict(overrides or {})

    asset = overrides.get("asset", data.get("asset"))
    if isinstance(asset, str) and asset:
        asset_path = cfg_path.parent / f"settings.{asset.upper()}.json"
        if asset_path.exists():
            data = _deep_merge(data, _read_json(asset_path, f"Per-asset settings {asset_path.name}"))
            logger.info("Loaded per-asset settings: %s", asset_path.name)
        else:
            logger.debug("No per-asset settings at %s; using base settings", asset_path)

    if overrides:
        data = _deep_merge(data, overrides)

    _validate_schema(data, sch_path)
    return _build_settings(data)


def settings_from_request(payload: Mapping[str, Any] | None) -> Settings:
    """Settings for a request body's ``settings`` object (may be None)."""
    if payload is not None and not isinstance(payload, Mapping):
        raise SettingsError(f"settings must be an object, got {type(payload).__name__}")
    return load_settings(overrides=payload)
