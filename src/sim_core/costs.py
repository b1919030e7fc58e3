"""
Per-asset constants and the cost model derived from Settings.

Point value: minimum meaningful price increment of an asset. Converts
"points" (stop loss, take profit) and pips (spread) into price distance.

Contract value: multiplier converting a price move into cash P&L for one
unit of position size.

Pure lookups; no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sim_core.contracts import TradeType

if TYPE_CHECKING:
    from config.sim_settings import Settings

DEFAULT_POINT_VALUE = 0.01
DEFAULT_CONTRACT_VALUE = 1000.0

# The end-of-data close uses this multiplier instead of the asset's
# contract value. Kept as-is pending product sign-off; see DESIGN.md.
FORCED_CLOSE_CONTRACT_VALUE = 1000.0

POINT_VALUES: dict[str, float] = {
    "silver": 0.01,
    "gold": 0.1,
    "copper": 0.001,
    "oil": 0.01,
    "natgas": 0.001,
    "eurusd": 0.0001,
    "gbpusd": 0.0001,
    "usdjpy": 0.01,
    "spx500": 0.1,
    "dax": 1.0,
    "ftse": 1.0,
}

CONTRACT_VALUES: dict[str, float] = {
    "silver": 5000.0,
    "gold": 100.0,
    "copper": 25000.0,
    "oil": 1000.0,
    "natgas": 10000.0,
    "eurusd": 100000.0,
    "gbpusd": 100000.0,
    "usdjpy": 1000.0,
    "spx500": 50.0,
    "dax": 25.0,
    "ftse": 10.0,
}


def point_value(asset: str) -> float:
    """Point value for *asset*; unknown assets get DEFAULT_POINT_VALUE."""
    return POINT_VALUES.get(asset.lower(), DEFAULT_POINT_VALUE)


def contract_value(asset: str) -> float:
    """Contract value for *asset*; unknown assets get DEFAULT_CONTRACT_VALUE."""
    return CONTRACT_VALUES.get(asset.lower(), DEFAULT_CONTRACT_VALUE)


@dataclass(frozen=True)
class CostModel:
    """Price distances and cash costs for one run, resolved once from Settings."""

    point_value: float
    contract_value: float
    position_size: float
    fee_per_trade: float
    spread_cost: float          # price units, charged on entry and on exit
    stop_loss_distance: float
    take_profit_distance: float
    allow_long: bool
    allow_short: bool

    @classmethod
    def from_settings(cls, settings: Settings) -> CostModel:
        pv = point_value(settings.asset)
        return cls(
            point_value=pv,
            contract_value=contract_value(settings.asset),
            position_size=min(settings.position_size, settings.max_position_size),
            fee_per_trade=settings.order_fee if settings.use_order_fee else 0.0,
            spread_cost=settings.spread_pips * pv if settings.use_spread else 0.0,
            stop_loss_distance=settings.stop_loss * pv,
            take_profit_distance=settings.take_profit * pv,
            allow_long=settings.trade_type in ("long", "both"),
            allow_short=settings.trade_type in ("short", "both"),
        )

    def entry_price(self, trade_type: TradeType, close: float) -> float:
        """Spread-adjusted fill price for a new position at *close*."""
        if trade_type is TradeType.LONG:
            return close + self.spread_cost
        return close - self.spread_cost

    def gross_pnl(self, price_diff: float, contract_value: float | None = None) -> float:
        """Unrealized P&L of a favourable price move, before costs."""
        cv = self.contract_value if contract_value is None else contract_value
        return price_diff * self.position_size * cv

    def net_pnl(self, pnl: float, contract_value: float | None = None) -> float:
        """Realized P&L: *pnl* less the exit spread and the order fee."""
        cv = self.contract_value if contract_value is None else contract_value
        return pnl - self.spread_cost * self.position_size * cv - self.fee_per_trade
