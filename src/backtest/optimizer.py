"""
Random-search parameter optimizer.

Each tunable setting gets a search range derived from its current value,
then ``iterations`` candidate settings are sampled uniformly inside those
ranges (snapped to the range step) and backtested on the same bars.
Candidates are scored by one result metric and returned best first.

Range rules, by current value ``v`` (decimal precision ``p`` of ``v``):

    v < 1     [max(p, 0.1v), 5v]                step p
    v < 10    [max(0.1, 0.2v), 3v]              step p, or 0.1 for integers
    v < 100   [max(1, floor(0.2v)), ceil(3v)]   step 1
    else      [max(10, floor(0.2v)), ceil(3v)]  step 10
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Sequence

from config.sim_settings import Settings
from sim_core.contracts import Bar, SimulationResult
from sim_core.engine import run_backtest
from sim_core.validation import ValidationError, validate_bars

logger = logging.getLogger("botsim.backtest")

# camelCase name -> Settings attribute
TUNABLE: dict[str, str] = {
    "stopLoss": "stop_loss",
    "takeProfit": "take_profit",
    "obvPeriod": "obv_period",
    "positionSize": "position_size",
}
DEFAULT_PARAMETERS = tuple(TUNABLE)
_INTEGER_PARAMETERS = {"obvPeriod"}


def _sharpe_like(r: SimulationResult) -> float:
    return r.total_gain / max(1.0, abs(r.max_drawdown or 1))


METRICS: dict[str, Callable[[SimulationResult], float]] = {
    "totalGain": lambda r: r.total_gain,
    "winRate": lambda r: r.win_rate,
    "gainLossRatio": lambda r: r.gain_loss_ratio,
    "sharpe": _sharpe_like,
}


def _decimals(value: float) -> int:
    if float(value).is_integer():
        return 0
    return max(0, -Decimal(repr(float(value))).normalize().as_tuple().exponent)


@dataclass(frozen=True)
class ParameterRange:
    name: str
    current: float
    min: float
    max: float
    step: float

    @classmethod
    def around(cls, name: str, value: float) -> ParameterRange:
        """Search range for *name* derived from its current *value*."""
        if value <= 0:
            raise ValidationError(f"cannot optimize {name}: value must be positive, got {value}")
        decimals = _decimals(value)
        precision = 10.0 ** -decimals
        if value < 1:
            lo, hi, step = max(precision, value * 0.1), value * 5, precision
        elif value < 10:
            lo, hi = max(0.1, value * 0.2), value * 3
            step = precision if decimals > 0 else 0.1
        elif value < 100:
            lo, hi, step = max(1.0, math.floor(value * 0.2)), math.ceil(value * 3), 1.0
        else:
            lo, hi, step = max(10.0, math.floor(value * 0.2)), math.ceil(value * 3), 10.0
        places = _decimals(step) + 2
        return cls(name=name, current=value, min=round(float(lo), places), max=round(float(hi), places), step=step)

    def sample(self, rng: random.Random) -> float:
        raw = self.min + rng.random() * (self.max - self.min)
        snapped = round(raw / self.step) * self.step
        snapped = round(min(max(snapped, self.min), self.max), _decimals(self.step) + 2)
        if self.name in _INTEGER_PARAMETERS:
            return float(max(1, round(snapped)))
        return snapped


@dataclass
class Candidate:
    values: dict[str, float]
    score: float
    result: SimulationResult


@dataclass
class OptimizationResult:
    metric: str
    iterations: int
    ranges: list[ParameterRange]
    candidates: list[Candidate] = field(default_factory=list)   # best first

    @property
    def best(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


def _apply(settings: Settings, values: dict[str, float]) -> Settings:
    changes: dict[str, float | int] = {}
    for name, value in values.items():
        attr = TUNABLE[name]
        changes[attr] = int(value) if name in _INTEGER_PARAMETERS else value
    if "position_size" in changes:
        changes["position_size"] = min(changes["position_size"], settings.max_position_size)
    return replace(settings, **changes)


def optimize(
    bars: Sequence[Bar],
    settings: Settings,
    *,
    iterations: int = 20,
    metric: str = "totalGain",
    seed: int | None = None,
    parameters: Sequence[str] = DEFAULT_PARAMETERS,
) -> OptimizationResult:
    """Random search over *parameters*; candidates sorted by *metric*, best first.

    Deterministic for a given *seed*.
    """
    validate_bars(bars)
    if metric not in METRICS:
        raise ValidationError(f"unknown metric '{metric}'. Supported: {sorted(METRICS)}")
    if iterations < 1:
        raise ValidationError(f"iterations must be at least 1, got {iterations}")
    unknown = [p for p in parameters if p not in TUNABLE]
    if unknown:
        raise ValidationError(f"cannot optimize {unknown}. Tunable: {sorted(TUNABLE)}")

    ranges: list[ParameterRange] = []
    for p in parameters:
        value = float(getattr(settings, TUNABLE[p]))
        if value <= 0:
            logger.info("Skipping %s: current value %s leaves no range to search", p, value)
            continue
        ranges.append(ParameterRange.around(p, value))
    if not ranges:
        raise ValidationError(f"nothing to optimize: none of {list(parameters)} has a positive value")
    score_fn = METRICS[metric]
    rng = random.Random(seed)

    candidates: list[Candidate] = []
    for _ in range(iterations):
        values = {r.name: r.sample(rng) for r in ranges}
        result = run_backtest(bars, _apply(settings, values))
        candidates.append(Candidate(values=values, score=score_fn(result), result=result))

    candidates.sort(key=lambda c: c.score, reverse=True)
    logger.info(
        "Optimized %s over %d iterations: best %s = %.4f",
        ", ".join(r.name for r in ranges), iterations, metric, candidates[0].score,
    )
    return OptimizationResult(metric=metric, iterations=iterations, ranges=ranges, candidates=candidates)
