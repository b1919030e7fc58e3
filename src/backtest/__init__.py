"""
Backtest services: validated simulation runs and parameter optimization on top of sim_core.
"""

from backtest.optimizer import OptimizationResult, ParameterRange, optimize
from backtest.runner import run_simulation, simulate_request

__all__ = [
    "OptimizationResult",
    "ParameterRange",
    "optimize",
    "run_simulation",
    "simulate_request",
]
