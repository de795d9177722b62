"""
Strategies package for the Moray batch benchmark.

This module re-exports the abstract interfaces and the concrete strategy classes
so downstream code can import from `moray_bench.strategies` directly.
"""

from moray_bench.strategies.abstract import (
    AbstractWriteStrategy,
    StrategyResult,
    WriteStrategy,
)
from moray_bench.strategies.batched import BatchedWriteStrategy
from moray_bench.strategies.sequential import SequentialWriteStrategy

__all__ = [
    # Abstracts
    "AbstractWriteStrategy",
    "StrategyResult",
    "WriteStrategy",
    # Concrete strategies
    "BatchedWriteStrategy",
    "SequentialWriteStrategy",
]
