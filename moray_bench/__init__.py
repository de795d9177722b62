"""
Moray Batch Benchmark - compares sequential and batched writes to Moray.

The harness discovers a Moray shard through DNS SRV records, generates a
corpus of synthetic Manta object records, and then writes mutated copies of
that corpus in four timed passes:

- sequential, then batched
- batched, then sequential

Running both orders exposes ordering effects between the two access patterns.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from moray_bench.config import Settings, get_settings
from moray_bench.errors import BenchError, ConfigError, DiscoveryError, StoreError
from moray_bench.orchestrator import RunConfig, available_strategies, run_benchmark
from moray_bench.strategies.abstract import (
    AbstractWriteStrategy,
    StrategyResult,
    WriteStrategy,
)
from moray_bench.utils.logging import configure_logging, get_logger
from moray_bench.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "BenchError",
    "ConfigError",
    "DiscoveryError",
    "StoreError",
    # Orchestration
    "RunConfig",
    "available_strategies",
    "run_benchmark",
    # Strategy abstractions
    "WriteStrategy",
    "AbstractWriteStrategy",
    "StrategyResult",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
