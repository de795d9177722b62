"""
Orchestrator for a full benchmark run.

A run walks through:

    discover -> connect -> ensure bucket -> generate corpus -> seed
             -> pass 1..4 (mutate, write, profile) -> done

The four passes run sequential/batched in both orders so an ordering effect
(e.g. a warm cache favouring whichever strategy runs second) shows up in the
numbers. Every pass writes a freshly mutated copy of the baseline corpus.

Usage (example from CLI):
    from moray_bench.orchestrator import RunConfig, run_benchmark

    results = run_benchmark(RunConfig(objects=1_000))
    print(results)

Results are returned and logged; they are not written to disk.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from moray_bench.config import Settings, get_settings
from moray_bench.domain.corpus import Corpus, generate_corpus, mutate_corpus, serialize_corpus
from moray_bench.errors import ConfigError, StoreError
from moray_bench.infrastructure.moray_client import StoreClient
from moray_bench.infrastructure.store_factory import create_client
from moray_bench.strategies.abstract import StrategyResult, WriteStrategy
from moray_bench.strategies.batched import BatchedWriteStrategy
from moray_bench.strategies.sequential import SequentialWriteStrategy
from moray_bench.utils.logging import get_logger
from moray_bench.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

INDEXED_FIELDS = ("dirname", "name", "owner", "objectId", "type")

BUCKET_CONFIG: Dict[str, Any] = {
    "index": {field_name: {"type": "string"} for field_name in INDEXED_FIELDS},
}

# (pass group, strategy name), in execution order
PASS_PLAN: Tuple[Tuple[int, str], ...] = (
    (1, "sequential"),
    (1, "batched"),
    (2, "batched"),
    (2, "sequential"),
)

_GROUP_TITLES = {
    1: "sequential first then batch",
    2: "batch first then sequential",
}


@dataclass(frozen=True)
class RunConfig:
    """Everything one benchmark run needs; defaults mirror Settings."""

    shard: int = 1
    domain: str = "perf2.scloud.host"
    bucket: str = "rust_batch_test_bucket"
    objects: int = 10_000
    batch_size: int = 50
    flush_remainder: bool = False
    seed: Optional[int] = None
    seed_store: bool = True
    storage_domain: str = "domain"
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.shard < 0:
            raise ConfigError(f"shard must be >= 0, got {self.shard}")
        if self.objects < 0:
            raise ConfigError(f"objects must be >= 0, got {self.objects}")
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {self.batch_size}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "RunConfig":
        """Build a config from settings; `None`-valued overrides are ignored."""
        settings = settings or get_settings()
        values: Dict[str, Any] = {
            "shard": settings.moray_shard,
            "domain": settings.moray_domain,
            "bucket": settings.bench_bucket,
            "objects": settings.bench_objects,
            "batch_size": settings.bench_batch_size,
            "flush_remainder": settings.bench_flush_remainder,
            "seed": settings.bench_seed,
            "seed_store": settings.bench_seed_store,
            "storage_domain": settings.bench_storage_domain,
            "options": dict(settings.bench_write_options),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _strategy_factories(config: RunConfig) -> Dict[str, Callable[[], WriteStrategy]]:
    """Registry of available strategies."""
    return {
        "sequential": lambda: SequentialWriteStrategy(config.bucket, options=config.options),
        "batched": lambda: BatchedWriteStrategy(
            config.bucket,
            batch_size=config.batch_size,
            flush_remainder=config.flush_remainder,
            options=config.options,
        ),
    }


def available_strategies() -> List[str]:
    """List available strategy names."""
    return sorted(_strategy_factories(RunConfig()).keys())


def _resolve_strategy(name: str, config: RunConfig) -> WriteStrategy:
    factories = _strategy_factories(config)
    if name not in factories:
        raise ValueError(f"Unknown strategy '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


def ensure_bucket(client: StoreClient, bucket: str, options: Optional[Dict[str, Any]] = None) -> bool:
    """
    Create `bucket` unless it already exists.

    A failed getBucket is read as "missing". A failed createBucket is logged
    and swallowed; if the bucket really is missing the first write will fail.

    Returns True if the bucket was created by this call.
    """
    log.info("===get or create bucket===", extra={"bucket": bucket})
    try:
        client.get_bucket(bucket, options)
        log.info("Bucket exists", extra={"bucket": bucket})
        return False
    except StoreError as exc:
        log.info("Bucket lookup failed; creating it", extra={"bucket": bucket, "error": str(exc)})

    try:
        client.create_bucket(bucket, BUCKET_CONFIG, options)
    except StoreError:
        log.exception("Error creating bucket", extra={"bucket": bucket})
        return False
    log.info("Bucket created successfully", extra={"bucket": bucket})
    return True


def seed_store(client: StoreClient, corpus: Corpus, config: RunConfig) -> StrategyResult:
    """Write the unmodified corpus once so every later pass overwrites existing keys."""
    log.info("Seeding objects", extra={"objects": len(corpus), "bucket": config.bucket})
    strategy = _resolve_strategy("sequential", config)
    return strategy.execute(client, serialize_corpus(corpus), ordinal=0)


def _merge_result(result: StrategyResult, stats: ProfileStats) -> dict:
    """Merge strategy result with profiler stats, rounding floats for readability."""
    merged = dict(result)
    merged.setdefault("rows", 0)
    merged.setdefault("requests", 0)
    merged["duration_seconds"] = _round_float(
        merged.get("duration_seconds", stats.duration_seconds), 4
    )
    merged["throughput_rows_per_sec"] = _round_float(merged.get("throughput_rows_per_sec", 0.0))
    merged["peak_rss_bytes"] = stats.peak_rss_bytes
    merged["cpu_percent"] = _round_float(stats.cpu_percent, 1) if stats.cpu_percent else None
    merged["profile"] = {
        "label": stats.label,
        "duration_seconds": _round_float(stats.duration_seconds, 4),
    }
    return merged


def run_pass(
    client: StoreClient,
    corpus: Corpus,
    strategy: WriteStrategy,
    ordinal: int,
    rng: random.Random,
    storage_domain: str = "domain",
) -> dict:
    """Mutate the baseline corpus and write it with `strategy`, profiled."""
    objects = mutate_corpus(corpus, rng, domain=storage_domain)
    label = f"pass-{ordinal}-{strategy.name}"

    log.info(f"[PASS {ordinal} START] {strategy.name}", extra={"strategy": strategy.name, "pass": ordinal})
    with profile_block(label) as stats:
        try:
            result = strategy.execute(client, objects, ordinal)
        except Exception:
            log.exception(
                f"[PASS {ordinal} FAILED] {strategy.name}",
                extra={"strategy": strategy.name, "pass": ordinal},
            )
            raise

    merged = _merge_result(result, stats)
    merged["pass"] = ordinal
    merged["strategy"] = strategy.name
    log.info(
        f"[PASS {ordinal} COMPLETE] {strategy.name}",
        extra={
            "strategy": strategy.name,
            "pass": ordinal,
            "rows": merged["rows"],
            "duration": merged["duration_seconds"],
            "throughput_rps": merged["throughput_rows_per_sec"],
        },
    )
    return merged


def run_passes(
    client: StoreClient,
    corpus: Corpus,
    config: RunConfig,
    rng: random.Random,
) -> List[dict]:
    """Execute PASS_PLAN in order and return one result dict per pass."""
    results: List[dict] = []
    current_group = None
    for ordinal, (group, name) in enumerate(PASS_PLAN, start=1):
        if group != current_group:
            current_group = group
            log.info(f" ==== pass {group}, {_GROUP_TITLES[group]} ====", extra={"group": group})
        strategy = _resolve_strategy(name, config)
        result = run_pass(client, corpus, strategy, ordinal, rng, config.storage_domain)
        result["group"] = group
        results.append(result)
    return results


def run_benchmark(
    config: Optional[RunConfig] = None,
    client: Optional[StoreClient] = None,
    rng: Optional[random.Random] = None,
) -> List[dict]:
    """
    Run the whole benchmark and return per-pass results.

    Parameters
    ----------
    config : RunConfig | None
        Run parameters. Defaults to `RunConfig.from_settings()`.
    client : StoreClient | None
        Pre-built client (tests). When omitted, one is discovered and
        connected for `config.shard` and closed when the run ends.
    rng : random.Random | None
        Randomness for corpus generation and mutation. Defaults to
        `random.Random(config.seed)`. SRV candidate choice draws from its
        own unseeded generator, so the corpus for a given seed does not
        depend on how many records DNS returns.

    Raises
    ------
    DiscoveryError, StoreError
        Any discovery, connection or write failure ends the run.
    """
    config = config or RunConfig.from_settings()
    rng = rng or random.Random(config.seed)

    owns_client = client is None
    if client is None:
        client = create_client(config.shard, config.domain, rng=random.Random())

    try:
        ensure_bucket(client, config.bucket)

        log.info("Creating test objects", extra={"objects": config.objects})
        corpus = generate_corpus(config.objects, rng, domain=config.storage_domain)

        if config.seed_store:
            seed_store(client, corpus, config)

        results = run_passes(client, corpus, config, rng)
    finally:
        if owns_client:
            client.close()

    log.info(
        f"[BENCHMARK COMPLETE] {len(results)} passes executed",
        extra={"passes": len(results), "objects": config.objects},
    )
    return results


__all__ = [
    "BUCKET_CONFIG",
    "PASS_PLAN",
    "RunConfig",
    "available_strategies",
    "ensure_bucket",
    "run_benchmark",
    "run_pass",
    "run_passes",
    "seed_store",
]
