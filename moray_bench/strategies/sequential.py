"""
Sequential (baseline) strategy: one putObject round trip per object.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping

from moray_bench.infrastructure.moray_client import StoreClient
from moray_bench.strategies.abstract import AbstractWriteStrategy, StrategyResult
from moray_bench.utils.logging import get_logger

log = get_logger(__name__)


class SequentialWriteStrategy(AbstractWriteStrategy):
    """
    Write each object with its own putObject call, in mapping order.

    The first failed put raises and ends the pass; there is no partial
    failure handling.
    """

    name: str = "sequential"
    description: str = "One putObject per object (sync, no batching)."

    def execute(
        self,
        client: StoreClient,
        objects: Mapping[str, Dict[str, Any]],
        ordinal: int,
    ) -> StrategyResult:
        log.info(
            "Updating objects sequentially",
            extra={"strategy": self.name, "pass": ordinal, "objects": len(objects)},
        )
        written = 0

        start = time.perf_counter()
        for key, value in objects.items():
            client.put_object(self.bucket, key, value, self.options)
            written += 1
        duration = time.perf_counter() - start

        log.info(
            f"Done updating objects sequentially: {duration * 1000:.0f}ms",
            extra={
                "strategy": self.name,
                "pass": ordinal,
                "duration_ms": round(duration * 1000, 3),
                "rows": written,
            },
        )
        return StrategyResult(
            rows=written,
            requests=written,
            duration_seconds=duration,
            throughput_rows_per_sec=written / duration if duration > 0 else 0.0,
            notes="putObject per object.",
            extra={"unwritten": 0},
        )


__all__ = ["SequentialWriteStrategy"]
