"""
Abstract strategy interfaces and result contracts for the Moray batch benchmark.

A write strategy takes the serialized objects of one pass and writes all of
them to the target bucket, returning a StrategyResult so the orchestrator and
reporter can treat sequential and batched writes the same way.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, Mapping, Optional, Protocol, TypedDict, runtime_checkable

from moray_bench.infrastructure.moray_client import StoreClient


class StrategyResult(TypedDict, total=False):
    """
    Metrics returned by a strategy for one pass.

    `rows` counts objects actually written; `requests` counts round trips
    (individual puts, or batch calls).
    """

    rows: int
    requests: int
    duration_seconds: float
    throughput_rows_per_sec: float
    peak_rss_bytes: Optional[int]
    cpu_percent: Optional[float]
    notes: Optional[str]
    extra: Dict[str, Any]


@runtime_checkable
class WriteStrategy(Protocol):
    """
    Common interface all write strategies implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    description: str

    def execute(
        self,
        client: StoreClient,
        objects: Mapping[str, Dict[str, Any]],
        ordinal: int,
    ) -> StrategyResult:
        """
        Write every object to the store and return metrics.

        Parameters
        ----------
        client : StoreClient
            Connected store client.
        objects : Mapping[str, dict]
            Object key -> serialized value.
        ordinal : int
            Pass number, used to label logs.

        Raises
        ------
        StoreError
            On the first failed write; the pass is abandoned.
        """
        ...


class AbstractWriteStrategy(abc.ABC):
    """
    ABC helper holding the target bucket and per-call options.

    Subclasses set `name` and `description` and implement `execute`.
    """

    name: str
    description: str

    def __init__(self, bucket: str, options: Optional[Dict[str, Any]] = None) -> None:
        self.bucket = bucket
        self.options: Dict[str, Any] = dict(options or {})

    @abc.abstractmethod
    def execute(
        self,
        client: StoreClient,
        objects: Mapping[str, Dict[str, Any]],
        ordinal: int,
    ) -> StrategyResult:  # pragma: no cover - interface only
        """Run the strategy and return metrics."""
        raise NotImplementedError


__all__ = [
    "AbstractWriteStrategy",
    "StrategyResult",
    "WriteStrategy",
]
