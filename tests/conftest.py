"""
Pytest configuration for the Moray batch benchmark.

Provides fixtures for:
- Settings with test-friendly values
- A seeded random source
- An in-memory store client that records every call
- Small generated corpora
"""

from __future__ import annotations

import random
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from moray_bench.config import Settings
from moray_bench.domain.corpus import Corpus, generate_corpus
from moray_bench.errors import StoreError

TEST_SEED = 1234


class RecordingStoreClient:
    """
    In-memory StoreClient.

    Records puts and batches, keeps the last value per (bucket, key), and can
    be told to fail a given call number.
    """

    def __init__(
        self,
        buckets: Optional[Set[str]] = None,
        fail_put_at: Optional[int] = None,
        fail_batch_at: Optional[int] = None,
        fail_create: bool = False,
    ) -> None:
        self.buckets: Dict[str, Dict[str, Any]] = {name: {} for name in (buckets or set())}
        self.puts: List[Tuple[str, str, Dict[str, Any]]] = []
        self.batches: List[List[Dict[str, Any]]] = []
        self.created: List[Tuple[str, Dict[str, Any]]] = []
        self.stored: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.fail_put_at = fail_put_at
        self.fail_batch_at = fail_batch_at
        self.fail_create = fail_create
        self.closed = False

    def get_bucket(self, name: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if name not in self.buckets:
            raise StoreError(f"{name} does not exist", operation="getBucket", error_name="BucketNotFoundError")
        return {"name": name, **self.buckets[name]}

    def create_bucket(
        self, name: str, config: Dict[str, Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        if self.fail_create:
            raise StoreError("permission denied", operation="createBucket")
        self.created.append((name, config))
        self.buckets[name] = dict(config)

    def put_object(
        self,
        bucket: str,
        key: str,
        value: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if self.fail_put_at is not None and len(self.puts) + 1 == self.fail_put_at:
            raise StoreError("injected put failure", operation="putObject")
        self.puts.append((bucket, key, value))
        self.stored[(bucket, key)] = value
        return {"etag": key}

    def batch(
        self, requests: List[Dict[str, Any]], options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if self.fail_batch_at is not None and len(self.batches) + 1 == self.fail_batch_at:
            raise StoreError("injected batch failure", operation="batch")
        # the strategy may reuse its list; keep a copy
        self.batches.append(list(requests))
        for request in requests:
            self.stored[(request["bucket"], request["key"])] = request["value"]
        return {"etags": [r["key"] for r in requests]}

    def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.
    """
    return Settings(
        moray_shard=2,
        moray_domain="test.example.com",
        bench_objects=100,
        bench_batch_size=50,
        log_level="DEBUG",
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(TEST_SEED)


@pytest.fixture
def store_client() -> RecordingStoreClient:
    return RecordingStoreClient()


@pytest.fixture
def small_corpus(rng: random.Random) -> Corpus:
    """Twenty generated objects."""
    return generate_corpus(20, rng)


def serialized(count: int, seed: int = TEST_SEED) -> Dict[str, Dict[str, Any]]:
    """Cheap serialized mapping of `count` objects for strategy tests."""
    rand = random.Random(seed)
    return {f"key-{i:05d}": {"objectId": f"key-{i:05d}", "n": rand.random()} for i in range(count)}
