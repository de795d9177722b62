from __future__ import annotations

import random

import pytest

from conftest import RecordingStoreClient
from moray_bench import orchestrator
from moray_bench.errors import ConfigError, DiscoveryError, StoreError
from moray_bench.orchestrator import (
    BUCKET_CONFIG,
    PASS_PLAN,
    RunConfig,
    ensure_bucket,
    run_benchmark,
)

BUCKET = "rust_batch_test_bucket"
OBJECTS = 120
BATCH_SIZE = 50


def _config(**overrides) -> RunConfig:
    values = {"objects": OBJECTS, "batch_size": BATCH_SIZE, "seed": 11}
    values.update(overrides)
    return RunConfig(**values)


class TestEnsureBucket:
    def test_existing_bucket_is_reused(self) -> None:
        client = RecordingStoreClient(buckets={BUCKET})

        assert ensure_bucket(client, BUCKET) is False
        assert client.created == []

    def test_missing_bucket_is_created_with_index_schema(self) -> None:
        client = RecordingStoreClient()

        assert ensure_bucket(client, BUCKET) is True
        assert client.created == [(BUCKET, BUCKET_CONFIG)]
        assert set(BUCKET_CONFIG["index"]) == {"dirname", "name", "owner", "objectId", "type"}
        assert all(spec == {"type": "string"} for spec in BUCKET_CONFIG["index"].values())

    def test_create_failure_is_logged_not_raised(self, caplog) -> None:
        client = RecordingStoreClient(fail_create=True)

        with caplog.at_level("ERROR"):
            assert ensure_bucket(client, BUCKET) is False

        assert "Error creating bucket" in caplog.text


def test_pass_plan_runs_both_orders() -> None:
    assert PASS_PLAN == ((1, "sequential"), (1, "batched"), (2, "batched"), (2, "sequential"))


def test_run_benchmark_executes_four_passes(store_client: RecordingStoreClient) -> None:
    results = run_benchmark(_config(), client=store_client)

    assert [(r["group"], r["strategy"]) for r in results] == list(PASS_PLAN)
    assert [r["pass"] for r in results] == [1, 2, 3, 4]

    # seed pass + two sequential passes
    assert len(store_client.puts) == 3 * OBJECTS
    # two batched passes of floor(120 / 50) batches each
    assert len(store_client.batches) == 2 * (OBJECTS // BATCH_SIZE)

    by_strategy = {r["strategy"]: r for r in results}
    assert by_strategy["sequential"]["rows"] == OBJECTS
    assert by_strategy["batched"]["rows"] == 100
    assert by_strategy["batched"]["extra"]["unwritten"] == 20
    for result in results:
        assert result["duration_seconds"] >= 0
        assert result["profile"]["label"] == f"pass-{result['pass']}-{result['strategy']}"

    # an externally supplied client stays open
    assert store_client.closed is False


def test_each_pass_writes_a_fresh_mutation(store_client: RecordingStoreClient) -> None:
    run_benchmark(_config(objects=10, seed_store=False), client=store_client)

    key = store_client.puts[0][1]
    values = [value for _, k, value in store_client.puts if k == key]
    values += [r["value"] for batch in store_client.batches for r in batch if r["key"] == key]

    last_placements = {
        (v["sharks"][-1]["datacenter"], v["sharks"][-1]["manta_storage_id"]) for v in values
    }
    assert len(values) == 2
    assert len(last_placements) == len(values)


def test_seed_store_writes_baseline_corpus_first(store_client: RecordingStoreClient) -> None:
    run_benchmark(_config(objects=5, batch_size=5), client=store_client)

    seeded = store_client.puts[:5]
    for _, _, value in seeded:
        nodes = [s["manta_storage_id"] for s in value["sharks"]]
        assert nodes[0] in {"1.stor.domain", "2.stor.domain"}
        assert nodes[1] in {"3.stor.domain", "4.stor.domain"}


def test_flush_remainder_writes_every_object(store_client: RecordingStoreClient) -> None:
    results = run_benchmark(_config(flush_remainder=True, seed_store=False), client=store_client)

    assert all(r["rows"] == OBJECTS for r in results)
    assert len(store_client.batches) == 2 * 3


def test_write_failure_aborts_the_run() -> None:
    client = RecordingStoreClient(buckets={BUCKET}, fail_batch_at=1)

    with pytest.raises(StoreError):
        run_benchmark(_config(seed_store=False), client=client)

    # pass 1 (sequential) completed, pass 2 failed on its first batch
    assert len(client.puts) == OBJECTS
    assert client.batches == []


def test_run_benchmark_closes_client_it_created(monkeypatch) -> None:
    created: list[RecordingStoreClient] = []

    def fake_create_client(shard, domain, rng=None):
        assert (shard, domain) == (3, "bench.example.com")
        client = RecordingStoreClient()
        created.append(client)
        return client

    monkeypatch.setattr(orchestrator, "create_client", fake_create_client)

    run_benchmark(_config(shard=3, domain="bench.example.com", objects=4, batch_size=2))

    assert len(created) == 1
    assert created[0].closed is True


def test_run_benchmark_closes_client_on_failure(monkeypatch) -> None:
    client = RecordingStoreClient(fail_put_at=1)
    monkeypatch.setattr(orchestrator, "create_client", lambda shard, domain, rng=None: client)

    with pytest.raises(StoreError):
        run_benchmark(_config(objects=3))

    assert client.closed is True


def test_discovery_failure_propagates(monkeypatch) -> None:
    def fail(shard, domain, rng=None):
        raise DiscoveryError("no SRV candidates for _moray._tcp.1.moray.example.com")

    monkeypatch.setattr(orchestrator, "create_client", fail)

    with pytest.raises(DiscoveryError, match="no SRV candidates"):
        run_benchmark(_config())


def test_same_seed_reproduces_written_keys() -> None:
    first, second = RecordingStoreClient(), RecordingStoreClient()

    run_benchmark(_config(objects=8), client=first, rng=random.Random(5))
    run_benchmark(_config(objects=8), client=second, rng=random.Random(5))

    assert [key for _, key, _ in first.puts] == [key for _, key, _ in second.puts]


@pytest.mark.parametrize(
    "overrides",
    [{"batch_size": 0}, {"batch_size": -5}, {"objects": -1}, {"shard": -1}],
)
def test_invalid_config_is_rejected_before_any_write(monkeypatch, overrides) -> None:
    def must_not_connect(shard, domain, rng=None):
        raise AssertionError("must not discover")

    monkeypatch.setattr(orchestrator, "create_client", must_not_connect)

    with pytest.raises(ConfigError):
        run_benchmark(_config(**{"objects": 30, **overrides}))


def test_zero_objects_is_a_valid_config(store_client: RecordingStoreClient) -> None:
    results = run_benchmark(_config(objects=0), client=store_client)

    assert [r["rows"] for r in results] == [0, 0, 0, 0]
    assert store_client.puts == []
    assert store_client.batches == []


def test_discovery_does_not_draw_from_corpus_rng(monkeypatch) -> None:
    def written_with_srv_draws(draws: int) -> list:
        client = RecordingStoreClient()
        corpus_rng = random.Random(21)

        def fake_create_client(shard, domain, rng=None):
            assert rng is not None and rng is not corpus_rng
            for _ in range(draws):
                rng.random()
            return client

        monkeypatch.setattr(orchestrator, "create_client", fake_create_client)
        run_benchmark(_config(objects=6), rng=corpus_rng)
        return [(key, value["sharks"]) for _, key, value in client.puts]

    # a different number of SRV candidates must not change the corpus
    assert written_with_srv_draws(1) == written_with_srv_draws(9)


def test_storage_domain_and_write_options_reach_the_writes(store_client: RecordingStoreClient) -> None:
    config = _config(objects=4, batch_size=2, storage_domain="example.org", options={"noCache": True})

    run_benchmark(config, client=store_client)

    for _, _, value in store_client.puts:
        assert all(s["manta_storage_id"].endswith(".stor.example.org") for s in value["sharks"])
    assert all(r["options"] == {"noCache": True} for batch in store_client.batches for r in batch)
