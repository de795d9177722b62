from __future__ import annotations

import copy
import random

import pytest

from moray_bench.domain.corpus import (
    generate_corpus,
    mutate_corpus,
    random_string,
    serialize_corpus,
)
from moray_bench.domain.models import ManifestObject, Placement

CORPUS_SIZES = [0, 1, 17, 250]


@pytest.mark.parametrize("count", CORPUS_SIZES)
def test_generate_corpus_returns_exactly_count_unique_keys(count: int, rng: random.Random) -> None:
    corpus = generate_corpus(count, rng)

    assert len(corpus) == count
    assert len(set(corpus)) == count
    for key, obj in corpus.items():
        assert key == obj.object_id


def test_generate_corpus_rejects_negative_count(rng: random.Random) -> None:
    with pytest.raises(ValueError):
        generate_corpus(-1, rng)


def test_generated_placements_follow_two_pass_ranges(rng: random.Random) -> None:
    corpus = generate_corpus(200, rng)

    first_nodes = set()
    second_nodes = set()
    for obj in corpus.values():
        assert len(obj.sharks) in {2, 3, 4}
        first, second = obj.sharks
        first_nodes.add(first.manta_storage_id)
        second_nodes.add(second.manta_storage_id)

    assert first_nodes <= {"1.stor.domain", "2.stor.domain"}
    assert second_nodes <= {"3.stor.domain", "4.stor.domain"}


def test_storage_domain_is_configurable(rng: random.Random) -> None:
    corpus = generate_corpus(3, rng, domain="perf.example.com")
    for obj in corpus.values():
        assert all(s.manta_storage_id.endswith(".stor.perf.example.com") for s in obj.sharks)


def test_same_seed_gives_same_corpus_shape() -> None:
    first = generate_corpus(10, random.Random(99))
    second = generate_corpus(10, random.Random(99))

    assert list(first) == list(second)
    for key in first:
        assert first[key].sharks == second[key].sharks
        assert first[key].key == second[key].key


def test_serialized_object_uses_store_field_names(small_corpus) -> None:
    value = next(iter(serialize_corpus(small_corpus).values()))

    for indexed in ("dirname", "name", "owner", "objectId", "type"):
        assert isinstance(value[indexed], str)
    assert value["type"] == "object"
    assert "contentMD5" in value
    assert value["sharks"][0].keys() == {"datacenter", "manta_storage_id"}


def test_mutate_preserves_size_and_placement_count(small_corpus, rng: random.Random) -> None:
    altered = mutate_corpus(small_corpus, rng)

    assert altered.keys() == small_corpus.keys()
    for key, value in altered.items():
        assert len(value["sharks"]) == len(small_corpus[key].sharks)


def test_mutate_replaces_last_placement_with_shared_new_one(small_corpus, rng: random.Random) -> None:
    altered = mutate_corpus(small_corpus, rng)

    new_placements = {
        (v["sharks"][-1]["datacenter"], v["sharks"][-1]["manta_storage_id"]) for v in altered.values()
    }
    assert len(new_placements) == 1
    datacenter, storage = new_placements.pop()
    assert len(datacenter) == 10
    assert datacenter.isalnum()
    node = int(storage.split(".", 1)[0])
    assert 0 <= node <= 0xFFFF

    for key, value in altered.items():
        original = small_corpus[key].sharks
        assert value["sharks"][0] == original[0].model_dump()


def test_mutate_does_not_modify_input(small_corpus, rng: random.Random) -> None:
    before = copy.deepcopy(serialize_corpus(small_corpus))

    mutate_corpus(small_corpus, rng)
    mutate_corpus(small_corpus, rng)

    assert serialize_corpus(small_corpus) == before


def test_successive_mutations_write_different_payloads(small_corpus, rng: random.Random) -> None:
    first = mutate_corpus(small_corpus, rng)
    second = mutate_corpus(small_corpus, rng)

    key = next(iter(small_corpus))
    assert first[key]["sharks"][-1] != second[key]["sharks"][-1]


def test_mutate_handles_object_without_placements(rng: random.Random) -> None:
    obj = ManifestObject(
        object_id="abc",
        key="/owner/stor/abc",
        owner="owner",
        creator="owner",
        dirname="/owner/stor",
        name="abc",
        content_length=0,
        content_md5="d41d8cd98f00b204e9800998ecf8427e",
        etag="etag",
        mtime=0,
        vnode=1,
    )

    altered = mutate_corpus({"abc": obj}, rng)

    assert len(altered["abc"]["sharks"]) == 1
    assert obj.sharks == []


def test_placement_is_immutable() -> None:
    placement = Placement(datacenter="dc1", manta_storage_id="1.stor.domain")
    with pytest.raises(Exception):
        placement.datacenter = "dc2"  # type: ignore[misc]


def test_random_string_uses_alphanumerics(rng: random.Random) -> None:
    token = random_string(rng, 32)
    assert len(token) == 32
    assert token.isalnum()
