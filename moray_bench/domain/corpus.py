"""
Corpus generation and per-pass mutation.

A corpus is a mapping of objectId -> ManifestObject. It is generated once per
run; every benchmark pass then derives a mutated, serialized copy so the store
sees different payloads each time while the baseline stays intact.

All randomness comes from the `random.Random` passed in, so a seeded generator
gives a reproducible corpus.
"""

from __future__ import annotations

import hashlib
import random
import string
import time
import uuid
from typing import Any, Dict, List, Mapping

from moray_bench.domain.models import ManifestObject, Placement
from moray_bench.utils.logging import get_logger

log = get_logger(__name__)

Corpus = Dict[str, ManifestObject]
SerializedCorpus = Dict[str, Dict[str, Any]]

DEFAULT_STORAGE_DOMAIN = "domain"
PLACEMENT_PASSES = 2
DATACENTER_COUNT = 3
U16_MAX = 0xFFFF

_ALPHANUMERIC = string.ascii_letters + string.digits
_CONTENT_TYPES = [
    "application/octet-stream",
    "text/plain",
    "application/json",
    "image/png",
]


def random_string(rng: random.Random, length: int) -> str:
    """Alphanumeric token of the given length."""
    return "".join(rng.choice(_ALPHANUMERIC) for _ in range(length))


def _random_uuid(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def storage_id(node: int, domain: str = DEFAULT_STORAGE_DOMAIN) -> str:
    return f"{node}.stor.{domain}"


def _random_object(rng: random.Random) -> ManifestObject:
    owner = _random_uuid(rng)
    object_id = _random_uuid(rng)
    dirname = f"/{owner}/stor/{random_string(rng, 8)}"
    name = random_string(rng, rng.randint(1, 16))
    body = random_string(rng, 32).encode("utf-8")

    return ManifestObject(
        object_id=object_id,
        key=f"{dirname}/{name}",
        owner=owner,
        creator=owner,
        dirname=dirname,
        name=name,
        content_length=rng.randint(0, 1 << 30),
        content_md5=hashlib.md5(body).hexdigest(),
        content_type=rng.choice(_CONTENT_TYPES),
        etag=_random_uuid(rng),
        mtime=int(time.time() * 1000),
        headers={},
        roles=[],
        vnode=rng.randint(0, 1_000_000),
    )


def _initial_placements(rng: random.Random, domain: str) -> List[Placement]:
    # pass 0 picks node 1 or 2, pass 1 picks node 3 or 4
    sharks: List[Placement] = []
    for i in range(PLACEMENT_PASSES):
        node = rng.randint(1 + i * 2, 2 + i * 2)
        sharks.append(
            Placement(
                datacenter=f"dc{rng.randint(1, DATACENTER_COUNT)}",
                manta_storage_id=storage_id(node, domain),
            )
        )
    return sharks


def generate_corpus(
    count: int,
    rng: random.Random,
    domain: str = DEFAULT_STORAGE_DOMAIN,
) -> Corpus:
    """
    Build `count` random objects keyed by their objectId.

    Parameters
    ----------
    count : int
        Number of objects to generate.
    rng : random.Random
        Source of randomness; seed it for a reproducible corpus.
    domain : str
        Suffix used for storage node ids (`<n>.stor.<domain>`).

    Returns
    -------
    Corpus
        Mapping of objectId -> ManifestObject. A colliding id would overwrite
        the earlier entry; with 128-bit ids that does not happen in practice.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    corpus: Corpus = {}
    for _ in range(count):
        obj = _random_object(rng)
        obj = obj.with_sharks(_initial_placements(rng, domain))
        corpus[obj.object_id] = obj

    log.info("Generated corpus", extra={"objects": len(corpus)})
    return corpus


def serialize_corpus(corpus: Mapping[str, ManifestObject]) -> SerializedCorpus:
    """Serialize a corpus as-is (used for the seeding pass)."""
    return {key: obj.to_value() for key, obj in corpus.items()}


def mutate_corpus(
    corpus: Mapping[str, ManifestObject],
    rng: random.Random,
    domain: str = DEFAULT_STORAGE_DOMAIN,
) -> SerializedCorpus:
    """
    Move every object's last copy to one new storage node and serialize.

    A single datacenter token and storage id are drawn per call and shared by
    all objects. Each object loses its last placement and gains the new one,
    so the placement count is unchanged. The input corpus is not modified.
    """
    datacenter = random_string(rng, 10)
    node = rng.randint(0, U16_MAX)
    moved_to = Placement(datacenter=datacenter, manta_storage_id=storage_id(node, domain))

    log.info(
        f"Altering objects. datacenter: {datacenter} | storage id: {node}",
        extra={"datacenter": datacenter, "storage_id": node, "objects": len(corpus)},
    )

    altered: SerializedCorpus = {}
    for key, obj in corpus.items():
        sharks = list(obj.sharks)
        if sharks:
            sharks.pop()
        sharks.append(moved_to)
        altered[key] = obj.with_sharks(sharks).to_value()
    return altered


__all__ = [
    "Corpus",
    "SerializedCorpus",
    "generate_corpus",
    "mutate_corpus",
    "random_string",
    "serialize_corpus",
    "storage_id",
]
