"""
Domain package for the Moray batch benchmark.

Exports the object model and the corpus generation/mutation helpers.
Keep this package free of network I/O.
"""

from moray_bench.domain.corpus import (
    Corpus,
    SerializedCorpus,
    generate_corpus,
    mutate_corpus,
    serialize_corpus,
)
from moray_bench.domain.models import ManifestObject, Placement

__all__ = [
    "Corpus",
    "ManifestObject",
    "Placement",
    "SerializedCorpus",
    "generate_corpus",
    "mutate_corpus",
    "serialize_corpus",
]
