"""
Corpus dump script for the Moray batch benchmark.

Generates the same seeded corpus the benchmark would write and emits it as
JSON lines (`{"key": ..., "value": ...}` per object), optionally after
applying N mutation rounds. Nothing is sent to Moray; use this to inspect
payload shapes and sizes offline.
"""

from __future__ import annotations

import json
import random
import sys
import time
from pathlib import Path
from typing import Any, Dict, Mapping

import typer

from moray_bench.domain.corpus import generate_corpus, mutate_corpus, serialize_corpus

app = typer.Typer(help="Generate a benchmark corpus and write it as JSON lines.")


def _build_objects(count: int, seed: int, mutations: int) -> Dict[str, Dict[str, Any]]:
    rng = random.Random(seed)
    corpus = generate_corpus(count, rng)
    objects = serialize_corpus(corpus)
    for _ in range(mutations):
        objects = mutate_corpus(corpus, rng)
    return objects


def _write_jsonl(path: Path, objects: Mapping[str, Dict[str, Any]]) -> int:
    written = 0
    with path.open("w", encoding="utf-8") as f:
        for key, value in objects.items():
            f.write(json.dumps({"key": key, "value": value}, sort_keys=True))
            f.write("\n")
            written += 1
    return written


@app.command()
def main(
    objects: int = typer.Option(
        1_000,
        "--objects",
        "-n",
        help="Number of objects to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    mutations: int = typer.Option(
        0,
        "--mutations",
        "-m",
        help="Mutation rounds to apply before writing (0 = baseline corpus).",
    ),
    output: Path = typer.Option(
        Path("corpus.jsonl"),
        "--output",
        "-o",
        help="JSON lines output path.",
    ),
) -> None:
    """
    Generate a corpus and write it to a JSON lines file.
    """
    start = time.perf_counter()
    output.parent.mkdir(parents=True, exist_ok=True)

    typer.echo(f"Generating {objects:,} objects -> {output} (seed={seed}, mutations={mutations})")
    built = _build_objects(objects, seed=seed, mutations=mutations)
    written = _write_jsonl(output, built)

    duration = time.perf_counter() - start
    typer.echo(f"Wrote {written:,} objects in {duration:.2f}s")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
