from __future__ import annotations

import json
import sys
from typing import Optional

import typer

from moray_bench.config import get_settings
from moray_bench.errors import BenchError
from moray_bench.infrastructure.store_factory import shard_domain
from moray_bench.orchestrator import RunConfig, run_benchmark
from moray_bench.reporter import print_results
from moray_bench.utils.logging import configure_logging

app = typer.Typer(help="Moray sequential vs. batched write benchmark.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"shard={shard_domain(settings.moray_shard, settings.moray_domain)} "
        f"srv={settings.moray_service}.{settings.moray_proto} | "
        f"bucket={settings.bench_bucket} objects={settings.bench_objects} "
        f"batch={settings.bench_batch_size} flush_remainder={settings.bench_flush_remainder}"
    )


@app.command()
def run(
    shard: Optional[int] = typer.Option(None, "--shard", help="Moray shard number."),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Base DNS domain."),
    objects: Optional[int] = typer.Option(
        None, "--objects", "-n", help="Number of objects to generate (default from settings)."
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Put requests per batch call."
    ),
    flush_remainder: Optional[bool] = typer.Option(
        None,
        "--flush-remainder/--no-flush-remainder",
        help="Send a final short batch for objects left below the batch size.",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Deterministic RNG seed."),
    seed_store: Optional[bool] = typer.Option(
        None, "--seed-store/--no-seed-store", help="Write the baseline corpus before the passes."
    ),
    storage_domain: Optional[str] = typer.Option(
        None, "--storage-domain", help="Domain suffix of generated storage node ids."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON instead of a table."),
) -> None:
    """
    Run all four benchmark passes against the configured shard.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        config = RunConfig.from_settings(
            settings,
            shard=shard,
            domain=domain,
            objects=objects,
            batch_size=batch_size,
            flush_remainder=flush_remainder,
            seed=seed,
            seed_store=seed_store,
            storage_domain=storage_domain,
        )
        typer.echo(
            f"Running against shard {shard_domain(config.shard, config.domain)} "
            f"(objects={config.objects}, batch={config.batch_size})."
        )
        results = run_benchmark(config)
    except BenchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if json_output:
        typer.echo(json.dumps(results, indent=2))
    else:
        print_results(results)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
