from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def _format_mb(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def print_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render per-pass benchmark results as a rich table, in execution order.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(
        title="Moray Batch Benchmark Results",
        box=box.ROUNDED,
        caption="Passes in execution order",
    )

    table.add_column("Pass", justify="right", style="blue")
    table.add_column("Group", justify="right", style="blue")
    table.add_column("Strategy", style="cyan", no_wrap=True)
    table.add_column("Objects", justify="right", style="magenta")
    table.add_column("Requests", justify="right", style="magenta")
    table.add_column("Unwritten", justify="right", style="red")
    table.add_column("Duration (ms)", justify="right", style="green")
    table.add_column("Throughput (obj/s)", justify="right", style="bold green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    table.add_column("CPU %", justify="right", style="red")

    for res in results:
        extra = res.get("extra") or {}
        cpu = res.get("cpu_percent")
        table.add_row(
            str(res.get("pass", "")),
            str(res.get("group", "")),
            res.get("strategy", "Unknown"),
            f"{res.get('rows', 0):,}",
            f"{res.get('requests', 0):,}",
            f"{extra.get('unwritten', 0):,}",
            f"{res.get('duration_seconds', 0.0) * 1000:,.0f}",
            f"{res.get('throughput_rows_per_sec', 0.0):,.2f}",
            _format_mb(res.get("peak_rss_bytes")),
            f"{cpu:.1f}" if cpu is not None else "N/A",
        )

    console.print(table)


__all__ = ["print_results"]
