"""
Error types raised by the benchmark harness.

Bad run parameters, discovery problems and store failures are kept apart so the CLI can report
which stage of a run gave up.
"""

from __future__ import annotations

from typing import Optional


class BenchError(Exception):
    """Base class for every failure the harness reports."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DiscoveryError(BenchError):
    """SRV lookup found no candidates, or the chosen target did not resolve."""

    def __init__(self, message: str, query: Optional[str] = None, host: Optional[str] = None) -> None:
        super().__init__(message)
        self.query = query
        self.host = host


class ConfigError(BenchError):
    """Run parameters are out of range; raised before anything touches the network."""


class StoreError(BenchError):
    """A Moray call failed: connection, framing, or an error returned by the server."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.error_name = error_name

    def __str__(self) -> str:
        if self.operation and self.error_name:
            return f"{self.operation}: {self.error_name}: {self.message}"
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


__all__ = ["BenchError", "ConfigError", "DiscoveryError", "StoreError"]
