"""
Infrastructure package for the Moray batch benchmark.

Centralizes network concerns: SRV discovery, the Fast wire codec, the Moray
client, and the factory tying them together. Keep this layer focused on I/O
and decoupled from strategy/orchestrator logic.
"""

from moray_bench.infrastructure.discovery import Endpoint, locate_service
from moray_bench.infrastructure.moray_client import MorayClient, StoreClient
from moray_bench.infrastructure.store_factory import create_client, shard_domain

__all__ = [
    "Endpoint",
    "MorayClient",
    "StoreClient",
    "create_client",
    "locate_service",
    "shard_domain",
]
