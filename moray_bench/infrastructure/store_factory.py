"""
Store client factory for the Moray batch benchmark.

Turns a shard number and base domain into a connected client: the shard's
domain name is `<shard>.moray.<domain>`, its SRV records name the Moray
instances, and one of them is picked and connected to.
"""

from __future__ import annotations

import random
from typing import Callable, Optional

from moray_bench.config import get_settings
from moray_bench.infrastructure.discovery import Endpoint, locate_service
from moray_bench.infrastructure.moray_client import MorayClient
from moray_bench.utils.logging import get_logger

log = get_logger(__name__)

Locator = Callable[..., Endpoint]
Connector = Callable[..., MorayClient]


def shard_domain(shard: int, domain: str) -> str:
    return f"{shard}.moray.{domain}"


def create_client(
    shard: int,
    domain: str,
    rng: Optional[random.Random] = None,
    connect_timeout: Optional[float] = None,
    connect_attempts: Optional[int] = None,
    locator: Locator = locate_service,
    connector: Connector = MorayClient.connect,
) -> MorayClient:
    """
    Discover a Moray instance for `shard` and connect to it.

    Raises
    ------
    DiscoveryError
        The shard has no SRV candidates or the chosen host does not resolve.
    StoreError
        The TCP connection could not be opened.
    """
    settings = get_settings()
    domain_name = shard_domain(shard, domain)
    endpoint = locator(settings.moray_service, settings.moray_proto, domain_name, rng=rng)
    log.info(
        f"Resolved {domain_name} to {endpoint}",
        extra={"shard": shard, "domain": domain_name, "endpoint": str(endpoint)},
    )
    return connector(
        endpoint,
        timeout=connect_timeout if connect_timeout is not None else settings.moray_connect_timeout,
        attempts=connect_attempts if connect_attempts is not None else settings.moray_connect_attempts,
    )


__all__ = ["create_client", "shard_domain"]
