"""
SRV-based service discovery for Moray shards.

Moray shards publish `_moray._tcp.<shard domain>` SRV records. The locator
queries them, picks one candidate uniformly at random (priority and weight
are ignored on purpose; any replica is a valid benchmark target), then
resolves the candidate's target host to an IP address.

Every call hits DNS; nothing is cached between calls.
"""

from __future__ import annotations

import random
import socket
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import dns.exception
import dns.resolver

from moray_bench.errors import DiscoveryError
from moray_bench.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Endpoint:
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class SrvCandidate:
    priority: int
    weight: int
    port: int
    target: str


SrvLookup = Callable[[str], Sequence[SrvCandidate]]
HostLookup = Callable[[str], List[str]]


def srv_query_name(service: str, proto: str, domain: str) -> str:
    return f"{service}.{proto}.{domain}"


def lookup_srv(query: str) -> List[SrvCandidate]:
    """
    Return the SRV records published under `query`.

    NXDOMAIN and empty answers come back as an empty list. Any other
    resolver failure (no resolv.conf, malformed name, no reachable
    nameserver, timeout) raises DiscoveryError.
    """
    try:
        resolver = dns.resolver.Resolver()
        answer = resolver.resolve(query, "SRV")
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return []
    except dns.exception.DNSException as exc:
        raise DiscoveryError(f"SRV lookup for {query} failed: {exc}", query=query) from exc

    return [
        SrvCandidate(
            priority=rr.priority,
            weight=rr.weight,
            port=rr.port,
            target=rr.target.to_text(omit_final_dot=True),
        )
        for rr in answer
    ]


def lookup_host(host: str) -> List[str]:
    """Resolve a hostname to its IP addresses, in resolver order."""
    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise DiscoveryError(f"unable to resolve host {host}: {exc}", host=host) from exc

    addresses: List[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        address = sockaddr[0]
        if address not in addresses:
            addresses.append(address)
    return addresses


def locate_service(
    service: str,
    proto: str,
    domain: str,
    rng: Optional[random.Random] = None,
    srv_lookup: SrvLookup = lookup_srv,
    host_lookup: HostLookup = lookup_host,
) -> Endpoint:
    """
    Resolve a service to a single network endpoint.

    Parameters
    ----------
    service, proto, domain : str
        Labels of the SRV query, e.g. `_moray`, `_tcp`, `1.moray.example.com`.
    rng : random.Random | None
        Picks among multiple SRV candidates. Defaults to a fresh unseeded Random.
    srv_lookup, host_lookup : callable
        DNS backends; replaceable in tests.

    Raises
    ------
    DiscoveryError
        No SRV candidates, or the chosen target has no addresses.
    """
    rng = rng or random.Random()
    query = srv_query_name(service, proto, domain)

    candidates = list(srv_lookup(query))
    if not candidates:
        raise DiscoveryError(f"no SRV candidates for {query}", query=query)

    chosen = rng.choice(candidates)
    log.info(
        f"Selected SRV candidate {chosen.target}:{chosen.port}",
        extra={
            "query": query,
            "target": chosen.target,
            "port": chosen.port,
            "priority": chosen.priority,
            "weight": chosen.weight,
            "candidates": len(candidates),
        },
    )

    addresses = host_lookup(chosen.target)
    if not addresses:
        raise DiscoveryError(f"unresolvable host {chosen.target}", query=query, host=chosen.target)

    return Endpoint(host=addresses[0], port=chosen.port)


__all__ = [
    "Endpoint",
    "SrvCandidate",
    "locate_service",
    "lookup_host",
    "lookup_srv",
    "srv_query_name",
]
