"""
nodedns.tier3_platform.endpoint
────────────────────────────────
DNS endpoints handed to the reconciliation engine, and the per-pass
aggregator that collapses targets sharing a (DNS name, record type) key.
"""
from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum

# Seconds; 0 means "not configured" and lets the provider pick its default.
TTL = int


class RecordType(str, Enum):
    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    TXT = "TXT"
    SRV = "SRV"
    NS = "NS"
    PTR = "PTR"
    MX = "MX"
    NAPTR = "NAPTR"


def suitable_type(target: str) -> RecordType:
    """
    Record type implied by the shape of a target string. Any IPv6 literal,
    including IPv4-mapped and zoned forms, is AAAA.
    """
    try:
        ip = ipaddress.ip_address(target)
    except ValueError:
        return RecordType.CNAME
    if ip.version == 4:
        return RecordType.A
    return RecordType.AAAA


@dataclass(frozen=True)
class EndpointKey:
    dns_name: str
    record_type: RecordType


@dataclass
class Endpoint:
    """One DNS record group: a name, a type, its targets and a TTL."""

    dns_name: str
    record_type: RecordType
    targets: list[str] = field(default_factory=list)
    record_ttl: TTL = 0
    labels: dict[str, str] = field(default_factory=dict)
    set_identifier: str = ""

    @property
    def key(self) -> EndpointKey:
        return EndpointKey(self.dns_name, self.record_type)

    def __str__(self) -> str:
        return (
            f"{self.dns_name} {self.record_ttl} IN {self.record_type.value} "
            f"{self.set_identifier} {self.targets}"
        )


class EndpointAggregator:
    """
    Groups targets by EndpointKey for a single derivation pass.

    The first target seen for a key fixes the endpoint's TTL; later targets
    for the same key are appended and their TTL is ignored. A target already
    present under the key is not added twice.
    """

    def __init__(self) -> None:
        self._endpoints: dict[EndpointKey, Endpoint] = {}

    def add(
        self,
        dns_name: str,
        target: str,
        ttl: TTL = 0,
        record_type: RecordType | None = None,
    ) -> Endpoint:
        key = EndpointKey(dns_name, record_type or suitable_type(target))
        ep = self._endpoints.get(key)
        if ep is None:
            ep = Endpoint(dns_name=dns_name, record_type=key.record_type, record_ttl=ttl)
            self._endpoints[key] = ep
        if target not in ep.targets:
            ep.targets.append(target)
        return ep

    def __len__(self) -> int:
        return len(self._endpoints)

    def __contains__(self, key: object) -> bool:
        return key in self._endpoints

    def flatten(self) -> list[Endpoint]:
        """All endpoints, in no particular order."""
        return list(self._endpoints.values())


__all__ = [
    "TTL",
    "RecordType",
    "suitable_type",
    "EndpointKey",
    "Endpoint",
    "EndpointAggregator",
]
