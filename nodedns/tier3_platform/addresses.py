"""
nodedns.tier3_platform.addresses
─────────────────────────────────
Target address selection for a node.

Preference order:
  1. the target annotation, if it yields anything;
  2. ExternalIP addresses, plus InternalIP IPv6 addresses when
     ``expose_internal_ipv6`` is on;
  3. InternalIP addresses;
  4. otherwise AddressNotFoundError.

Some clusters only report internal IPv6 addresses that are meant to be
resolved externally, which is why InternalIP IPv6 addresses ride along
with the external ones. That behaviour is kept behind a flag while
operators migrate off it.
"""
from __future__ import annotations

from nodedns.tier0_core.errors import AddressNotFoundError
from nodedns.tier0_core.logging import get_logger
from nodedns.tier1_runtime.schemas import AddressType, Node
from nodedns.tier3_platform.annotations import targets_from_annotations
from nodedns.tier3_platform.endpoint import RecordType, suitable_type

log = get_logger(__name__)

EXPOSE_INTERNAL_IPV6_WARNING = (
    "The default behavior of exposing internal IPv6 addresses will change in "
    "the next minor version. Set expose_internal_ipv6=false "
    "(NODEDNS_EXPOSE_INTERNAL_IPV6=false) to opt in to the new behavior."
)


class AddressResolver:
    def __init__(self, expose_internal_ipv6: bool = True) -> None:
        self.expose_internal_ipv6 = expose_internal_ipv6
        self._warned = False

    def resolve(self, node: Node) -> list[str]:
        """Ordered target addresses for ``node``."""
        override = targets_from_annotations(node.annotations)
        if override:
            return override
        return self.node_addresses(node)

    def node_addresses(self, node: Node) -> list[str]:
        """Addresses from the node status, ignoring any annotation override."""
        external: list[str] = []
        internal: list[str] = []
        internal_ipv6: list[str] = []

        for addr in node.addresses:
            if addr.type == AddressType.EXTERNAL_IP:
                external.append(addr.address)
            elif addr.type == AddressType.INTERNAL_IP:
                internal.append(addr.address)
                if suitable_type(addr.address) is RecordType.AAAA:
                    internal_ipv6.append(addr.address)

        if external:
            if self.expose_internal_ipv6:
                self._warn_once()
                return external + internal_ipv6
            return external

        if internal:
            return internal

        raise AddressNotFoundError(node.name)

    def _warn_once(self) -> None:
        if not self._warned:
            log.warning("address.expose_internal_ipv6", message=EXPOSE_INTERNAL_IPV6_WARNING)
            self._warned = True
