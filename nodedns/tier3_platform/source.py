"""
nodedns.tier3_platform.source
──────────────────────────────
Node source: turns the node inventory into DNS endpoints.

One call to ``endpoints()`` is a single synchronous pass over the cache
snapshot:

    list (label selector) → annotation filter → per node:
        ownership / schedulability → TTL → hostname → addresses → aggregate
    → flatten

Any node whose hostname or addresses cannot be resolved aborts the pass;
no partial endpoint set is ever returned.

Usage:
    cache = MemoryNodeCache()
    source = await NodeSource.create(cache, load_config(fqdn_template="{{ name }}.example.com"))
    for ep in source.endpoints():
        ...
"""
from __future__ import annotations

import asyncio

from nodedns.tier0_core.config import SourceConfig, get_config
from nodedns.tier0_core.errors import (
    AddressNotFoundError,
    CacheSyncError,
    EndpointDerivationError,
    TemplateError,
)
from nodedns.tier0_core.logging import get_logger, pass_context
from nodedns.tier1_runtime.selector import parse_selector
from nodedns.tier1_runtime.template import parse_template
from nodedns.tier2_reliability.inventory import NodeCache
from nodedns.tier3_platform.addresses import AddressResolver
from nodedns.tier3_platform.annotations import AnnotationGate, ttl_from_annotations
from nodedns.tier3_platform.endpoint import Endpoint, EndpointAggregator
from nodedns.tier3_platform.hostname import HostnameResolver

log = get_logger(__name__)


class NodeSource:
    def __init__(self, cache: NodeCache, config: SourceConfig | None = None) -> None:
        """
        Compile the configured selectors and template. Raises
        ConfigurationError on a malformed expression. Does not wait for the
        cache; use ``create()`` for that.
        """
        config = config or get_config()
        self.config = config
        self._cache = cache
        self._label_selector = parse_selector(config.label_filter)
        self._gate = AnnotationGate(
            annotation_filter=config.annotation_filter,
            controller_value=config.controller_value,
            exclude_unschedulable=config.exclude_unschedulable,
        )
        self._hostnames = HostnameResolver(parse_template(config.fqdn_template))
        self._addresses = AddressResolver(config.expose_internal_ipv6)

    @classmethod
    async def create(
        cls, cache: NodeCache, config: SourceConfig | None = None
    ) -> "NodeSource":
        """
        Build a source and wait once for the cache to finish its initial
        sync. Raises CacheSyncError after ``config.cache_sync_timeout``
        seconds; cancelling the awaiting task cancels the wait.
        """
        source = cls(cache, config)
        await source.wait_for_cache_sync()
        return source

    async def wait_for_cache_sync(self) -> None:
        timeout = self.config.cache_sync_timeout
        try:
            await asyncio.wait_for(self._cache.wait_for_sync(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise CacheSyncError(
                user_message=f"node cache did not sync within {timeout}s",
                timeout=timeout,
            ) from exc
        log.info("source.cache_synced", source="node")

    def endpoints(self) -> list[Endpoint]:
        """Endpoints for every eligible node, in no particular order."""
        with pass_context(source="node"):
            return self._derive()

    def _derive(self) -> list[Endpoint]:
        nodes = self._cache.list(self._label_selector)
        nodes = self._gate.filter(nodes)

        aggregator = EndpointAggregator()
        for node in nodes:
            if not self._gate.admit(node):
                continue

            log.debug("endpoint.creating", node=node.name)
            ttl = ttl_from_annotations(node.annotations, f"node/{node.name}")

            try:
                dns_name = self._hostnames.resolve(node)
            except TemplateError as exc:
                raise EndpointDerivationError(node.name, exc, stage="hostname") from exc

            try:
                targets = self._addresses.resolve(node)
            except AddressNotFoundError as exc:
                raise EndpointDerivationError(node.name, exc) from exc

            for target in targets:
                ep = aggregator.add(dns_name, target, ttl)
                log.debug("endpoint.target_added", endpoint=str(ep), target=target)

        return aggregator.flatten()


__all__ = ["NodeSource"]
