"""
nodedns.tier3_platform.hostname
────────────────────────────────
DNS name for a node: the first hostname produced by the FQDN template, or
the node name when no template is configured.
"""
from __future__ import annotations

from nodedns.tier0_core.logging import get_logger
from nodedns.tier1_runtime.schemas import Node
from nodedns.tier1_runtime.template import HostnameTemplate

log = get_logger(__name__)


class HostnameResolver:
    def __init__(self, template: HostnameTemplate | None = None) -> None:
        self.template = template

    def resolve(self, node: Node) -> str:
        # TemplateError propagates; the caller aborts the whole pass.
        if self.template is None:
            log.debug("hostname.node_name", node=node.name)
            return node.name
        hostnames = self.template.execute(node)
        hostname = hostnames[0] if hostnames else ""
        log.debug("hostname.templated", node=node.name, hostname=hostname)
        return hostname
