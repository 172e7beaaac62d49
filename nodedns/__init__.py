"""
nodedns
───────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from nodedns.tier0_core.logging import get_logger
from nodedns.tier0_core.errors import (
    NodeDNSError,
    ConfigurationError,
    SelectorSyntaxError,
    CacheSyncError,
    ValidationError,
    TemplateError,
    AddressNotFoundError,
    EndpointDerivationError,
)
from nodedns.tier0_core.config import SourceConfig, get_config, load_config

from nodedns.tier1_runtime.schemas import AddressType, Node, NodeAddress
from nodedns.tier1_runtime.selector import Selector, parse_selector
from nodedns.tier1_runtime.template import HostnameTemplate, parse_template
from nodedns.tier1_runtime.validate import validate_input

from nodedns.tier2_reliability.inventory import MemoryNodeCache, NodeCache

from nodedns.tier3_platform.endpoint import (
    TTL,
    Endpoint,
    EndpointAggregator,
    EndpointKey,
    RecordType,
    suitable_type,
)
from nodedns.tier3_platform.annotations import AnnotationGate, ttl_from_annotations
from nodedns.tier3_platform.addresses import AddressResolver
from nodedns.tier3_platform.hostname import HostnameResolver
from nodedns.tier3_platform.source import NodeSource

__version__ = "0.1.0"
__all__ = [
    # logging
    "get_logger",
    # errors
    "NodeDNSError", "ConfigurationError", "SelectorSyntaxError",
    "CacheSyncError", "ValidationError", "TemplateError",
    "AddressNotFoundError", "EndpointDerivationError",
    # config
    "SourceConfig", "get_config", "load_config",
    # inventory model
    "AddressType", "Node", "NodeAddress", "validate_input",
    # selectors / templates
    "Selector", "parse_selector", "HostnameTemplate", "parse_template",
    # cache
    "NodeCache", "MemoryNodeCache",
    # endpoints
    "TTL", "Endpoint", "EndpointAggregator", "EndpointKey", "RecordType",
    "suitable_type",
    # derivation
    "AnnotationGate", "ttl_from_annotations", "AddressResolver",
    "HostnameResolver", "NodeSource",
]
