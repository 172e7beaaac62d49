"""
nodedns.tier0_core.errors
──────────────────────────
Standard error taxonomy for endpoint derivation. Every error carries a
stable machine-readable code, a human message and free-form metadata so the
outer controller loop can log or report it without string matching.

Startup errors:   ConfigurationError, SelectorSyntaxError, CacheSyncError
Per-call errors:  TemplateError, AddressNotFoundError, EndpointDerivationError
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class NodeDNSError(Exception):
    """
    Base class for all nodedns errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to surface in controller status / events
    - detail: internal context, defaults to user_message
    - metadata: structured fields (node name, expression, ...)
    """

    code: str = "internal_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "An unexpected error occurred.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.user_message,
            }
        }
        if self.metadata:
            d["error"]["metadata"] = dict(self.metadata)
        return d


# ── Startup errors ────────────────────────────────────────────────────────────

class ConfigurationError(NodeDNSError):
    """Misconfiguration detected at startup."""
    code = "configuration_error"


class SelectorSyntaxError(ConfigurationError):
    """A label/annotation selector expression could not be parsed."""
    code = "selector_syntax_error"

    def __init__(self, expression: str, reason: str, **metadata: Any) -> None:
        self.expression = expression
        self.reason = reason
        super().__init__(
            user_message=f"Invalid selector {expression!r}: {reason}",
            expression=expression,
            **metadata,
        )


class CacheSyncError(NodeDNSError):
    """The node inventory cache did not report itself synced in time."""
    code = "cache_sync_error"


class ValidationError(NodeDNSError):
    """Inventory object failed schema validation."""
    code = "validation_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Validation failed.",
        fields: dict | None = None,
        **metadata: Any,
    ) -> None:
        self.fields = fields or {}
        super().__init__(code, user_message, **metadata)

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.fields:
            d["error"]["fields"] = self.fields
        return d


# ── Derivation errors ─────────────────────────────────────────────────────────

class TemplateError(NodeDNSError):
    """Hostname template failed to render for a node."""
    code = "template_error"


class AddressNotFoundError(NodeDNSError):
    """Node reports neither an external nor an internal address."""
    code = "address_not_found"

    def __init__(self, node_name: str, **metadata: Any) -> None:
        self.node_name = node_name
        super().__init__(
            user_message=f"could not find node address for {node_name}",
            node=node_name,
            **metadata,
        )


class EndpointDerivationError(NodeDNSError):
    """A single node broke the derivation pass; wraps the underlying error."""
    code = "endpoint_derivation_error"

    _STAGES = {
        "address": "failed to get node address from",
        "hostname": "failed to resolve hostname for node",
    }

    def __init__(
        self, node_name: str, cause: Exception, stage: str = "address", **metadata: Any
    ) -> None:
        self.node_name = node_name
        self.stage = stage
        prefix = self._STAGES.get(stage, f"failed to derive {stage} for node")
        super().__init__(
            user_message=f"{prefix} {node_name}: {cause}",
            node=node_name,
            stage=stage,
            **metadata,
        )


__all__ = [
    "NodeDNSError",
    "ConfigurationError",
    "SelectorSyntaxError",
    "CacheSyncError",
    "ValidationError",
    "TemplateError",
    "AddressNotFoundError",
    "EndpointDerivationError",
]
