"""
nodedns.tier1_runtime.schemas
──────────────────────────────
Read-only view of a cluster node as seen by the endpoint derivation.

Only the fields the node source actually consults are modelled: name,
annotations, labels, schedulability and the reported addresses. Accepts
either the flat shape or a Kubernetes-style manifest via ``from_manifest``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nodedns.tier1_runtime.validate import validate_input


class AddressType(str, Enum):
    """Address classification reported by the cluster platform."""

    EXTERNAL_IP = "ExternalIP"
    INTERNAL_IP = "InternalIP"
    HOSTNAME = "Hostname"
    EXTERNAL_DNS = "ExternalDNS"
    INTERNAL_DNS = "InternalDNS"


class NodeAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Kept as a plain string: platforms may report types we don't know about.
    type: str
    address: str


class Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    annotations: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)
    unschedulable: bool = False
    addresses: tuple[NodeAddress, ...] = ()

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> "Node":
        """
        Build a Node from a Kubernetes-style object:

            {"metadata": {"name": ..., "labels": ..., "annotations": ...},
             "spec": {"unschedulable": ...},
             "status": {"addresses": [{"type": ..., "address": ...}]}}

        Raises nodedns ValidationError on a malformed manifest.
        """
        metadata = manifest.get("metadata") or {}
        spec = manifest.get("spec") or {}
        status = manifest.get("status") or {}
        return validate_input(cls, {
            "name": metadata.get("name", ""),
            "annotations": metadata.get("annotations") or {},
            "labels": metadata.get("labels") or {},
            "unschedulable": spec.get("unschedulable", False),
            "addresses": status.get("addresses") or [],
        })


__all__ = ["AddressType", "NodeAddress", "Node"]
