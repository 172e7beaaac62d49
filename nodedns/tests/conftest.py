"""
nodedns test configuration.

All tests run against the in-memory node cache, no cluster required.
Override by setting environment variables before running pytest.
"""
from __future__ import annotations

import os

import pytest

# ── Defaults ───────────────────────────────────────────────────────────────
# These must be set before any nodedns modules are imported.

os.environ.setdefault("NODEDNS_LOG_LEVEL", "DEBUG")
os.environ.setdefault("NODEDNS_LOG_FORMAT", "console")


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config_cache(monkeypatch):
    """Each test sees a fresh config built from its own environment."""
    from nodedns.tier0_core.config import _reset_config

    for key in list(os.environ):
        if key.startswith("NODEDNS_") and key not in ("NODEDNS_LOG_LEVEL", "NODEDNS_LOG_FORMAT"):
            monkeypatch.delenv(key)
    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def make_node():
    """Factory for Node objects: make_node("n1", external=["1.2.3.4"])."""
    from nodedns.tier1_runtime.schemas import Node, NodeAddress

    def _make(
        name: str,
        external: list[str] | None = None,
        internal: list[str] | None = None,
        annotations: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
        unschedulable: bool = False,
        extra: list[tuple[str, str]] | None = None,
    ) -> Node:
        addresses = [NodeAddress(type="ExternalIP", address=a) for a in external or []]
        addresses += [NodeAddress(type="InternalIP", address=a) for a in internal or []]
        addresses += [NodeAddress(type=t, address=a) for t, a in extra or []]
        return Node(
            name=name,
            annotations=annotations or {},
            labels=labels or {},
            unschedulable=unschedulable,
            addresses=tuple(addresses),
        )

    return _make


@pytest.fixture
def config():
    """Factory for SourceConfig with overrides; ignores any .env file."""
    from nodedns.tier0_core.config import load_config

    def _config(**overrides):
        overrides.setdefault("_env_file", None)
        return load_config(**overrides)

    return _config
