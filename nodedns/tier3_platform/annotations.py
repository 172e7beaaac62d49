"""
nodedns.tier3_platform.annotations
───────────────────────────────────
Node annotations understood by the node source, and the gate deciding
which nodes this controller publishes records for.

    external-dns.alpha.kubernetes.io/controller  owning controller
    external-dns.alpha.kubernetes.io/target      comma-separated target override
    external-dns.alpha.kubernetes.io/ttl         record TTL (seconds or 1m30s)
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from nodedns.tier0_core.config import DEFAULT_CONTROLLER_VALUE
from nodedns.tier0_core.errors import ConfigurationError
from nodedns.tier0_core.logging import get_logger
from nodedns.tier1_runtime.schemas import Node
from nodedns.tier1_runtime.selector import Operator, Selector, parse_selector
from nodedns.tier3_platform.endpoint import TTL

log = get_logger(__name__)

ANNOTATION_PREFIX = "external-dns.alpha.kubernetes.io/"
CONTROLLER_ANNOTATION_KEY = ANNOTATION_PREFIX + "controller"
TARGET_ANNOTATION_KEY = ANNOTATION_PREFIX + "target"
TTL_ANNOTATION_KEY = ANNOTATION_PREFIX + "ttl"

TTL_MINIMUM = 1
TTL_MAXIMUM = 2**31 - 1


# ── Targets ───────────────────────────────────────────────────────────────────

def targets_from_annotations(annotations: Mapping[str, str]) -> list[str]:
    """Explicit targets from the target annotation, or [] when unset."""
    raw = annotations.get(TARGET_ANNOTATION_KEY, "")
    targets: list[str] = []
    for part in re.sub(r"\s+", "", raw).split(","):
        part = part.removesuffix(".")
        if part:
            targets.append(part)
    return targets


# ── TTL ───────────────────────────────────────────────────────────────────────

_DURATION_RE = re.compile(r"[-+]?(?:(?:\d+\.?\d*|\.\d+)(?:ns|us|µs|μs|ms|s|m|h))+")
_INTEGER_RE = re.compile(r"[+-]?\d+")
_DURATION_PART_RE = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9, "us": 1e-6, "µs": 1e-6, "μs": 1e-6,
    "ms": 1e-3, "s": 1.0, "m": 60.0, "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """Parse a duration like ``90s``, ``1m30s`` or ``1.5h`` into seconds."""
    if value in ("0", "+0", "-0"):
        return 0.0
    if not _DURATION_RE.fullmatch(value):
        raise ValueError(f"invalid duration {value!r}")
    total = sum(
        float(number) * _UNIT_SECONDS[unit]
        for number, unit in _DURATION_PART_RE.findall(value)
    )
    return -total if value.startswith("-") else total


def parse_ttl(value: str) -> int:
    """TTL in whole seconds from an integer or a duration string."""
    try:
        seconds = int(parse_duration(value))
    except ValueError as duration_error:
        if not _INTEGER_RE.fullmatch(value):
            raise duration_error from None
        seconds = int(value)
    if not TTL_MINIMUM <= seconds <= TTL_MAXIMUM:
        raise ValueError(f"TTL must be between {TTL_MINIMUM} and {TTL_MAXIMUM} seconds")
    return seconds


def ttl_from_annotations(annotations: Mapping[str, str], resource: str) -> TTL:
    """TTL from the ttl annotation; 0 when unset or invalid."""
    raw = annotations.get(TTL_ANNOTATION_KEY)
    if raw is None:
        return 0
    try:
        return parse_ttl(raw)
    except ValueError as exc:
        log.warning("ttl.invalid", resource=resource, value=raw, reason=str(exc))
        return 0


# ── Gate ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Admission:
    passed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.passed


_ADMITTED = Admission(True)

# Annotation filters only accept the set-based selector subset:
# key, !key, =, ==, in, notin.
_UNSUPPORTED_FILTER_OPERATORS = frozenset({
    Operator.NOT_EQUALS,
    Operator.GREATER_THAN,
    Operator.LESS_THAN,
})


def parse_annotation_filter(expression: str) -> Selector:
    """
    Compile an annotation filter. Raises ConfigurationError for malformed
    expressions and for operators outside the set-based subset.
    """
    selector = parse_selector(expression)
    for requirement in selector.requirements:
        if requirement.operator in _UNSUPPORTED_FILTER_OPERATORS:
            raise ConfigurationError(
                user_message=(
                    f"Invalid annotation filter {expression!r}: operator "
                    f"{requirement.operator.value!r} is not supported"
                ),
                expression=expression,
                operator=requirement.operator.value,
            )
    return selector


class AnnotationGate:
    """
    Decides which listed nodes are ours to publish.

    ``filter()`` applies the operator's annotation selector to a listing;
    ``admit()`` applies the per-node ownership and schedulability checks.
    The selector is compiled here, so a malformed expression raises
    ConfigurationError at construction.
    """

    def __init__(
        self,
        annotation_filter: str = "",
        controller_value: str = DEFAULT_CONTROLLER_VALUE,
        exclude_unschedulable: bool = True,
    ) -> None:
        self._selector = parse_annotation_filter(annotation_filter)
        self._controller_value = controller_value
        self._exclude_unschedulable = exclude_unschedulable

    def filter(self, nodes: Iterable[Node]) -> list[Node]:
        if self._selector.empty():
            return list(nodes)
        return [n for n in nodes if self._selector.matches(n.annotations)]

    def admit(self, node: Node) -> Admission:
        controller = node.annotations.get(CONTROLLER_ANNOTATION_KEY)
        if controller is not None and controller != self._controller_value:
            log.debug(
                "node.skipped",
                node=node.name,
                reason="controller_mismatch",
                found=controller,
                required=self._controller_value,
            )
            return Admission(False, f"controller {controller!r} owns this node")

        if node.unschedulable and self._exclude_unschedulable:
            log.debug("node.skipped", node=node.name, reason="unschedulable")
            return Admission(False, "node is unschedulable")

        return _ADMITTED


__all__ = [
    "ANNOTATION_PREFIX",
    "CONTROLLER_ANNOTATION_KEY",
    "TARGET_ANNOTATION_KEY",
    "TTL_ANNOTATION_KEY",
    "targets_from_annotations",
    "parse_duration",
    "parse_ttl",
    "parse_annotation_filter",
    "ttl_from_annotations",
    "Admission",
    "AnnotationGate",
]
