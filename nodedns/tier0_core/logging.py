"""
nodedns.tier0_core.logging
───────────────────────────
Structured logs for the node source. Level and renderer come from the
source configuration (NODEDNS_LOG_LEVEL, NODEDNS_LOG_FORMAT=json|console);
each derivation pass runs inside ``pass_context`` so every record it emits
carries the pass fields.

Minimal stack: structlog over the stdlib logging handler (stdout)
"""
from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from nodedns.tier0_core.config import get_config

# Node annotations occasionally carry credentials for node-local agents.
_REDACT_KEYS = frozenset({
    "password", "secret", "token", "api_key", "authorization",
    "credential", "private_key", "kubeconfig", "bearer_token",
})

_REDACTED = "[REDACTED]"

_handler: logging.Handler | None = None


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Strip sensitive fields from log records before output."""
    for key in event_dict.keys() & _REDACT_KEYS:
        event_dict[key] = _REDACTED
    return event_dict


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Route structlog through one stdout handler on the root logger.
    Calling it again swaps the handler instead of stacking a second one.
    """
    global _handler
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_processor,
    ]
    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(numeric_level)
    _handler = handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Structured logger; configures logging from SourceConfig on first use.

    Usage:
        log = get_logger(__name__)
        log.debug("node.skipped", node="worker-1", reason="unschedulable")
    """
    if _handler is None:
        cfg = get_config()
        configure_logging(cfg.log_level, cfg.log_format)
    return structlog.get_logger(name or __name__)


@contextmanager
def pass_context(**fields: Any) -> Iterator[None]:
    """
    Bind fields to every record logged inside the block, then restore the
    caller's context, including any fields it had already bound.
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield
