"""
nodedns.tier1_runtime.template
───────────────────────────────
FQDN templates for nodes. A template renders to a comma-separated list of
hostnames; each entry is whitespace-trimmed and loses one trailing dot.

Backed by Jinja2's sandboxed environment with StrictUndefined, so a typo
such as ``{{ labels.zonee }}`` fails loudly instead of producing ``.example.com``.

Context available to templates:
    node         the Node model
    name         node name
    labels       node labels (mapping)
    annotations  node annotations (mapping)

Extra filters: trim_prefix, trim_suffix.

Usage:
    tmpl = parse_template("{{ name }}.{{ labels['topology.kubernetes.io/zone'] }}.example.com")
    tmpl.execute(node)  # → ["worker-1.eu-west-1a.example.com"]
"""
from __future__ import annotations

from jinja2 import StrictUndefined, TemplateSyntaxError
from jinja2 import Template as _JinjaTemplate
from jinja2.sandbox import SandboxedEnvironment

from nodedns.tier0_core.errors import ConfigurationError, TemplateError
from nodedns.tier1_runtime.schemas import Node


def _trim_prefix(value: str, prefix: str) -> str:
    return value[len(prefix):] if prefix and value.startswith(prefix) else value


def _trim_suffix(value: str, suffix: str) -> str:
    return value[: -len(suffix)] if suffix and value.endswith(suffix) else value


def _make_environment() -> SandboxedEnvironment:
    env = SandboxedEnvironment(undefined=StrictUndefined, autoescape=False)
    env.filters["trim_prefix"] = _trim_prefix
    env.filters["trim_suffix"] = _trim_suffix
    return env


_env = _make_environment()


class HostnameTemplate:
    """A compiled FQDN template."""

    def __init__(self, source: str, compiled: _JinjaTemplate) -> None:
        self.source = source
        self._compiled = compiled

    def execute(self, node: Node) -> list[str]:
        """Render against a node and split into candidate hostnames."""
        try:
            rendered = self._compiled.render(
                node=node,
                name=node.name,
                labels=dict(node.labels),
                annotations=dict(node.annotations),
            )
        except Exception as exc:
            raise TemplateError(
                user_message=f"failed to apply template on node {node.name}: {exc}",
                node=node.name,
                template=self.source,
            ) from exc

        hostnames: list[str] = []
        for part in rendered.split(","):
            part = part.strip()
            if part.endswith("."):
                part = part[:-1]
            hostnames.append(part)
        return hostnames

    def __repr__(self) -> str:
        return f"HostnameTemplate({self.source!r})"


def parse_template(source: str | None) -> HostnameTemplate | None:
    """
    Compile an FQDN template. Returns None for an empty template.
    Raises ConfigurationError on a syntax error.
    """
    if source is None or not source.strip():
        return None
    try:
        compiled = _env.from_string(source)
    except TemplateSyntaxError as exc:
        raise ConfigurationError(
            user_message=f"Invalid FQDN template: {exc.message}",
            template=source,
            line=exc.lineno,
        ) from exc
    return HostnameTemplate(source, compiled)


__all__ = ["HostnameTemplate", "parse_template"]
