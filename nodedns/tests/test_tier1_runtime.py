"""Tests for tier1_runtime modules."""
from __future__ import annotations

import pytest

from nodedns.tier0_core.errors import (
    ConfigurationError,
    SelectorSyntaxError,
    TemplateError,
    ValidationError,
)
from nodedns.tier1_runtime.schemas import AddressType, Node
from nodedns.tier1_runtime.selector import Operator, parse_selector
from nodedns.tier1_runtime.template import parse_template
from nodedns.tier1_runtime.validate import validate_input


# ── schemas / validate ─────────────────────────────────────────────────────

class TestSchemas:
    def test_from_manifest(self):
        node = Node.from_manifest({
            "metadata": {
                "name": "worker-1",
                "labels": {"role": "edge"},
                "annotations": {"a": "b"},
            },
            "spec": {"unschedulable": True},
            "status": {"addresses": [
                {"type": "InternalIP", "address": "10.0.0.1"},
                {"type": "Hostname", "address": "worker-1"},
            ]},
        })
        assert node.name == "worker-1"
        assert node.labels == {"role": "edge"}
        assert node.unschedulable is True
        assert node.addresses[0].type == AddressType.INTERNAL_IP
        assert node.addresses[1].address == "worker-1"

    def test_from_manifest_defaults(self):
        node = Node.from_manifest({"metadata": {"name": "bare"}})
        assert node.annotations == {}
        assert node.unschedulable is False
        assert node.addresses == ()

    def test_missing_name_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            Node.from_manifest({"metadata": {}})
        assert "name" in exc_info.value.fields

    def test_validate_input_flat_shape(self):
        node = validate_input(Node, {
            "name": "n1",
            "addresses": [{"type": "ExternalIP", "address": "198.51.100.9"}],
        })
        assert node.addresses[0].address == "198.51.100.9"

    def test_node_is_frozen(self):
        node = Node(name="n1")
        with pytest.raises(Exception):
            node.name = "n2"  # type: ignore[misc]


# ── selector ───────────────────────────────────────────────────────────────

class TestSelector:
    @pytest.mark.parametrize("expr", ["", "   ", None])
    def test_empty_selects_everything(self, expr):
        sel = parse_selector(expr)
        assert sel.empty()
        assert sel.matches({})
        assert sel.matches({"any": "thing"})

    def test_equality(self):
        sel = parse_selector("dns.example.com/publish=true")
        assert sel.matches({"dns.example.com/publish": "true"})
        assert not sel.matches({"dns.example.com/publish": "false"})
        assert not sel.matches({})

    def test_double_equals(self):
        sel = parse_selector("tier == edge")
        assert sel.requirements[0].operator is Operator.DOUBLE_EQUALS
        assert sel.matches({"tier": "edge"})

    def test_not_equals_matches_absent_key(self):
        sel = parse_selector("tier!=edge")
        assert sel.matches({})
        assert sel.matches({"tier": "core"})
        assert not sel.matches({"tier": "edge"})

    def test_exists_and_not_exists(self):
        sel = parse_selector("publish,!drain")
        assert sel.matches({"publish": ""})
        assert not sel.matches({"publish": "", "drain": "yes"})
        assert not sel.matches({})

    def test_set_operators(self):
        sel = parse_selector("zone in (a, b),env notin (dev)")
        assert sel.matches({"zone": "a", "env": "prod"})
        assert sel.matches({"zone": "b"})
        assert not sel.matches({"zone": "c"})
        assert not sel.matches({"zone": "a", "env": "dev"})

    def test_integer_comparison(self):
        sel = parse_selector("weight>3")
        assert sel.matches({"weight": "4"})
        assert not sel.matches({"weight": "3"})
        assert not sel.matches({"weight": "heavy"})
        assert parse_selector("weight<3").matches({"weight": "2"})

    def test_empty_value(self):
        sel = parse_selector("flag=")
        assert sel.matches({"flag": ""})
        assert not sel.matches({"flag": "x"})

    def test_empty_value_set_holds_empty_string(self):
        sel = parse_selector("a in ()")
        assert sel.requirements[0].values == ("",)
        assert sel.matches({"a": ""})
        assert not sel.matches({"a": "x"})

    def test_trailing_comma_in_value_set_adds_empty_string(self):
        assert parse_selector("a in (b,)").requirements[0].values == ("b", "")

    def test_str_round_trips_shape(self):
        sel = parse_selector("a=b, c in (d,e), !f")
        assert str(sel) == "a=b,c in (d,e),!f"

    @pytest.mark.parametrize("expr", [
        "a in",
        "a in (b",
        "a =b =c",
        "a b",
        ",a=b",
        "a=b,",
        "a>b",
        "-bad-key-=x",
        "a=/not-a-value",
        "a!",
    ])
    def test_malformed_raises(self, expr):
        with pytest.raises(SelectorSyntaxError):
            parse_selector(expr)

    def test_malformed_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            parse_selector("a in (b")


# ── template ───────────────────────────────────────────────────────────────

class TestTemplate:
    def test_empty_template_is_none(self):
        assert parse_template("") is None
        assert parse_template(None) is None

    def test_renders_node_fields(self, make_node):
        tmpl = parse_template("{{ name }}.{{ labels.zone }}.example.com")
        node = make_node("worker-1", labels={"zone": "eu1"})
        assert tmpl.execute(node) == ["worker-1.eu1.example.com"]

    def test_node_object_in_context(self, make_node):
        tmpl = parse_template("{{ node.name | upper }}.example.com")
        assert tmpl.execute(make_node("w1")) == ["W1.example.com"]

    def test_splits_on_commas_and_trims(self, make_node):
        tmpl = parse_template("{{ name }}.a.example.com. , {{ name }}.b.example.com")
        assert tmpl.execute(make_node("n")) == ["n.a.example.com", "n.b.example.com"]

    def test_trim_filters(self, make_node):
        tmpl = parse_template("{{ name | trim_prefix('ip-') | trim_suffix('-node') }}.example.com")
        assert tmpl.execute(make_node("ip-10-0-0-1-node")) == ["10-0-0-1.example.com"]

    def test_empty_render_yields_single_empty_hostname(self, make_node):
        tmpl = parse_template("{{ annotations.get('missing', '') }}")
        assert tmpl.execute(make_node("n")) == [""]

    def test_undefined_variable_raises_template_error(self, make_node):
        tmpl = parse_template("{{ labels.zone }}.example.com")
        with pytest.raises(TemplateError) as exc_info:
            tmpl.execute(make_node("n1"))
        assert exc_info.value.metadata["node"] == "n1"

    def test_runtime_error_raises_template_error(self, make_node):
        tmpl = parse_template("{{ 1 // 0 }}")
        with pytest.raises(TemplateError) as exc_info:
            tmpl.execute(make_node("n1"))
        assert exc_info.value.metadata["node"] == "n1"
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_syntax_error_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            parse_template("{{ name ")
