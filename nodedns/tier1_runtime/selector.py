"""
nodedns.tier1_runtime.selector
───────────────────────────────
Kubernetes label-selector expressions, compiled once into a predicate over
a string→string mapping. Used both for the node label filter (labels) and
the annotation filter (annotations treated as a label set).

Grammar (comma-separated requirements, all must hold):
    key                  key exists
    !key                 key does not exist
    key=value            equality (also ``==``)
    key!=value           inequality, also true when key is absent
    key in (v1,v2)       set membership
    key notin (v1,v2)    set exclusion, also true when key is absent
    key>3  key<3         integer comparison

An empty expression selects everything.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from nodedns.tier0_core.errors import SelectorSyntaxError


class Operator(str, Enum):
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"
    EQUALS = "="
    DOUBLE_EQUALS = "=="
    NOT_EQUALS = "!="
    IN = "in"
    NOT_IN = "notin"
    GREATER_THAN = ">"
    LESS_THAN = "<"


_TOKEN_RE = re.compile(r"\s*(?:(?P<op>==|!=|=|!|>|<|\(|\)|,)|(?P<word>[^\s!=<>(),]+))")

_NAME_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")
_PREFIX_RE = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)
_MAX_NAME = 63
_MAX_PREFIX = 253


@dataclass(frozen=True)
class Requirement:
    key: str
    operator: Operator
    values: tuple[str, ...] = ()

    def matches(self, labels: Mapping[str, str]) -> bool:
        op = self.operator
        present = self.key in labels
        if op is Operator.EXISTS:
            return present
        if op is Operator.DOES_NOT_EXIST:
            return not present
        if op in (Operator.EQUALS, Operator.DOUBLE_EQUALS, Operator.IN):
            return present and labels[self.key] in self.values
        if op in (Operator.NOT_EQUALS, Operator.NOT_IN):
            return not present or labels[self.key] not in self.values
        # GREATER_THAN / LESS_THAN
        if not present:
            return False
        try:
            actual = int(labels[self.key])
        except ValueError:
            return False
        bound = int(self.values[0])
        return actual > bound if op is Operator.GREATER_THAN else actual < bound

    def __str__(self) -> str:
        op = self.operator
        if op is Operator.EXISTS:
            return self.key
        if op is Operator.DOES_NOT_EXIST:
            return f"!{self.key}"
        if op in (Operator.IN, Operator.NOT_IN):
            return f"{self.key} {op.value} ({','.join(self.values)})"
        return f"{self.key}{op.value}{self.values[0]}"


@dataclass(frozen=True)
class Selector:
    requirements: tuple[Requirement, ...] = ()

    def empty(self) -> bool:
        return not self.requirements

    def matches(self, labels: Mapping[str, str]) -> bool:
        return all(r.matches(labels) for r in self.requirements)

    def __str__(self) -> str:
        return ",".join(str(r) for r in self.requirements)


EVERYTHING = Selector()


# ── Parsing ───────────────────────────────────────────────────────────────────

def _tokenize(expression: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    stripped = expression.rstrip()
    while pos < len(stripped):
        m = _TOKEN_RE.match(stripped, pos)
        if m is None or m.end() == pos:
            raise SelectorSyntaxError(expression, f"unexpected character at {pos}")
        if m.group("op") is not None:
            tokens.append(("op", m.group("op")))
        else:
            tokens.append(("word", m.group("word")))
        pos = m.end()
    return tokens


def _validate_key(expression: str, key: str) -> None:
    prefix, sep, name = key.rpartition("/")
    if sep:
        if not prefix or len(prefix) > _MAX_PREFIX or not _PREFIX_RE.match(prefix):
            raise SelectorSyntaxError(expression, f"invalid key prefix {prefix!r}")
    if not name or len(name) > _MAX_NAME or not _NAME_RE.match(name):
        raise SelectorSyntaxError(expression, f"invalid key {key!r}")


def _validate_value(expression: str, value: str) -> None:
    if value and (len(value) > _MAX_NAME or not _NAME_RE.match(value)):
        raise SelectorSyntaxError(expression, f"invalid value {value!r}")


class _Parser:
    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = _tokenize(expression)
        self.pos = 0

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise SelectorSyntaxError(self.expression, "unexpected end of expression")
        self.pos += 1
        return tok

    def _expect_word(self, what: str) -> str:
        kind, text = self._next()
        if kind != "word":
            raise SelectorSyntaxError(self.expression, f"expected {what}, found {text!r}")
        return text

    def _at_boundary(self) -> bool:
        tok = self._peek()
        return tok is None or tok == ("op", ",")

    def parse(self) -> Selector:
        if not self.tokens:
            return EVERYTHING
        requirements = [self._requirement()]
        while self._peek() is not None:
            kind, text = self._next()
            if (kind, text) != ("op", ","):
                raise SelectorSyntaxError(self.expression, f"expected ',', found {text!r}")
            requirements.append(self._requirement())
        return Selector(tuple(requirements))

    def _requirement(self) -> Requirement:
        if self._peek() == ("op", "!"):
            self._next()
            key = self._expect_word("key")
            _validate_key(self.expression, key)
            return Requirement(key, Operator.DOES_NOT_EXIST)

        key = self._expect_word("key")
        _validate_key(self.expression, key)
        if self._at_boundary():
            return Requirement(key, Operator.EXISTS)

        kind, text = self._next()
        if kind == "word" and text in ("in", "notin"):
            values = self._value_set()
            return Requirement(key, Operator(text), values)
        if kind != "op" or text not in ("=", "==", "!=", ">", "<"):
            raise SelectorSyntaxError(self.expression, f"unknown operator {text!r}")

        operator = Operator(text)
        if self._at_boundary():
            value = ""
        else:
            value = self._expect_word("value")
        if operator in (Operator.GREATER_THAN, Operator.LESS_THAN):
            try:
                int(value)
            except ValueError:
                raise SelectorSyntaxError(
                    self.expression, f"{text} requires an integer, found {value!r}"
                ) from None
        else:
            _validate_value(self.expression, value)
        return Requirement(key, operator, (value,))

    def _value_set(self) -> tuple[str, ...]:
        if self._next() != ("op", "("):
            raise SelectorSyntaxError(self.expression, "expected '(' after set operator")
        values: list[str] = []
        expect_value = True
        while True:
            kind, text = self._next()
            if (kind, text) == ("op", ")"):
                # "()" and a trailing comma both contribute the empty value.
                if expect_value:
                    values.append("")
                break
            if (kind, text) == ("op", ","):
                if expect_value:
                    values.append("")
                expect_value = True
                continue
            if kind != "word" or not expect_value:
                raise SelectorSyntaxError(self.expression, f"unexpected {text!r} in value set")
            _validate_value(self.expression, text)
            values.append(text)
            expect_value = False
        return tuple(values)


def parse_selector(expression: str | None) -> Selector:
    """
    Compile a selector expression. Raises SelectorSyntaxError (a
    ConfigurationError) on malformed input.

    Usage:
        sel = parse_selector("dns.example.com/publish=true,!node.example.com/drain")
        sel.matches(node.annotations)
    """
    if expression is None or not expression.strip():
        return EVERYTHING
    return _Parser(expression).parse()


__all__ = ["Operator", "Requirement", "Selector", "EVERYTHING", "parse_selector"]
