"""Kubernetes label selectors.

Selectors are evaluated against a pod's label map by ``PodView``. Three ways to
build one:

- ``Selector.from_set({"app": "web"})`` for plain equality,
- ``Selector.from_label_selector(...)`` for a ``V1LabelSelector`` (or its dict form),
- ``Selector.parse("app=web,tier in (fe,be),!canary")`` for selector strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Mapping, Optional, Tuple

OP_EQUALS = "="
OP_NOT_EQUALS = "!="
OP_IN = "in"
OP_NOT_IN = "notin"
OP_EXISTS = "exists"
OP_DOES_NOT_EXIST = "!"

_KEY = r"[A-Za-z0-9](?:[-A-Za-z0-9_./]*[A-Za-z0-9])?"
_VALUE = r"(?:[A-Za-z0-9](?:[-A-Za-z0-9_.]*[A-Za-z0-9])?)?"

_RE_NOT_EXISTS = re.compile(rf"^!\s*({_KEY})$")
_RE_SET = re.compile(rf"^({_KEY})\s+(in|notin)\s*\((.*)\)$")
_RE_EQUALITY = re.compile(rf"^({_KEY})\s*(==|=|!=)\s*({_VALUE})$")
_RE_EXISTS = re.compile(rf"^({_KEY})$")
_RE_VALUE = re.compile(rf"^{_VALUE}$")

# matchExpressions operator -> internal operator
_EXPRESSION_OPS = {
    "In": OP_IN,
    "NotIn": OP_NOT_IN,
    "Exists": OP_EXISTS,
    "DoesNotExist": OP_DOES_NOT_EXIST,
}


class SelectorParseError(ValueError):
    pass


@dataclass(frozen=True)
class Requirement:
    key: str
    operator: str
    values: FrozenSet[str] = frozenset()

    def matches(self, labels: Mapping[str, str]) -> bool:
        present = self.key in labels
        if self.operator == OP_EXISTS:
            return present
        if self.operator == OP_DOES_NOT_EXIST:
            return not present
        if self.operator in (OP_EQUALS, OP_IN):
            return present and labels[self.key] in self.values
        # != and notin also match when the key is absent
        return not present or labels[self.key] not in self.values


@dataclass(frozen=True)
class Selector:
    requirements: Tuple[Requirement, ...] = ()
    match_none: bool = field(default=False)

    @classmethod
    def everything(cls) -> "Selector":
        return cls()

    @classmethod
    def nothing(cls) -> "Selector":
        return cls(match_none=True)

    @classmethod
    def from_set(cls, labels: Optional[Mapping[str, str]]) -> "Selector":
        reqs = [Requirement(k, OP_EQUALS, frozenset([v])) for k, v in sorted((labels or {}).items())]
        return cls(tuple(reqs))

    @classmethod
    def from_label_selector(cls, selector: Any) -> "Selector":
        """Convert a ``V1LabelSelector`` or its dict form.

        ``None`` selects nothing; an empty selector selects everything.
        """
        if selector is None:
            return cls.nothing()
        if isinstance(selector, Mapping):
            match_labels = selector.get("matchLabels") or selector.get("match_labels") or {}
            expressions = selector.get("matchExpressions") or selector.get("match_expressions") or []
        else:
            match_labels = selector.match_labels or {}
            expressions = selector.match_expressions or []

        reqs: List[Requirement] = [
            Requirement(k, OP_EQUALS, frozenset([v])) for k, v in sorted(match_labels.items())
        ]
        for expr in expressions:
            if isinstance(expr, Mapping):
                key, op, values = expr.get("key"), expr.get("operator"), expr.get("values")
            else:
                key, op, values = expr.key, expr.operator, expr.values
            reqs.append(_expression_requirement(key, op, values or []))
        return cls(tuple(reqs))

    @classmethod
    def parse(cls, text: str) -> "Selector":
        text = (text or "").strip()
        if not text:
            return cls.everything()
        return cls(tuple(_parse_term(term) for term in _split_terms(text)))

    def matches(self, labels: Optional[Mapping[str, str]]) -> bool:
        if self.match_none:
            return False
        labels = labels or {}
        return all(req.matches(labels) for req in self.requirements)


def _expression_requirement(key: Optional[str], op: Optional[str], values: List[str]) -> Requirement:
    if not key:
        raise SelectorParseError("matchExpressions entry has no key")
    internal = _EXPRESSION_OPS.get(op or "")
    if internal is None:
        raise SelectorParseError(f"{op!r} is not a valid label selector operator")
    if internal in (OP_IN, OP_NOT_IN) and not values:
        raise SelectorParseError(f"operator {op} on key {key} requires values")
    if internal in (OP_EXISTS, OP_DOES_NOT_EXIST) and values:
        raise SelectorParseError(f"operator {op} on key {key} takes no values")
    return Requirement(key, internal, frozenset(values))


def _split_terms(text: str) -> List[str]:
    """Split on commas outside of parentheses."""
    terms: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise SelectorParseError(f"unbalanced parentheses in {text!r}")
        if ch == "," and depth == 0:
            terms.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    if depth != 0:
        raise SelectorParseError(f"unbalanced parentheses in {text!r}")
    terms.append("".join(current).strip())
    return terms


def _parse_term(term: str) -> Requirement:
    if not term:
        raise SelectorParseError("empty requirement in selector")

    m = _RE_NOT_EXISTS.match(term)
    if m:
        return Requirement(m.group(1), OP_DOES_NOT_EXIST)

    m = _RE_SET.match(term)
    if m:
        key, op, raw = m.groups()
        values = [v.strip() for v in raw.split(",")]
        if not raw.strip() or any(not _RE_VALUE.match(v) for v in values):
            raise SelectorParseError(f"invalid value list in {term!r}")
        return Requirement(key, op, frozenset(values))

    m = _RE_EQUALITY.match(term)
    if m:
        key, op, value = m.groups()
        op = OP_NOT_EQUALS if op == "!=" else OP_EQUALS
        return Requirement(key, op, frozenset([value]))

    m = _RE_EXISTS.match(term)
    if m:
        return Requirement(m.group(1), OP_EXISTS)

    raise SelectorParseError(f"cannot parse selector requirement {term!r}")
