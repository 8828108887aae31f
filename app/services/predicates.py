"""
Prédicats typés pour les lectures filtrées.

Chaque prédicat (champ + opérateur + valeur) sait :
- s'appliquer à un query builder PostgREST (``apply``),
- s'écrire dans la syntaxe des filtres logiques ``or=(...)`` (``to_filter_string``),
- s'évaluer sur une ligne en mémoire (``matches``).

Une ``Conjunction`` replie une liste de prédicats en un seul (ET logique),
``AnyOf`` exprime un OU entre plusieurs conjonctions.
"""
from dataclasses import dataclass, field as dc_field
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import reduce
from typing import Any, Mapping, Union


class Op(str, Enum):
    eq = "eq"
    neq = "neq"
    ilike = "ilike"
    gte = "gte"
    lte = "lte"
    contains = "cs"


_RESERVED = set(',.:()"')


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _as_number(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise TypeError(f"Valeur non numérique: {value!r}") from e


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _quote(value: Any) -> str:
    text = str(_plain(value))
    if any(ch in _RESERVED for ch in text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


@dataclass(frozen=True)
class Predicate:
    field: str
    op: Op
    value: Any

    def apply(self, query):
        value = _plain(self.value)
        if self.op == Op.ilike:
            return query.ilike(self.field, f"%{value}%")
        if self.op == Op.contains:
            return query.contains(self.field, [_plain(v) for v in value])
        if _is_number(value):
            value = str(value)
        return getattr(query, self.op.name)(self.field, value)

    def to_filter_string(self) -> str:
        if self.op == Op.ilike:
            return f"{self.field}.ilike.*{_quote(self.value)}*"
        if self.op == Op.contains:
            items = ",".join(_quote(v) for v in self.value)
            return f"{self.field}.cs.{{{items}}}"
        return f"{self.field}.{self.op.value}.{_quote(self.value)}"

    def matches(self, row: Mapping[str, Any]) -> bool:
        actual = _plain(row.get(self.field))
        expected = _plain(self.value)

        if self.op in (Op.eq, Op.neq):
            if actual is not None and _is_number(expected):
                equal = _as_number(actual) == _as_number(expected)
            else:
                equal = actual == expected
            return equal if self.op == Op.eq else not equal

        if actual is None:
            return False
        if self.op == Op.ilike:
            return str(expected).lower() in str(actual).lower()
        if self.op == Op.gte:
            return _as_number(actual) >= _as_number(expected)
        if self.op == Op.lte:
            return _as_number(actual) <= _as_number(expected)
        if self.op == Op.contains:
            return {_plain(v) for v in expected} <= {_plain(v) for v in actual}
        raise ValueError(f"Opérateur inconnu: {self.op}")


@dataclass(frozen=True)
class Conjunction:
    predicates: tuple = dc_field(default_factory=tuple)

    def apply(self, query):
        return reduce(lambda q, p: p.apply(q), self.predicates, query)

    def to_filter_string(self) -> str:
        parts = [p.to_filter_string() for p in self.predicates]
        if len(parts) == 1:
            return parts[0]
        return f"and({','.join(parts)})"

    def matches(self, row: Mapping[str, Any]) -> bool:
        return all(p.matches(row) for p in self.predicates)

    def and_(self, *predicates: "Node") -> "Conjunction":
        return Conjunction(self.predicates + tuple(predicates))

    def __len__(self) -> int:
        return len(self.predicates)


@dataclass(frozen=True)
class AnyOf:
    branches: tuple

    def apply(self, query):
        return query.or_(self.to_filter_string(inner=True))

    def to_filter_string(self, inner: bool = False) -> str:
        body = ",".join(b.to_filter_string() for b in self.branches)
        return body if inner else f"or({body})"

    def matches(self, row: Mapping[str, Any]) -> bool:
        return any(b.matches(row) for b in self.branches)


Node = Union[Predicate, Conjunction, AnyOf]


def all_of(*predicates: Node) -> Conjunction:
    return Conjunction(tuple(predicates))
