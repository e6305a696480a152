"""Backend-neutral filter expressions for EntityStoreClient queries.

A filter is a small tree of column predicates. Each backend compiles the tree
into its own query language; the SQLAlchemy backend does so in
``docshare.store.sqlalchemy_store``.
"""

from dataclasses import dataclass
from typing import Any, Sequence


class Filter:
    def __and__(self, other: "Filter") -> "And":
        return And(self, other)

    def __or__(self, other: "Filter") -> "Or":
        return Or(self, other)


@dataclass(frozen=True)
class Eq(Filter):
    column: str
    value: Any


@dataclass(frozen=True)
class In(Filter):
    column: str
    values: Sequence[Any]


@dataclass(frozen=True)
class ILike(Filter):
    """Case-insensitive LIKE. ``\\`` escapes ``%`` and ``_`` inside ``pattern``."""

    column: str
    pattern: str


class And(Filter):
    def __init__(self, *clauses: Filter):
        self.clauses = clauses

    def __eq__(self, other):
        return isinstance(other, And) and self.clauses == other.clauses

    def __repr__(self):
        return f"And{self.clauses!r}"


class Or(Filter):
    def __init__(self, *clauses: Filter):
        self.clauses = clauses

    def __eq__(self, other):
        return isinstance(other, Or) and self.clauses == other.clauses

    def __repr__(self):
        return f"Or{self.clauses!r}"


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so ``text`` matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
