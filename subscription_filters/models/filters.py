from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union

from ..mapping.namespaces import SH

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Combinator(str, Enum):
    ALL = "ALL"
    ANY = "ANY"

    @property
    def shacl(self):
        return SH["and"] if self is Combinator.ALL else SH["or"]

    @classmethod
    def from_require_all(cls, require_all: bool) -> "Combinator":
        return cls.ALL if require_all else cls.ANY

    @classmethod
    def from_shacl(cls, uri: str) -> "Combinator":
        if str(uri) == str(SH["and"]):
            return cls.ALL
        if str(uri) == str(SH["or"]):
            return cls.ANY
        raise ValueError(f"Not a SHACL logical constraint: {uri}")


class ReferenceKind(str, Enum):
    CONSTRAINT = "constraint"
    FILTER = "filter"


# ---------------------------------------------------------------------------
# Core models
# ---------------------------------------------------------------------------


@dataclass
class Constraint:
    """
    Leaf predicate over one field: `subject` (field name), `predicate`
    (operator name) and `object` (the operand, kept verbatim).
    """

    id: str
    subject: str
    predicate: str
    object: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "predicate": self.predicate,
            "object": self.object,
        }


@dataclass(frozen=True)
class Reference:
    kind: ReferenceKind
    id: str


@dataclass
class FilterNode:
    """
    One level of a filter: the combinator and its ordered child references.
    Constraints always precede sub-filters in `children`.
    """

    id: str
    combinator: Combinator = Combinator.ALL
    children: List[Reference] = field(default_factory=list)

    @property
    def require_all(self) -> bool:
        return self.combinator is Combinator.ALL

    @property
    def constraint_ids(self) -> List[str]:
        return [r.id for r in self.children if r.kind is ReferenceKind.CONSTRAINT]

    @property
    def sub_filter_ids(self) -> List[str]:
        return [r.id for r in self.children if r.kind is ReferenceKind.FILTER]

    @classmethod
    def from_ids(
        cls,
        filter_id: str,
        combinator: Combinator,
        constraint_ids: List[str],
        sub_filter_ids: List[str],
    ) -> "FilterNode":
        children = [Reference(ReferenceKind.CONSTRAINT, c) for c in constraint_ids]
        children += [Reference(ReferenceKind.FILTER, f) for f in sub_filter_ids]
        return cls(id=filter_id, combinator=combinator, children=children)


@dataclass
class FilterTree:
    """
    Fully expanded filter: children are Constraints or nested FilterTrees in
    their stored order.
    """

    id: str
    combinator: Combinator = Combinator.ALL
    children: List[Union[Constraint, "FilterTree"]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: List[Dict[str, Any]] = []
        for child in self.children:
            if isinstance(child, FilterTree):
                out.append({"type": "subscription-filters", **child.to_dict()})
            else:
                out.append({"type": "subscription-filter-constraints", **child.to_dict()})
        return {
            "id": self.id,
            "require-all": self.combinator is Combinator.ALL,
            "children": out,
        }


@dataclass
class Subscriber:
    id: str
    uri: str
    email: str


@dataclass
class FilterListing:
    """A subscriber's filter expanded one level deep."""

    id: str
    combinator: Combinator
    constraints: List[Constraint] = field(default_factory=list)
    sub_filter_ids: List[str] = field(default_factory=list)

    @property
    def require_all(self) -> bool:
        return self.combinator is Combinator.ALL


__all__ = [
    "Combinator",
    "ReferenceKind",
    "Constraint",
    "Reference",
    "FilterNode",
    "FilterTree",
    "Subscriber",
    "FilterListing",
]
