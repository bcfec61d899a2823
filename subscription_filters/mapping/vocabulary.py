"""
Field and operator vocabulary.

Maps the closed set of field names a client may filter on to SHACL property
paths, and the closed set of operators to declarative SHACL constraint
fragments. Both tables are keyed by enum and checked for completeness at
import time, so adding an enum member without a mapping fails loudly.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from rdflib import Literal, URIRef
from rdflib.namespace import XSD

from .namespaces import BESLUIT, DCTERMS, EXT, PROV, SH, SKOS


class Subject(str, Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    SESSION_LOCATION = "sessionLocation"
    SESSION_DATE = "sessionDate"
    GOVERNANCE_AREA = "governanceArea"


class Predicate(str, Enum):
    TEXT_EQUALS = "textEquals"
    GOVERNANCE_AREA_EQUALS = "governanceAreaEquals"
    TEXT_CONTAINS = "textContains"
    EXISTS = "exists"
    NOT_EXISTS = "notExists"


# A path of length 1 is a plain predicate; longer paths become a SHACL
# sequence path (an RDF list) when written.
PathExpression = Tuple[URIRef, ...]


@dataclass(frozen=True)
class ConstraintFragment:
    """(predicate, literal) pairs to attach to a property shape."""

    facts: Tuple[Tuple[URIRef, Literal], ...]


FIELD_PATHS: Dict[Subject, PathExpression] = {
    Subject.TITLE: (DCTERMS.title,),
    Subject.DESCRIPTION: (DCTERMS.description,),
    Subject.SESSION_LOCATION: (EXT.zitting, PROV.atLocation),
    Subject.SESSION_DATE: (EXT.zitting, PROV.startedAtTime),
    Subject.GOVERNANCE_AREA: (
        EXT.zitting,
        BESLUIT.isGehoudenDoor,
        BESLUIT.bestuurt,
        SKOS.prefLabel,
    ),
}

# XPath regular expression metacharacters (sh:pattern uses XPath regex)
_REGEX_META = set("\\.?*+{}()[]^$|")


def escape_pattern(value: str) -> str:
    """Escape `value` so sh:pattern matches it literally."""
    return "".join("\\" + ch if ch in _REGEX_META else ch for ch in value)


def _pattern(anchored: bool) -> Callable[[str], ConstraintFragment]:
    def build(value: str) -> ConstraintFragment:
        body = escape_pattern(value)
        if anchored:
            body = f"^{body}$"
        return ConstraintFragment(
            facts=((SH.pattern, Literal(body)), (SH.flags, Literal("i")))
        )

    return build


def _count(predicate: URIRef, n: int) -> Callable[[str], ConstraintFragment]:
    def build(_value: str) -> ConstraintFragment:
        return ConstraintFragment(facts=((predicate, Literal(n, datatype=XSD.integer)),))

    return build


OPERATOR_FRAGMENTS: Dict[Predicate, Callable[[str], ConstraintFragment]] = {
    Predicate.TEXT_EQUALS: _pattern(anchored=True),
    Predicate.GOVERNANCE_AREA_EQUALS: _pattern(anchored=True),
    Predicate.TEXT_CONTAINS: _pattern(anchored=False),
    Predicate.EXISTS: _count(SH.minCount, 1),
    Predicate.NOT_EXISTS: _count(SH.maxCount, 0),
}

# Every SHACL predicate an operator fragment may write
FRAGMENT_PREDICATES: Tuple[URIRef, ...] = (SH.pattern, SH.minCount, SH.maxCount)


def _assert_complete(enum_cls, table: dict, name: str) -> None:
    missing = [m.value for m in enum_cls if m not in table]
    if missing:
        raise RuntimeError(f"{name} has no mapping for: {', '.join(missing)}")


_assert_complete(Subject, FIELD_PATHS, "FIELD_PATHS")
_assert_complete(Predicate, OPERATOR_FRAGMENTS, "OPERATOR_FRAGMENTS")


def map_field(name: str) -> Optional[PathExpression]:
    try:
        return FIELD_PATHS[Subject(name)]
    except ValueError:
        return None


def map_operator(op: str, value: str) -> Optional[ConstraintFragment]:
    try:
        build = OPERATOR_FRAGMENTS[Predicate(op)]
    except ValueError:
        return None
    return build(value)


__all__ = [
    "Subject",
    "Predicate",
    "PathExpression",
    "ConstraintFragment",
    "FIELD_PATHS",
    "OPERATOR_FRAGMENTS",
    "FRAGMENT_PREDICATES",
    "escape_pattern",
    "map_field",
    "map_operator",
]
