import re

from rdflib import Literal
from rdflib.namespace import DCTERMS, SH, SKOS, XSD

from subscription_filters.mapping import (
    FIELD_PATHS,
    OPERATOR_FRAGMENTS,
    Predicate,
    Subject,
    escape_pattern,
    map_field,
    map_operator,
)


def test_every_field_and_operator_has_a_mapping():
    assert set(FIELD_PATHS) == set(Subject)
    assert set(OPERATOR_FRAGMENTS) == set(Predicate)


def test_single_hop_field():
    assert map_field("title") == (DCTERMS.title,)
    assert map_field("description") == (DCTERMS.description,)


def test_multi_hop_field_keeps_hop_order():
    path = map_field("governanceArea")
    assert len(path) == 4
    assert path[-1] == SKOS.prefLabel
    assert str(path[0]).endswith("/ext/zitting")


def test_unknown_field_and_operator():
    assert map_field("not-a-real-field") is None
    assert map_operator("not-a-real-op", "x") is None


def test_text_equals_is_anchored_and_case_insensitive():
    fragment = map_operator("textEquals", "station")
    assert dict(fragment.facts) == {SH.pattern: Literal("^station$"), SH.flags: Literal("i")}


def test_text_contains_is_unanchored():
    fragment = map_operator("textContains", "station")
    assert dict(fragment.facts)[SH.pattern] == Literal("station")


def test_existence_operators_use_cardinality():
    assert map_operator("exists", "ignored").facts == ((SH.minCount, Literal(1, datatype=XSD.integer)),)
    assert map_operator("notExists", "").facts == ((SH.maxCount, Literal(0, datatype=XSD.integer)),)


def test_pattern_values_match_literally():
    raw = "a.b (c)* [d]? ^$|\\"
    escaped = escape_pattern(raw)
    assert re.fullmatch(escaped, raw)
    assert not re.fullmatch(escape_pattern("a.b"), "axb")
