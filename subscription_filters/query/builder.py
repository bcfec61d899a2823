from __future__ import annotations
from typing import Iterable, List, Sequence, Tuple

from rdflib import Literal, URIRef
from rdflib.term import Node

from ..mapping.namespaces import GRAPH, LIST_BASE

Triple = Tuple[Node, Node, Node]

PREFIXES = """PREFIX rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#>
PREFIX sh: <http://www.w3.org/ns/shacl#>
PREFIX ext: <http://mu.semte.ch/vocabularies/ext/>
PREFIX schema: <http://schema.org/>
PREFIX account: <http://mu.semte.ch/vocabularies/account/>
"""

# Predicates whose object is a list chain owned by the subject
_OWNED_LIST_PATH = "(sh:path|sh:and|sh:or)/rdf:rest*"
_FRAGMENT_PATH = "(sh:pattern|sh:minCount|sh:maxCount)"
_CHILD_PATH = "(sh:and|sh:or)/rdf:rest*/rdf:first"


def _values(var: str, uris: Iterable[URIRef]) -> str:
    return f"VALUES ?{var} {{ {' '.join(u.n3() for u in uris)} }}"


def _lit(value: str) -> str:
    """Serialize a plain string literal; rdflib escapes quotes and newlines."""
    return Literal(value).n3()


def render_triples(facts: Iterable[Triple]) -> str:
    return "\n".join(f"    {s.n3()} {p.n3()} {o.n3()} ." for s, p, o in facts)


def compose(*operations: str) -> str:
    """Join update operations into one request, applied as a unit."""
    return " ;\n".join(PREFIXES + op for op in operations if op)


# -----------------------------------------------------------------------------
# Writes
# -----------------------------------------------------------------------------


def insert_data(facts: Sequence[Triple]) -> str:
    if not facts:
        return ""
    return f"""INSERT DATA {{
  GRAPH {GRAPH.n3()} {{
{render_triples(facts)}
  }}
}}"""


def delete_owned_lists(uri: URIRef) -> str:
    """Drop the list cells hanging off `uri` (paths and child lists)."""
    return f"""DELETE {{
  GRAPH {GRAPH.n3()} {{ ?cell ?p ?o }}
}} WHERE {{
  GRAPH {GRAPH.n3()} {{
    {uri.n3()} {_OWNED_LIST_PATH} ?cell .
    ?cell ?p ?o .
    FILTER(STRSTARTS(STR(?cell), {_lit(LIST_BASE)}))
  }}
}}"""


def delete_subject(uri: URIRef) -> str:
    return f"""DELETE WHERE {{
  GRAPH {GRAPH.n3()} {{ {uri.n3()} ?p ?o }}
}}"""


def delete_subscriptions_to(uri: URIRef) -> str:
    return f"""DELETE WHERE {{
  GRAPH {GRAPH.n3()} {{ ?user ext:hasSubscription {uri.n3()} }}
}}"""


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------


def ask_constraint_exists(uri: URIRef) -> str:
    return f"""{PREFIXES}
ASK {{
  {uri.n3()} ext:constraintSubject ?subject ;
             ext:constraintPredicate ?predicate ;
             ext:constraintObject ?object .
}}"""


def select_well_formed_constraints(uris: Sequence[URIRef]) -> str:
    return f"""{PREFIXES}
SELECT DISTINCT ?item WHERE {{
  {_values("item", uris)}
  ?item sh:path ?path ;
        {_FRAGMENT_PATH} ?fragment .
}}"""


def select_well_formed_filters(uris: Sequence[URIRef]) -> str:
    return f"""{PREFIXES}
SELECT DISTINCT ?item WHERE {{
  {_values("item", uris)}
  ?item sh:and|sh:or ?list .
}}"""


def select_constraint(uri: URIRef) -> str:
    return f"""{PREFIXES}
SELECT ?subject ?predicate ?object WHERE {{
  {uri.n3()} ext:constraintSubject ?subject ;
             ext:constraintPredicate ?predicate ;
             ext:constraintObject ?object .
}} LIMIT 1"""


def select_combinator(uri: URIRef) -> str:
    return f"""{PREFIXES}
SELECT ?combinator ?list WHERE {{
  VALUES ?combinator {{ sh:and sh:or }}
  {uri.n3()} ?combinator ?list .
}} LIMIT 1"""


def select_reference_kinds(uris: Sequence[URIRef]) -> str:
    return f"""{PREFIXES}
SELECT DISTINCT ?item ?kind WHERE {{
  {_values("item", uris)}
  {{
    ?item ext:constraintSubject ?subject .
    BIND("constraint" AS ?kind)
  }} UNION {{
    ?item sh:and|sh:or ?list .
    BIND("filter" AS ?kind)
  }}
}}"""


def ask_reaches(starts: Sequence[URIRef], target: URIRef) -> str:
    """True when `target` is one of `starts` or nested somewhere below them."""
    return f"""{PREFIXES}
ASK {{
  {_values("start", starts)}
  ?start ({_CHILD_PATH})* {target.n3()} .
}}"""


def select_list_cells(root: URIRef) -> str:
    return f"""{PREFIXES}
SELECT ?cell ?first ?rest WHERE {{
  {root.n3()} rdf:rest* ?cell .
  ?cell rdf:first ?first ;
        rdf:rest ?rest .
}}"""


def select_user_by_email(email: str) -> str:
    return f"""{PREFIXES}
SELECT ?user WHERE {{
  GRAPH {GRAPH.n3()} {{
    ?user a schema:Person ;
          schema:email {_lit(email)} .
  }}
}} ORDER BY ?user LIMIT 1"""


def select_filters_for_token(token: str) -> str:
    return f"""{PREFIXES}
SELECT ?user ?filter WHERE {{
  ?user account:password {_lit(token)} .
  OPTIONAL {{ ?user ext:hasSubscription ?filter . }}
}} ORDER BY ?filter"""


def ask_store_alive() -> str:
    return "ASK {}"


__all__: List[str] = [
    "Triple",
    "PREFIXES",
    "render_triples",
    "compose",
    "insert_data",
    "delete_owned_lists",
    "delete_subject",
    "delete_subscriptions_to",
    "ask_constraint_exists",
    "select_well_formed_constraints",
    "select_well_formed_filters",
    "select_constraint",
    "select_combinator",
    "select_reference_kinds",
    "ask_reaches",
    "select_list_cells",
    "select_user_by_email",
    "select_filters_for_token",
    "ask_store_alive",
]
