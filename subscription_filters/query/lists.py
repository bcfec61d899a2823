"""
RDF list codec.

`encode` turns an ordered sequence of terms into a fresh rdf:first/rdf:rest
chain; `decode` reads a chain back in list order. The store returns the
chain's cells in no particular order, so decoding fetches every cell once and
then follows rdf:rest pointers from the root.
"""

from __future__ import annotations
from typing import Dict, List, Sequence, Tuple

from rdflib import BNode, Literal, URIRef
from rdflib.term import Node

from ..database import Binding, SparqlStore
from ..errors import MalformedListError
from ..mapping.namespaces import RDF, list_uri
from .builder import Triple, select_list_cells

_NIL = str(RDF.nil)


def term_from_binding(value: Dict[str, str]) -> Node:
    kind = value.get("type")
    if kind == "uri":
        return URIRef(value["value"])
    if kind == "bnode":
        return BNode(value["value"])
    return Literal(
        value["value"],
        lang=value.get("xml:lang"),
        datatype=URIRef(value["datatype"]) if value.get("datatype") else None,
    )


def encode(items: Sequence[Node]) -> Tuple[URIRef, List[Triple]]:
    if not items:
        return RDF.nil, []

    cells = [list_uri() for _ in items]
    facts: List[Triple] = []
    for i, (cell, item) in enumerate(zip(cells, items)):
        rest = cells[i + 1] if i + 1 < len(cells) else RDF.nil
        facts.append((cell, RDF.first, item))
        facts.append((cell, RDF.rest, rest))
    return cells[0], facts


def _index_cells(root: str, rows: List[Binding]) -> Dict[str, Tuple[Node, str]]:
    cells: Dict[str, Tuple[Node, str]] = {}
    for row in rows:
        cell = row["cell"]["value"]
        entry = (term_from_binding(row["first"]), row["rest"]["value"])
        if cell in cells and cells[cell] != entry:
            raise MalformedListError(root, f"cell {cell} has more than one first/rest")
        cells[cell] = entry
    return cells


async def decode(store: SparqlStore, root: Node) -> List[Node]:
    root_s = str(root)
    if root_s == _NIL:
        return []

    cells = _index_cells(root_s, await store.select(select_list_cells(URIRef(root_s))))

    items: List[Node] = []
    seen = set()
    node = root_s
    while node != _NIL:
        if node in seen:
            raise MalformedListError(root_s, f"cell {node} is visited twice")
        seen.add(node)
        try:
            first, node_next = cells[node]
        except KeyError:
            raise MalformedListError(root_s, f"cell {node} has no rdf:first/rdf:rest")
        items.append(first)
        node = node_next
    return items


__all__ = ["encode", "decode", "term_from_binding"]
