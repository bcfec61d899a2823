"""
Query building module for the subscription filter service.

This module provides SPARQL query/update generation and the RDF list codec.
"""

from .builder import (
    Triple,
    PREFIXES,
    compose,
    insert_data,
    render_triples,
)
from .lists import encode, decode, term_from_binding

__all__ = [
    "Triple",
    "PREFIXES",
    "compose",
    "insert_data",
    "render_triples",
    "encode",
    "decode",
    "term_from_binding",
]
