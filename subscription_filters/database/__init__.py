"""
Database operations for the subscription filter service.

This module handles SPARQL endpoint access (HTTP or in-memory rdflib).
"""

from .sparql import (
    Binding,
    SparqlStore,
    HttpSparqlStore,
    MemorySparqlStore,
    build_store,
)

__all__ = [
    "Binding",
    "SparqlStore",
    "HttpSparqlStore",
    "MemorySparqlStore",
    "build_store",
]
