"""
Domain models for the subscription filter service.

Constraints, filter nodes, expanded filter trees and subscribers as they
travel between the API layer and the triple store.
"""

from .filters import (
    Combinator,
    ReferenceKind,
    Constraint,
    Reference,
    FilterNode,
    FilterTree,
    Subscriber,
    FilterListing,
)

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
