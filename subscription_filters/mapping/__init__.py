"""
Vocabulary mapping for the subscription filter service.

This module maps client-facing field and operator names onto SHACL paths and
constraint fragments, and mints the IRIs used in the store.
"""

from .vocabulary import (
    Subject,
    Predicate,
    PathExpression,
    ConstraintFragment,
    FIELD_PATHS,
    OPERATOR_FRAGMENTS,
    FRAGMENT_PREDICATES,
    escape_pattern,
    map_field,
    map_operator,
)

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
