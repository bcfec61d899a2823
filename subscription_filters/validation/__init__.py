"""
Validation module for the subscription filter service.

This module validates incoming JSON:API documents and reports every
offending field at once.
"""

from .rules import (
    CONSTRAINT_TYPE,
    FILTER_TYPE,
    CONSTRAINT_SCHEMA,
    FILTER_SCHEMA,
    resource_schema,
    parse_constraint_document,
    parse_filter_document,
)

__all__ = [
    "CONSTRAINT_TYPE",
    "FILTER_TYPE",
    "CONSTRAINT_SCHEMA",
    "FILTER_SCHEMA",
    "resource_schema",
    "parse_constraint_document",
    "parse_filter_document",
]
