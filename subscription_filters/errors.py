"""
Error taxonomy for the subscription filter service.

Every error raised by the services derives from SubscriptionFilterError and
carries the HTTP status the API layer answers with.
"""

from __future__ import annotations
from typing import Iterable, List


def _quoted(items: Iterable[str]) -> str:
    return ", ".join(f"'{i}'" for i in items)


class SubscriptionFilterError(Exception):
    status_code = 500
    title = "Internal error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SubscriptionFilterError):
    """
    Malformed or missing fields. `fields` names every offending field so a
    client can fix all of them in one round trip.
    """

    status_code = 400
    title = "Invalid request"

    def __init__(self, detail: str, fields: Iterable[str] = ()):
        super().__init__(detail)
        self.fields: List[str] = list(fields)

    @classmethod
    def missing(cls, kind: str, names: List[str]) -> "ValidationError":
        noun = kind if len(names) == 1 else f"{kind}s"
        return cls(f"Missing {noun}: {_quoted(names)}.", names)


class EmptyFilterError(ValidationError):
    def __init__(self):
        super().__init__(
            "A filter needs at least one constraint or sub-filter.",
            ["constraints", "sub-filters"],
        )


class InvalidReferenceError(SubscriptionFilterError):
    """One or more referenced constraints / sub-filters do not resolve."""

    status_code = 400
    title = "Invalid reference"

    def __init__(self, constraint_ids: Iterable[str] = (), filter_ids: Iterable[str] = ()):
        self.constraint_ids = list(constraint_ids)
        self.filter_ids = list(filter_ids)
        parts = []
        if self.constraint_ids:
            noun = "constraint" if len(self.constraint_ids) == 1 else "constraints"
            parts.append(f"Invalid {noun}: {_quoted(self.constraint_ids)}.")
        if self.filter_ids:
            noun = "sub-filter" if len(self.filter_ids) == 1 else "sub-filters"
            parts.append(f"Invalid {noun}: {_quoted(self.filter_ids)}.")
        super().__init__(" ".join(parts))

    @property
    def ids(self) -> List[str]:
        return self.constraint_ids + self.filter_ids


class NotFoundError(SubscriptionFilterError):
    status_code = 404
    title = "Not found"

    def __init__(self, kind: str, resource_id: str, detail: str = ""):
        super().__init__(detail or f"{kind} '{resource_id}' does not exist.")
        self.kind = kind
        self.resource_id = resource_id


class CycleDetectedError(SubscriptionFilterError):
    status_code = 409
    title = "Cyclic filter"

    def __init__(self, filter_id: str, path: Iterable[str] = ()):
        self.filter_id = filter_id
        self.path = list(path)
        trail = " -> ".join(self.path + [filter_id]) if self.path else filter_id
        super().__init__(f"Filter '{filter_id}' refers back to itself: {trail}.")


class StoreError(SubscriptionFilterError):
    """The triple store call failed. `detail` is safe to show to clients."""

    status_code = 502
    title = "Store unavailable"

    def __init__(self, detail: str = "Could not execute SPARQL query."):
        super().__init__(detail)


class MalformedListError(StoreError):
    def __init__(self, root: str, reason: str):
        super().__init__("Stored data is inconsistent.")
        self.root = root
        self.reason = reason

    def __str__(self) -> str:
        return f"malformed RDF list at {self.root}: {self.reason}"


__all__ = [
    "SubscriptionFilterError",
    "ValidationError",
    "EmptyFilterError",
    "InvalidReferenceError",
    "NotFoundError",
    "CycleDetectedError",
    "StoreError",
    "MalformedListError",
]
