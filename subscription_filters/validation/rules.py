from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jsonschema import Draft7Validator

from ..errors import ValidationError

CONSTRAINT_TYPE = "subscription-filter-constraints"
FILTER_TYPE = "subscription-filters"

_STRING = {"type": "string"}
_EMAIL = {"type": "string", "pattern": r"^[^@\s]+@[^@\s]+$"}
# last segment of a resource IRI: no slash, nothing N3 refuses to write
_REF_ID = {"type": "string", "pattern": r'^[^\s"<>{}|\\^`/]+$'}


def _relationship(target_type: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "required": ["data"],
        "properties": {
            "data": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["type", "id"],
                    "properties": {
                        "type": {"const": target_type},
                        "id": _REF_ID,
                    },
                },
            }
        },
    }


def resource_schema(
    type_: str,
    attributes: Dict[str, Dict[str, Any]],
    required_attributes: Sequence[str],
    relationships: Dict[str, str] = None,
    required_relationships: Sequence[str] = (),
) -> Dict[str, Any]:
    """JSON Schema for a single-resource JSON:API document."""
    relationships = relationships or {}
    data_required = ["type", "attributes"]
    if required_relationships:
        data_required.append("relationships")
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "required": ["data"],
        "properties": {
            "data": {
                "type": "object",
                "required": data_required,
                "properties": {
                    "type": {"const": type_},
                    "id": _STRING,
                    "attributes": {
                        "type": "object",
                        "required": list(required_attributes),
                        "properties": attributes,
                    },
                    "relationships": {
                        "type": "object",
                        "required": list(required_relationships),
                        "properties": {k: _relationship(v) for k, v in relationships.items()},
                    },
                },
            }
        },
    }


CONSTRAINT_SCHEMA = resource_schema(
    CONSTRAINT_TYPE,
    {"subject": _STRING, "predicate": _STRING, "object": _STRING},
    ["subject", "predicate", "object"],
)

FILTER_SCHEMA = resource_schema(
    FILTER_TYPE,
    {"require-all": {"type": "boolean"}, "email": _EMAIL},
    ["require-all"],
    {"constraints": CONSTRAINT_TYPE, "sub-filters": FILTER_TYPE},
    ["constraints"],
)

_CONSTRAINT_VALIDATOR = Draft7Validator(CONSTRAINT_SCHEMA)
_FILTER_VALIDATOR = Draft7Validator(FILTER_SCHEMA)


def _field_of(path: List[Any]) -> str:
    """Name the attribute / relationship an error sits under."""
    for anchor in ("attributes", "relationships"):
        if anchor in path:
            i = path.index(anchor)
            if i + 1 < len(path):
                return str(path[i + 1])
    named = [p for p in path if not isinstance(p, int)]
    return str(named[-1]) if named else "data"


def _kind_of(path: List[Any]) -> str:
    if "relationships" in path:
        return "relationship"
    if "attributes" in path:
        return "attribute"
    return "field"


def _plural(kind: str, names: List[str]) -> str:
    return kind if len(names) == 1 else f"{kind}s"


def _assert_valid(validator: Draft7Validator, payload: Any) -> None:
    """
    Collect every schema violation and raise a single ValidationError that
    names all offending fields.
    """
    missing: Dict[str, List[str]] = {}
    invalid: Dict[str, List[str]] = {}

    for err in sorted(validator.iter_errors(payload), key=lambda e: list(map(str, e.absolute_path))):
        path = list(err.absolute_path)
        if err.validator == "required" and isinstance(err.instance, dict):
            absent = [p for p in err.validator_value if p not in err.instance]
            if path and path[-1] == "attributes":
                missing.setdefault("attribute", []).extend(absent)
            elif path and path[-1] == "relationships":
                missing.setdefault("relationship", []).extend(absent)
            elif "relationships" in path:
                # a relationship object without "data"
                missing.setdefault("relationship", []).append(_field_of(path))
            else:
                missing.setdefault("field", []).extend(absent)
        else:
            name = _field_of(path)
            bucket = invalid.setdefault(_kind_of(path), [])
            if name not in bucket:
                bucket.append(name)

    if not missing and not invalid:
        return

    parts: List[str] = []
    fields: List[str] = []
    for kind, names in missing.items():
        parts.append(f"Missing {_plural(kind, names)}: " + ", ".join(f"'{n}'" for n in names) + ".")
        fields += names
    for kind, names in invalid.items():
        parts.append(f"Invalid {_plural(kind, names)}: " + ", ".join(f"'{n}'" for n in names) + ".")
        fields += [n for n in names if n not in fields]
    raise ValidationError(" ".join(parts), fields)


def _assert_id_matches(data: Dict[str, Any], resource_id: Optional[str]) -> None:
    if resource_id is not None and "id" in data and data["id"] != resource_id:
        raise ValidationError(
            f"Body id '{data['id']}' does not match URL id '{resource_id}'.", ["id"]
        )


def _ids(relationship: Optional[Dict[str, Any]]) -> List[str]:
    if not relationship:
        return []
    return [item["id"] for item in relationship.get("data", [])]


def parse_constraint_document(
    payload: Any, resource_id: Optional[str] = None
) -> Tuple[str, str, str]:
    """Return (subject, predicate, object) from a constraint document."""
    _assert_valid(_CONSTRAINT_VALIDATOR, payload)
    data = payload["data"]
    _assert_id_matches(data, resource_id)
    attrs = data["attributes"]
    return attrs["subject"], attrs["predicate"], attrs["object"]


def parse_filter_document(
    payload: Any, resource_id: Optional[str] = None
) -> Tuple[bool, Optional[str], List[str], List[str]]:
    """Return (require_all, email, constraint_ids, sub_filter_ids)."""
    _assert_valid(_FILTER_VALIDATOR, payload)
    data = payload["data"]
    _assert_id_matches(data, resource_id)
    attrs = data["attributes"]
    rels = data.get("relationships", {})
    return (
        attrs["require-all"],
        attrs.get("email"),
        _ids(rels.get("constraints")),
        _ids(rels.get("sub-filters")),
    )
