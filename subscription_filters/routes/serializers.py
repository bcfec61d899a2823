from typing import Any, Dict, List

from ..models import Constraint, FilterListing, FilterNode, FilterTree
from ..validation import CONSTRAINT_TYPE, FILTER_TYPE


def _identifiers(type_: str, ids: List[str]) -> Dict[str, Any]:
    return {"data": [{"type": type_, "id": i} for i in ids]}


def constraint_resource(c: Constraint) -> Dict[str, Any]:
    return {
        "type": CONSTRAINT_TYPE,
        "id": c.id,
        "attributes": {
            "subject": c.subject,
            "predicate": c.predicate,
            "object": c.object,
        },
    }


def filter_resource(node: FilterNode) -> Dict[str, Any]:
    return {
        "type": FILTER_TYPE,
        "id": node.id,
        "attributes": {"require-all": node.require_all},
        "relationships": {
            "constraints": _identifiers(CONSTRAINT_TYPE, node.constraint_ids),
            "sub-filters": _identifiers(FILTER_TYPE, node.sub_filter_ids),
        },
    }


def filter_tree_document(node: FilterNode, tree: FilterTree) -> Dict[str, Any]:
    return {"data": filter_resource(node), "meta": {"tree": tree.to_dict()}}


def listing_document(listings: List[FilterListing]) -> Dict[str, Any]:
    data: List[Dict[str, Any]] = []
    included: Dict[str, Dict[str, Any]] = {}
    for f in listings:
        data.append(
            {
                "type": FILTER_TYPE,
                "id": f.id,
                "attributes": {"require-all": f.require_all},
                "relationships": {
                    "constraints": _identifiers(CONSTRAINT_TYPE, [c.id for c in f.constraints]),
                    "sub-filters": _identifiers(FILTER_TYPE, f.sub_filter_ids),
                },
            }
        )
        for c in f.constraints:
            included.setdefault(c.id, constraint_resource(c))
    return {"data": data, "included": list(included.values())}
