from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Set

from rdflib import Literal

from ..database import SparqlStore
from ..errors import NotFoundError, ValidationError
from ..mapping import ConstraintFragment, PathExpression, map_field, map_operator
from ..mapping.namespaces import EXT, RDF, SH, constraint_uri, id_from_uri, is_valid_id
from ..models import Constraint
from ..query import builder as q
from ..query import encode
from ..query.builder import Triple
from .locks import KeyedLock

log = logging.getLogger("subscriptions.constraints")


def _resolve(subject: str, predicate: str, obj: str) -> tuple[PathExpression, ConstraintFragment]:
    path = map_field(subject)
    fragment = map_operator(predicate, obj)

    problems: List[str] = []
    fields: List[str] = []
    if path is None:
        problems.append(f"Invalid subject: '{subject}'.")
        fields.append("subject")
    if fragment is None:
        problems.append(f"Invalid predicate: '{predicate}'.")
        fields.append("predicate")
    if problems:
        raise ValidationError(" ".join(problems), fields)
    return path, fragment


def constraint_facts(constraint: Constraint) -> List[Triple]:
    """All facts describing `constraint`, including its sequence-path list."""
    path, fragment = _resolve(constraint.subject, constraint.predicate, constraint.object)
    uri = constraint_uri(constraint.id)

    if len(path) == 1:
        path_node, path_facts = path[0], []
    else:
        path_node, path_facts = encode(list(path))

    facts: List[Triple] = [
        (uri, RDF.type, SH.PropertyShape),
        (uri, EXT.constraintSubject, Literal(constraint.subject)),
        (uri, EXT.constraintPredicate, Literal(constraint.predicate)),
        (uri, EXT.constraintObject, Literal(constraint.object)),
        (uri, SH.path, path_node),
    ]
    facts += [(uri, p, o) for p, o in fragment.facts]
    return facts + path_facts


class ConstraintRepository:
    def __init__(self, store: SparqlStore):
        self.store = store
        self._locks = KeyedLock()

    async def exists(self, constraint_id: str) -> bool:
        if not is_valid_id(constraint_id):
            return False
        return await self.store.ask(q.ask_constraint_exists(constraint_uri(constraint_id)))

    async def well_formed(self, constraint_ids: Sequence[str]) -> Set[str]:
        """Subset of `constraint_ids` that carry both a path and a fragment."""
        candidates = [c for c in constraint_ids if is_valid_id(c)]
        if not candidates:
            return set()
        rows = await self.store.select(
            q.select_well_formed_constraints([constraint_uri(c) for c in candidates])
        )
        return {id_from_uri(r["item"]["value"]) for r in rows}

    async def is_well_formed(self, constraint_id: str) -> bool:
        return constraint_id in await self.well_formed([constraint_id])

    async def find(self, constraint_id: str) -> Optional[Constraint]:
        if not is_valid_id(constraint_id):
            return None
        rows = await self.store.select(q.select_constraint(constraint_uri(constraint_id)))
        if not rows:
            return None
        row = rows[0]
        return Constraint(
            id=constraint_id,
            subject=row["subject"]["value"],
            predicate=row["predicate"]["value"],
            object=row["object"]["value"],
        )

    async def get(self, constraint_id: str) -> Constraint:
        found = await self.find(constraint_id)
        if found is None:
            raise NotFoundError("Constraint", constraint_id)
        return found

    async def create(self, constraint_id: str, subject: str, predicate: str, obj: str) -> Constraint:
        constraint = Constraint(constraint_id, subject, predicate, obj)
        facts = constraint_facts(constraint)
        await self.store.update(q.compose(q.insert_data(facts)))
        log.info("created constraint %s (%s %s)", constraint_id, subject, predicate)
        return constraint

    async def replace(self, constraint_id: str, subject: str, predicate: str, obj: str) -> Constraint:
        """Delete and recreate under the same id in a single store request."""
        constraint = Constraint(constraint_id, subject, predicate, obj)
        facts = constraint_facts(constraint)
        uri = constraint_uri(constraint_id)

        async with self._locks.hold(constraint_id):
            if not await self.exists(constraint_id):
                raise NotFoundError("Constraint", constraint_id)
            await self.store.update(
                q.compose(q.delete_owned_lists(uri), q.delete_subject(uri), q.insert_data(facts))
            )
        log.info("replaced constraint %s", constraint_id)
        return constraint

    async def delete(self, constraint_id: str) -> None:
        """
        Remove the constraint and the path list it owns. Filters referring to
        it are left alone and simply stop resolving the reference.
        """
        uri = constraint_uri(constraint_id)
        async with self._locks.hold(constraint_id):
            if not await self.exists(constraint_id):
                raise NotFoundError("Constraint", constraint_id)
            await self.store.update(q.compose(q.delete_owned_lists(uri), q.delete_subject(uri)))
        log.info("deleted constraint %s", constraint_id)
