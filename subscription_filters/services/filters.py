"""
Filter tree construction and reconstruction.

A filter is stored as a SHACL node shape whose sh:and (ALL) or sh:or (ANY)
points at an RDF list of child IRIs: first the constraints, then the nested
filters, each group in the order the client sent them. Loading walks that
list back and recurses into nested filters depth-first.
"""

from __future__ import annotations
import asyncio, logging
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from rdflib import URIRef

from ..database import SparqlStore
from ..errors import (
    CycleDetectedError,
    EmptyFilterError,
    InvalidReferenceError,
    NotFoundError,
)
from ..mapping.namespaces import BESLUIT, RDF, SH, constraint_uri, filter_uri, id_from_uri, is_valid_id
from ..models import (
    Combinator,
    Constraint,
    FilterListing,
    FilterNode,
    FilterTree,
    Reference,
    ReferenceKind,
)
from ..query import builder as q
from ..query import decode, encode, term_from_binding
from ..query.builder import Triple
from .constraints import ConstraintRepository
from .locks import KeyedLock
from .subscribers import SubscriberDirectory, subscription_fact

log = logging.getLogger("subscriptions.filters")


def _unique(ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def filter_facts(node: FilterNode) -> List[Triple]:
    uri = filter_uri(node.id)
    children = [
        constraint_uri(r.id) if r.kind is ReferenceKind.CONSTRAINT else filter_uri(r.id)
        for r in node.children
    ]
    root, list_facts = encode(children)
    facts: List[Triple] = [
        (uri, RDF.type, SH.NodeShape),
        (uri, SH.targetClass, BESLUIT.Agendapunt),
        (uri, node.combinator.shacl, root),
    ]
    return facts + list_facts


class FilterService:
    def __init__(
        self,
        store: SparqlStore,
        constraints: ConstraintRepository,
        subscribers: SubscriberDirectory,
    ):
        self.store = store
        self.constraints = constraints
        self.subscribers = subscribers
        self._locks = KeyedLock()

    # ------------------------------------------------------------------
    # checks
    # ------------------------------------------------------------------

    async def exists(self, filter_id: str) -> bool:
        if not is_valid_id(filter_id):
            return False
        return bool(await self.store.select(q.select_combinator(filter_uri(filter_id))))

    async def well_formed(self, filter_ids: Sequence[str]) -> Set[str]:
        candidates = [f for f in filter_ids if is_valid_id(f)]
        if not candidates:
            return set()
        rows = await self.store.select(
            q.select_well_formed_filters([filter_uri(f) for f in candidates])
        )
        return {id_from_uri(r["item"]["value"]) for r in rows}

    async def validate_references(self, constraint_ids: Sequence[str], sub_filter_ids: Sequence[str]) -> None:
        """Raise one error listing every reference that does not resolve."""
        if not constraint_ids and not sub_filter_ids:
            raise EmptyFilterError()

        ok_constraints, ok_filters = await asyncio.gather(
            self.constraints.well_formed(_unique(constraint_ids)),
            self.well_formed(_unique(sub_filter_ids)),
        )
        bad_constraints = [c for c in _unique(constraint_ids) if c not in ok_constraints]
        bad_filters = [f for f in _unique(sub_filter_ids) if f not in ok_filters]
        if bad_constraints or bad_filters:
            raise InvalidReferenceError(bad_constraints, bad_filters)

    async def _check_acyclic(self, filter_id: str, sub_filter_ids: Sequence[str]) -> None:
        if not sub_filter_ids:
            return
        starts = [filter_uri(f) for f in _unique(sub_filter_ids)]
        if await self.store.ask(q.ask_reaches(starts, filter_uri(filter_id))):
            raise CycleDetectedError(filter_id)

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    async def create(
        self,
        filter_id: str,
        combinator: Combinator,
        constraint_ids: Sequence[str],
        sub_filter_ids: Sequence[str],
        *,
        email: Optional[str] = None,
    ) -> FilterNode:
        await self.validate_references(constraint_ids, sub_filter_ids)

        node = FilterNode.from_ids(filter_id, combinator, list(constraint_ids), list(sub_filter_ids))
        facts = filter_facts(node)
        if email:
            # a new subscriber is written with the filter and only told its
            # token once that write went through
            async with self.subscribers.enrol(email) as enrolment:
                facts += enrolment.facts
                facts.append(subscription_fact(enrolment.subscriber.id, filter_id))
                await self.store.update(q.compose(q.insert_data(facts)))
        else:
            await self.store.update(q.compose(q.insert_data(facts)))
        log.info("created filter %s (%s, %d children)", filter_id, combinator.value, len(node.children))
        return node

    async def replace(
        self,
        filter_id: str,
        combinator: Combinator,
        constraint_ids: Sequence[str],
        sub_filter_ids: Sequence[str],
    ) -> FilterNode:
        """
        Swap the filter's combinator and children in one store request.
        Subscriptions pointing at the filter are kept.
        """
        uri = filter_uri(filter_id)
        async with self._locks.hold(filter_id):
            if not await self.exists(filter_id):
                raise NotFoundError("Filter", filter_id)
            await self.validate_references(constraint_ids, sub_filter_ids)
            await self._check_acyclic(filter_id, sub_filter_ids)

            node = FilterNode.from_ids(filter_id, combinator, list(constraint_ids), list(sub_filter_ids))
            await self.store.update(
                q.compose(
                    q.delete_owned_lists(uri),
                    q.delete_subject(uri),
                    q.insert_data(filter_facts(node)),
                )
            )
        log.info("replaced filter %s", filter_id)
        return node

    async def delete(self, filter_id: str) -> None:
        """
        Remove the filter, its child list and the subscriptions to it.
        Referenced constraints and nested filters stay.
        """
        uri = filter_uri(filter_id)
        async with self._locks.hold(filter_id):
            if not await self.exists(filter_id):
                raise NotFoundError("Filter", filter_id)
            await self.store.update(
                q.compose(
                    q.delete_owned_lists(uri),
                    q.delete_subject(uri),
                    q.delete_subscriptions_to(uri),
                )
            )
        log.info("deleted filter %s", filter_id)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    async def _classify(self, items: List) -> List[Reference]:
        uris = _unique([str(i) for i in items if isinstance(i, URIRef)])
        kinds: Dict[str, Set[str]] = {}
        if uris:
            rows = await self.store.select(q.select_reference_kinds([URIRef(u) for u in uris]))
            for row in rows:
                kinds.setdefault(row["item"]["value"], set()).add(row["kind"]["value"])

        refs: List[Reference] = []
        for item in items:
            found = kinds.get(str(item), set())
            if not found:
                log.warning("dropping child %s: neither a constraint nor a filter", item)
                continue
            if len(found) > 1:
                log.warning("child %s is both a constraint and a filter; using the constraint", item)
            kind = ReferenceKind.CONSTRAINT if "constraint" in found else ReferenceKind.FILTER
            refs.append(Reference(kind, id_from_uri(item)))
        return refs

    async def load_node(self, filter_id: str) -> FilterNode:
        if not is_valid_id(filter_id):
            raise NotFoundError("Filter", filter_id)
        rows = await self.store.select(q.select_combinator(filter_uri(filter_id)))
        if not rows:
            raise NotFoundError("Filter", filter_id)

        combinator = Combinator.from_shacl(rows[0]["combinator"]["value"])
        items = await decode(self.store, term_from_binding(rows[0]["list"]))
        return FilterNode(id=filter_id, combinator=combinator, children=await self._classify(items))

    async def load_tree(self, filter_id: str, _path: Tuple[str, ...] = ()) -> FilterTree:
        """
        Load `filter_id` with every nested filter expanded. `_path` holds the
        filters above this one; meeting one of them again is a cycle.
        """
        if filter_id in _path:
            raise CycleDetectedError(filter_id, _path)

        node = await self.load_node(filter_id)
        below = _path + (filter_id,)
        children = await asyncio.gather(*[self._load_child(ref, below) for ref in node.children])
        return FilterTree(
            id=filter_id,
            combinator=node.combinator,
            children=[c for c in children if c is not None],
        )

    async def _load_child(
        self, ref: Reference, path: Tuple[str, ...]
    ) -> Optional[Union[Constraint, FilterTree]]:
        if ref.kind is ReferenceKind.CONSTRAINT:
            found = await self.constraints.find(ref.id)
            if found is None:
                log.warning("constraint %s vanished while loading", ref.id)
            return found
        try:
            return await self.load_tree(ref.id, path)
        except NotFoundError:
            log.warning("filter %s vanished while loading", ref.id)
            return None

    async def list_for_token(self, token: str) -> Optional[List[FilterListing]]:
        """
        The subscriber's filters, one level deep: direct constraints in full,
        nested filters by id. None when the token belongs to nobody.
        """
        filter_ids = await self.subscribers.filter_ids_for_token(token)
        if filter_ids is None:
            return None

        listings: List[FilterListing] = []
        for fid in filter_ids:
            try:
                node = await self.load_node(fid)
            except NotFoundError:
                log.warning("subscription points at missing filter %s", fid)
                continue
            found = await asyncio.gather(*[self.constraints.find(c) for c in node.constraint_ids])
            listings.append(
                FilterListing(
                    id=fid,
                    combinator=node.combinator,
                    constraints=[c for c in found if c is not None],
                    sub_filter_ids=node.sub_filter_ids,
                )
            )
        return listings
