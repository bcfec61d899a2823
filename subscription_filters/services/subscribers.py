from __future__ import annotations
import logging, secrets, uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Tuple

from rdflib import Literal

from ..database import SparqlStore
from ..mapping.namespaces import ACCOUNT, EXT, RDF, SCHEMA, filter_uri, id_from_uri, user_uri
from ..models import Subscriber
from ..query import builder as q
from ..query.builder import Triple
from .locks import KeyedLock
from .notify import LogNotifier, Notifier

log = logging.getLogger("subscriptions.subscribers")


def subscription_fact(subscriber_id: str, filter_id: str) -> Triple:
    return (user_uri(subscriber_id), EXT.hasSubscription, filter_uri(filter_id))


@dataclass
class Enrolment:
    """
    The subscriber for an e-mail address. For a new subscriber `facts` holds
    what still has to be written and `token` the access token to hand out.
    """

    subscriber: Subscriber
    facts: List[Triple] = field(default_factory=list)
    token: Optional[str] = None

    @property
    def created(self) -> bool:
        return self.token is not None


class SubscriberDirectory:
    def __init__(self, store: SparqlStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier or LogNotifier()
        self._locks = KeyedLock()

    async def find(self, email: str) -> Optional[Subscriber]:
        rows = await self.store.select(q.select_user_by_email(email))
        if not rows:
            return None
        uri = rows[0]["user"]["value"]
        return Subscriber(id=id_from_uri(uri), uri=uri, email=email)

    def _new(self, email: str) -> Enrolment:
        subscriber_id = str(uuid.uuid4())
        uri = user_uri(subscriber_id)
        token = secrets.token_urlsafe(24)
        facts: List[Triple] = [
            (uri, RDF.type, SCHEMA.Person),
            (uri, SCHEMA.email, Literal(email)),
            (uri, ACCOUNT.password, Literal(token)),
        ]
        return Enrolment(Subscriber(id=subscriber_id, uri=str(uri), email=email), facts, token)

    @asynccontextmanager
    async def enrol(self, email: str) -> AsyncIterator[Enrolment]:
        """
        Resolve the subscriber for `email` while holding the per-email lock.
        The caller writes `enrolment.facts` inside the block. A new subscriber
        is notified after the block exits cleanly; if the block raises, nothing
        is sent.
        """
        async with self._locks.hold(email):
            found = await self.find(email)
            enrolment = Enrolment(found) if found is not None else self._new(email)
            yield enrolment

        if enrolment.created:
            log.info("created subscriber %s", enrolment.subscriber.id)
            try:
                await self.notifier.notify(email, enrolment.token)
            except Exception:
                log.exception("could not notify new subscriber %s", enrolment.subscriber.id)

    async def ensure_subscriber(self, email: str) -> Tuple[Subscriber, bool]:
        """
        Look up the subscriber for `email`, creating one with a fresh access
        token when there is none. Returns (subscriber, created).
        """
        async with self.enrol(email) as enrolment:
            if enrolment.facts:
                await self.store.update(q.compose(q.insert_data(enrolment.facts)))
        return enrolment.subscriber, enrolment.created

    async def add_subscription(self, subscriber_id: str, filter_id: str) -> None:
        # INSERT DATA of an existing triple is a no-op in the store
        await self.store.update(q.compose(q.insert_data([subscription_fact(subscriber_id, filter_id)])))

    async def filter_ids_for_token(self, token: str) -> Optional[List[str]]:
        """Filter ids owned by the token's subscriber, None for unknown tokens."""
        rows = await self.store.select(q.select_filters_for_token(token))
        if not rows:
            return None
        seen: List[str] = []
        for row in rows:
            if "filter" in row:
                fid = id_from_uri(row["filter"]["value"])
                if fid not in seen:
                    seen.append(fid)
        return seen
