"""
Services for the subscription filter service.

Structure:
- constraints.py: leaf constraint repository
- filters.py: filter tree builder / loader and token listings
- subscribers.py: subscriber directory and subscription edges
- notify.py: notification collaborator for new subscribers
- locks.py: per-id asyncio locks
"""

from dataclasses import dataclass
from typing import Optional

from ..database import SparqlStore
from .constraints import ConstraintRepository, constraint_facts
from .filters import FilterService, filter_facts
from .notify import HttpNotifier, LogNotifier, Notifier, build_notifier
from .subscribers import Enrolment, SubscriberDirectory, subscription_fact


@dataclass
class Services:
    store: SparqlStore
    constraints: ConstraintRepository
    filters: FilterService
    subscribers: SubscriberDirectory
    notifier: Notifier

    async def aclose(self) -> None:
        try:
            await self.notifier.aclose()
        finally:
            await self.store.aclose()


def build_services(store: SparqlStore, notifier: Optional[Notifier] = None) -> Services:
    constraints = ConstraintRepository(store)
    subscribers = SubscriberDirectory(store, notifier)
    filters = FilterService(store, constraints, subscribers)
    return Services(
        store=store,
        constraints=constraints,
        filters=filters,
        subscribers=subscribers,
        notifier=subscribers.notifier,
    )


__all__ = [
    "Services",
    "build_services",
    "ConstraintRepository",
    "FilterService",
    "SubscriberDirectory",
    "Enrolment",
    "Notifier",
    "LogNotifier",
    "HttpNotifier",
    "build_notifier",
    "constraint_facts",
    "filter_facts",
    "subscription_fact",
]
