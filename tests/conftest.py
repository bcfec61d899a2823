import asyncio
from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from subscription_filters.database import MemorySparqlStore
from subscription_filters.main import app
from subscription_filters.routes import get_services
from subscription_filters.services import Notifier, build_services


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def notify(self, email: str, token: str) -> None:
        self.sent.append((email, token))


class YieldingStore(MemorySparqlStore):
    """Gives other tasks a turn before every store call, like a remote store."""

    async def ask(self, query: str) -> bool:
        await asyncio.sleep(0)
        return await super().ask(query)

    async def select(self, query: str):
        await asyncio.sleep(0)
        return await super().select(query)

    async def update(self, update: str) -> None:
        await asyncio.sleep(0)
        await super().update(update)


@pytest.fixture
def store():
    return MemorySparqlStore()


@pytest.fixture
def yielding_store():
    return YieldingStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def services(store, notifier):
    return build_services(store, notifier)


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
