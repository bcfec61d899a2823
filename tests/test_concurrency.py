import asyncio

import pytest

from subscription_filters.mapping.namespaces import filter_uri
from subscription_filters.models import Combinator
from subscription_filters.services import build_services

_COMBINATOR_EDGES = f"""PREFIX sh: <http://www.w3.org/ns/shacl#>
SELECT ?combinator ?list WHERE {{
  VALUES ?combinator {{ sh:and sh:or }}
  {filter_uri("f1").n3()} ?combinator ?list
}}"""
_LIST_CELLS = "SELECT ?cell WHERE { ?cell <http://www.w3.org/1999/02/22-rdf-syntax-ns#first> ?item }"
_PEOPLE = "SELECT ?user WHERE { ?user a <http://schema.org/Person> }"


@pytest.fixture
def services(yielding_store, notifier):
    return build_services(yielding_store, notifier)


@pytest.mark.asyncio
async def test_concurrent_ensure_subscriber_creates_one(services, yielding_store, notifier):
    results = await asyncio.gather(
        services.subscribers.ensure_subscriber("a@example.com"),
        services.subscribers.ensure_subscriber("a@example.com"),
    )

    assert sorted(created for _, created in results) == [False, True]
    assert results[0][0].id == results[1][0].id
    assert len(await yielding_store.select(_PEOPLE)) == 1
    assert len(notifier.sent) == 1
    assert len(services.subscribers._locks) == 0


@pytest.mark.asyncio
async def test_concurrent_filter_creates_for_one_email_share_a_subscriber(services, yielding_store, notifier):
    await services.constraints.create("c1", "title", "exists", "")

    await asyncio.gather(
        services.filters.create("f1", Combinator.ALL, ["c1"], [], email="a@example.com"),
        services.filters.create("f2", Combinator.ANY, ["c1"], [], email="a@example.com"),
    )

    assert len(await yielding_store.select(_PEOPLE)) == 1
    assert len(notifier.sent) == 1
    listings = await services.filters.list_for_token(notifier.sent[0][1])
    assert sorted(f.id for f in listings) == ["f1", "f2"]


@pytest.mark.asyncio
async def test_concurrent_replaces_leave_one_consistent_filter(services, yielding_store):
    for cid in ("c1", "c2", "c3", "c4", "c5"):
        await services.constraints.create(cid, "title", "textContains", cid)
    await services.filters.create("f1", Combinator.ALL, ["c1"], [])

    await asyncio.gather(
        services.filters.replace("f1", Combinator.ANY, ["c2", "c3"], []),
        services.filters.replace("f1", Combinator.ALL, ["c4", "c5", "c1"], []),
    )

    assert len(await yielding_store.select(_COMBINATOR_EDGES)) == 1
    node = await services.filters.load_node("f1")
    assert (node.combinator, node.constraint_ids) in [
        (Combinator.ANY, ["c2", "c3"]),
        (Combinator.ALL, ["c4", "c5", "c1"]),
    ]
    # title paths are single-hop, so the only list is the filter's own
    assert len(await yielding_store.select(_LIST_CELLS)) == len(node.children)
    assert len(services.filters._locks) == 0


@pytest.mark.asyncio
async def test_concurrent_replace_and_delete(services, yielding_store):
    await services.constraints.create("c1", "title", "exists", "")
    await services.constraints.create("c2", "description", "exists", "")
    await services.filters.create("f1", Combinator.ALL, ["c1"], [])

    results = await asyncio.gather(
        services.filters.replace("f1", Combinator.ANY, ["c2"], []),
        services.filters.delete("f1"),
        return_exceptions=True,
    )

    assert not any(isinstance(r, Exception) for r in results)
    assert not await services.filters.exists("f1")
    assert await yielding_store.select(_LIST_CELLS) == []
    assert len(services.filters._locks) == 0
