import pytest
from rdflib import Literal, URIRef
from rdflib.namespace import RDF

from subscription_filters.errors import MalformedListError
from subscription_filters.mapping.namespaces import list_uri
from subscription_filters.query import compose, decode, encode, insert_data


def _items(n):
    return [URIRef(f"http://example.org/item/{i}") for i in range(n)]


def test_encode_empty_is_nil():
    root, facts = encode([])
    assert root == RDF.nil
    assert facts == []


def test_encode_allocates_one_cell_per_item():
    root, facts = encode(_items(3))
    cells = {s for s, _, _ in facts}
    assert len(cells) == 3
    assert root in cells
    assert (root, RDF.first, _items(3)[0]) in facts
    assert sum(1 for _, p, o in facts if p == RDF.rest and o == RDF.nil) == 1


def test_encode_uses_fresh_cells_every_time():
    a, _ = encode(_items(1))
    b, _ = encode(_items(1))
    assert a != b


@pytest.mark.asyncio
@pytest.mark.parametrize("n", [1, 2, 7, 150])
async def test_decode_restores_encoded_order(store, n):
    items = _items(n)
    root, facts = encode(items)
    # write the chain back-to-front so store order cannot line up by accident
    await store.update(compose(insert_data(list(reversed(facts)))))

    assert await decode(store, root) == items


@pytest.mark.asyncio
async def test_decode_keeps_literals_and_duplicates(store):
    items = [Literal("b"), URIRef("http://example.org/a"), Literal("b")]
    root, facts = encode(items)
    await store.update(compose(insert_data(facts)))

    assert await decode(store, root) == items


@pytest.mark.asyncio
async def test_decode_nil_is_empty(store):
    assert await decode(store, RDF.nil) == []


@pytest.mark.asyncio
async def test_decode_rejects_broken_chain(store):
    first, dangling = list_uri(), list_uri()
    facts = [(first, RDF.first, Literal("x")), (first, RDF.rest, dangling)]
    await store.update(compose(insert_data(facts)))

    with pytest.raises(MalformedListError):
        await decode(store, first)


@pytest.mark.asyncio
async def test_decode_rejects_cyclic_chain(store):
    a, b = list_uri(), list_uri()
    facts = [
        (a, RDF.first, Literal("x")),
        (a, RDF.rest, b),
        (b, RDF.first, Literal("y")),
        (b, RDF.rest, a),
    ]
    await store.update(compose(insert_data(facts)))

    with pytest.raises(MalformedListError):
        await decode(store, a)
