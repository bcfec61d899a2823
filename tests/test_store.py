import json
import logging
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from subscription_filters.database import HttpSparqlStore
from subscription_filters.errors import StoreError
from subscription_filters.main import app
from subscription_filters.routes import get_services
from subscription_filters.services import HttpNotifier, build_services
from subscription_filters.validation import CONSTRAINT_TYPE

ENDPOINT = "http://sparql.test/sparql"


def _store(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpSparqlStore(ENDPOINT, client=client, **kwargs)


def _form(request: httpx.Request):
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.mark.asyncio
async def test_select_posts_query_and_returns_bindings():
    seen = []

    def handler(request):
        seen.append(request)
        body = {"head": {"vars": ["s"]}, "results": {"bindings": [{"s": {"type": "uri", "value": "http://x/1"}}]}}
        return httpx.Response(200, json=body)

    store = _store(handler)
    rows = await store.select("SELECT ?s WHERE { ?s ?p ?o }")

    assert rows == [{"s": {"type": "uri", "value": "http://x/1"}}]
    assert _form(seen[0]) == {"query": "SELECT ?s WHERE { ?s ?p ?o }"}
    assert seen[0].headers["accept"] == "application/sparql-results+json"
    assert "mu-auth-sudo" not in seen[0].headers


@pytest.mark.asyncio
async def test_ask_and_update_with_sudo_and_update_endpoint():
    seen = []

    def handler(request):
        seen.append(request)
        if str(request.url).endswith("/update"):
            return httpx.Response(204)
        return httpx.Response(200, json={"head": {}, "boolean": True})

    store = _store(handler, sudo=True, update_endpoint="http://sparql.test/update")

    assert await store.ask("ASK {}") is True
    await store.update("INSERT DATA { <a:s> <a:p> <a:o> }")

    assert [r.headers["mu-auth-sudo"] for r in seen] == ["true", "true"]
    assert str(seen[1].url) == "http://sparql.test/update"
    assert _form(seen[1]) == {"update": "INSERT DATA { <a:s> <a:p> <a:o> }"}


@pytest.mark.asyncio
async def test_server_error_becomes_store_error(caplog):
    store = _store(lambda request: httpx.Response(500, text="Virtuoso 37000 Error SP030"))

    with caplog.at_level(logging.ERROR, logger="subscriptions.store"):
        with pytest.raises(StoreError) as exc:
            await store.update("INSERT DATA { <a:s> <a:p> <a:o> }")

    assert exc.value.status_code == 502
    assert "SP030" not in exc.value.detail
    assert "SP030" in caplog.text


@pytest.mark.asyncio
async def test_timeout_becomes_store_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(StoreError):
        await _store(handler).select("SELECT * WHERE { ?s ?p ?o }")


@pytest.mark.asyncio
async def test_non_json_body_becomes_store_error():
    store = _store(lambda request: httpx.Response(200, text="<html>proxy login</html>"))

    with pytest.raises(StoreError):
        await store.ask("ASK {}")


def test_store_failure_is_a_502_with_generic_detail(notifier, caplog):
    store = _store(lambda request: httpx.Response(500, text="Virtuoso 42000 secret stack"))
    app.dependency_overrides[get_services] = lambda: build_services(store, notifier)
    body = {
        "data": {
            "type": CONSTRAINT_TYPE,
            "attributes": {"subject": "title", "predicate": "exists", "object": ""},
        }
    }
    try:
        with TestClient(app) as client:
            resp = client.post("/subscription-filter-constraints", json=body)
            health = client.get("/healthz")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 502
    error = resp.json()["errors"][0]
    assert error["status"] == "502"
    assert error["detail"] == "Could not execute SPARQL query."
    assert "secret" not in resp.text
    assert "secret" in caplog.text
    assert health.status_code == 503


@pytest.mark.asyncio
async def test_http_notifier_posts_email_and_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(202)

    notifier = HttpNotifier(
        "http://mail.test/send", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    await notifier.notify("a@example.com", "tok")

    assert json.loads(seen[0].content) == {"email": "a@example.com", "token": "tok"}


@pytest.mark.asyncio
async def test_closing_services_closes_store_and_notifier_clients():
    transport = httpx.MockTransport(lambda request: httpx.Response(204))
    store_client = httpx.AsyncClient(transport=transport)
    notify_client = httpx.AsyncClient(transport=transport)
    services = build_services(
        HttpSparqlStore(ENDPOINT, client=store_client),
        HttpNotifier("http://mail.test/send", client=notify_client),
    )

    await services.aclose()

    assert store_client.is_closed
    assert notify_client.is_closed
