from __future__ import annotations
import json, logging
from typing import Any, Dict, List, Optional

import httpx
from rdflib import Dataset

from .. import settings
from ..errors import StoreError

log = logging.getLogger("subscriptions.store")

Binding = Dict[str, Dict[str, str]]  # SPARQL 1.1 JSON results: var -> {type, value}


class SparqlStore:
    """
    Minimal SPARQL 1.1 protocol surface the services need. A single call to
    `update` may hold several operations separated by ';' and is sent as one
    request, so it is applied as a unit.
    """

    async def ask(self, query: str) -> bool:
        raise NotImplementedError

    async def select(self, query: str) -> List[Binding]:
        raise NotImplementedError

    async def update(self, update: str) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class HttpSparqlStore(SparqlStore):
    def __init__(
        self,
        endpoint: str,
        *,
        update_endpoint: Optional[str] = None,
        timeout: float = 30.0,
        sudo: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.update_endpoint = update_endpoint or endpoint
        self.headers = {"Accept": "application/sparql-results+json"}
        if sudo:
            self.headers["mu-auth-sudo"] = "true"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _post(self, url: str, data: Dict[str, str]) -> httpx.Response:
        try:
            r = await self._client.post(url, data=data, headers=self.headers)
            r.raise_for_status()
            return r
        except httpx.HTTPStatusError as e:
            log.error(
                "SPARQL endpoint answered %s: %s", e.response.status_code, e.response.text[:500]
            )
            raise StoreError() from e
        except httpx.HTTPError as e:
            log.error("SPARQL request to %s failed: %s", url, e)
            raise StoreError() from e

    async def _query(self, query: str) -> Dict[str, Any]:
        log.debug("query: %s", query)
        r = await self._post(self.endpoint, {"query": query})
        try:
            return r.json()
        except ValueError as e:
            log.error("SPARQL endpoint returned non-JSON body: %s", r.text[:500])
            raise StoreError() from e

    async def ask(self, query: str) -> bool:
        return bool((await self._query(query)).get("boolean", False))

    async def select(self, query: str) -> List[Binding]:
        body = await self._query(query)
        return body.get("results", {}).get("bindings", [])

    async def update(self, update: str) -> None:
        log.debug("update: %s", update)
        await self._post(self.update_endpoint, {"update": update})

    async def aclose(self) -> None:
        await self._client.aclose()


class MemorySparqlStore(SparqlStore):
    """
    In-process store on an rdflib Dataset. Queries without a GRAPH clause see
    the union of all graphs, like most triple stores behind mu-auth.
    """

    def __init__(self, dataset: Optional[Dataset] = None):
        self.dataset = dataset if dataset is not None else Dataset(default_union=True)

    def _run(self, query: str) -> Dict[str, Any]:
        try:
            result = self.dataset.query(query)
            return json.loads(result.serialize(format="json"))
        except Exception as e:
            log.exception("in-memory query failed")
            raise StoreError() from e

    async def ask(self, query: str) -> bool:
        return bool(self._run(query).get("boolean", False))

    async def select(self, query: str) -> List[Binding]:
        return self._run(query).get("results", {}).get("bindings", [])

    async def update(self, update: str) -> None:
        try:
            self.dataset.update(update)
        except Exception as e:
            log.exception("in-memory update failed")
            raise StoreError() from e

    def __len__(self) -> int:
        return sum(1 for _ in self.dataset.quads((None, None, None, None)))


def build_store() -> SparqlStore:
    if settings.STORE_BACKEND == "memory":
        log.warning("Using in-memory SPARQL store; data is lost on restart")
        return MemorySparqlStore()
    if settings.STORE_BACKEND != "http":
        raise RuntimeError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")
    return HttpSparqlStore(
        settings.SPARQL_ENDPOINT,
        update_endpoint=settings.SPARQL_UPDATE_ENDPOINT,
        timeout=settings.SPARQL_TIMEOUT_SECONDS,
        sudo=settings.SPARQL_SUDO,
    )
