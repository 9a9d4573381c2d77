"""Shared test fixtures for agentkv."""

from __future__ import annotations

import json
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio

from agentkv.core.config import AgentKVConfig
from agentkv.store.provider import Provider

COUCH_URL = "http://couch.test:5984"


class FakeCouchDB:
    """
    Just enough of CouchDB's HTTP API to back CouchDBBackend in tests.

    Served through httpx.MockTransport; keeps databases in dicts.
    """

    def __init__(self) -> None:
        self.dbs: dict[str, dict[str, dict]] = {}
        self.requests: list[tuple[str, str]] = []
        self._rev_counter = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _next_rev(self) -> str:
        self._rev_counter += 1
        return f"{self._rev_counter}-fake"

    def handle(self, request: httpx.Request) -> httpx.Response:
        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        parts = [unquote(p) for p in raw_path.strip("/").split("/") if p]
        self.requests.append((request.method, raw_path))

        if not parts:
            return httpx.Response(200, json={"couchdb": "Welcome", "version": "3.3.3"})

        db_name = parts[0]
        if len(parts) == 1:
            return self._handle_db(request, db_name)

        db = self.dbs.get(db_name)
        if db is None:
            return httpx.Response(404, json={"error": "not_found", "reason": "Database does not exist."})

        if parts[1] == "_all_docs":
            return self._all_docs(request, db)
        return self._handle_doc(request, db, parts[1])

    def _handle_db(self, request: httpx.Request, name: str) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(200 if name in self.dbs else 404)
        if request.method == "PUT":
            if name in self.dbs:
                return httpx.Response(412, json={"error": "file_exists"})
            self.dbs[name] = {}
            return httpx.Response(201, json={"ok": True})
        return httpx.Response(405)

    def _handle_doc(self, request: httpx.Request, db: dict, doc_id: str) -> httpx.Response:
        doc = db.get(doc_id)

        if request.method in ("GET", "HEAD"):
            if doc is None:
                return httpx.Response(404, json={"error": "not_found", "reason": "missing"})
            headers = {"ETag": f'"{doc["_rev"]}"'}
            if request.method == "HEAD":
                return httpx.Response(200, headers=headers)
            return httpx.Response(200, json=doc, headers=headers)

        if request.method == "PUT":
            body = json.loads(request.content)
            if doc is not None and body.get("_rev") != doc["_rev"]:
                return httpx.Response(409, json={"error": "conflict"})
            body["_id"] = doc_id
            body["_rev"] = self._next_rev()
            db[doc_id] = body
            return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": body["_rev"]})

        if request.method == "DELETE":
            if doc is None:
                return httpx.Response(404, json={"error": "not_found"})
            if request.url.params.get("rev") != doc["_rev"]:
                return httpx.Response(409, json={"error": "conflict"})
            del db[doc_id]
            return httpx.Response(200, json={"ok": True})

        return httpx.Response(405)

    def _all_docs(self, request: httpx.Request, db: dict) -> httpx.Response:
        params = request.url.params
        start = json.loads(params.get("startkey", '""'))
        end = json.loads(params["endkey"]) if "endkey" in params else None
        inclusive_end = params.get("inclusive_end", "true") == "true"
        limit = int(params.get("limit", 1_000_000))
        skip = int(params.get("skip", 0))

        ids = []
        for doc_id in sorted(db):
            if doc_id < start:
                continue
            if end is not None and (doc_id > end or (doc_id == end and not inclusive_end)):
                continue
            ids.append(doc_id)

        ids = ids[skip:skip + limit]
        rows = [
            {"id": doc_id, "key": doc_id, "value": {"rev": db[doc_id]["_rev"]}, "doc": db[doc_id]}
            for doc_id in ids
        ]
        return httpx.Response(200, json={"total_rows": len(db), "offset": 0, "rows": rows})


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return AgentKVConfig()


@pytest.fixture
def couch():
    """Create a fresh fake CouchDB server."""
    return FakeCouchDB()


@pytest_asyncio.fixture(params=["memory", "sqlite", "couchdb"])
async def provider(request, tmp_path, couch):
    """A connected provider on each backend, closed after the test."""
    if request.param == "memory":
        prov = await Provider.connect("memory://", batch_size=2)
    elif request.param == "sqlite":
        prov = await Provider.connect(f"sqlite://{tmp_path / 'kv.db'}", batch_size=2)
    else:
        prov = await Provider.connect(COUCH_URL, batch_size=2, transport=couch.transport)
    yield prov
    await prov.close()
