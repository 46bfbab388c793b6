"""
Testes do cache de URLs assinadas e do RemoteStore HTTP
"""
import asyncio
import json
from datetime import date
from decimal import Decimal
import httpx
import pytest
from app.grid import ApiRemoteStore, DocumentUrlCache, RemoteStoreError
from tests.grid_support import run


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class Fetcher:
    def __init__(self, fail_ids=()):
        self.calls = []
        self.fail_ids = set(fail_ids)
        self.cache = None

    async def __call__(self, document):
        self.calls.append(document["id"])
        if self.cache is not None:
            assert self.cache.is_preloading
        await asyncio.sleep(0)
        if document["id"] in self.fail_ids:
            raise RemoteStoreError("Documento não encontrado", status_code=404)
        return f"https://files.test/{document['id']}?v={len(self.calls)}"


def test_url_reused_until_expiry():
    timer = FakeTimer()
    fetcher = Fetcher()
    cache = DocumentUrlCache(fetcher, timer=timer)

    first = run(cache.get_url({"id": 1}))
    timer.now = 49 * 60
    assert run(cache.get_url({"id": 1})) == first
    assert fetcher.calls == [1]

    timer.now = 51 * 60
    assert cache.cached({"id": 1}) is None
    assert run(cache.get_url({"id": 1})) != first
    assert fetcher.calls == [1, 1]


def test_fetch_error_returns_none_and_is_not_cached():
    fetcher = Fetcher(fail_ids={2})
    cache = DocumentUrlCache(fetcher, ttl=60)

    assert run(cache.get_url({"id": 2})) is None
    assert run(cache.get_url({"id": 2})) is None
    assert fetcher.calls == [2, 2]
    assert len(cache) == 0


def test_preload_fetches_only_missing():
    fetcher = Fetcher()
    cache = DocumentUrlCache(fetcher, ttl=60)
    run(cache.get_url({"id": 1}))

    fetcher.cache = cache
    run(cache.preload([{"id": 1}, {"id": 2}, {"id": 3}]))

    assert sorted(fetcher.calls) == [1, 2, 3]
    assert fetcher.calls.count(1) == 1
    assert len(cache) == 3
    assert not cache.is_preloading


def test_preload_survives_failures():
    fetcher = Fetcher(fail_ids={5})
    cache = DocumentUrlCache(fetcher, ttl=60)

    run(cache.preload([{"id": 4}, {"id": 5}]))

    assert cache.cached({"id": 4}) is not None
    assert cache.cached({"id": 5}) is None
    assert not cache.is_preloading


def _store(handler):
    return ApiRemoteStore("https://api.test", token="jwt", transport=httpx.MockTransport(handler))


def test_remote_store_requests():
    seen = []

    def handler(request):
        body = json.loads(request.content) if request.content else None
        seen.append((request.method, request.url.path, dict(request.url.params), body, request.headers["authorization"]))
        if request.method == "POST":
            return httpx.Response(201, json={"id": 55, **body})
        if request.method == "DELETE":
            return httpx.Response(200, json={"message": "ok"})
        return httpx.Response(200, json=[])

    async def scenario():
        async with _store(handler) as store:
            created = await store.insert("media_insertions", {
                "media_piece_id": 1, "insertion_date": date(2025, 1, 15), "quantity": 2, "actual_cost": Decimal("9.90"),
            })
            await store.query("media_insertions", {"project_id": 7, "start_date": date(2025, 1, 1), "end_date": None})
            await store.delete("media_insertions", 55)
            return created

    created = run(scenario())

    assert created["id"] == 55
    assert seen == [
        ("POST", "/api/media/insertions", {},
         {"media_piece_id": 1, "insertion_date": "2025-01-15", "quantity": 2, "actual_cost": "9.90"}, "Bearer jwt"),
        ("GET", "/api/media/insertions", {"project_id": "7", "start_date": "2025-01-01"}, None, "Bearer jwt"),
        ("DELETE", "/api/media/insertions/55", {}, None, "Bearer jwt"),
    ]


def test_remote_store_maps_http_errors():
    def handler(request):
        if request.url.path.startswith("/api/media/pieces"):
            return httpx.Response(400, json={"detail": "Data fora do período de veiculação da peça"})
        raise httpx.ConnectError("recusado", request=request)

    async def scenario():
        async with _store(handler) as store:
            with pytest.raises(RemoteStoreError) as http_error:
                await store.update("media_pieces", 1, {"end_date": date(2025, 1, 1)})
            with pytest.raises(RemoteStoreError) as connection_error:
                await store.query("media_categories", {})
            with pytest.raises(RemoteStoreError):
                await store.insert("tabela_desconhecida", {})
            return http_error.value, connection_error.value

    http_error, connection_error = run(scenario())

    assert str(http_error) == "Data fora do período de veiculação da peça"
    assert http_error.status_code == 400
    assert http_error.table == "media_pieces"
    assert connection_error.status_code is None


def test_signed_url_through_cache():
    def handler(request):
        assert request.url.path == "/api/documents/8/signed-url"
        return httpx.Response(200, json={"document_id": 8, "signed_url": "https://api.test/obj?token=x", "expires_in": 3600})

    async def scenario():
        async with _store(handler) as store:
            cache = DocumentUrlCache(store.signed_url, ttl=60)
            return await cache.get_url({"id": 8})

    assert run(scenario()) == "https://api.test/obj?token=x"
