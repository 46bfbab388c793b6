"""
Testes para o cache de configurações e consultas externas
"""
import asyncio
from cachetools import TTLCache
from app.utils.cache import cache_key, cached_coroutine, cached_function, invalidate_cache


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_cache_key_generation():
    """Mesmos argumentos geram a mesma chave"""
    assert cache_key("01310-100", uf="SP") == cache_key("01310-100", uf="SP")
    assert cache_key("01310-100") != cache_key("01310-200")


def test_cached_function_basic():
    cache = TTLCache(maxsize=10, ttl=60)
    calls = []

    @cached_function(cache)
    def load_branding(company):
        calls.append(company)
        return {"company_name": company}

    assert load_branding("LEV") == {"company_name": "LEV"}
    assert load_branding("LEV") == {"company_name": "LEV"}
    assert calls == ["LEV"]

    load_branding("Aurora")
    assert calls == ["LEV", "Aurora"]


def test_cached_function_ttl():
    """Entrada expira depois do TTL"""
    timer = FakeTimer()
    cache = TTLCache(maxsize=10, ttl=300, timer=timer)
    calls = []

    @cached_function(cache, key_func=lambda: "branding")
    def load():
        calls.append(1)
        return "dados"

    load()
    timer.now = 299
    load()
    assert len(calls) == 1

    timer.now = 301
    load()
    assert len(calls) == 2


def test_cached_coroutine_uses_custom_key():
    cache = TTLCache(maxsize=10, ttl=60)
    calls = []

    @cached_coroutine(cache, key_func=lambda cep: f"cep:{cep.replace('-', '')}")
    async def lookup(cep):
        calls.append(cep)
        return {"cep": cep.replace("-", "")}

    async def run():
        await lookup("01310-100")
        return await lookup("01310100")

    assert asyncio.run(run()) == {"cep": "01310100"}
    assert calls == ["01310-100"]
    assert "cep:01310100" in cache


def test_cached_coroutine_does_not_store_none():
    """Consulta sem resultado é refeita na próxima chamada"""
    cache = TTLCache(maxsize=10, ttl=60)
    calls = []

    @cached_coroutine(cache)
    async def lookup(cnpj):
        calls.append(cnpj)
        return None

    async def run():
        await lookup("11222333000181")
        await lookup("11222333000181")

    asyncio.run(run())
    assert len(calls) == 2
    assert len(cache) == 0


def test_invalidate_cache_all():
    cache = TTLCache(maxsize=10, ttl=60)
    cache["cep:01310100"] = {}
    cache["cnpj:11222333000181"] = {}

    invalidate_cache(cache)

    assert len(cache) == 0


def test_invalidate_cache_pattern():
    cache = TTLCache(maxsize=10, ttl=60)
    cache["cep:01310100"] = {}
    cache["cep:20040002"] = {}
    cache["cnpj:11222333000181"] = {}

    invalidate_cache(cache, pattern="cep:")

    assert list(cache.keys()) == ["cnpj:11222333000181"]


def test_cache_clear_method():
    cache = TTLCache(maxsize=10, ttl=60)

    @cached_function(cache)
    def get_value(x):
        return x * 2

    get_value(5)
    assert len(cache) == 1

    get_value.cache_clear()
    assert len(cache) == 0
