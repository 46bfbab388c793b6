"""
Cache em memória para configurações e consultas externas
"""
from cachetools import TTLCache
from functools import wraps
from typing import Callable, Optional
import json
import hashlib


# Configurações do sistema / identidade visual (5 minutos)
settings_cache = TTLCache(maxsize=10, ttl=300)

# Consultas de CEP e CNPJ (1 hora)
lookup_cache = TTLCache(maxsize=500, ttl=3600)


def cache_key(*args, **kwargs) -> str:
    """
    Gera uma chave de cache a partir dos argumentos
    """
    key_data = json.dumps({"args": args, "kwargs": kwargs}, sort_keys=True, default=str)
    return hashlib.md5(key_data.encode()).hexdigest()


def cached_function(cache: TTLCache, key_func: Optional[Callable] = None):
    """
    Decorator para cachear resultados de funções

    Args:
        cache: Cache a ser utilizado
        key_func: Função para gerar chave do cache (opcional)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            key = key_func(*args, **kwargs) if key_func else cache_key(*args, **kwargs)

            if key in cache:
                return cache[key]

            result = func(*args, **kwargs)
            cache[key] = result
            return result

        wrapper.cache_clear = lambda: cache.clear()
        wrapper.cache = cache

        return wrapper
    return decorator


def cached_coroutine(cache: TTLCache, key_func: Optional[Callable] = None):
    """
    Versão de cached_function para funções async.
    Resultados None não são guardados, para que uma falha seja tentada de novo.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            key = key_func(*args, **kwargs) if key_func else cache_key(*args, **kwargs)

            if key in cache:
                return cache[key]

            result = await func(*args, **kwargs)
            if result is not None:
                cache[key] = result
            return result

        wrapper.cache_clear = lambda: cache.clear()
        wrapper.cache = cache

        return wrapper
    return decorator


def invalidate_cache(cache: TTLCache, pattern: Optional[str] = None):
    """
    Invalida cache baseado em pattern

    Args:
        cache: Cache a invalidar
        pattern: Pattern para buscar chaves (opcional, se None limpa tudo)
    """
    if pattern is None:
        cache.clear()
    else:
        keys_to_delete = [k for k in cache.keys() if pattern in str(k)]
        for key in keys_to_delete:
            del cache[key]
