"""
Cache de URLs assinadas de documentos

As URLs são emitidas com validade de 1 hora e mantidas por 50 minutos,
para nunca entregar uma URL prestes a expirar.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
from cachetools import TTLCache
from app.core.config import settings
from app.grid.errors import RemoteStoreError

logger = logging.getLogger(__name__)

UrlFetcher = Callable[[Dict[str, Any]], Awaitable[Optional[str]]]


class DocumentUrlCache:
    def __init__(
        self,
        fetcher: UrlFetcher,
        ttl: Optional[float] = None,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self._cache = TTLCache(
            maxsize=maxsize,
            ttl=ttl if ttl is not None else settings.SIGNED_URL_CACHE_SECONDS,
            timer=timer,
        )
        self.is_preloading = False

    def cached(self, document: Dict[str, Any]) -> Optional[str]:
        return self._cache.get(document["id"])

    async def get_url(self, document: Dict[str, Any]) -> Optional[str]:
        """URL válida do cache ou recém-emitida; None em caso de erro"""
        url = self.cached(document)
        if url is not None:
            return url

        try:
            url = await self.fetcher(document)
        except RemoteStoreError as e:
            logger.error(f"Erro ao gerar URL assinada do documento {document['id']}: {e}")
            return None

        if url:
            self._cache[document["id"]] = url
        return url

    async def preload(self, documents: Iterable[Dict[str, Any]]) -> None:
        """Busca em paralelo as URLs ausentes ou expiradas"""
        missing = [doc for doc in documents if self.cached(doc) is None]
        if not missing:
            return

        self.is_preloading = True
        try:
            await asyncio.gather(*(self.get_url(doc) for doc in missing))
        finally:
            self.is_preloading = False

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
