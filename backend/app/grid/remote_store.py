"""
Acesso ao armazenamento remoto, um registro por chamada

Não há transação entre chamadas: cada insert/update/delete é independente.
"""
import logging
import time
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import httpx
from app.core.logging import log_api_call
from app.grid.errors import RemoteStoreError

logger = logging.getLogger(__name__)

# Tabela -> rota REST do backend
TABLE_ROUTES = {
    "media_categories": "/api/media/categories",
    "media_pieces": "/api/media/pieces",
    "media_insertions": "/api/media/insertions",
    "project_documents": "/api/documents",
}


def to_wire(record: Dict[str, Any]) -> Dict[str, Any]:
    """Converte datas e decimais para o formato JSON da API"""
    wire = {}
    for key, value in record.items():
        if isinstance(value, (date, datetime)):
            wire[key] = value.isoformat()
        elif isinstance(value, Decimal):
            wire[key] = str(value)
        else:
            wire[key] = value
    return wire


class RemoteStore:
    """Interface consumida pelo editor de grade"""

    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def update(self, table: str, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def delete(self, table: str, record_id: Any) -> None:
        raise NotImplementedError

    async def query(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise NotImplementedError


class ApiRemoteStore(RemoteStore):
    """
    RemoteStore sobre a API REST do backend (httpx assíncrono)

    Args:
        base_url: URL do backend
        token: JWT de acesso (Authorization: Bearer)
        transport: transporte httpx alternativo (ASGITransport/MockTransport nos testes)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _route(self, table: str) -> str:
        route = TABLE_ROUTES.get(table)
        if route is None:
            raise RemoteStoreError(f"Tabela sem rota configurada: {table}", table=table)
        return route

    async def _request(self, method: str, table: str, path: str, **kwargs) -> Any:
        start = time.time()
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            log_api_call(logger, "backend", f"{method} {path}", status_code=e.response.status_code, error=detail)
            raise RemoteStoreError(detail, status_code=e.response.status_code, table=table)
        except httpx.RequestError as e:
            log_api_call(logger, "backend", f"{method} {path}", error=str(e))
            raise RemoteStoreError(f"Erro de conexão: {e}", table=table)

        log_api_call(
            logger, "backend", f"{method} {path}",
            status_code=response.status_code,
            duration_ms=round((time.time() - start) * 1000, 2),
        )
        if not response.content:
            return None
        return response.json()

    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", table, self._route(table), json=to_wire(record))

    async def update(self, table: str, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._request("PUT", table, f"{self._route(table)}/{record_id}", json=to_wire(changes))

    async def delete(self, table: str, record_id: Any) -> None:
        await self._request("DELETE", table, f"{self._route(table)}/{record_id}")

    async def query(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        params = {k: v for k, v in to_wire(filters).items() if v is not None}
        return await self._request("GET", table, self._route(table), params=params) or []

    async def signed_url(self, document: Dict[str, Any]) -> Optional[str]:
        """URL temporária de download de um documento"""
        data = await self._request("GET", "project_documents", f"/api/documents/{document['id']}/signed-url")
        return (data or {}).get("signed_url")


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, str):
        return detail
    return f"Erro {response.status_code} no servidor"
