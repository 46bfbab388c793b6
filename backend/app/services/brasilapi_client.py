"""
Cliente para a BrasilAPI
Consulta de dados cadastrais de empresas pelo CNPJ
"""
import httpx
import logging
import re
import time
from typing import Any, Dict, Optional
from app.core.config import settings
from app.core.logging import log_api_call
from app.services.exceptions import ExternalServiceError, LookupNotFoundError, InvalidLookupInputError

logger = logging.getLogger(__name__)


def clean_cnpj(cnpj: str) -> str:
    return re.sub(r"\D", "", cnpj or "")


class BrasilAPIClient:
    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 20.0):
        self.base_url = (base_url or settings.BRASILAPI_BASE_URL).rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def lookup_cnpj(self, cnpj: str) -> Dict[str, Any]:
        """
        Busca razão social e endereço de um CNPJ

        Raises:
            InvalidLookupInputError: CNPJ sem 14 dígitos
            LookupNotFoundError: CNPJ inexistente (404 da BrasilAPI)
            ExternalServiceError: Demais falhas
        """
        cnpj_clean = clean_cnpj(cnpj)
        if len(cnpj_clean) != 14:
            raise InvalidLookupInputError("CNPJ deve conter 14 dígitos")

        url = f"{self.base_url}/cnpj/v1/{cnpj_clean}"
        logger.info(f"Buscando CNPJ: {cnpj_clean}")
        start = time.time()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            log_api_call(logger, "brasilapi", url, error=str(e))
            raise ExternalServiceError("Erro de conexão com o serviço de CNPJ")

        duration_ms = round((time.time() - start) * 1000, 2)

        if response.status_code == 404:
            log_api_call(logger, "brasilapi", url, status_code=404, duration_ms=duration_ms)
            raise LookupNotFoundError("CNPJ não encontrado")

        if response.status_code >= 400:
            log_api_call(logger, "brasilapi", url, status_code=response.status_code, duration_ms=duration_ms, error=response.text[:500])
            raise ExternalServiceError("Erro ao buscar CNPJ")

        try:
            data = response.json()
        except ValueError:
            raise ExternalServiceError("Resposta inválida do serviço de CNPJ")

        log_api_call(logger, "brasilapi", url, status_code=response.status_code, duration_ms=duration_ms)

        return {
            "razao_social": data.get("razao_social") or data.get("nome_fantasia"),
            "nome_fantasia": data.get("nome_fantasia"),
            "cnpj": data.get("cnpj"),
            "logradouro": data.get("logradouro"),
            "numero": data.get("numero"),
            "complemento": data.get("complemento"),
            "bairro": data.get("bairro"),
            "municipio": data.get("municipio"),
            "uf": data.get("uf"),
            "cep": data.get("cep"),
        }
