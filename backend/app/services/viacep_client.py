"""
Cliente para a API ViaCEP
Consulta de endereço a partir do CEP
"""
import httpx
import logging
import re
import time
from typing import Dict, Optional
from app.core.config import settings
from app.core.logging import log_api_call
from app.services.exceptions import ExternalServiceError, LookupNotFoundError, InvalidLookupInputError

logger = logging.getLogger(__name__)


def clean_cep(cep: str) -> str:
    return re.sub(r"\D", "", cep or "")


class ViaCEPClient:
    """Busca logradouro, bairro, cidade e UF de um CEP"""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 15.0):
        self.base_url = (base_url or settings.VIACEP_BASE_URL).rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def lookup(self, cep: str) -> Dict[str, Optional[str]]:
        """
        Args:
            cep: CEP com ou sem máscara

        Returns:
            Dict com cep, logradouro, complemento, bairro, cidade e estado

        Raises:
            InvalidLookupInputError: CEP vazio ou sem 8 dígitos
            LookupNotFoundError: CEP inexistente
            ExternalServiceError: Falha de rede ou resposta inesperada
        """
        cep_clean = clean_cep(cep)
        if len(cep_clean) != 8:
            raise InvalidLookupInputError("CEP deve conter 8 dígitos")

        url = f"{self.base_url}/{cep_clean}/json/"
        logger.info(f"Buscando CEP: {cep_clean}")
        start = time.time()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            log_api_call(logger, "viacep", url, status_code=e.response.status_code, error=str(e))
            raise ExternalServiceError("Erro ao buscar CEP")
        except httpx.RequestError as e:
            log_api_call(logger, "viacep", url, error=str(e))
            raise ExternalServiceError("Erro de conexão com o serviço de CEP")
        except ValueError:
            log_api_call(logger, "viacep", url, error="Resposta não é JSON")
            raise ExternalServiceError("Resposta inválida do serviço de CEP")

        log_api_call(logger, "viacep", url, status_code=response.status_code, duration_ms=round((time.time() - start) * 1000, 2))

        if data.get("erro"):
            raise LookupNotFoundError("CEP não encontrado")

        return {
            "cep": data.get("cep"),
            "logradouro": data.get("logradouro"),
            "complemento": data.get("complemento"),
            "bairro": data.get("bairro"),
            "cidade": data.get("localidade"),
            "estado": data.get("uf"),
        }
