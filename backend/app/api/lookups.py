from fastapi import APIRouter, Depends, HTTPException, Request
from typing import Optional
from pydantic import BaseModel
from app.core.auth import get_current_user
from app.core.rate_limit import limiter, LOOKUP_LIMIT
from app.models import User
from app.services.brasilapi_client import BrasilAPIClient, clean_cnpj
from app.services.exceptions import ExternalServiceError
from app.services.viacep_client import ViaCEPClient, clean_cep
from app.utils.cache import lookup_cache, cached_coroutine

router = APIRouter(prefix="/api/lookups", tags=["lookups"])


class CepRequest(BaseModel):
    cep: str


class CepResponse(BaseModel):
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


class CnpjRequest(BaseModel):
    cnpj: str


class CnpjResponse(BaseModel):
    razao_social: Optional[str] = None
    nome_fantasia: Optional[str] = None
    cnpj: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    municipio: Optional[str] = None
    uf: Optional[str] = None
    cep: Optional[str] = None


def get_viacep_client() -> ViaCEPClient:
    return ViaCEPClient()


def get_brasilapi_client() -> BrasilAPIClient:
    return BrasilAPIClient()


@cached_coroutine(lookup_cache, key_func=lambda client, cep: f"cep:{clean_cep(cep)}")
async def fetch_cep(client: ViaCEPClient, cep: str) -> dict:
    return await client.lookup(cep)


@cached_coroutine(lookup_cache, key_func=lambda client, cnpj: f"cnpj:{clean_cnpj(cnpj)}")
async def fetch_cnpj(client: BrasilAPIClient, cnpj: str) -> dict:
    return await client.lookup_cnpj(cnpj)


@router.post("/cep", response_model=CepResponse)
@limiter.limit(LOOKUP_LIMIT)
async def lookup_cep(
    request: Request,
    payload: CepRequest,
    current_user: User = Depends(get_current_user),
    client: ViaCEPClient = Depends(get_viacep_client),
):
    """Endereço a partir do CEP (ViaCEP)"""
    try:
        return CepResponse(**await fetch_cep(client, payload.cep))
    except ExternalServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/cnpj", response_model=CnpjResponse)
@limiter.limit(LOOKUP_LIMIT)
async def lookup_cnpj(
    request: Request,
    payload: CnpjRequest,
    current_user: User = Depends(get_current_user),
    client: BrasilAPIClient = Depends(get_brasilapi_client),
):
    """Razão social e endereço a partir do CNPJ (BrasilAPI)"""
    try:
        return CnpjResponse(**await fetch_cnpj(client, payload.cnpj))
    except ExternalServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
