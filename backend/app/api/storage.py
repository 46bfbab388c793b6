from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from app.models import BRANDING_BUCKET
from app.services.storage import (
    StorageService,
    StorageError,
    ObjectNotFoundError,
    InvalidSignatureError,
    get_storage,
)

router = APIRouter(prefix="/api/storage", tags=["storage"])

PUBLIC_BUCKETS = {BRANDING_BUCKET}


@router.get("/object")
def get_signed_object(token: str, storage: StorageService = Depends(get_storage)):
    """Entrega o objeto de uma URL assinada"""
    try:
        bucket, file_path = storage.verify_signed_token(token)
        path, mime_type = storage.open(bucket, file_path)
    except InvalidSignatureError:
        raise HTTPException(status_code=403, detail="URL inválida ou expirada")
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail="Arquivo não encontrado")
    except StorageError:
        raise HTTPException(status_code=400, detail="Caminho inválido")

    return FileResponse(path, media_type=mime_type, filename=path.name)


@router.get("/public/{bucket}/{file_path:path}")
def get_public_object(bucket: str, file_path: str, storage: StorageService = Depends(get_storage)):
    """Assets de buckets públicos (identidade visual)"""
    if bucket not in PUBLIC_BUCKETS:
        raise HTTPException(status_code=404, detail="Arquivo não encontrado")

    try:
        path, mime_type = storage.open(bucket, file_path)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail="Arquivo não encontrado")
    except StorageError:
        raise HTTPException(status_code=400, detail="Caminho inválido")

    return FileResponse(path, media_type=mime_type)
