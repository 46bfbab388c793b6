import logging
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
from typing import Literal, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from app.core.database import get_db
from app.core.auth import get_current_admin_user, is_lev_user
from app.models import SystemSettings, User, BRANDING_BUCKET
from app.services.storage import StorageService, StorageError, get_storage
from app.utils.cache import settings_cache, cached_function, invalidate_cache
from app.utils.file_validation import (
    ALLOWED_BRANDING_EXTENSIONS,
    MAX_BRANDING_SIZE,
    build_storage_path,
    validate_upload_file,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])

BRANDING_CACHE_KEY = "branding"

# Asset -> coluna de system_settings
BRANDING_ASSETS = {
    "logo": "logo_url",
    "logo_dark": "logo_dark_url",
    "favicon": "favicon_url",
}


class BrandingResponse(BaseModel):
    logo_url: Optional[str] = None
    logo_dark_url: Optional[str] = None
    favicon_url: Optional[str] = None
    primary_color_h: Optional[int] = None
    primary_color_s: Optional[int] = None
    primary_color_l: Optional[int] = None
    secondary_color_h: Optional[int] = None
    secondary_color_s: Optional[int] = None
    secondary_color_l: Optional[int] = None
    allow_theme_toggle: bool = True
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BrandingUpdateRequest(BaseModel):
    logo_url: Optional[str] = None
    logo_dark_url: Optional[str] = None
    favicon_url: Optional[str] = None
    primary_color_h: Optional[int] = Field(None, ge=0, le=360)
    primary_color_s: Optional[int] = Field(None, ge=0, le=100)
    primary_color_l: Optional[int] = Field(None, ge=0, le=100)
    secondary_color_h: Optional[int] = Field(None, ge=0, le=360)
    secondary_color_s: Optional[int] = Field(None, ge=0, le=100)
    secondary_color_l: Optional[int] = Field(None, ge=0, le=100)
    allow_theme_toggle: Optional[bool] = None


def _get_or_create_settings(db: Session) -> SystemSettings:
    row = db.query(SystemSettings).order_by(SystemSettings.id).first()
    if row is None:
        row = SystemSettings(allow_theme_toggle=True)
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


@cached_function(settings_cache, key_func=lambda db: BRANDING_CACHE_KEY)
def load_branding(db: Session) -> BrandingResponse:
    return BrandingResponse.model_validate(_get_or_create_settings(db))


def _require_lev_admin(user: User) -> None:
    if not is_lev_user(user):
        raise HTTPException(status_code=403, detail="Apenas administradores LEV podem alterar a identidade visual")


@router.get("/branding", response_model=BrandingResponse)
def get_branding(db: Session = Depends(get_db)):
    """Identidade visual pública (usada antes do login)"""
    return load_branding(db)


@router.put("/branding", response_model=BrandingResponse)
def update_branding(
    params: BrandingUpdateRequest,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    _require_lev_admin(current_user)

    row = _get_or_create_settings(db)
    for field, value in params.model_dump(exclude_unset=True).items():
        setattr(row, field, value)

    db.commit()
    db.refresh(row)

    invalidate_cache(settings_cache, BRANDING_CACHE_KEY)

    return BrandingResponse.model_validate(row)


@router.post("/branding/{asset}", response_model=BrandingResponse)
async def upload_branding_asset(
    asset: Literal["logo", "logo_dark", "favicon"],
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Envia logo, logo escuro ou favicon para o bucket branding"""
    _require_lev_admin(current_user)

    content = await validate_upload_file(file, ALLOWED_BRANDING_EXTENSIONS, MAX_BRANDING_SIZE)
    file_path = build_storage_path(asset, file.filename)

    try:
        storage.upload(BRANDING_BUCKET, file_path, content)
    except StorageError as e:
        logger.error(f"Falha ao gravar asset de identidade visual: {e}")
        raise HTTPException(status_code=500, detail="Erro ao salvar arquivo")

    row = _get_or_create_settings(db)
    setattr(row, BRANDING_ASSETS[asset], storage.get_public_url(BRANDING_BUCKET, file_path))
    db.commit()
    db.refresh(row)

    invalidate_cache(settings_cache, BRANDING_CACHE_KEY)

    return BrandingResponse.model_validate(row)
