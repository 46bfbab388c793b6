from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from app.core.database import get_db
from app.core.auth import get_current_user, is_lev_user, ensure_company_access
from app.models import Terreno, TerrenoStatus, Company, User

router = APIRouter(prefix="/api/terrenos", tags=["terrenos"])


# Schemas
class TerrenoBase(BaseModel):
    company_id: int
    nome: str
    area: Decimal = Field(..., gt=0)
    matricula: Optional[str] = None
    descricao: Optional[str] = None
    status: TerrenoStatus = TerrenoStatus.AVAILABLE
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = Field(None, max_length=2)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class TerrenoCreate(TerrenoBase):
    pass


class TerrenoUpdate(BaseModel):
    company_id: Optional[int] = None
    nome: Optional[str] = None
    area: Optional[Decimal] = Field(None, gt=0)
    matricula: Optional[str] = None
    descricao: Optional[str] = None
    status: Optional[TerrenoStatus] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = Field(None, max_length=2)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class TerrenoResponse(TerrenoBase):
    id: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TerrenoListResponse(BaseModel):
    items: List[TerrenoResponse]
    total: int
    page: int
    per_page: int


def _get_terreno(db: Session, terreno_id: int, user: User) -> Terreno:
    terreno = db.query(Terreno).filter(Terreno.id == terreno_id).first()
    if not terreno:
        raise HTTPException(status_code=404, detail="Terreno não encontrado")
    ensure_company_access(user, terreno.company_id)
    return terreno


def _check_company(db: Session, user: User, company_id: int) -> None:
    ensure_company_access(user, company_id)
    if not db.query(Company).filter(Company.id == company_id).first():
        raise HTTPException(status_code=404, detail="Empresa não encontrada")


# Endpoints
@router.get("", response_model=TerrenoListResponse)
def list_terrenos(
    page: int = 1,
    per_page: int = 20,
    search: Optional[str] = None,
    company_id: Optional[int] = None,
    status: Optional[TerrenoStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lista terrenos do land bank com paginação e filtros"""
    query = db.query(Terreno)

    if not is_lev_user(current_user):
        query = query.filter(Terreno.company_id == current_user.company_id)
    elif company_id:
        query = query.filter(Terreno.company_id == company_id)

    if search:
        query = query.filter(
            Terreno.nome.ilike(f"%{search}%") |
            Terreno.matricula.ilike(f"%{search}%") |
            Terreno.cidade.ilike(f"%{search}%")
        )

    if status:
        query = query.filter(Terreno.status == status)

    total = query.count()

    terrenos = query.order_by(Terreno.created_at.desc(), Terreno.id.desc()).offset((page - 1) * per_page).limit(per_page).all()

    return TerrenoListResponse(
        items=[TerrenoResponse.model_validate(t) for t in terrenos],
        total=total,
        page=page,
        per_page=per_page
    )


@router.get("/{terreno_id}", response_model=TerrenoResponse)
def get_terreno(
    terreno_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _get_terreno(db, terreno_id, current_user)


@router.post("", response_model=TerrenoResponse, status_code=201)
def create_terreno(
    terreno_data: TerrenoCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _check_company(db, current_user, terreno_data.company_id)

    data = terreno_data.model_dump()
    if data.get("estado"):
        data["estado"] = data["estado"].upper()

    terreno = Terreno(**data, created_by=current_user.id)
    db.add(terreno)
    db.commit()
    db.refresh(terreno)

    return terreno


@router.put("/{terreno_id}", response_model=TerrenoResponse)
def update_terreno(
    terreno_id: int,
    terreno_data: TerrenoUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    terreno = _get_terreno(db, terreno_id, current_user)

    update_data = terreno_data.model_dump(exclude_unset=True)

    # Campos obrigatórios não podem ser apagados
    for field in ("company_id", "nome", "area", "status"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(status_code=400, detail=f"Campo obrigatório: {field}")

    if "company_id" in update_data:
        _check_company(db, current_user, update_data["company_id"])

    if update_data.get("estado"):
        update_data["estado"] = update_data["estado"].upper()

    for field, value in update_data.items():
        setattr(terreno, field, value)

    db.commit()
    db.refresh(terreno)

    return terreno


@router.delete("/{terreno_id}")
def delete_terreno(
    terreno_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    terreno = _get_terreno(db, terreno_id, current_user)

    db.delete(terreno)
    db.commit()

    return {"message": "Terreno excluído com sucesso"}
