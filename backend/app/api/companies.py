import re
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from app.core.database import get_db
from app.core.auth import get_current_user, is_lev_user, ensure_company_access
from app.models import Company, CompanyStatus, User

router = APIRouter(prefix="/api/companies", tags=["companies"])


def _only_digits(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return re.sub(r"\D", "", value)


# Schemas
class CompanyBase(BaseModel):
    razao_social: str
    nome_comercial: str
    cnpj: str
    email: EmailStr
    phone: Optional[str] = None
    responsavel_legal: Optional[str] = None
    logo_url: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None

    @field_validator("cnpj")
    @classmethod
    def _cnpj_digits(cls, value):
        digits = _only_digits(value)
        if len(digits) != 14:
            raise ValueError("CNPJ deve conter 14 dígitos")
        return digits

    @field_validator("estado")
    @classmethod
    def _estado_upper(cls, value):
        return value.upper() if value else value


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    razao_social: Optional[str] = None
    nome_comercial: Optional[str] = None
    cnpj: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    responsavel_legal: Optional[str] = None
    logo_url: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    status: Optional[CompanyStatus] = None

    @field_validator("cnpj")
    @classmethod
    def _cnpj_digits(cls, value):
        if value is None:
            return value
        digits = _only_digits(value)
        if len(digits) != 14:
            raise ValueError("CNPJ deve conter 14 dígitos")
        return digits


class CompanyResponse(CompanyBase):
    id: int
    status: CompanyStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_projetos: int = 0

    class Config:
        from_attributes = True


class CompanyListResponse(BaseModel):
    items: List[CompanyResponse]
    total: int
    page: int
    per_page: int


def _to_response(company: Company) -> CompanyResponse:
    response = CompanyResponse.model_validate(company)
    response.total_projetos = len(company.projects) if company.projects else 0
    return response


def _require_lev(user: User) -> None:
    if not is_lev_user(user):
        raise HTTPException(status_code=403, detail="Apenas usuários LEV podem gerenciar empresas")


# Endpoints
@router.get("", response_model=CompanyListResponse)
def list_companies(
    page: int = 1,
    per_page: int = 20,
    search: Optional[str] = None,
    status: Optional[CompanyStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lista grupos econômicos com paginação e filtros"""
    query = db.query(Company)

    if not is_lev_user(current_user):
        query = query.filter(Company.id == current_user.company_id)

    if search:
        search_digits = _only_digits(search)
        condition = Company.razao_social.ilike(f"%{search}%") | Company.nome_comercial.ilike(f"%{search}%")
        if search_digits:
            condition = condition | Company.cnpj.ilike(f"%{search_digits}%")
        query = query.filter(condition)

    if status:
        query = query.filter(Company.status == status)

    total = query.count()

    companies = query.order_by(Company.razao_social).offset((page - 1) * per_page).limit(per_page).all()

    return CompanyListResponse(
        items=[_to_response(c) for c in companies],
        total=total,
        page=page,
        per_page=per_page
    )


@router.get("/options/list")
def get_company_options(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lista simplificada de empresas ativas para select/dropdown"""
    query = db.query(Company).filter(Company.status == CompanyStatus.ACTIVE)
    if not is_lev_user(current_user):
        query = query.filter(Company.id == current_user.company_id)
    companies = query.order_by(Company.nome_comercial).all()
    return [{"id": c.id, "nome_comercial": c.nome_comercial, "razao_social": c.razao_social} for c in companies]


@router.get("/{company_id}", response_model=CompanyResponse)
def get_company(
    company_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ensure_company_access(current_user, company_id)

    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Empresa não encontrada")

    return _to_response(company)


@router.post("", response_model=CompanyResponse, status_code=201)
def create_company(
    company_data: CompanyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_lev(current_user)

    existing = db.query(Company).filter(Company.cnpj == company_data.cnpj).first()
    if existing:
        raise HTTPException(status_code=400, detail="CNPJ já cadastrado")

    company = Company(**company_data.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)

    return _to_response(company)


@router.put("/{company_id}", response_model=CompanyResponse)
def update_company(
    company_id: int,
    company_data: CompanyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_lev(current_user)

    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Empresa não encontrada")

    if company_data.cnpj and company_data.cnpj != company.cnpj:
        existing = db.query(Company).filter(Company.cnpj == company_data.cnpj).first()
        if existing:
            raise HTTPException(status_code=400, detail="CNPJ já cadastrado")

    update_data = company_data.model_dump(exclude_unset=True)
    if update_data.get("estado"):
        update_data["estado"] = update_data["estado"].upper()

    for field, value in update_data.items():
        setattr(company, field, value)

    db.commit()
    db.refresh(company)

    return _to_response(company)


@router.delete("/{company_id}")
def delete_company(
    company_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Exclui um grupo econômico sem projetos nem terrenos vinculados"""
    _require_lev(current_user)

    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Empresa não encontrada")

    if company.projects or company.terrenos:
        raise HTTPException(
            status_code=400,
            detail=f"Empresa possui {len(company.projects)} projeto(s) e {len(company.terrenos)} terreno(s). Remova-os antes de excluir."
        )

    db.delete(company)
    db.commit()

    return {"message": "Empresa excluída com sucesso"}
