import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from dateutil.relativedelta import relativedelta
from app.core.database import get_db
from app.core.auth import get_current_user, is_lev_user
from app.models import (
    MediaType,
    MediaCategory,
    MediaPiece,
    MediaInsertion,
    MediaBudget,
    User,
)
from app.services.media_costs import budget_usage, insertion_cost
from app.services.permissions import get_accessible_project

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/media", tags=["media"])


# ==================== SCHEMAS ====================

class CategoryCreate(BaseModel):
    name: str
    order_index: int = 0
    is_active: bool = True


class CategoryResponse(CategoryCreate):
    id: int

    class Config:
        from_attributes = True


class PieceCreate(BaseModel):
    project_id: int
    category_id: int
    name: str = Field(..., min_length=1)
    channel: str = Field(..., min_length=1)
    media_type: MediaType = MediaType.ONLINE
    piece_type: str = ""
    schedule_time: Optional[str] = None
    cost_per_insertion: Optional[Decimal] = Field(None, ge=0)
    global_cost: Optional[Decimal] = Field(None, ge=0)
    start_date: date
    end_date: date


class PieceUpdate(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = None
    channel: Optional[str] = None
    media_type: Optional[MediaType] = None
    piece_type: Optional[str] = None
    schedule_time: Optional[str] = None
    cost_per_insertion: Optional[Decimal] = Field(None, ge=0)
    global_cost: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class PieceResponse(BaseModel):
    id: int
    project_id: int
    category_id: int
    category_name: Optional[str] = None
    name: str
    channel: str
    media_type: MediaType
    piece_type: str
    schedule_time: Optional[str] = None
    cost_per_insertion: Optional[Decimal] = None
    global_cost: Optional[Decimal] = None
    start_date: date
    end_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InsertionCreate(BaseModel):
    media_piece_id: int
    insertion_date: date
    quantity: int = Field(..., gt=0)
    actual_cost: Optional[Decimal] = Field(None, ge=0)


class InsertionUpdate(BaseModel):
    insertion_date: Optional[date] = None
    quantity: Optional[int] = Field(None, gt=0)
    actual_cost: Optional[Decimal] = Field(None, ge=0)


class InsertionUpsert(BaseModel):
    media_piece_id: int
    insertion_date: date
    quantity: int = Field(..., ge=0)
    actual_cost: Optional[Decimal] = Field(None, ge=0)


class InsertionResponse(BaseModel):
    id: int
    media_piece_id: int
    insertion_date: date
    quantity: int
    actual_cost: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UpsertResponse(BaseModel):
    action: Literal["created", "updated", "deleted", "unchanged"]
    insertion: Optional[InsertionResponse] = None


class BudgetUpdate(BaseModel):
    month_year: date
    budgeted_amount: Decimal = Field(..., ge=0)

    @field_validator("month_year")
    @classmethod
    def _first_day(cls, value: date) -> date:
        return value.replace(day=1)


class BudgetResponse(BaseModel):
    id: Optional[int] = None
    project_id: int
    month_year: date
    budgeted_amount: Decimal
    actual_amount: Decimal

    class Config:
        from_attributes = True


class BudgetSummary(BaseModel):
    project_id: int
    month_year: date
    budgeted_amount: Decimal
    actual_amount: Decimal
    remaining: Decimal
    percentage_used: float
    over_budget: bool
    total_insertions: int


# ==================== HELPERS ====================

def _piece_response(piece: MediaPiece) -> PieceResponse:
    response = PieceResponse.model_validate(piece)
    response.category_name = piece.category.name if piece.category else None
    return response


def _get_piece(db: Session, piece_id: int, user: User) -> MediaPiece:
    piece = db.query(MediaPiece).filter(MediaPiece.id == piece_id).first()
    if not piece:
        raise HTTPException(status_code=404, detail="Peça não encontrada")
    get_accessible_project(db, piece.project_id, user)
    return piece


def _get_insertion(db: Session, insertion_id: int, user: User) -> MediaInsertion:
    insertion = db.query(MediaInsertion).filter(MediaInsertion.id == insertion_id).first()
    if not insertion:
        raise HTTPException(status_code=404, detail="Inserção não encontrada")
    get_accessible_project(db, insertion.piece.project_id, user)
    return insertion


def _check_category(db: Session, category_id: int) -> None:
    if not db.query(MediaCategory).filter(MediaCategory.id == category_id).first():
        raise HTTPException(status_code=404, detail="Categoria não encontrada")


def _check_in_range(piece: MediaPiece, insertion_date: date) -> None:
    if not (piece.start_date <= insertion_date <= piece.end_date):
        raise HTTPException(status_code=400, detail="Data fora do período de veiculação da peça")


def _month_bounds(month_year: date):
    start = month_year.replace(day=1)
    return start, start + relativedelta(months=1) - relativedelta(days=1)


def _actual_amount(db: Session, project_id: int, start: date, end: date):
    rows = (
        db.query(MediaInsertion, MediaPiece.cost_per_insertion)
        .join(MediaPiece, MediaInsertion.media_piece_id == MediaPiece.id)
        .filter(
            MediaPiece.project_id == project_id,
            MediaInsertion.insertion_date >= start,
            MediaInsertion.insertion_date <= end,
        )
        .all()
    )
    total = Decimal("0")
    quantity = 0
    for insertion, cost_per_insertion in rows:
        total += insertion_cost(insertion.quantity, cost_per_insertion, insertion.actual_cost)
        quantity += insertion.quantity
    return total, quantity


# ==================== CATEGORIAS ====================

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(
    include_inactive: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(MediaCategory)
    if not include_inactive:
        query = query.filter(MediaCategory.is_active == True)
    return query.order_by(MediaCategory.order_index, MediaCategory.name).all()


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    category_data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not is_lev_user(current_user):
        raise HTTPException(status_code=403, detail="Apenas usuários LEV podem criar categorias")

    if db.query(MediaCategory).filter(MediaCategory.name == category_data.name).first():
        raise HTTPException(status_code=400, detail="Categoria já cadastrada")

    category = MediaCategory(**category_data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


# ==================== PEÇAS ====================

@router.get("/pieces", response_model=List[PieceResponse])
def list_pieces(
    project_id: int,
    category_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Peças de um projeto, na ordem das categorias e depois por data de início"""
    project = get_accessible_project(db, project_id, current_user)

    query = (
        db.query(MediaPiece)
        .outerjoin(MediaCategory, MediaPiece.category_id == MediaCategory.id)
        .filter(MediaPiece.project_id == project.id)
    )
    if category_id:
        query = query.filter(MediaPiece.category_id == category_id)

    pieces = query.order_by(MediaCategory.order_index, MediaPiece.start_date, MediaPiece.id).all()
    return [_piece_response(p) for p in pieces]


@router.get("/pieces/{piece_id}", response_model=PieceResponse)
def get_piece(
    piece_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _piece_response(_get_piece(db, piece_id, current_user))


@router.post("/pieces", response_model=PieceResponse, status_code=201)
def create_piece(
    piece_data: PieceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_accessible_project(db, piece_data.project_id, current_user)
    _check_category(db, piece_data.category_id)

    if piece_data.start_date > piece_data.end_date:
        raise HTTPException(status_code=400, detail="Data de início deve ser anterior ou igual à data de término")

    piece = MediaPiece(**piece_data.model_dump())
    db.add(piece)
    db.commit()
    db.refresh(piece)

    logger.info(f"Peça de mídia criada: {piece.id} ({piece.name}) no projeto {piece.project_id}")
    return _piece_response(piece)


@router.put("/pieces/{piece_id}", response_model=PieceResponse)
def update_piece(
    piece_id: int,
    piece_data: PieceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Atualização parcial; o período resultante deve continuar válido"""
    piece = _get_piece(db, piece_id, current_user)
    update_data = piece_data.model_dump(exclude_unset=True)

    for field in ("category_id", "name", "channel", "media_type", "start_date", "end_date"):
        if field in update_data and update_data[field] in (None, ""):
            raise HTTPException(status_code=400, detail=f"Campo obrigatório: {field}")

    if "category_id" in update_data:
        _check_category(db, update_data["category_id"])

    start = update_data.get("start_date", piece.start_date)
    end = update_data.get("end_date", piece.end_date)
    if start > end:
        raise HTTPException(status_code=400, detail="Data de início deve ser anterior ou igual à data de término")

    if "piece_type" in update_data and update_data["piece_type"] is None:
        update_data["piece_type"] = ""

    for field, value in update_data.items():
        setattr(piece, field, value)

    db.commit()
    db.refresh(piece)
    return _piece_response(piece)


@router.delete("/pieces/{piece_id}")
def delete_piece(
    piece_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Exclui a peça e todas as suas inserções"""
    piece = _get_piece(db, piece_id, current_user)

    db.delete(piece)
    db.commit()

    return {"message": "Peça excluída com sucesso"}


# ==================== INSERÇÕES ====================

@router.get("/insertions", response_model=List[InsertionResponse])
def list_insertions(
    project_id: Optional[int] = None,
    media_piece_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Inserções de um projeto (ou peça) no intervalo [start_date, end_date]"""
    if project_id is None and media_piece_id is None:
        raise HTTPException(status_code=400, detail="Informe project_id ou media_piece_id")

    query = db.query(MediaInsertion).join(MediaPiece, MediaInsertion.media_piece_id == MediaPiece.id)

    if project_id is not None:
        get_accessible_project(db, project_id, current_user)
        query = query.filter(MediaPiece.project_id == project_id)

    if media_piece_id is not None:
        _get_piece(db, media_piece_id, current_user)
        query = query.filter(MediaInsertion.media_piece_id == media_piece_id)

    if start_date:
        query = query.filter(MediaInsertion.insertion_date >= start_date)
    if end_date:
        query = query.filter(MediaInsertion.insertion_date <= end_date)

    return query.order_by(MediaInsertion.insertion_date, MediaInsertion.id).all()


@router.post("/insertions", response_model=InsertionResponse, status_code=201)
def create_insertion(
    insertion_data: InsertionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    piece = _get_piece(db, insertion_data.media_piece_id, current_user)
    _check_in_range(piece, insertion_data.insertion_date)

    insertion = MediaInsertion(**insertion_data.model_dump())
    db.add(insertion)
    db.commit()
    db.refresh(insertion)
    return insertion


@router.put("/insertions/upsert", response_model=UpsertResponse)
def upsert_insertion(
    insertion_data: InsertionUpsert,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Grava a quantidade de uma peça em um dia.
    Quantidade zero apaga as linhas existentes em vez de gravar zero; linhas
    duplicadas da mesma chave são consolidadas em uma só.
    """
    piece = _get_piece(db, insertion_data.media_piece_id, current_user)

    existing = (
        db.query(MediaInsertion)
        .filter(
            MediaInsertion.media_piece_id == piece.id,
            MediaInsertion.insertion_date == insertion_data.insertion_date,
        )
        .order_by(MediaInsertion.id)
        .all()
    )

    if insertion_data.quantity == 0:
        if not existing:
            return UpsertResponse(action="unchanged")
        for row in existing:
            db.delete(row)
        db.commit()
        return UpsertResponse(action="deleted")

    _check_in_range(piece, insertion_data.insertion_date)

    if existing:
        primary, duplicates = existing[0], existing[1:]
        for row in duplicates:
            db.delete(row)
        primary.quantity = insertion_data.quantity
        if "actual_cost" in insertion_data.model_fields_set:
            primary.actual_cost = insertion_data.actual_cost
        db.commit()
        db.refresh(primary)
        return UpsertResponse(action="updated", insertion=InsertionResponse.model_validate(primary))

    insertion = MediaInsertion(**insertion_data.model_dump())
    db.add(insertion)
    db.commit()
    db.refresh(insertion)
    return UpsertResponse(action="created", insertion=InsertionResponse.model_validate(insertion))


@router.put("/insertions/{insertion_id}", response_model=InsertionResponse)
def update_insertion(
    insertion_id: int,
    insertion_data: InsertionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    insertion = _get_insertion(db, insertion_id, current_user)
    update_data = insertion_data.model_dump(exclude_unset=True)

    if "quantity" in update_data and update_data["quantity"] is None:
        raise HTTPException(status_code=400, detail="Quantidade é obrigatória")

    if update_data.get("insertion_date") is not None:
        _check_in_range(insertion.piece, update_data["insertion_date"])

    for field, value in update_data.items():
        setattr(insertion, field, value)

    db.commit()
    db.refresh(insertion)
    return insertion


@router.delete("/insertions/{insertion_id}")
def delete_insertion(
    insertion_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    insertion = _get_insertion(db, insertion_id, current_user)

    db.delete(insertion)
    db.commit()

    return {"message": "Inserção excluída com sucesso"}


# ==================== ORÇAMENTO ====================

@router.get("/projects/{project_id}/budgets", response_model=List[BudgetResponse])
def list_budgets(
    project_id: int,
    year: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    query = db.query(MediaBudget).filter(MediaBudget.project_id == project.id)
    if year:
        query = query.filter(MediaBudget.month_year >= date(year, 1, 1), MediaBudget.month_year <= date(year, 12, 31))
    return query.order_by(MediaBudget.month_year).all()


@router.put("/projects/{project_id}/budgets", response_model=BudgetResponse)
def put_budget(
    project_id: int,
    budget_data: BudgetUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Define o orçamento do mês (cria ou substitui)"""
    project = get_accessible_project(db, project_id, current_user)

    start, end = _month_bounds(budget_data.month_year)
    actual, _ = _actual_amount(db, project.id, start, end)

    budget = (
        db.query(MediaBudget)
        .filter(MediaBudget.project_id == project.id, MediaBudget.month_year == start)
        .first()
    )
    if budget is None:
        budget = MediaBudget(project_id=project.id, month_year=start)
        db.add(budget)

    budget.budgeted_amount = budget_data.budgeted_amount
    budget.actual_amount = actual
    db.commit()
    db.refresh(budget)
    return budget


@router.get("/projects/{project_id}/budget-summary", response_model=BudgetSummary)
def get_budget_summary(
    project_id: int,
    month_year: date,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Orçado x realizado do mês; o realizado vem das inserções do período"""
    project = get_accessible_project(db, project_id, current_user)
    start, end = _month_bounds(month_year)

    budget = (
        db.query(MediaBudget)
        .filter(MediaBudget.project_id == project.id, MediaBudget.month_year == start)
        .first()
    )
    budgeted = Decimal(budget.budgeted_amount) if budget else Decimal("0")
    actual, total_insertions = _actual_amount(db, project.id, start, end)

    return BudgetSummary(
        project_id=project.id,
        month_year=start,
        budgeted_amount=budgeted,
        actual_amount=actual,
        total_insertions=total_insertions,
        **budget_usage(budgeted, actual),
    )
