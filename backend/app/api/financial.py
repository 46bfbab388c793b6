import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from decimal import Decimal
from app.core.database import get_db
from app.core.auth import get_current_user, is_lev_user, ensure_company_access
from app.models import (
    ContaReceberLote,
    ContaReceber,
    ContaPagar,
    StatusContaReceber,
    StatusContaPagar,
    Company,
    Project,
    User,
)
from app.schemas.financial import (
    LoteReceberCreate,
    LoteReceberResponse,
    PreviewReceberRequest,
    PreviewPagarRequest,
    PreviewResponse,
    ContaReceberUpdate,
    ContaReceberResponse,
    ContaReceberListResponse,
    PagamentoRequest,
    DespesaCreate,
    ContaPagarResponse,
    ContaPagarListResponse,
    ResumoTotais,
    FinancialSummary,
)
from app.services.billing_schedule import gerar_datas_cobranca, gerar_vencimentos_despesa

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/financial", tags=["financial"])

RECEBER_EM_ABERTO = (StatusContaReceber.PENDENTE, StatusContaReceber.EMITIDA)


# ==================== HELPERS ====================

def _receber_response(conta: ContaReceber, hoje: date) -> ContaReceberResponse:
    response = ContaReceberResponse.model_validate(conta)
    response.company_name = conta.company.nome_comercial if conta.company else None
    response.project_name = conta.project.name if conta.project else None
    response.vencida = conta.status in RECEBER_EM_ABERTO and conta.data_cobranca < hoje
    return response


def _pagar_response(conta: ContaPagar, hoje: date) -> ContaPagarResponse:
    response = ContaPagarResponse.model_validate(conta)
    response.project_name = conta.project.name if conta.project else None
    response.vencida = conta.status == StatusContaPagar.PENDENTE and conta.data_vencimento < hoje
    return response


def _get_conta_receber(db: Session, conta_id: int, user: User) -> ContaReceber:
    conta = db.query(ContaReceber).filter(ContaReceber.id == conta_id).first()
    if not conta:
        raise HTTPException(status_code=404, detail="Conta a receber não encontrada")
    ensure_company_access(user, conta.company_id)
    return conta


def _get_conta_pagar(db: Session, conta_id: int, user: User) -> ContaPagar:
    conta = db.query(ContaPagar).filter(ContaPagar.id == conta_id).first()
    if not conta:
        raise HTTPException(status_code=404, detail="Conta a pagar não encontrada")
    if conta.project is not None:
        ensure_company_access(user, conta.project.company_id)
    elif not is_lev_user(user):
        raise HTTPException(status_code=403, detail="Acesso negado")
    return conta


def _scoped_receber(db: Session, user: User):
    query = db.query(ContaReceber)
    if not is_lev_user(user):
        query = query.filter(ContaReceber.company_id == user.company_id)
    return query


def _scoped_pagar(db: Session, user: User):
    query = db.query(ContaPagar)
    if not is_lev_user(user):
        project_ids = db.query(Project.id).filter(Project.company_id == user.company_id)
        query = query.filter(ContaPagar.project_id.in_(project_ids))
    return query


# ==================== CONTAS A RECEBER ====================

@router.post("/contas-receber/preview", response_model=PreviewResponse)
def preview_contas_receber(
    request: PreviewReceberRequest,
    current_user: User = Depends(get_current_user),
):
    """Pré-visualiza as datas de cobrança que um lote geraria"""
    if request.data_fim < request.data_inicio:
        raise HTTPException(status_code=400, detail="Data final deve ser posterior à data inicial")

    datas = gerar_datas_cobranca(request.data_inicio, request.data_fim, request.base_cobranca)
    return PreviewResponse(total_registros=len(datas), datas=datas)


@router.post("/contas-receber/lotes", response_model=LoteReceberResponse, status_code=201)
def create_lote_receber(
    lote_data: LoteReceberCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cria o lote e uma conta a receber por data de cobrança"""
    ensure_company_access(current_user, lote_data.company_id)

    if not db.query(Company).filter(Company.id == lote_data.company_id).first():
        raise HTTPException(status_code=404, detail="Empresa não encontrada")

    project = db.query(Project).filter(Project.id == lote_data.project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Projeto não encontrado")
    if project.company_id is not None and project.company_id != lote_data.company_id:
        raise HTTPException(status_code=400, detail="Projeto não pertence à empresa informada")

    datas = gerar_datas_cobranca(lote_data.data_inicio, lote_data.data_fim, lote_data.base_cobranca)
    if not datas:
        raise HTTPException(status_code=400, detail="Período não gera nenhuma cobrança")

    lote = ContaReceberLote(
        **lote_data.model_dump(),
        total_registros=len(datas),
        created_by=current_user.id,
    )

    campos_conta = lote_data.model_dump(exclude={"data_inicio", "data_fim"})
    for data_cobranca in datas:
        lote.contas.append(ContaReceber(
            **campos_conta,
            data_cobranca=data_cobranca,
            status=StatusContaReceber.PENDENTE,
            created_by=current_user.id,
        ))

    db.add(lote)
    db.commit()
    db.refresh(lote)

    logger.info(f"Lote de contas a receber {lote.id} criado com {len(datas)} registros")
    return lote


@router.get("/contas-receber", response_model=ContaReceberListResponse)
def list_contas_receber(
    page: int = 1,
    per_page: int = 50,
    status: Optional[StatusContaReceber] = None,
    project_id: Optional[int] = None,
    company_id: Optional[int] = None,
    lote_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    vencidas: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = _scoped_receber(db, current_user)
    hoje = date.today()

    if status:
        query = query.filter(ContaReceber.status == status)
    if project_id:
        query = query.filter(ContaReceber.project_id == project_id)
    if company_id:
        query = query.filter(ContaReceber.company_id == company_id)
    if lote_id:
        query = query.filter(ContaReceber.lote_id == lote_id)
    if start_date:
        query = query.filter(ContaReceber.data_cobranca >= start_date)
    if end_date:
        query = query.filter(ContaReceber.data_cobranca <= end_date)
    if vencidas:
        query = query.filter(ContaReceber.status.in_(RECEBER_EM_ABERTO), ContaReceber.data_cobranca < hoje)

    total = query.count()
    contas = query.order_by(ContaReceber.data_cobranca, ContaReceber.id).offset((page - 1) * per_page).limit(per_page).all()

    return ContaReceberListResponse(
        items=[_receber_response(c, hoje) for c in contas],
        total=total,
        page=page,
        per_page=per_page
    )


@router.put("/contas-receber/{conta_id}", response_model=ContaReceberResponse)
def update_conta_receber(
    conta_id: int,
    conta_data: ContaReceberUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    conta = _get_conta_receber(db, conta_id, current_user)

    if conta.status == StatusContaReceber.PAGA:
        raise HTTPException(status_code=400, detail="Conta já paga não pode ser alterada")

    update_data = conta_data.model_dump(exclude_unset=True)
    if update_data.get("status") == StatusContaReceber.PAGA:
        raise HTTPException(status_code=400, detail="Use o registro de pagamento para dar baixa na conta")

    for field, value in update_data.items():
        setattr(conta, field, value)

    db.commit()
    db.refresh(conta)
    return _receber_response(conta, date.today())


@router.post("/contas-receber/{conta_id}/pagamento", response_model=ContaReceberResponse)
def registrar_pagamento_receber(
    conta_id: int,
    pagamento: PagamentoRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Dá baixa em uma conta a receber"""
    conta = _get_conta_receber(db, conta_id, current_user)

    if conta.status == StatusContaReceber.PAGA:
        raise HTTPException(status_code=400, detail="Conta já está paga")
    if conta.status == StatusContaReceber.CANCELADA:
        raise HTTPException(status_code=400, detail="Conta cancelada não pode ser paga")

    conta.valor_pago = pagamento.valor_pago
    conta.data_pagamento = pagamento.data_pagamento
    conta.forma_pagamento = pagamento.forma_pagamento
    conta.status = StatusContaReceber.PAGA

    db.commit()
    db.refresh(conta)
    return _receber_response(conta, date.today())


@router.delete("/contas-receber/{conta_id}")
def delete_conta_receber(
    conta_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    conta = _get_conta_receber(db, conta_id, current_user)

    lote = conta.lote
    db.delete(conta)
    if lote is not None:
        lote.total_registros = max((lote.total_registros or 0) - 1, 0)
    db.commit()

    return {"message": "Conta a receber excluída com sucesso"}


@router.delete("/contas-receber/lotes/{lote_id}")
def delete_lote_receber(
    lote_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Exclui o lote inteiro; bloqueado se alguma conta já foi paga"""
    lote = db.query(ContaReceberLote).filter(ContaReceberLote.id == lote_id).first()
    if not lote:
        raise HTTPException(status_code=404, detail="Lote não encontrado")
    ensure_company_access(current_user, lote.company_id)

    pagas = [c for c in lote.contas if c.status == StatusContaReceber.PAGA]
    if pagas:
        raise HTTPException(status_code=400, detail=f"Lote possui {len(pagas)} conta(s) paga(s)")

    db.delete(lote)
    db.commit()

    return {"message": "Lote excluído com sucesso"}


# ==================== CONTAS A PAGAR ====================

@router.post("/contas-pagar/preview", response_model=PreviewResponse)
def preview_contas_pagar(
    request: PreviewPagarRequest,
    current_user: User = Depends(get_current_user),
):
    if request.data_fim < request.data_inicio:
        raise HTTPException(status_code=400, detail="Data final deve ser posterior à data inicial")

    datas = gerar_vencimentos_despesa(request.data_inicio, request.data_fim, request.base_cobranca, request.dia_pagamento)
    return PreviewResponse(total_registros=len(datas), datas=datas)


@router.post("/contas-pagar", response_model=List[ContaPagarResponse], status_code=201)
def create_contas_pagar(
    despesa: DespesaCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cria uma conta a pagar por vencimento da despesa recorrente"""
    if despesa.project_id is not None:
        project = db.query(Project).filter(Project.id == despesa.project_id).first()
        if not project:
            raise HTTPException(status_code=404, detail="Projeto não encontrado")
        ensure_company_access(current_user, project.company_id)
    elif not is_lev_user(current_user):
        raise HTTPException(status_code=400, detail="Informe o projeto da despesa")

    vencimentos = gerar_vencimentos_despesa(despesa.data_inicio, despesa.data_fim, despesa.base_cobranca, despesa.dia_pagamento)
    if not vencimentos:
        raise HTTPException(status_code=400, detail="Período não gera nenhum vencimento")

    campos = despesa.model_dump(exclude={"data_inicio", "data_fim", "dia_pagamento"})
    contas = [
        ContaPagar(**campos, data_vencimento=vencimento, status=StatusContaPagar.PENDENTE, created_by=current_user.id)
        for vencimento in vencimentos
    ]
    db.add_all(contas)
    db.commit()

    hoje = date.today()
    for conta in contas:
        db.refresh(conta)

    logger.info(f"{len(contas)} contas a pagar criadas")
    return [_pagar_response(c, hoje) for c in contas]


@router.get("/contas-pagar", response_model=ContaPagarListResponse)
def list_contas_pagar(
    page: int = 1,
    per_page: int = 50,
    status: Optional[StatusContaPagar] = None,
    project_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    vencidas: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = _scoped_pagar(db, current_user)
    hoje = date.today()

    if status:
        query = query.filter(ContaPagar.status == status)
    if project_id:
        query = query.filter(ContaPagar.project_id == project_id)
    if start_date:
        query = query.filter(ContaPagar.data_vencimento >= start_date)
    if end_date:
        query = query.filter(ContaPagar.data_vencimento <= end_date)
    if vencidas:
        query = query.filter(ContaPagar.status == StatusContaPagar.PENDENTE, ContaPagar.data_vencimento < hoje)

    total = query.count()
    contas = query.order_by(ContaPagar.data_vencimento, ContaPagar.id).offset((page - 1) * per_page).limit(per_page).all()

    return ContaPagarListResponse(
        items=[_pagar_response(c, hoje) for c in contas],
        total=total,
        page=page,
        per_page=per_page
    )


@router.post("/contas-pagar/{conta_id}/pagamento", response_model=ContaPagarResponse)
def registrar_pagamento_pagar(
    conta_id: int,
    pagamento: PagamentoRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    conta = _get_conta_pagar(db, conta_id, current_user)

    if conta.status != StatusContaPagar.PENDENTE:
        raise HTTPException(status_code=400, detail="Apenas contas pendentes podem ser pagas")

    conta.valor_pago = pagamento.valor_pago
    conta.data_pagamento = pagamento.data_pagamento
    conta.forma_pagamento = pagamento.forma_pagamento
    conta.status = StatusContaPagar.PAGA

    db.commit()
    db.refresh(conta)
    return _pagar_response(conta, date.today())


@router.delete("/contas-pagar/{conta_id}")
def delete_conta_pagar(
    conta_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    conta = _get_conta_pagar(db, conta_id, current_user)

    db.delete(conta)
    db.commit()

    return {"message": "Conta a pagar excluída com sucesso"}


# ==================== RESUMO ====================

@router.get("/summary", response_model=FinancialSummary)
def get_financial_summary(
    project_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Totais pendentes, pagos e vencidos de contas a receber e a pagar"""
    hoje = date.today()

    receber_query = _scoped_receber(db, current_user)
    pagar_query = _scoped_pagar(db, current_user)

    if project_id:
        receber_query = receber_query.filter(ContaReceber.project_id == project_id)
        pagar_query = pagar_query.filter(ContaPagar.project_id == project_id)
    if start_date:
        receber_query = receber_query.filter(ContaReceber.data_cobranca >= start_date)
        pagar_query = pagar_query.filter(ContaPagar.data_vencimento >= start_date)
    if end_date:
        receber_query = receber_query.filter(ContaReceber.data_cobranca <= end_date)
        pagar_query = pagar_query.filter(ContaPagar.data_vencimento <= end_date)

    receber = ResumoTotais()
    for conta in receber_query.all():
        if conta.status == StatusContaReceber.PAGA:
            receber.pago += conta.valor_pago or conta.valor_cobranca
            receber.quantidade_paga += 1
        elif conta.status in RECEBER_EM_ABERTO:
            receber.pendente += conta.valor_cobranca
            receber.quantidade_pendente += 1
            if conta.data_cobranca < hoje:
                receber.vencido += conta.valor_cobranca
                receber.quantidade_vencida += 1

    pagar = ResumoTotais()
    for conta in pagar_query.all():
        if conta.status == StatusContaPagar.PAGA:
            pagar.pago += conta.valor_pago or conta.valor_despesa
            pagar.quantidade_paga += 1
        elif conta.status == StatusContaPagar.PENDENTE:
            pagar.pendente += conta.valor_despesa
            pagar.quantidade_pendente += 1
            if conta.data_vencimento < hoje:
                pagar.vencido += conta.valor_despesa
                pagar.quantidade_vencida += 1

    return FinancialSummary(
        receber=receber,
        pagar=pagar,
        saldo_previsto=Decimal(receber.pendente) - Decimal(pagar.pendente),
        period_start=start_date,
        period_end=end_date,
    )
