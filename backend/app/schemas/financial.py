from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from app.models.financial import (
    BaseCobranca,
    TipoCobranca,
    StatusContaReceber,
    StatusContaPagar,
    FormaPagamento,
)


# ==================== CONTAS A RECEBER ====================

class LoteReceberBase(BaseModel):
    company_id: int
    project_id: int
    base_cobranca: BaseCobranca
    valor_cobranca: Decimal = Field(..., gt=0)
    tipo_cobranca: TipoCobranca
    data_inicio: date
    data_fim: date
    dia_pagamento: int = Field(..., ge=1, le=31)
    dia_emissao_nota: int = Field(..., ge=1, le=31)
    contato_nome: Optional[str] = None
    contato_email: Optional[EmailStr] = None
    contato_telefone: Optional[str] = None
    descricao: Optional[str] = None

    @model_validator(mode="after")
    def _check_periodo(self):
        if self.data_fim < self.data_inicio:
            raise ValueError("Data final deve ser posterior à data inicial")
        return self


class LoteReceberCreate(LoteReceberBase):
    pass


class PreviewReceberRequest(BaseModel):
    base_cobranca: BaseCobranca
    data_inicio: date
    data_fim: date


class PreviewResponse(BaseModel):
    total_registros: int
    datas: List[date]


class LoteReceberResponse(LoteReceberBase):
    id: int
    total_registros: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContaReceberUpdate(BaseModel):
    valor_cobranca: Optional[Decimal] = Field(None, gt=0)
    data_cobranca: Optional[date] = None
    dia_pagamento: Optional[int] = Field(None, ge=1, le=31)
    dia_emissao_nota: Optional[int] = Field(None, ge=1, le=31)
    contato_nome: Optional[str] = None
    contato_email: Optional[EmailStr] = None
    contato_telefone: Optional[str] = None
    descricao: Optional[str] = None
    status: Optional[StatusContaReceber] = None


class PagamentoRequest(BaseModel):
    valor_pago: Decimal = Field(..., gt=0)
    data_pagamento: date
    forma_pagamento: FormaPagamento


class ContaReceberResponse(BaseModel):
    id: int
    lote_id: Optional[int] = None
    company_id: int
    company_name: Optional[str] = None
    project_id: int
    project_name: Optional[str] = None
    base_cobranca: BaseCobranca
    valor_cobranca: Decimal
    tipo_cobranca: TipoCobranca
    data_cobranca: date
    dia_pagamento: int
    dia_emissao_nota: int
    contato_nome: Optional[str] = None
    contato_email: Optional[str] = None
    contato_telefone: Optional[str] = None
    descricao: Optional[str] = None
    status: StatusContaReceber
    valor_pago: Optional[Decimal] = None
    data_pagamento: Optional[date] = None
    forma_pagamento: Optional[FormaPagamento] = None
    vencida: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContaReceberListResponse(BaseModel):
    items: List[ContaReceberResponse]
    total: int
    page: int
    per_page: int


# ==================== CONTAS A PAGAR ====================

class DespesaCreate(BaseModel):
    """Despesa recorrente; gera uma conta a pagar por vencimento"""
    project_id: Optional[int] = None
    base_cobranca: BaseCobranca
    tipo_pagamento: TipoCobranca
    valor_despesa: Decimal = Field(..., gt=0)
    data_inicio: date
    data_fim: date
    dia_pagamento: int = Field(..., ge=1, le=31)
    dia_emissao_nota: Optional[int] = Field(None, ge=1, le=31)
    fornecedor_nome: Optional[str] = None
    fornecedor_email: Optional[EmailStr] = None
    fornecedor_telefone: Optional[str] = None
    descricao: Optional[str] = None

    @model_validator(mode="after")
    def _check_periodo(self):
        if self.data_fim < self.data_inicio:
            raise ValueError("Data final deve ser posterior à data inicial")
        return self


class PreviewPagarRequest(BaseModel):
    base_cobranca: BaseCobranca
    data_inicio: date
    data_fim: date
    dia_pagamento: int = Field(..., ge=1, le=31)


class ContaPagarResponse(BaseModel):
    id: int
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    base_cobranca: BaseCobranca
    tipo_pagamento: TipoCobranca
    valor_despesa: Decimal
    data_vencimento: date
    dia_emissao_nota: Optional[int] = None
    fornecedor_nome: Optional[str] = None
    fornecedor_email: Optional[str] = None
    fornecedor_telefone: Optional[str] = None
    descricao: Optional[str] = None
    status: StatusContaPagar
    valor_pago: Optional[Decimal] = None
    data_pagamento: Optional[date] = None
    forma_pagamento: Optional[FormaPagamento] = None
    vencida: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContaPagarListResponse(BaseModel):
    items: List[ContaPagarResponse]
    total: int
    page: int
    per_page: int


# ==================== RESUMO ====================

class ResumoTotais(BaseModel):
    pendente: Decimal = Decimal("0")
    pago: Decimal = Decimal("0")
    vencido: Decimal = Decimal("0")
    quantidade_pendente: int = 0
    quantidade_paga: int = 0
    quantidade_vencida: int = 0


class FinancialSummary(BaseModel):
    receber: ResumoTotais
    pagar: ResumoTotais
    saldo_previsto: Decimal
    period_start: Optional[date] = None
    period_end: Optional[date] = None
