from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base


class BaseCobranca(str, enum.Enum):
    MENSAL = "mensal"
    BIMESTRAL = "bimestral"
    TRIMESTRAL = "trimestral"
    SEMESTRAL = "semestral"


# Meses entre duas cobranças consecutivas
MESES_POR_BASE = {
    BaseCobranca.MENSAL: 1,
    BaseCobranca.BIMESTRAL: 2,
    BaseCobranca.TRIMESTRAL: 3,
    BaseCobranca.SEMESTRAL: 6,
}


class TipoCobranca(str, enum.Enum):
    PRE_PAGO = "pre-pago"
    POS_PAGO = "pos-pago"


class StatusContaReceber(str, enum.Enum):
    PENDENTE = "pendente"
    EMITIDA = "emitida"
    PAGA = "paga"
    CANCELADA = "cancelada"


class StatusContaPagar(str, enum.Enum):
    PENDENTE = "pendente"
    PAGA = "paga"
    CANCELADA = "cancelada"


class FormaPagamento(str, enum.Enum):
    TRANSFERENCIA = "transferencia"
    CHEQUE = "cheque"
    DINHEIRO = "dinheiro"
    CARTAO = "cartao"
    PIX = "pix"


def _values(enum_cls):
    return [m.value for m in enum_cls]


class ContaReceberLote(Base):
    """Lote de cobrança recorrente; gera uma conta a receber por período"""
    __tablename__ = "contas_receber_lotes"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    base_cobranca = Column(SQLEnum(BaseCobranca, values_callable=_values), nullable=False)
    valor_cobranca = Column(Numeric(15, 2), nullable=False)
    tipo_cobranca = Column(SQLEnum(TipoCobranca, values_callable=_values), nullable=False)
    data_inicio = Column(Date, nullable=False)
    data_fim = Column(Date, nullable=False)
    dia_pagamento = Column(Integer, nullable=False)
    dia_emissao_nota = Column(Integer, nullable=False)
    contato_nome = Column(String(200), nullable=True)
    contato_email = Column(String(255), nullable=True)
    contato_telefone = Column(String(20), nullable=True)
    descricao = Column(Text, nullable=True)
    total_registros = Column(Integer, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    contas = relationship("ContaReceber", back_populates="lote", cascade="all, delete-orphan")
    company = relationship("Company")
    project = relationship("Project")


class ContaReceber(Base):
    __tablename__ = "contas_receber"

    id = Column(Integer, primary_key=True, index=True)
    lote_id = Column(Integer, ForeignKey("contas_receber_lotes.id", ondelete="CASCADE"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    base_cobranca = Column(SQLEnum(BaseCobranca, values_callable=_values), nullable=False)
    valor_cobranca = Column(Numeric(15, 2), nullable=False)
    tipo_cobranca = Column(SQLEnum(TipoCobranca, values_callable=_values), nullable=False)
    data_cobranca = Column(Date, nullable=False, index=True)
    dia_pagamento = Column(Integer, nullable=False)
    dia_emissao_nota = Column(Integer, nullable=False)
    contato_nome = Column(String(200), nullable=True)
    contato_email = Column(String(255), nullable=True)
    contato_telefone = Column(String(20), nullable=True)
    descricao = Column(Text, nullable=True)
    status = Column(SQLEnum(StatusContaReceber, values_callable=_values), default=StatusContaReceber.PENDENTE, nullable=False, index=True)

    # Baixa
    valor_pago = Column(Numeric(15, 2), nullable=True)
    data_pagamento = Column(Date, nullable=True)
    forma_pagamento = Column(SQLEnum(FormaPagamento, values_callable=_values), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    lote = relationship("ContaReceberLote", back_populates="contas")
    company = relationship("Company")
    project = relationship("Project")


class ContaPagar(Base):
    """Despesa; despesas recorrentes geram uma linha por vencimento"""
    __tablename__ = "contas_pagar"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    base_cobranca = Column(SQLEnum(BaseCobranca, values_callable=_values), nullable=False)
    tipo_pagamento = Column(SQLEnum(TipoCobranca, values_callable=_values), nullable=False)
    valor_despesa = Column(Numeric(15, 2), nullable=False)
    data_vencimento = Column(Date, nullable=False, index=True)
    dia_emissao_nota = Column(Integer, nullable=True)
    fornecedor_nome = Column(String(200), nullable=True)
    fornecedor_email = Column(String(255), nullable=True)
    fornecedor_telefone = Column(String(20), nullable=True)
    descricao = Column(Text, nullable=True)
    status = Column(SQLEnum(StatusContaPagar, values_callable=_values), default=StatusContaPagar.PENDENTE, nullable=False, index=True)

    valor_pago = Column(Numeric(15, 2), nullable=True)
    data_pagamento = Column(Date, nullable=True)
    forma_pagamento = Column(SQLEnum(FormaPagamento, values_callable=_values), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project")
