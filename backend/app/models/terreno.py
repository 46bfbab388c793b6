from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric, Float, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class TerrenoStatus(str, enum.Enum):
    AVAILABLE = "available"
    NEGOTIATING = "negotiating"
    ACQUIRED = "acquired"


class Terreno(Base):
    """Terreno do land bank de um grupo econômico"""
    __tablename__ = "terrenos"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    nome = Column(String(200), nullable=False, index=True)
    area = Column(Numeric(15, 2), nullable=False)  # m²
    matricula = Column(String(100), nullable=True)  # Matrícula no registro de imóveis
    descricao = Column(Text, nullable=True)
    status = Column(SQLEnum(TerrenoStatus, values_callable=lambda e: [m.value for m in e]), default=TerrenoStatus.AVAILABLE, nullable=False, index=True)

    # Endereço
    cep = Column(String(9), nullable=True)
    logradouro = Column(String(200), nullable=True)
    numero = Column(String(20), nullable=True)
    complemento = Column(String(100), nullable=True)
    bairro = Column(String(100), nullable=True)
    cidade = Column(String(100), nullable=True)
    estado = Column(String(2), nullable=True)

    # Localização
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    company = relationship("Company", back_populates="terrenos")
