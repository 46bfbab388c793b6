from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class CompanyStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Company(Base):
    """
    Grupo Econômico
    Incorporadora cliente; dona de projetos e terrenos
    """
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    razao_social = Column(String(200), nullable=False, index=True)
    nome_comercial = Column(String(200), nullable=False)
    cnpj = Column(String(14), nullable=False, unique=True, index=True)  # Somente dígitos
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    responsavel_legal = Column(String(200), nullable=True)
    logo_url = Column(String(500), nullable=True)

    # Endereço
    cep = Column(String(9), nullable=True)
    logradouro = Column(String(200), nullable=True)
    numero = Column(String(20), nullable=True)
    complemento = Column(String(100), nullable=True)
    bairro = Column(String(100), nullable=True)
    cidade = Column(String(100), nullable=True)
    estado = Column(String(2), nullable=True)

    status = Column(SQLEnum(CompanyStatus, values_callable=lambda e: [m.value for m in e]), default=CompanyStatus.ACTIVE, nullable=False)

    users = relationship("User", back_populates="company")
    projects = relationship("Project", back_populates="company")
    terrenos = relationship("Terreno", back_populates="company")

    @property
    def address(self) -> str:
        parts = [self.logradouro, self.numero, self.complemento, self.bairro, self.cidade, self.estado]
        return ", ".join(p for p in parts if p)
