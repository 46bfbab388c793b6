from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric, Boolean, JSON, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class ProjectStatus(str, enum.Enum):
    """Etapas da esteira de incorporação, na ordem do kanban"""
    VIABILITY = "viability"
    PROJECT = "project"
    APPROVALS = "approvals"
    SALES = "sales"
    DELIVERY = "delivery"


PIPELINE_STAGES = [
    (ProjectStatus.VIABILITY, "Viabilidade"),
    (ProjectStatus.PROJECT, "Projeto"),
    (ProjectStatus.APPROVALS, "Aprovações"),
    (ProjectStatus.SALES, "Vendas"),
    (ProjectStatus.DELIVERY, "Entrega"),
]


class Project(Base):
    """
    Empreendimento
    Card da esteira de incorporação, vinculado a um grupo econômico
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(300), nullable=False, index=True)
    address = Column(Text, nullable=True)
    area = Column(Numeric(15, 2), nullable=True)  # m²
    description = Column(Text, nullable=True)

    # Esteira
    status = Column(SQLEnum(ProjectStatus, values_callable=lambda e: [m.value for m in e]), default=ProjectStatus.VIABILITY, nullable=False, index=True)
    order_index = Column(Integer, default=0, nullable=False)
    progress = Column(Integer, default=0, nullable=False)  # 0-100
    archived = Column(Boolean, default=False, nullable=False)

    # Dados extraídos pelo assistente de IA e demais atributos livres
    extra_metadata = Column("metadata", JSON, default=dict)

    company = relationship("Company", back_populates="projects")
    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    media_pieces = relationship("MediaPiece", back_populates="project", cascade="all, delete-orphan")
    folders = relationship("ProjectFolder", back_populates="project", cascade="all, delete-orphan")
    documents = relationship("ProjectDocument", back_populates="project", cascade="all, delete-orphan")


class ProjectProfile(Base):
    """
    Perfil de permissões de projeto
    permissions: {"documents": {"view": true, "edit": false}, "media": {...}}
    """
    __tablename__ = "project_profiles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    permissions = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProjectMember(Base):
    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    profile_id = Column(Integer, ForeignKey("project_profiles.id", ondelete="SET NULL"), nullable=True)
    # Sobrescreve o perfil módulo a módulo
    custom_permissions = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="members")
    user = relationship("User")
    profile = relationship("ProjectProfile")
