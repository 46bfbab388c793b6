from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class MediaType(str, enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class MediaCategory(Base):
    __tablename__ = "media_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    order_index = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    pieces = relationship("MediaPiece", back_populates="category")


class MediaPiece(Base):
    """
    Peça do plano de mídia
    Linha do gráfico de Gantt; ativa entre start_date e end_date (inclusive)
    """
    __tablename__ = "media_pieces"
    __table_args__ = (CheckConstraint("start_date <= end_date", name="ck_media_pieces_date_range"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("media_categories.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    channel = Column(String(120), nullable=False)
    media_type = Column(SQLEnum(MediaType, values_callable=lambda e: [m.value for m in e]), default=MediaType.ONLINE, nullable=False)
    piece_type = Column(String(120), nullable=False, default="")
    schedule_time = Column(String(50), nullable=True)  # Horário de veiculação (ex: "20h30")
    cost_per_insertion = Column(Numeric(15, 2), nullable=True)
    global_cost = Column(Numeric(15, 2), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="media_pieces")
    category = relationship("MediaCategory", back_populates="pieces")
    insertions = relationship("MediaInsertion", back_populates="piece", cascade="all, delete-orphan")


class MediaInsertion(Base):
    """
    Quantidade de inserções de uma peça em um dia
    Uma linha por (media_piece_id, insertion_date); quantidade zero não é persistida
    """
    __tablename__ = "media_insertions"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_media_insertions_quantity_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    media_piece_id = Column(Integer, ForeignKey("media_pieces.id", ondelete="CASCADE"), nullable=False, index=True)
    insertion_date = Column(Date, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    actual_cost = Column(Numeric(15, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    piece = relationship("MediaPiece", back_populates="insertions")


class MediaBudget(Base):
    """Orçamento mensal de mídia de um projeto (month_year = primeiro dia do mês)"""
    __tablename__ = "media_budgets"
    __table_args__ = (UniqueConstraint("project_id", "month_year", name="uq_media_budgets_project_month"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    month_year = Column(Date, nullable=False)
    budgeted_amount = Column(Numeric(15, 2), nullable=False, default=0)
    actual_amount = Column(Numeric(15, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
