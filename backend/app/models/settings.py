from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class SystemSettings(Base):
    """
    Identidade visual do sistema (linha única)
    Cores em HSL, aplicadas como variáveis de tema no frontend
    """
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, index=True)
    logo_url = Column(String(500), nullable=True)
    logo_dark_url = Column(String(500), nullable=True)
    favicon_url = Column(String(500), nullable=True)
    primary_color_h = Column(Integer, nullable=True)
    primary_color_s = Column(Integer, nullable=True)
    primary_color_l = Column(Integer, nullable=True)
    secondary_color_h = Column(Integer, nullable=True)
    secondary_color_s = Column(Integer, nullable=True)
    secondary_color_l = Column(Integer, nullable=True)
    allow_theme_toggle = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
