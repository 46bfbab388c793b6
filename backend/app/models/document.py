from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, BigInteger, JSON
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
from app.core.database import Base

DOCUMENTS_BUCKET = "project-documents"
BRANDING_BUCKET = "branding"
AI_UPLOADS_BUCKET = "temp-ai-uploads"


class ProjectFolder(Base):
    """Pasta da árvore de documentos de um projeto"""
    __tablename__ = "project_folders"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_folder_id = Column(Integer, ForeignKey("project_folders.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, default=0, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="folders")
    children = relationship(
        "ProjectFolder",
        backref=backref("parent", remote_side=[id]),
        cascade="all, delete-orphan",
    )
    documents = relationship("ProjectDocument", back_populates="folder")


class ProjectDocument(Base):
    """Metadados de um arquivo guardado no storage"""
    __tablename__ = "project_documents"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    folder_id = Column(Integer, ForeignKey("project_folders.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    file_path = Column(String(500), nullable=False)
    bucket_name = Column(String(100), nullable=False, default=DOCUMENTS_BUCKET)
    mime_type = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=True)
    extra_metadata = Column("metadata", JSON, nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="documents")
    folder = relationship("ProjectFolder", back_populates="documents")
