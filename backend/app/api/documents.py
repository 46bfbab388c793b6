import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from datetime import datetime
from app.core.config import settings
from app.core.database import get_db
from app.core.auth import get_current_user
from app.models import ProjectFolder, ProjectDocument, User, DOCUMENTS_BUCKET
from app.services.permissions import get_accessible_project
from app.services.storage import StorageService, StorageError, get_storage
from app.utils.file_validation import (
    ALLOWED_DOCUMENT_EXTENSIONS,
    build_storage_path,
    validate_upload_file,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])


# ==================== SCHEMAS ====================

class FolderCreate(BaseModel):
    name: str
    description: Optional[str] = None
    parent_folder_id: Optional[int] = None


class FolderUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parent_folder_id: Optional[int] = None
    order_index: Optional[int] = None


class FolderResponse(BaseModel):
    id: int
    project_id: int
    parent_folder_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    order_index: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FolderNode(FolderResponse):
    children: List["FolderNode"] = []
    document_count: int = 0


FolderNode.model_rebuild()


class DocumentUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    folder_id: Optional[int] = None


class DocumentResponse(BaseModel):
    id: int
    project_id: int
    folder_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    file_path: str
    bucket_name: str
    mime_type: str
    size: Optional[int] = None
    extra_metadata: Optional[Dict[str, Any]] = None
    uploaded_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SignedUrlResponse(BaseModel):
    document_id: int
    signed_url: str
    expires_in: int


# ==================== HELPERS ====================

def _get_folder(db: Session, project_id: int, folder_id: int) -> ProjectFolder:
    folder = (
        db.query(ProjectFolder)
        .filter(ProjectFolder.id == folder_id, ProjectFolder.project_id == project_id)
        .first()
    )
    if not folder:
        raise HTTPException(status_code=404, detail="Pasta não encontrada")
    return folder


def _get_document(db: Session, document_id: int, user: User) -> ProjectDocument:
    document = db.query(ProjectDocument).filter(ProjectDocument.id == document_id).first()
    if not document:
        raise HTTPException(status_code=404, detail="Documento não encontrado")
    get_accessible_project(db, document.project_id, user)
    return document


def is_descendant(db: Session, folder_id: int, candidate_parent_id: Optional[int]) -> bool:
    """True se candidate_parent_id for a própria pasta ou estiver abaixo dela"""
    current_id = candidate_parent_id
    visited = set()
    while current_id is not None and current_id not in visited:
        if current_id == folder_id:
            return True
        visited.add(current_id)
        parent = db.query(ProjectFolder.parent_folder_id).filter(ProjectFolder.id == current_id).first()
        current_id = parent[0] if parent else None
    return False


def build_folder_tree(folders: List[ProjectFolder], document_counts: Dict[Optional[int], int]) -> List[FolderNode]:
    nodes = {
        f.id: FolderNode(**FolderResponse.model_validate(f).model_dump(), document_count=document_counts.get(f.id, 0))
        for f in folders
    }
    roots = []
    for folder in folders:
        node = nodes[folder.id]
        parent = nodes.get(folder.parent_folder_id)
        if parent is not None:
            parent.children.append(node)
        else:
            roots.append(node)
    return roots


# ==================== PASTAS ====================

@router.get("/projects/{project_id}/folders", response_model=List[FolderNode])
def list_folders(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Árvore de pastas do projeto, ordenada por order_index e nome"""
    project = get_accessible_project(db, project_id, current_user)

    folders = (
        db.query(ProjectFolder)
        .filter(ProjectFolder.project_id == project.id)
        .order_by(ProjectFolder.order_index, ProjectFolder.name)
        .all()
    )

    counts: Dict[Optional[int], int] = {}
    for (folder_id,) in db.query(ProjectDocument.folder_id).filter(ProjectDocument.project_id == project.id):
        counts[folder_id] = counts.get(folder_id, 0) + 1

    return build_folder_tree(folders, counts)


@router.post("/projects/{project_id}/folders", response_model=FolderResponse, status_code=201)
def create_folder(
    project_id: int,
    folder_data: FolderCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)

    if folder_data.parent_folder_id is not None:
        _get_folder(db, project.id, folder_data.parent_folder_id)

    siblings = db.query(ProjectFolder).filter(
        ProjectFolder.project_id == project.id,
        ProjectFolder.parent_folder_id == folder_data.parent_folder_id,
    ).count()

    folder = ProjectFolder(
        project_id=project.id,
        created_by=current_user.id,
        order_index=siblings,
        **folder_data.model_dump(),
    )
    db.add(folder)
    db.commit()
    db.refresh(folder)

    return folder


@router.put("/projects/{project_id}/folders/{folder_id}", response_model=FolderResponse)
def update_folder(
    project_id: int,
    folder_id: int,
    folder_data: FolderUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Renomeia ou move a pasta; mover para dentro de si mesma é recusado"""
    project = get_accessible_project(db, project_id, current_user)
    folder = _get_folder(db, project.id, folder_id)

    update_data = folder_data.model_dump(exclude_unset=True)

    if update_data.get("parent_folder_id") is not None:
        _get_folder(db, project.id, update_data["parent_folder_id"])
        if is_descendant(db, folder.id, update_data["parent_folder_id"]):
            raise HTTPException(status_code=400, detail="Não é possível mover uma pasta para dentro dela mesma")

    if "name" in update_data and not (update_data["name"] or "").strip():
        raise HTTPException(status_code=400, detail="Nome da pasta é obrigatório")

    for field, value in update_data.items():
        setattr(folder, field, value)

    db.commit()
    db.refresh(folder)
    return folder


@router.delete("/projects/{project_id}/folders/{folder_id}")
def delete_folder(
    project_id: int,
    folder_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Exclui a pasta e subpastas; os documentos voltam para a raiz do projeto"""
    project = get_accessible_project(db, project_id, current_user)
    folder = _get_folder(db, project.id, folder_id)

    pending = [folder]
    folder_ids = []
    while pending:
        current = pending.pop()
        folder_ids.append(current.id)
        pending.extend(current.children)

    db.query(ProjectDocument).filter(ProjectDocument.folder_id.in_(folder_ids)).update(
        {ProjectDocument.folder_id: None}, synchronize_session=False
    )
    db.delete(folder)
    db.commit()

    return {"message": "Pasta excluída com sucesso"}


# ==================== DOCUMENTOS ====================

@router.get("/projects/{project_id}/documents", response_model=List[DocumentResponse])
def list_documents(
    project_id: int,
    folder_id: Optional[int] = None,
    root_only: bool = False,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Documentos do projeto; folder_id filtra uma pasta, root_only lista só os da raiz"""
    project = get_accessible_project(db, project_id, current_user)

    query = db.query(ProjectDocument).filter(ProjectDocument.project_id == project.id)

    if folder_id is not None:
        query = query.filter(ProjectDocument.folder_id == folder_id)
    elif root_only:
        query = query.filter(ProjectDocument.folder_id.is_(None))

    if search:
        query = query.filter(ProjectDocument.name.ilike(f"%{search}%"))

    return query.order_by(ProjectDocument.created_at.desc(), ProjectDocument.id.desc()).all()


@router.post("/projects/{project_id}/documents", response_model=DocumentResponse, status_code=201)
async def upload_document(
    project_id: int,
    file: UploadFile = File(...),
    folder_id: Optional[int] = Form(None),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    project = get_accessible_project(db, project_id, current_user)

    if folder_id is not None:
        _get_folder(db, project.id, folder_id)

    content = await validate_upload_file(file, ALLOWED_DOCUMENT_EXTENSIONS, settings.MAX_UPLOAD_SIZE)

    file_path = build_storage_path(project.id, file.filename)
    try:
        storage.upload(DOCUMENTS_BUCKET, file_path, content)
    except StorageError as e:
        logger.error(f"Falha ao gravar documento no storage: {e}")
        raise HTTPException(status_code=500, detail="Erro ao salvar arquivo")

    document = ProjectDocument(
        project_id=project.id,
        folder_id=folder_id,
        name=name or file.filename,
        description=description,
        file_path=file_path,
        bucket_name=DOCUMENTS_BUCKET,
        mime_type=file.content_type or "application/octet-stream",
        size=len(content),
        extra_metadata={"original_filename": file.filename},
        uploaded_by=current_user.id,
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info(f"Documento {document.id} enviado para o projeto {project.id} ({len(content)} bytes)")
    return document


@router.put("/documents/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: int,
    document_data: DocumentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Renomeia ou move o documento de pasta"""
    document = _get_document(db, document_id, current_user)
    update_data = document_data.model_dump(exclude_unset=True)

    if "name" in update_data and not (update_data["name"] or "").strip():
        raise HTTPException(status_code=400, detail="Nome do documento é obrigatório")

    if update_data.get("folder_id") is not None:
        _get_folder(db, document.project_id, update_data["folder_id"])

    for field, value in update_data.items():
        setattr(document, field, value)

    db.commit()
    db.refresh(document)
    return document


@router.delete("/documents/{document_id}")
def delete_document(
    document_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Remove o arquivo do storage e depois o registro"""
    document = _get_document(db, document_id, current_user)

    try:
        storage.remove(document.bucket_name, document.file_path)
    except StorageError as e:
        logger.error(f"Falha ao remover documento {document.id} do storage: {e}")
        raise HTTPException(status_code=500, detail="Erro ao remover arquivo")

    db.delete(document)
    db.commit()

    return {"message": "Documento excluído com sucesso"}


@router.get("/documents/{document_id}/signed-url", response_model=SignedUrlResponse)
def get_signed_url(
    document_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    document = _get_document(db, document_id, current_user)
    expires_in = settings.SIGNED_URL_TTL_SECONDS

    return SignedUrlResponse(
        document_id=document.id,
        signed_url=storage.create_signed_url(document.bucket_name, document.file_path, expires_in),
        expires_in=expires_in,
    )
