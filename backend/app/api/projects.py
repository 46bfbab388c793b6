import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from app.core.database import get_db
from app.core.auth import get_current_user, is_lev_user, ensure_company_access
from app.models import (
    Project,
    ProjectStatus,
    ProjectMember,
    ProjectProfile,
    Company,
    User,
    PIPELINE_STAGES,
)
from app.services.permissions import (
    effective_permissions,
    get_accessible_project,
    has_full_access,
    has_project_permission,
    get_membership,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


# Schemas
class ProjectBase(BaseModel):
    name: str
    address: Optional[str] = None
    area: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = None
    company_id: Optional[int] = None


class ProjectCreate(ProjectBase):
    status: ProjectStatus = ProjectStatus.VIABILITY
    extra_metadata: Optional[Dict[str, Any]] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    area: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = None
    company_id: Optional[int] = None
    status: Optional[ProjectStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    extra_metadata: Optional[Dict[str, Any]] = None


class ProjectMove(BaseModel):
    status: ProjectStatus
    order_index: Optional[int] = Field(None, ge=0)


class CompanyInfo(BaseModel):
    id: int
    nome_comercial: str

    class Config:
        from_attributes = True


class ProjectResponse(ProjectBase):
    id: int
    company: Optional[CompanyInfo] = None
    status: ProjectStatus
    order_index: int
    progress: int
    archived: bool
    extra_metadata: Optional[Dict[str, Any]] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    items: List[ProjectResponse]
    total: int
    page: int
    per_page: int


class PipelineColumn(BaseModel):
    status: ProjectStatus
    label: str
    count: int
    projects: List[ProjectResponse]


class MemberCreate(BaseModel):
    user_id: int
    profile_id: Optional[int] = None
    custom_permissions: Optional[Dict[str, Dict[str, bool]]] = None


class MemberUpdate(BaseModel):
    profile_id: Optional[int] = None
    custom_permissions: Optional[Dict[str, Dict[str, bool]]] = None


class MemberResponse(BaseModel):
    id: int
    project_id: int
    user_id: int
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    profile_id: Optional[int] = None
    profile_name: Optional[str] = None
    custom_permissions: Optional[Dict[str, Dict[str, bool]]] = None
    created_at: Optional[datetime] = None


class PermissionsResponse(BaseModel):
    project_id: int
    full_access: bool
    permissions: Dict[str, Dict[str, bool]]


# Helpers
def _to_response(project: Project) -> ProjectResponse:
    return ProjectResponse.model_validate(project)


def _member_response(member: ProjectMember) -> MemberResponse:
    return MemberResponse(
        id=member.id,
        project_id=member.project_id,
        user_id=member.user_id,
        user_name=member.user.name if member.user else None,
        user_email=member.user.email if member.user else None,
        profile_id=member.profile_id,
        profile_name=member.profile.name if member.profile else None,
        custom_permissions=member.custom_permissions,
        created_at=member.created_at,
    )


def _visible_projects(db: Session, user: User):
    """Usuários LEV veem tudo; os demais, projetos da empresa ou dos quais são membros"""
    query = db.query(Project)
    if is_lev_user(user):
        return query

    member_ids = db.query(ProjectMember.project_id).filter(ProjectMember.user_id == user.id)
    if user.company_id is not None:
        return query.filter((Project.company_id == user.company_id) | Project.id.in_(member_ids))
    return query.filter(Project.id.in_(member_ids))


def next_order_index(db: Session, status: ProjectStatus) -> int:
    last = (
        db.query(Project)
        .filter(Project.status == status, Project.archived == False)
        .order_by(Project.order_index.desc())
        .first()
    )
    return (last.order_index + 1) if last else 0


def _require_project_permission(db: Session, user: User, project: Project, module: str, action: str) -> None:
    if has_full_access(user, project):
        return
    if not has_project_permission(get_membership(db, project.id, user.id), module, action):
        raise HTTPException(status_code=403, detail="Sem permissão para esta ação no projeto")


def _validate_company(db: Session, user: User, company_id: Optional[int]) -> None:
    if company_id is None:
        return
    ensure_company_access(user, company_id)
    if not db.query(Company).filter(Company.id == company_id).first():
        raise HTTPException(status_code=404, detail="Empresa não encontrada")


# Endpoints
@router.get("", response_model=ProjectListResponse)
def list_projects(
    page: int = 1,
    per_page: int = 50,
    search: Optional[str] = None,
    company_id: Optional[int] = None,
    status: Optional[ProjectStatus] = None,
    archived: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lista projetos com paginação e filtros"""
    query = _visible_projects(db, current_user).filter(Project.archived == archived)

    if search:
        query = query.filter(
            Project.name.ilike(f"%{search}%") |
            Project.address.ilike(f"%{search}%")
        )

    if company_id:
        query = query.filter(Project.company_id == company_id)

    if status:
        query = query.filter(Project.status == status)

    total = query.count()

    projects = query.order_by(Project.created_at.desc(), Project.id.desc()).offset((page - 1) * per_page).limit(per_page).all()

    return ProjectListResponse(
        items=[_to_response(p) for p in projects],
        total=total,
        page=page,
        per_page=per_page
    )


@router.get("/pipeline", response_model=List[PipelineColumn])
def get_pipeline(
    company_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Esteira de incorporação: uma coluna por etapa, na ordem do kanban"""
    query = _visible_projects(db, current_user).filter(Project.archived == False)
    if company_id:
        query = query.filter(Project.company_id == company_id)

    projects = query.order_by(Project.order_index, Project.id).all()

    columns = []
    for stage, label in PIPELINE_STAGES:
        stage_projects = [p for p in projects if p.status == stage]
        columns.append(PipelineColumn(
            status=stage,
            label=label,
            count=len(stage_projects),
            projects=[_to_response(p) for p in stage_projects],
        ))
    return columns


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _to_response(get_accessible_project(db, project_id, current_user))


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    project_data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    company_id = project_data.company_id
    if company_id is None and not is_lev_user(current_user):
        company_id = current_user.company_id
    _validate_company(db, current_user, company_id)

    data = project_data.model_dump()
    data["company_id"] = company_id
    data["extra_metadata"] = data.get("extra_metadata") or {}

    project = Project(
        **data,
        created_by=current_user.id,
        order_index=next_order_index(db, project_data.status),
    )
    db.add(project)
    db.commit()
    db.refresh(project)

    logger.info(f"Projeto criado: {project.id} ({project.name}) por {current_user.email}")
    return _to_response(project)


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    _require_project_permission(db, current_user, project, "overview", "edit")

    update_data = project_data.model_dump(exclude_unset=True)

    if "company_id" in update_data:
        _validate_company(db, current_user, update_data["company_id"])

    if "status" in update_data and update_data["status"] != project.status:
        project.order_index = next_order_index(db, update_data["status"])

    for field, value in update_data.items():
        setattr(project, field, value)

    db.commit()
    db.refresh(project)

    return _to_response(project)


@router.post("/{project_id}/move", response_model=ProjectResponse)
def move_project(
    project_id: int,
    move: ProjectMove,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Move o card para outra etapa (ou posição) da esteira.
    Sem order_index o card vai para o fim da coluna; com order_index os
    cards seguintes da coluna de destino descem uma posição.
    """
    project = get_accessible_project(db, project_id, current_user)
    _require_project_permission(db, current_user, project, "overview", "edit")

    if move.order_index is None:
        if move.status == project.status:
            return _to_response(project)
        new_index = next_order_index(db, move.status)
    else:
        new_index = move.order_index
        siblings = (
            db.query(Project)
            .filter(
                Project.status == move.status,
                Project.archived == False,
                Project.id != project.id,
                Project.order_index >= new_index,
            )
            .all()
        )
        for sibling in siblings:
            sibling.order_index += 1

    old_status = project.status
    project.status = move.status
    project.order_index = new_index
    db.commit()
    db.refresh(project)

    logger.info(f"Projeto {project.id} movido: {old_status.value} -> {move.status.value} (posição {new_index})")
    return _to_response(project)


@router.post("/{project_id}/archive", response_model=ProjectResponse)
def archive_project(
    project_id: int,
    archived: bool = True,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Arquiva (ou desarquiva com ?archived=false) um projeto"""
    project = get_accessible_project(db, project_id, current_user)
    _require_project_permission(db, current_user, project, "overview", "delete")

    project.archived = archived
    if not archived:
        project.order_index = next_order_index(db, project.status)
    db.commit()
    db.refresh(project)

    return _to_response(project)


@router.get("/{project_id}/permissions", response_model=PermissionsResponse)
def get_my_permissions(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    return PermissionsResponse(
        project_id=project.id,
        full_access=has_full_access(current_user, project),
        permissions=effective_permissions(db, current_user, project),
    )


# ==================== MEMBROS ====================

@router.get("/{project_id}/members", response_model=List[MemberResponse])
def list_members(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    members = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project.id)
        .order_by(ProjectMember.created_at, ProjectMember.id)
        .all()
    )
    return [_member_response(m) for m in members]


@router.post("/{project_id}/members", response_model=MemberResponse, status_code=201)
def add_member(
    project_id: int,
    member_data: MemberCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    _require_project_permission(db, current_user, project, "team", "create")

    user = db.query(User).filter(User.id == member_data.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    if get_membership(db, project.id, user.id):
        raise HTTPException(status_code=400, detail="Usuário já é membro deste projeto")

    if member_data.profile_id is not None:
        if not db.query(ProjectProfile).filter(ProjectProfile.id == member_data.profile_id).first():
            raise HTTPException(status_code=404, detail="Perfil não encontrado")

    member = ProjectMember(project_id=project.id, **member_data.model_dump())
    db.add(member)
    db.commit()
    db.refresh(member)

    return _member_response(member)


@router.put("/{project_id}/members/{member_id}", response_model=MemberResponse)
def update_member(
    project_id: int,
    member_id: int,
    member_data: MemberUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    _require_project_permission(db, current_user, project, "team", "edit")

    member = db.query(ProjectMember).filter(ProjectMember.id == member_id, ProjectMember.project_id == project.id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Membro não encontrado")

    for field, value in member_data.model_dump(exclude_unset=True).items():
        setattr(member, field, value)

    db.commit()
    db.refresh(member)
    return _member_response(member)


@router.delete("/{project_id}/members/{member_id}")
def remove_member(
    project_id: int,
    member_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    project = get_accessible_project(db, project_id, current_user)
    _require_project_permission(db, current_user, project, "team", "delete")

    member = db.query(ProjectMember).filter(ProjectMember.id == member_id, ProjectMember.project_id == project.id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Membro não encontrado")

    db.delete(member)
    db.commit()

    return {"message": "Membro removido com sucesso"}


# ==================== PERFIS ====================

class ProfileCreate(BaseModel):
    name: str
    description: Optional[str] = None
    permissions: Dict[str, Dict[str, bool]] = {}


class ProfileResponse(ProfileCreate):
    id: int

    class Config:
        from_attributes = True


@router.get("/profiles/list", response_model=List[ProfileResponse])
def list_profiles(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db.query(ProjectProfile).order_by(ProjectProfile.name).all()


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
def create_profile(
    profile_data: ProfileCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not is_lev_user(current_user):
        raise HTTPException(status_code=403, detail="Apenas usuários LEV podem criar perfis")

    if db.query(ProjectProfile).filter(ProjectProfile.name == profile_data.name).first():
        raise HTTPException(status_code=400, detail="Já existe um perfil com este nome")

    profile = ProjectProfile(**profile_data.model_dump())
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile
