"""
Permissões efetivas de um usuário em um projeto
"""
from typing import Dict, Optional
from fastapi import HTTPException
from sqlalchemy.orm import Session
from app.core.auth import is_lev_user
from app.models import AppRole, Project, ProjectMember, User

PROJECT_MODULES = ("overview", "documents", "media", "financial", "team")
PROJECT_ACTIONS = ("view", "create", "edit", "delete")


def _full_access() -> Dict[str, Dict[str, bool]]:
    return {module: {action: True for action in PROJECT_ACTIONS} for module in PROJECT_MODULES}


def get_membership(db: Session, project_id: int, user_id: int) -> Optional[ProjectMember]:
    return (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )


def has_full_access(user: User, project: Project) -> bool:
    """Usuários LEV e admins da empresa dona do projeto têm acesso total"""
    if is_lev_user(user):
        return True
    return AppRole.COMPANY_ADMIN in user.role_set and user.company_id == project.company_id


def has_project_permission(member: Optional[ProjectMember], module: str, action: str) -> bool:
    """custom_permissions do membro sobrescreve o perfil, módulo a módulo e ação a ação"""
    if member is None:
        return False

    custom = (member.custom_permissions or {}).get(module) or {}
    if action in custom and custom[action] is not None:
        return bool(custom[action])

    profile_perms = (member.profile.permissions if member.profile else None) or {}
    return bool((profile_perms.get(module) or {}).get(action, False))


def effective_permissions(db: Session, user: User, project: Project) -> Dict[str, Dict[str, bool]]:
    if has_full_access(user, project):
        return _full_access()

    member = get_membership(db, project.id, user.id)
    return {
        module: {action: has_project_permission(member, module, action) for action in PROJECT_ACTIONS}
        for module in PROJECT_MODULES
    }


def can_access_project(db: Session, user: User, project: Project) -> bool:
    if has_full_access(user, project):
        return True
    if user.company_id is not None and user.company_id == project.company_id:
        return True
    return get_membership(db, project.id, user.id) is not None


def get_accessible_project(db: Session, project_id: int, user: User) -> Project:
    """Carrega o projeto ou responde 404/403"""
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Projeto não encontrado")

    if not can_access_project(db, user, project):
        raise HTTPException(status_code=403, detail="Acesso negado a este projeto")

    return project
