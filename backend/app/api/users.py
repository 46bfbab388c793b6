import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from app.core.database import get_db
from app.core.logging import log_security_event
from app.models import User, UserRole, AppRole, UserStatus, Company
from app.core.auth import (
    create_access_token,
    get_current_user,
    get_current_admin_user,
    get_password_hash,
    verify_password,
    is_lev_user,
)
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

MIN_PASSWORD_LENGTH = 8


# ==================== SCHEMAS ====================

class UserCreate(BaseModel):
    email: EmailStr
    name: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    phone: Optional[str] = None
    company_id: Optional[int] = None
    roles: List[AppRole] = [AppRole.COMPANY_USER]
    must_change_password: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    company_id: Optional[int] = None
    status: Optional[UserStatus] = None


class RolesUpdate(BaseModel):
    roles: List[AppRole]


class UserPasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class AdminPasswordReset(BaseModel):
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class SetupMasterRequest(BaseModel):
    email: EmailStr
    name: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    status: UserStatus
    must_change_password: bool
    company_id: Optional[int] = None
    roles: List[AppRole] = []
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    items: List[UserResponse]
    total: int


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    message: str


# ==================== HELPER FUNCTIONS ====================

def to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        phone=user.phone,
        avatar_url=user.avatar_url,
        status=user.status,
        must_change_password=user.must_change_password,
        company_id=user.company_id,
        roles=sorted(user.role_set, key=lambda r: r.value),
        last_login=user.last_login,
        created_at=user.created_at,
    )


def get_user_by_email(email: str, db: Session) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def _check_manageable(admin: User, target: User) -> None:
    """Admin de empresa só gerencia usuários da própria empresa"""
    if is_lev_user(admin):
        return
    if target.company_id != admin.company_id:
        raise HTTPException(status_code=403, detail="Acesso negado")


def _check_assignable_roles(admin: User, roles: List[AppRole]) -> None:
    """Somente usuários LEV atribuem papéis LEV"""
    if is_lev_user(admin):
        return
    if any(r in (AppRole.LEV_ADMIN, AppRole.LEV_USER) for r in roles):
        raise HTTPException(status_code=403, detail="Sem permissão para atribuir papéis LEV")


def _replace_roles(user: User, roles: List[AppRole]) -> None:
    # Mantém as linhas já existentes para não violar (user_id, role) no flush
    wanted = set(roles)
    for existing in [r for r in user.roles if r.role not in wanted]:
        user.roles.remove(existing)
    current = user.role_set
    for role in dict.fromkeys(roles):
        if role not in current:
            user.roles.append(UserRole(role=role))


# ==================== AUTH ENDPOINTS ====================

@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Autentica usuário e retorna token JWT"""
    user = get_user_by_email(payload.email, db)
    ip_address = request.client.host if request.client else None

    if not user or not verify_password(payload.password, user.hashed_password):
        log_security_event(
            logger, "login_failed", ip_address=ip_address,
            details={"email": payload.email}, severity="WARNING",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha incorretos"
        )

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário bloqueado"
        )

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    # sub deve ser string no JWT
    access_token = create_access_token(data={"sub": str(user.id)})
    log_security_event(logger, "login_success", user_id=user.id, ip_address=ip_address)

    return LoginResponse(
        user=to_response(user),
        access_token=access_token,
        token_type="bearer",
        message="Login realizado com sucesso"
    )


@router.post("/setup-master", response_model=UserResponse, status_code=201)
def setup_master_user(payload: SetupMasterRequest, db: Session = Depends(get_db)):
    """Cria o primeiro administrador LEV; só funciona com a base de usuários vazia"""
    if db.query(User).count() > 0:
        raise HTTPException(status_code=400, detail="Usuário master já configurado")

    user = User(
        email=payload.email.lower(),
        name=payload.name,
        hashed_password=get_password_hash(payload.password),
        status=UserStatus.ACTIVE,
        must_change_password=False,
    )
    user.roles.append(UserRole(role=AppRole.LEV_ADMIN))
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Usuário master criado: {user.email}")
    return to_response(user)


# ==================== ACCOUNT ENDPOINTS ====================

@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return to_response(current_user)


@router.post("/change-password")
def change_password(
    payload: UserPasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Troca a senha do usuário logado e libera o primeiro acesso"""
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Senha atual incorreta")

    if payload.current_password == payload.new_password:
        raise HTTPException(status_code=400, detail="A nova senha deve ser diferente da atual")

    current_user.hashed_password = get_password_hash(payload.new_password)
    current_user.must_change_password = False
    db.commit()

    return {"message": "Senha alterada com sucesso"}


# ==================== ADMIN ENDPOINTS ====================

@router.get("", response_model=UserListResponse)
def list_users(
    search: Optional[str] = None,
    company_id: Optional[int] = None,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """Lista usuários (admin de empresa vê apenas os da própria empresa)"""
    query = db.query(User)

    if not is_lev_user(current_user):
        query = query.filter(User.company_id == current_user.company_id)
    elif company_id:
        query = query.filter(User.company_id == company_id)

    if search:
        query = query.filter(User.name.ilike(f"%{search}%") | User.email.ilike(f"%{search}%"))

    users = query.order_by(User.name).all()
    return UserListResponse(items=[to_response(u) for u in users], total=len(users))


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    payload: UserCreate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    if get_user_by_email(payload.email, db):
        raise HTTPException(status_code=400, detail="Email já cadastrado")

    _check_assignable_roles(current_user, payload.roles)

    company_id = payload.company_id if is_lev_user(current_user) else current_user.company_id
    if company_id is not None and not db.query(Company).filter(Company.id == company_id).first():
        raise HTTPException(status_code=404, detail="Empresa não encontrada")

    user = User(
        email=payload.email.lower(),
        name=payload.name,
        phone=payload.phone,
        company_id=company_id,
        hashed_password=get_password_hash(payload.password),
        status=UserStatus.ACTIVE,
        must_change_password=payload.must_change_password,
    )
    _replace_roles(user, payload.roles)
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Usuário criado: {user.email} por {current_user.email}")
    return to_response(user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    _check_manageable(current_user, user)
    return to_response(user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    _check_manageable(current_user, user)

    update_data = payload.model_dump(exclude_unset=True)

    if "email" in update_data and update_data["email"].lower() != user.email:
        if get_user_by_email(update_data["email"], db):
            raise HTTPException(status_code=400, detail="Email já cadastrado")
        update_data["email"] = update_data["email"].lower()

    if "company_id" in update_data and not is_lev_user(current_user):
        raise HTTPException(status_code=403, detail="Sem permissão para trocar a empresa do usuário")

    if user.id == current_user.id and update_data.get("status") == UserStatus.INACTIVE:
        raise HTTPException(status_code=400, detail="Você não pode bloquear seu próprio usuário")

    for field, value in update_data.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return to_response(user)


@router.put("/{user_id}/roles", response_model=UserResponse)
def update_user_roles(
    user_id: int,
    payload: RolesUpdate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    _check_manageable(current_user, user)
    _check_assignable_roles(current_user, payload.roles)

    if not payload.roles:
        raise HTTPException(status_code=400, detail="Informe ao menos um papel")

    _replace_roles(user, payload.roles)
    db.commit()
    db.refresh(user)

    log_security_event(
        logger, "roles_changed", user_id=current_user.id,
        details={"target_user_id": user.id, "roles": [r.value for r in payload.roles]},
    )
    return to_response(user)


@router.post("/{user_id}/reset-password")
def reset_password(
    user_id: int,
    payload: AdminPasswordReset,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """Admin redefine a senha; o usuário deve trocá-la no próximo acesso"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    _check_manageable(current_user, user)

    user.hashed_password = get_password_hash(payload.new_password)
    user.must_change_password = True
    db.commit()

    return {"message": "Senha redefinida com sucesso"}


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Você não pode excluir seu próprio usuário")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    _check_manageable(current_user, user)

    db.delete(user)
    db.commit()

    return {"message": "Usuário excluído com sucesso"}
