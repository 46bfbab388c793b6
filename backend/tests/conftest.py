"""
Fixtures compartilhadas: banco SQLite em memória, storage temporário e usuários
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "chave-de-teste")
os.environ.setdefault("STORAGE_PATH", tempfile.mkdtemp(prefix="storage-"))
os.environ.setdefault("JSON_LOGS", "false")

import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.core.auth import create_access_token, get_password_hash
from app.core.database import Base, get_db
from app.core.rate_limit import limiter
from app.main import app
from app.models import (
    AppRole,
    Company,
    MediaCategory,
    MediaPiece,
    Project,
    User,
    UserRole,
    UserStatus,
)
from app.services.storage import StorageService, get_storage
from app.utils.cache import lookup_cache, settings_cache

PASSWORD = "senha-segura-123"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(tmp_path):
    return StorageService(base_path=str(tmp_path / "storage"), public_base_url="http://testserver")


@pytest.fixture
def client(db, storage):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    limiter.enabled = False
    settings_cache.clear()
    lookup_cache.clear()

    yield TestClient(app)

    app.dependency_overrides.clear()
    limiter.enabled = True
    settings_cache.clear()
    lookup_cache.clear()


def make_user(db, email, roles, company=None, password=PASSWORD, **fields):
    user = User(
        email=email,
        name=fields.pop("name", email.split("@")[0]),
        hashed_password=get_password_hash(password),
        status=fields.pop("status", UserStatus.ACTIVE),
        must_change_password=fields.pop("must_change_password", False),
        company_id=company.id if company else None,
        **fields,
    )
    user.roles = [UserRole(role=role) for role in roles]
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def company(db):
    company = Company(
        razao_social="Incorporadora Horizonte Ltda",
        nome_comercial="Horizonte",
        cnpj="11222333000181",
        email="contato@horizonte.com.br",
    )
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def other_company(db):
    company = Company(
        razao_social="Construtora Aurora SA",
        nome_comercial="Aurora",
        cnpj="44555666000199",
        email="contato@aurora.com.br",
    )
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def lev_admin(db):
    return make_user(db, "admin@lev.com.br", [AppRole.LEV_ADMIN])


@pytest.fixture
def company_admin(db, company):
    return make_user(db, "gestor@horizonte.com.br", [AppRole.COMPANY_ADMIN], company=company)


@pytest.fixture
def company_user(db, company):
    return make_user(db, "analista@horizonte.com.br", [AppRole.COMPANY_USER], company=company)


@pytest.fixture
def admin_headers(lev_admin):
    return auth_headers(lev_admin)


@pytest.fixture
def user_headers(company_user):
    return auth_headers(company_user)


@pytest.fixture
def project(db, company, lev_admin):
    project = Project(name="Residencial Jardins", company_id=company.id, created_by=lev_admin.id, order_index=0)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@pytest.fixture
def category(db):
    category = MediaCategory(name="Digital", order_index=1)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def piece(db, project, category):
    piece = MediaPiece(
        project_id=project.id,
        category_id=category.id,
        name="Banner lançamento",
        channel="Instagram",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 31),
        cost_per_insertion=100,
    )
    db.add(piece)
    db.commit()
    db.refresh(piece)
    return piece
