from .company import Company, CompanyStatus
from .user import User, UserRole, AppRole, UserStatus
from .project import Project, ProjectStatus, ProjectProfile, ProjectMember, PIPELINE_STAGES
from .terreno import Terreno, TerrenoStatus
from .financial import (
    BaseCobranca,
    TipoCobranca,
    StatusContaReceber,
    StatusContaPagar,
    FormaPagamento,
    ContaReceberLote,
    ContaReceber,
    ContaPagar,
    MESES_POR_BASE,
)
from .document import ProjectFolder, ProjectDocument, DOCUMENTS_BUCKET, BRANDING_BUCKET, AI_UPLOADS_BUCKET
from .media import MediaType, MediaCategory, MediaPiece, MediaInsertion, MediaBudget
from .settings import SystemSettings

__all__ = [
    "Company",
    "CompanyStatus",
    "User",
    "UserRole",
    "AppRole",
    "UserStatus",
    "Project",
    "ProjectStatus",
    "ProjectProfile",
    "ProjectMember",
    "PIPELINE_STAGES",
    "Terreno",
    "TerrenoStatus",
    "BaseCobranca",
    "TipoCobranca",
    "StatusContaReceber",
    "StatusContaPagar",
    "FormaPagamento",
    "ContaReceberLote",
    "ContaReceber",
    "ContaPagar",
    "MESES_POR_BASE",
    "ProjectFolder",
    "ProjectDocument",
    "DOCUMENTS_BUCKET",
    "BRANDING_BUCKET",
    "AI_UPLOADS_BUCKET",
    "MediaType",
    "MediaCategory",
    "MediaPiece",
    "MediaInsertion",
    "MediaBudget",
    "SystemSettings",
]
