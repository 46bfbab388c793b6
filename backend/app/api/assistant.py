import logging
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, Field
from app.core.config import settings
from app.core.database import get_db
from app.core.auth import get_current_user, is_lev_user, ensure_company_access
from app.core.rate_limit import limiter, ASSISTANT_LIMIT
from app.models import Project, Company, User, AI_UPLOADS_BUCKET
from app.services.claude_client import ProjectAssistantClient, ChatMessage, ProjectCandidate, AssistantReply
from app.services.openai_client import TranscriptionClient
from app.services.exceptions import ExternalServiceError
from app.services.storage import StorageService, StorageError, get_storage
from app.utils.file_validation import (
    ALLOWED_DOCUMENT_EXTENSIONS,
    build_storage_path,
    decode_base64_audio,
    validate_upload_file,
)
from app.api.projects import ProjectResponse, next_order_index

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


class AssistantRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    file_urls: List[str] = []


class CreateFromCandidateRequest(BaseModel):
    project: ProjectCandidate
    company_id: Optional[int] = None


class TranscribeRequest(BaseModel):
    audio: str
    filename: str = "audio.webm"


class TranscribeResponse(BaseModel):
    text: str


class AttachmentResponse(BaseModel):
    file_path: str
    signed_url: str
    mime_type: Optional[str] = None
    size: int


def get_assistant_client() -> ProjectAssistantClient:
    if not settings.ANTHROPIC_API_KEY:
        raise HTTPException(status_code=503, detail="Assistente de IA não configurado")
    return ProjectAssistantClient(api_key=settings.ANTHROPIC_API_KEY, model=settings.ANTHROPIC_MODEL)


def get_transcription_client() -> TranscriptionClient:
    if not settings.OPENAI_API_KEY:
        raise HTTPException(status_code=503, detail="Serviço de transcrição não configurado")
    return TranscriptionClient(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_TRANSCRIPTION_MODEL)


@router.post("/project", response_model=AssistantReply)
@limiter.limit(ASSISTANT_LIMIT)
def chat_project(
    request: Request,
    payload: AssistantRequest,
    current_user: User = Depends(get_current_user),
    client: ProjectAssistantClient = Depends(get_assistant_client),
):
    """
    Conversa com o assistente de cadastro.
    Retorna o texto da IA e, quando a resposta traz um JSON válido, o
    empreendimento sugerido (ainda não salvo).
    """
    try:
        return client.chat(payload.messages, payload.file_urls)
    except ExternalServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/project/create", response_model=ProjectResponse, status_code=201)
def create_project_from_candidate(
    payload: CreateFromCandidateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Salva o empreendimento sugerido pela IA na esteira"""
    company_id = payload.company_id
    if company_id is None and not is_lev_user(current_user):
        company_id = current_user.company_id

    if company_id is not None:
        ensure_company_access(current_user, company_id)
        if not db.query(Company).filter(Company.id == company_id).first():
            raise HTTPException(status_code=404, detail="Empresa não encontrada")

    candidate = payload.project
    if not candidate.name.strip():
        raise HTTPException(status_code=400, detail="Nome do projeto é obrigatório")

    metadata = dict(candidate.extracted_data)
    if candidate.confidence:
        metadata["ai_confidence"] = candidate.confidence
    metadata["source"] = "ai_assistant"

    project = Project(
        name=candidate.name.strip(),
        address=candidate.address,
        area=candidate.area,
        description=candidate.description,
        status=candidate.status,
        company_id=company_id,
        created_by=current_user.id,
        order_index=next_order_index(db, candidate.status),
        extra_metadata=metadata,
    )
    db.add(project)
    db.commit()
    db.refresh(project)

    logger.info(f"Projeto {project.id} criado pelo assistente de IA para {current_user.email}")
    return ProjectResponse.model_validate(project)


@router.post("/uploads", response_model=AttachmentResponse, status_code=201)
async def upload_attachment(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Anexo temporário para a conversa; devolve a URL assinada a ser enviada ao assistente"""
    content = await validate_upload_file(file, ALLOWED_DOCUMENT_EXTENSIONS, settings.MAX_UPLOAD_SIZE)
    file_path = build_storage_path(current_user.id, file.filename)

    try:
        storage.upload(AI_UPLOADS_BUCKET, file_path, content)
    except StorageError as e:
        logger.error(f"Falha ao gravar anexo do assistente: {e}")
        raise HTTPException(status_code=500, detail="Erro ao salvar arquivo")

    return AttachmentResponse(
        file_path=file_path,
        signed_url=storage.create_signed_url(AI_UPLOADS_BUCKET, file_path),
        mime_type=file.content_type,
        size=len(content),
    )


@router.post("/transcribe", response_model=TranscribeResponse)
@limiter.limit(ASSISTANT_LIMIT)
def transcribe_audio(
    request: Request,
    payload: TranscribeRequest,
    current_user: User = Depends(get_current_user),
    client: TranscriptionClient = Depends(get_transcription_client),
):
    """Transcreve áudio em base64 (limite de 25MB)"""
    audio = decode_base64_audio(payload.audio, settings.MAX_AUDIO_SIZE)

    try:
        text = client.transcribe(audio, filename=payload.filename)
    except ExternalServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return TranscribeResponse(text=text)
