import anthropic
import base64
import httpx
import json
import logging
import re
import time
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ValidationError, field_validator
from app.core.logging import log_api_call
from app.models.project import ProjectStatus
from app.services.exceptions import ExternalServiceError, RateLimitedError
from app.services.prompts import PROMPT_ASSISTENTE_EMPREENDIMENTO

logger = logging.getLogger(__name__)

# Primeiro "{" até o último "}" da resposta
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ProjectCandidate(BaseModel):
    """Empreendimento sugerido pela IA, ainda não persistido"""
    name: str
    address: Optional[str] = None
    area: Optional[float] = None
    status: ProjectStatus = ProjectStatus.VIABILITY
    description: Optional[str] = None
    confidence: Optional[str] = None
    extracted_data: Dict[str, Any] = {}

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_to_viability(cls, value):
        valid = {s.value for s in ProjectStatus}
        if isinstance(value, str) and value.lower() in valid:
            return value.lower()
        return ProjectStatus.VIABILITY

    @field_validator("extracted_data", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or {}


class AssistantUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class AssistantReply(BaseModel):
    response: str
    project: Optional[ProjectCandidate] = None
    usage: AssistantUsage = AssistantUsage()


def extract_project_candidate(text: str) -> Optional[ProjectCandidate]:
    """
    Procura o objeto JSON embutido na resposta da IA.
    JSON ausente ou inválido não é erro: apenas não há candidato.
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        return None

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.info(f"Resposta da IA sem JSON válido: {e}")
        return None

    if not isinstance(data, dict):
        return None

    try:
        return ProjectCandidate(**data)
    except ValidationError as e:
        logger.info(f"JSON da IA não descreve um empreendimento: {e.error_count()} erro(s)")
        return None


class ProjectAssistantClient:
    """Assistente de IA que transforma conversa e anexos em um empreendimento"""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.transport = transport

    def _call_with_retry(self, func, max_retries=3):
        """Retry com backoff para rate limit (429) e API sobrecarregada (529)"""
        for attempt in range(max_retries):
            try:
                return func()
            except anthropic.RateLimitError:
                if attempt == max_retries - 1:
                    raise RateLimitedError()
                wait_time = 2 ** attempt
                logger.warning(f"Rate limit atingido. Aguardando {wait_time}s antes de tentar novamente...")
                time.sleep(wait_time)
            except anthropic.APIStatusError as e:
                if e.status_code == 529 and attempt < max_retries - 1:
                    wait_time = 5 * (attempt + 1)
                    logger.warning(f"API sobrecarregada (529). Aguardando {wait_time}s (tentativa {attempt + 1}/{max_retries})...")
                    time.sleep(wait_time)
                else:
                    raise ExternalServiceError(f"Erro no assistente de IA: {e.status_code}")
            except anthropic.APIConnectionError as e:
                raise ExternalServiceError(f"Erro de conexão com o assistente de IA: {e}")

    def _download_attachments(self, file_urls: List[str]) -> List[Dict[str, Any]]:
        """Baixa os anexos e converte em blocos de imagem/documento; URLs com erro são ignoradas"""
        blocks = []
        with httpx.Client(timeout=60.0, transport=self.transport, follow_redirects=True) as client:
            for url in file_urls:
                logger.info(f"Processando anexo: {url}")
                try:
                    response = client.get(url)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.error(f"Falha ao baixar anexo {url}: {e}")
                    continue

                mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
                data = base64.standard_b64encode(response.content).decode("utf-8")

                if mime_type.startswith("image/"):
                    blocks.append({
                        "type": "image",
                        "source": {"type": "base64", "media_type": mime_type, "data": data},
                    })
                elif mime_type == "application/pdf":
                    blocks.append({
                        "type": "document",
                        "source": {"type": "base64", "media_type": mime_type, "data": data},
                    })
                else:
                    logger.info(f"Anexo ignorado (tipo {mime_type}): {url}")
        return blocks

    def build_messages(self, messages: List[ChatMessage], attachments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Mensagens no formato da API; anexos entram na última mensagem do usuário"""
        api_messages: List[Dict[str, Any]] = [{"role": m.role, "content": m.content} for m in messages]

        if attachments and api_messages and api_messages[-1]["role"] == "user":
            last = api_messages[-1]
            last["content"] = [{"type": "text", "text": last["content"]}, *attachments]

        return api_messages

    def chat(self, messages: List[ChatMessage], file_urls: Optional[List[str]] = None) -> AssistantReply:
        attachments = self._download_attachments(file_urls) if file_urls else []
        api_messages = self.build_messages(messages, attachments)

        logger.info(f"Assistente de IA: {len(api_messages)} mensagens, {len(attachments)} anexos")
        start = time.time()

        response = self._call_with_retry(
            lambda: self.client.messages.create(
                model=self.model,
                max_tokens=2000,
                system=PROMPT_ASSISTENTE_EMPREENDIMENTO,
                messages=api_messages,
            )
        )

        usage = AssistantUsage()
        if hasattr(response, "usage"):
            usage = AssistantUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")

        log_api_call(
            logger, "anthropic", "messages.create",
            duration_ms=round((time.time() - start) * 1000, 2),
            tokens_used=usage.input_tokens + usage.output_tokens,
        )

        return AssistantReply(response=text, project=extract_project_candidate(text), usage=usage)
