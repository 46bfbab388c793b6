import io
import logging
import time
import openai
from app.core.logging import log_api_call
from app.services.exceptions import ExternalServiceError, RateLimitedError

logger = logging.getLogger(__name__)


class TranscriptionClient:
    """Transcrição de áudio (mensagens de voz do assistente) via OpenAI"""

    def __init__(self, api_key: str, model: str = "whisper-1"):
        self.client = openai.OpenAI(api_key=api_key)
        self.model = model

    def transcribe(self, audio: bytes, filename: str = "audio.webm", language: str = "pt") -> str:
        buffer = io.BytesIO(audio)
        buffer.name = filename
        start = time.time()

        try:
            result = self.client.audio.transcriptions.create(
                model=self.model,
                file=buffer,
                language=language,
            )
        except openai.RateLimitError:
            log_api_call(logger, "openai", "audio.transcriptions", status_code=429, error="rate limit")
            raise RateLimitedError()
        except openai.APIStatusError as e:
            log_api_call(logger, "openai", "audio.transcriptions", status_code=e.status_code, error=str(e))
            raise ExternalServiceError("Erro ao transcrever áudio")
        except openai.APIConnectionError as e:
            log_api_call(logger, "openai", "audio.transcriptions", error=str(e))
            raise ExternalServiceError("Erro de conexão com o serviço de transcrição")

        log_api_call(
            logger, "openai", "audio.transcriptions",
            duration_ms=round((time.time() - start) * 1000, 2),
        )
        return (result.text or "").strip()
