from pydantic_settings import BaseSettings
from typing import Optional
import os


# Detectar se está no Railway (container Docker)
def get_default_storage_path():
    if os.path.exists('/app'):
        return '/app/data'
    return '../data'


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    STORAGE_PATH: str = get_default_storage_path()
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # URLs assinadas: validade emitida pelo servidor e janela de cache do cliente
    SIGNED_URL_TTL_SECONDS: int = 3600
    SIGNED_URL_CACHE_SECONDS: int = 50 * 60

    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_TRANSCRIPTION_MODEL: str = "whisper-1"

    VIACEP_BASE_URL: str = "https://viacep.com.br/ws"
    BRASILAPI_BASE_URL: str = "https://brasilapi.com.br/api"

    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024
    MAX_AUDIO_SIZE: int = 25 * 1024 * 1024

    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
