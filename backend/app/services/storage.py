"""
Storage de objetos em disco, organizado por bucket

Os arquivos ficam em STORAGE_PATH/<bucket>/<file_path>. O download é feito
por URL assinada: um JWT com bucket, caminho e expiração, validado pela rota
/api/storage/object.
"""
import logging
import mimetypes
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlencode
from jose import JWTError, jwt
from app.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_PURPOSE = "storage"


class StorageError(Exception):
    pass


class ObjectNotFoundError(StorageError):
    pass


class InvalidSignatureError(StorageError):
    pass


class StorageService:
    def __init__(self, base_path: Optional[str] = None, public_base_url: Optional[str] = None):
        self.base_path = Path(base_path or settings.STORAGE_PATH).resolve()
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def _resolve(self, bucket: str, file_path: str) -> Path:
        """Caminho absoluto do objeto, impedindo path traversal para fora do bucket"""
        bucket_root = (self.base_path / bucket).resolve()
        target = (bucket_root / file_path).resolve()
        if bucket_root not in target.parents:
            raise StorageError(f"Caminho inválido: {file_path}")
        return target

    def upload(self, bucket: str, file_path: str, content: bytes) -> str:
        target = self._resolve(bucket, file_path)
        if target.exists():
            raise StorageError(f"Objeto já existe: {bucket}/{file_path}")

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info(f"Objeto gravado: {bucket}/{file_path} ({len(content)} bytes)")
        return file_path

    def remove(self, bucket: str, file_path: str) -> bool:
        target = self._resolve(bucket, file_path)
        if not target.exists():
            logger.warning(f"Objeto não encontrado para remoção: {bucket}/{file_path}")
            return False

        target.unlink()
        logger.info(f"Objeto removido: {bucket}/{file_path}")
        return True

    def open(self, bucket: str, file_path: str) -> Tuple[Path, str]:
        """Devolve o caminho local e o mime type do objeto"""
        target = self._resolve(bucket, file_path)
        if not target.is_file():
            raise ObjectNotFoundError(f"{bucket}/{file_path}")

        mime_type, _ = mimetypes.guess_type(target.name)
        return target, mime_type or "application/octet-stream"

    def exists(self, bucket: str, file_path: str) -> bool:
        return self._resolve(bucket, file_path).is_file()

    def create_signed_url(self, bucket: str, file_path: str, expires_in: Optional[int] = None) -> str:
        """URL temporária de download (padrão: SIGNED_URL_TTL_SECONDS)"""
        expires_in = expires_in or settings.SIGNED_URL_TTL_SECONDS
        expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        token = jwt.encode(
            {"purpose": TOKEN_PURPOSE, "bucket": bucket, "path": file_path, "exp": expire},
            settings.SECRET_KEY,
            algorithm=ALGORITHM,
        )
        return f"{self.public_base_url}/api/storage/object?{urlencode({'token': token})}"

    def get_public_url(self, bucket: str, file_path: str) -> str:
        """URL estável para assets públicos (bucket branding)"""
        return f"{self.public_base_url}/api/storage/public/{bucket}/{file_path}"

    def verify_signed_token(self, token: str) -> Tuple[str, str]:
        """Valida o token de uma URL assinada e devolve (bucket, file_path)"""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError as e:
            raise InvalidSignatureError(str(e))

        if payload.get("purpose") != TOKEN_PURPOSE or not payload.get("bucket") or not payload.get("path"):
            raise InvalidSignatureError("Token sem bucket/caminho")

        return payload["bucket"], payload["path"]


def get_storage() -> StorageService:
    return StorageService()


def ensure_storage_dirs(buckets) -> None:
    base = Path(settings.STORAGE_PATH)
    for bucket in buckets:
        os.makedirs(base / bucket, exist_ok=True)
