"""
Validação e sanitização de uploads de arquivos
"""
import base64
import binascii
import os
import re
import time
import unicodedata
from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}
ALLOWED_BRANDING_EXTENSIONS = ALLOWED_IMAGE_EXTENSIONS | {'.svg', '.ico'}
ALLOWED_DOCUMENT_EXTENSIONS = ALLOWED_IMAGE_EXTENSIONS | {
    '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
    '.txt', '.csv', '.dwg', '.dxf', '.kml', '.kmz', '.zip',
}

MAX_BRANDING_SIZE = 2 * 1024 * 1024  # 2MB

# Magic bytes para validação do tipo MIME real
MAGIC_BYTES = {
    'image/jpeg': [b'\xFF\xD8\xFF'],
    'image/png': [b'\x89\x50\x4E\x47'],
    'image/gif': [b'GIF87a', b'GIF89a'],
    'image/webp': [b'RIFF'],
    'application/pdf': [b'%PDF'],
}


def sanitize_filename(filename: str) -> str:
    """
    Normaliza o nome do arquivo para uso como caminho no storage:
    remove acentos, troca espaços por underscore e descarta caracteres especiais
    """
    filename = os.path.basename(filename.replace('\\', '/'))
    filename = unicodedata.normalize('NFD', filename)
    filename = ''.join(c for c in filename if not unicodedata.combining(c))
    filename = re.sub(r'\s+', '_', filename)
    filename = re.sub(r'[^a-zA-Z0-9._-]', '', filename)

    name, ext = os.path.splitext(filename)
    if len(name) > 100:
        name = name[:100]

    return f"{name}{ext}" or "arquivo"


def build_storage_path(prefix, filename: str) -> str:
    """Caminho no bucket: <prefixo>/<timestamp ms>_<nome sanitizado>"""
    return f"{prefix}/{int(time.time() * 1000)}_{sanitize_filename(filename)}"


def validate_file_extension(filename: str, allowed_extensions: set = ALLOWED_DOCUMENT_EXTENSIONS) -> None:
    ext = os.path.splitext(filename)[1].lower()

    if not ext:
        raise HTTPException(
            status_code=400,
            detail="Arquivo sem extensão"
        )

    if ext not in allowed_extensions:
        allowed_list = ', '.join(sorted(allowed_extensions))
        raise HTTPException(
            status_code=400,
            detail=f"Tipo de arquivo não permitido. Extensões permitidas: {allowed_list}"
        )


def validate_file_size(content: bytes, max_size: int) -> None:
    file_size = len(content)

    if file_size == 0:
        raise HTTPException(
            status_code=400,
            detail="Arquivo vazio"
        )

    if file_size > max_size:
        max_size_mb = max_size / (1024 * 1024)
        raise HTTPException(
            status_code=413,
            detail=f"Arquivo muito grande. Tamanho máximo: {max_size_mb:.1f}MB"
        )


def validate_magic_bytes(content: bytes, content_type: str) -> None:
    """
    Valida os magic bytes do arquivo para detectar spoofing de extensão
    """
    if content_type not in MAGIC_BYTES:
        return

    for signature in MAGIC_BYTES[content_type]:
        if content.startswith(signature):
            return

    raise HTTPException(
        status_code=400,
        detail="Conteúdo do arquivo não corresponde ao tipo declarado"
    )


async def validate_upload_file(
    file: UploadFile,
    allowed_extensions: set,
    max_size: int,
    check_magic_bytes: bool = True
) -> bytes:
    """
    Valida um arquivo de upload e devolve seu conteúdo

    Raises:
        HTTPException: Se arquivo inválido
    """
    if not file or not file.filename:
        raise HTTPException(
            status_code=400,
            detail="Nenhum arquivo foi enviado"
        )

    validate_file_extension(file.filename, allowed_extensions)

    content = await file.read()
    validate_file_size(content, max_size)

    if check_magic_bytes and file.content_type:
        validate_magic_bytes(content, file.content_type)

    await file.seek(0)
    return content


def decode_base64_audio(data: str, max_size: int) -> bytes:
    """
    Decodifica o áudio enviado em base64 (aceita prefixo data URL)

    Raises:
        HTTPException: 400 se inválido ou vazio, 413 se exceder max_size
    """
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]

    # Estimativa antes de decodificar, para recusar payloads enormes cedo
    if len(data) * 3 // 4 > max_size + 3:
        raise HTTPException(
            status_code=413,
            detail=f"Áudio muito grande. Tamanho máximo: {max_size / (1024 * 1024):.0f}MB"
        )

    try:
        audio = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Áudio em base64 inválido")

    validate_file_size(audio, max_size)
    return audio
