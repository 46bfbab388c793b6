"""
Testes para validação de arquivos
"""
import asyncio
import base64
import io
import re
import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers
from app.utils.file_validation import (
    ALLOWED_DOCUMENT_EXTENSIONS,
    ALLOWED_IMAGE_EXTENSIONS,
    build_storage_path,
    decode_base64_audio,
    sanitize_filename,
    validate_file_extension,
    validate_file_size,
    validate_magic_bytes,
    validate_upload_file,
)


def test_sanitize_filename():
    assert sanitize_filename("Relatório Final 2025.pdf") == "Relatorio_Final_2025.pdf"
    assert sanitize_filename("plano<mídia>?.xlsx") == "planomidia.xlsx"
    assert sanitize_filename("image-2024_01.jpg") == "image-2024_01.jpg"

    # apenas o nome do arquivo, sem diretórios
    assert sanitize_filename("../../../etc/passwd") == "passwd"
    assert sanitize_filename("C:\\Users\\ana\\planta baixa.dwg") == "planta_baixa.dwg"


def test_sanitize_filename_limits():
    result = sanitize_filename("a" * 200 + ".txt")
    assert result == "a" * 100 + ".txt"

    assert sanitize_filename("???") == "arquivo"


def test_build_storage_path():
    path = build_storage_path(42, "Memorial Descritivo.pdf")
    assert re.fullmatch(r"42/\d+_Memorial_Descritivo\.pdf", path)


def test_validate_file_extension_valid():
    validate_file_extension("image.jpg", ALLOWED_IMAGE_EXTENSIONS)
    validate_file_extension("PLANTA.DWG", ALLOWED_DOCUMENT_EXTENSIONS)


def test_validate_file_extension_invalid():
    with pytest.raises(HTTPException) as exc:
        validate_file_extension("malware.exe")

    assert exc.value.status_code == 400
    assert "não permitido" in exc.value.detail


def test_validate_file_extension_no_extension():
    with pytest.raises(HTTPException) as exc:
        validate_file_extension("filename", ALLOWED_IMAGE_EXTENSIONS)

    assert exc.value.status_code == 400
    assert "sem extensão" in exc.value.detail


def test_validate_file_size_too_large():
    with pytest.raises(HTTPException) as exc:
        validate_file_size(b"a" * 11000, max_size=10000)

    assert exc.value.status_code == 413
    assert "muito grande" in exc.value.detail


def test_validate_file_size_empty():
    with pytest.raises(HTTPException) as exc:
        validate_file_size(b"", max_size=10000)

    assert exc.value.status_code == 400
    assert "vazio" in exc.value.detail


def test_validate_magic_bytes():
    validate_magic_bytes(b"\xFF\xD8\xFF\xE0" + b"a" * 100, "image/jpeg")
    validate_magic_bytes(b"%PDF-1.7\n", "application/pdf")
    # tipos sem assinatura conhecida não são verificados
    validate_magic_bytes(b"qualquer coisa", "text/csv")


def test_validate_magic_bytes_spoofed():
    with pytest.raises(HTTPException) as exc:
        validate_magic_bytes(b"This is not a PDF file", "application/pdf")

    assert exc.value.status_code == 400
    assert "não corresponde" in exc.value.detail


def test_validate_upload_file_returns_content():
    upload = UploadFile(
        file=io.BytesIO(b"%PDF-1.4 conteudo"),
        filename="contrato.pdf",
        headers=Headers({"content-type": "application/pdf"}),
    )

    content = asyncio.run(validate_upload_file(upload, ALLOWED_DOCUMENT_EXTENSIONS, 1024))

    assert content == b"%PDF-1.4 conteudo"


def test_decode_base64_audio_data_url():
    encoded = base64.b64encode(b"audio-bytes").decode()
    assert decode_base64_audio(f"data:audio/webm;base64,{encoded}", max_size=1024) == b"audio-bytes"


def test_decode_base64_audio_invalid():
    with pytest.raises(HTTPException) as exc:
        decode_base64_audio("isto não é base64!", max_size=1024)
    assert exc.value.status_code == 400


def test_decode_base64_audio_too_large():
    encoded = base64.b64encode(b"a" * 300).decode()
    with pytest.raises(HTTPException) as exc:
        decode_base64_audio(encoded, max_size=100)
    assert exc.value.status_code == 413
