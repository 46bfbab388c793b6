"""
Logging estruturado em JSON
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Formatter JSON com timestamp ISO 8601, nível, logger e origem do registro"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['location'] = {
            'file': record.pathname,
            'line': record.lineno,
            'function': record.funcName
        }


def setup_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configura o logging da aplicação

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Se True, usa formato JSON. Se False, usa formato texto.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if json_logs:
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Bibliotecas ruidosas
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


def log_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    ip_address: Optional[str] = None
):
    """Loga uma requisição HTTP"""
    logger.info(
        "HTTP Request",
        extra={
            'http': {
                'method': method,
                'path': path,
                'status_code': status_code,
                'duration_ms': duration_ms
            },
            'ip_address': ip_address
        }
    )


def log_api_call(
    logger: logging.Logger,
    provider: str,
    endpoint: str,
    status_code: Optional[int] = None,
    duration_ms: Optional[float] = None,
    tokens_used: Optional[int] = None,
    error: Optional[str] = None
):
    """
    Loga uma chamada a serviço externo

    Args:
        logger: Logger a ser usado
        provider: Provedor (viacep, brasilapi, anthropic, openai)
        endpoint: Endpoint chamado
        status_code: Código de status HTTP (opcional)
        duration_ms: Duração em milissegundos (opcional)
        tokens_used: Tokens usados, para APIs de IA (opcional)
        error: Mensagem de erro se houver (opcional)
    """
    level = logging.ERROR if error else logging.INFO

    logger.log(
        level,
        f"API Call to {provider}",
        extra={
            'api_call': {
                'provider': provider,
                'endpoint': endpoint,
                'status_code': status_code,
                'duration_ms': duration_ms,
                'tokens_used': tokens_used,
                'error': error
            }
        }
    )


def log_security_event(
    logger: logging.Logger,
    event_type: str,
    user_id: Optional[int] = None,
    ip_address: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    severity: str = "INFO"
):
    """Loga um evento de segurança (login_success, login_failed, access_denied, ...)"""
    level = getattr(logging, severity.upper(), logging.INFO)

    logger.log(
        level,
        f"Security Event: {event_type}",
        extra={
            'security': {
                'event_type': event_type,
                'user_id': user_id,
                'ip_address': ip_address,
                'details': details or {}
            }
        }
    )
