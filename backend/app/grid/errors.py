from typing import Optional


class GridError(Exception):
    """Erro base do editor de grade"""


class CellNotEditableError(GridError):
    """Célula fora do período de veiculação da peça (ou peça inexistente)"""


class DraftValidationError(GridError):
    """Valor digitado inválido; nada é alterado"""


class RemoteStoreError(GridError):
    """Falha de leitura ou escrita no armazenamento remoto"""

    def __init__(self, message: str, status_code: Optional[int] = None, table: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.table = table
