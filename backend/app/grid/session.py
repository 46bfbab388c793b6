"""
Sessão de edição: no máximo uma célula em edição por vez
"""
import logging
from datetime import date
from enum import Enum
from typing import Any, Optional
from app.grid.errors import CellNotEditableError, GridError

logger = logging.getLogger(__name__)

_UNSET = object()


class EditState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


class EditTrigger(str, Enum):
    CONFIRM = "confirm"   # Enter
    BLUR = "blur"         # foco saiu da célula
    CHOICE = "choice"     # opção escolhida num select
    CANCEL = "cancel"     # Esc


class EditSession:
    def __init__(self, grid):
        self.grid = grid
        self.state = EditState.IDLE
        self.item_id: Any = None
        self.day: Optional[date] = None
        self.field: Optional[str] = None
        self.draft: Any = None

    @property
    def is_editing(self) -> bool:
        return self.state is EditState.EDITING

    def begin(self, item_id: Any, day: Optional[date] = None, field: Optional[str] = None) -> None:
        """
        Abre a edição de uma célula de data (day) ou de um campo da peça (field).

        Uma edição aberta é descartada sem gravar.
        """
        if (day is None) == (field is None):
            raise ValueError("Informe a data ou o campo da célula")

        if day is not None and not self.grid.is_cell_editable(item_id, day):
            raise CellNotEditableError(f"Data {day} fora do período da peça")
        if field is not None and not self.grid.is_field_editable(item_id, field):
            raise CellNotEditableError(f"Campo {field} não pode ser editado")

        if self.is_editing:
            logger.debug(f"Edição de {self.item_id} descartada")

        self.state = EditState.EDITING
        self.item_id = item_id
        self.day = day
        self.field = field
        self.draft = self.grid.display_value(item_id, day=day, field=field)

    def update_draft(self, value: Any) -> None:
        if not self.is_editing:
            raise GridError("Nenhuma célula em edição")
        self.draft = value

    def commit(self):
        """
        Envia o rascunho para gravação e volta ao estado ocioso.

        Rascunho inválido mantém a edição aberta e propaga DraftValidationError.
        """
        if not self.is_editing:
            return None
        task = self.grid.commit_edit(self.item_id, self.draft, day=self.day, field=self.field)
        self._reset()
        return task

    def cancel(self) -> None:
        self._reset()

    def handle(self, trigger: EditTrigger, value: Any = _UNSET):
        if trigger is EditTrigger.CANCEL:
            self.cancel()
            return None
        if value is not _UNSET:
            self.update_draft(value)
        return self.commit()

    def _reset(self) -> None:
        self.state = EditState.IDLE
        self.item_id = None
        self.day = None
        self.field = None
        self.draft = None
