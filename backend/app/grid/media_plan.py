"""
Grade do plano de mídia (Gantt de inserções + grade editável de peças)

Compõe espelho local, sessão de edição e gravação otimista sobre um
RemoteStore. Todas as gravações precisam rodar dentro de um event loop.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
from dateutil.relativedelta import relativedelta
from app.grid.committer import OptimisticCommitter, is_temp_id
from app.grid.errors import CellNotEditableError, DraftValidationError, RemoteStoreError
from app.grid.mirror import LocalMirror, to_date
from app.grid.notifications import Notifier
from app.grid.remote_store import RemoteStore
from app.grid.session import EditSession
from app.services.media_costs import insertion_cost

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Sem Categoria"

EDITABLE_FIELDS = (
    "category_id",
    "name",
    "channel",
    "media_type",
    "piece_type",
    "cost_per_insertion",
    "global_cost",
    "schedule_time",
    "start_date",
    "end_date",
)
NUMERIC_FIELDS = ("cost_per_insertion", "global_cost")
DATE_FIELDS = ("start_date", "end_date")
REQUIRED_TEXT_FIELDS = ("name", "channel")
MEDIA_TYPES = ("online", "offline")


def month_window(day: date) -> Tuple[date, date]:
    """Primeiro e último dia do mês de `day`"""
    start = day.replace(day=1)
    return start, start + relativedelta(months=1, days=-1)


def parse_quantity(draft: Any) -> int:
    """Vazio vale 0; negativo ou não inteiro é inválido"""
    if draft is None:
        return 0
    if isinstance(draft, bool):
        raise DraftValidationError("Quantidade inválida")
    if isinstance(draft, int):
        quantity = draft
    else:
        text = str(draft).strip()
        if not text:
            return 0
        try:
            quantity = int(text)
        except ValueError:
            raise DraftValidationError(f"Quantidade inválida: {text}")
    if quantity < 0:
        raise DraftValidationError("Quantidade não pode ser negativa")
    return quantity


def _parse_decimal(field: str, draft: Any) -> Optional[Decimal]:
    if draft is None or (isinstance(draft, str) and not draft.strip()):
        return None
    try:
        value = Decimal(str(draft).strip().replace(",", "."))
    except InvalidOperation:
        raise DraftValidationError(f"Valor inválido para {field}: {draft}")
    if not value.is_finite() or value < 0:
        raise DraftValidationError(f"Valor inválido para {field}: {draft}")
    return value


def _parse_date(field: str, draft: Any) -> date:
    if draft is None or (isinstance(draft, str) and not draft.strip()):
        raise DraftValidationError(f"Campo {field} é obrigatório")
    try:
        return to_date(draft.strip() if isinstance(draft, str) else draft)
    except ValueError:
        raise DraftValidationError(f"Data inválida: {draft}")


class MediaPlanGrid:
    def __init__(self, store: RemoteStore, project_id: Any, notifier: Optional[Notifier] = None):
        self.store = store
        self.project_id = project_id
        self.notifier = notifier or Notifier()
        self.mirror = LocalMirror()
        self.committer = OptimisticCommitter(self.mirror, store, self.notifier)
        self.session = EditSession(self)
        self.categories: Dict[Any, Dict[str, Any]] = {}

    # ==================== CARGA ====================

    async def load(self, window_start: date, window_end: date) -> bool:
        """
        Carrega categorias, peças do projeto e inserções da janela.

        Em caso de falha notifica e mantém o último estado carregado.
        """
        if window_start > window_end:
            raise DraftValidationError("Início da janela posterior ao fim")
        try:
            categories = await self.store.query("media_categories", {})
            pieces = await self.store.query("media_pieces", {"project_id": self.project_id})
            insertions = await self.store.query("media_insertions", {
                "project_id": self.project_id,
                "start_date": window_start,
                "end_date": window_end,
            })
        except RemoteStoreError as e:
            self.notifier.error("Erro ao carregar plano de mídia", str(e))
            return False

        self.categories = {category["id"]: category for category in categories}
        self.mirror.rebuild(pieces, insertions, (window_start, window_end))
        return True

    async def set_window(self, window_start: date, window_end: date) -> bool:
        self.session.cancel()
        return await self.load(window_start, window_end)

    async def load_month(self, day: date) -> bool:
        return await self.set_window(*month_window(day))

    # ==================== DERIVADOS ====================

    @property
    def window(self) -> Optional[Tuple[date, date]]:
        return self.mirror.window

    def days(self) -> List[date]:
        if self.window is None:
            return []
        start, end = self.window
        return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]

    def category_name(self, item: Dict[str, Any]) -> str:
        category = self.categories.get(item.get("category_id"))
        if category:
            return category["name"]
        return item.get("category_name") or UNCATEGORIZED

    def groups(self) -> List[Tuple[str, List[Dict[str, Any]]]]:
        """Peças agrupadas por categoria (ordem da categoria; sem categoria por último)"""
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        order: Dict[str, Tuple[int, int]] = {}
        for item in self.mirror.items():
            name = self.category_name(item)
            grouped.setdefault(name, []).append(item)
            category = self.categories.get(item.get("category_id"))
            if name == UNCATEGORIZED:
                order[name] = (1, 0)
            elif name not in order:
                order[name] = (0, category["order_index"] if category else 0)
        return [(name, grouped[name]) for name in sorted(grouped, key=lambda n: (order[n], n))]

    def cell_value(self, item_id: Any, day: date) -> int:
        return self.mirror.sum_for_key(item_id, day)

    def is_cell_editable(self, item_id: Any, day: date) -> bool:
        item = self.mirror.get_item(item_id)
        if item is None:
            return False
        return item["start_date"] <= day <= item["end_date"]

    def is_field_editable(self, item_id: Any, field: str) -> bool:
        return field in EDITABLE_FIELDS and self.mirror.get_item(item_id) is not None

    def is_pending(self, item_id: Any) -> bool:
        """Peça ainda sem id do servidor"""
        return is_temp_id(item_id)

    def piece_total(self, item_id: Any) -> int:
        return sum(v["quantity"] for v in self.mirror.values() if v["media_piece_id"] == item_id)

    def day_total(self, day: date) -> int:
        return sum(v["quantity"] for v in self.mirror.values() if v["insertion_date"] == day)

    def estimated_spend(self, item_id: Any = None) -> Decimal:
        """Quantidade x custo por inserção, ou o custo realizado quando houver"""
        total = Decimal("0")
        for value in self.mirror.values():
            if item_id is not None and value["media_piece_id"] != item_id:
                continue
            item = self.mirror.get_item(value["media_piece_id"])
            cost_per_insertion = item.get("cost_per_insertion") if item else None
            total += insertion_cost(value["quantity"], cost_per_insertion, value.get("actual_cost"))
        return total

    def display_value(self, item_id: Any, day: Optional[date] = None, field: Optional[str] = None) -> Any:
        if day is not None:
            return self.cell_value(item_id, day)
        item = self.mirror.get_item(item_id)
        return item.get(field) if item else None

    # ==================== EDIÇÃO ====================

    def _reject(self, message: str):
        self.notifier.warning("Valor inválido", message)
        raise DraftValidationError(message)

    def parse_field(self, item_id: Any, field: str, draft: Any) -> Any:
        item = self.mirror.get_item(item_id)
        if item is None or field not in EDITABLE_FIELDS:
            raise CellNotEditableError(f"Campo {field} não pode ser editado")

        try:
            if field in NUMERIC_FIELDS:
                return _parse_decimal(field, draft)

            if field in DATE_FIELDS:
                value = _parse_date(field, draft)
                start = value if field == "start_date" else item["start_date"]
                end = value if field == "end_date" else item["end_date"]
                if start > end:
                    raise DraftValidationError("Data de início deve ser anterior ou igual à data de fim")
                return value

            if field == "category_id":
                if draft in (None, ""):
                    raise DraftValidationError("Categoria é obrigatória")
                category_id = int(draft)
                if self.categories and category_id not in self.categories:
                    raise DraftValidationError("Categoria não encontrada")
                return category_id

            if field == "media_type":
                value = str(draft or "").strip().lower()
                if value not in MEDIA_TYPES:
                    raise DraftValidationError(f"Tipo de mídia inválido: {draft}")
                return value

            text = str(draft or "").strip()
            if field in REQUIRED_TEXT_FIELDS and not text:
                raise DraftValidationError(f"Campo {field} é obrigatório")
            if field == "schedule_time":
                return text or None
            return text
        except DraftValidationError as e:
            self._reject(str(e))
        except (TypeError, ValueError):
            self._reject(f"Valor inválido para {field}: {draft}")

    def set_cell(self, item_id: Any, day: date, draft: Any):
        if not self.is_cell_editable(item_id, day):
            raise CellNotEditableError(f"Data {day} fora do período da peça")
        try:
            quantity = parse_quantity(draft)
        except DraftValidationError as e:
            self._reject(str(e))
        return self.committer.commit_value(item_id, day, quantity)

    def set_field(self, item_id: Any, field: str, draft: Any):
        value = self.parse_field(item_id, field, draft)
        return self.committer.commit_field(item_id, field, value)

    def commit_edit(self, item_id: Any, draft: Any, day: Optional[date] = None, field: Optional[str] = None):
        if day is not None:
            return self.set_cell(item_id, day, draft)
        return self.set_field(item_id, field, draft)

    def add_piece(
        self,
        category_id: Any,
        name: str,
        channel: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        media_type: str = "online",
        piece_type: str = "",
        schedule_time: Optional[str] = None,
        cost_per_insertion: Any = None,
        global_cost: Any = None,
    ) -> str:
        """Nova peça; sem datas, ocupa a janela visível"""
        if category_id in (None, ""):
            self._reject("Categoria é obrigatória")
        if not (name or "").strip():
            self._reject("Nome da peça é obrigatório")
        if not (channel or "").strip():
            self._reject("Canal é obrigatório")
        if media_type not in MEDIA_TYPES:
            self._reject(f"Tipo de mídia inválido: {media_type}")

        if start_date is None or end_date is None:
            if self.window is None:
                self._reject("Informe o período da peça")
            start_date = start_date or self.window[0]
            end_date = end_date or self.window[1]
        start_date, end_date = to_date(start_date), to_date(end_date)
        if start_date > end_date:
            self._reject("Data de início deve ser anterior ou igual à data de fim")

        try:
            cost_per_insertion = _parse_decimal("cost_per_insertion", cost_per_insertion)
            global_cost = _parse_decimal("global_cost", global_cost)
        except DraftValidationError as e:
            self._reject(str(e))

        return self.committer.insert_item({
            "project_id": self.project_id,
            "category_id": category_id,
            "name": name.strip(),
            "channel": channel.strip(),
            "media_type": media_type,
            "piece_type": piece_type,
            "schedule_time": schedule_time,
            "cost_per_insertion": cost_per_insertion,
            "global_cost": global_cost,
            "start_date": start_date,
            "end_date": end_date,
        })

    def delete_piece(self, item_id: Any):
        if self.session.is_editing and self.session.item_id == item_id:
            self.session.cancel()
        return self.committer.delete_item(item_id)

    async def drain(self) -> None:
        await self.committer.drain()

    def dispose(self) -> None:
        """Descarta a grade; gravações em andamento terminam sem efeito local"""
        self.session.cancel()
        self.mirror.dispose()
