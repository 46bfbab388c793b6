"""
Espelho local das linhas visíveis do plano de mídia

Mantém as peças do projeto e as inserções da janela de datas ativa, com
índice por id (O(1)) e índice por chave lógica (peça, data).
"""
import copy
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DATE_FIELDS = ("start_date", "end_date", "insertion_date")
DECIMAL_FIELDS = ("cost_per_insertion", "global_cost", "actual_cost")

Key = Tuple[Any, date]


def to_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return value


def normalize_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Cópia do registro com datas como `date` e custos como `Decimal`"""
    normalized = dict(record)
    for name in DATE_FIELDS:
        if name in normalized:
            normalized[name] = to_date(normalized[name])
    for name in DECIMAL_FIELDS:
        value = normalized.get(name)
        if value is not None and not isinstance(value, Decimal):
            normalized[name] = Decimal(str(value))
    return normalized


@dataclass
class CellValue:
    """Valor lógico de uma célula: soma das linhas duplicadas da mesma chave"""
    id: Any
    quantity: int
    actual_cost: Optional[Decimal] = None
    row_ids: List[Any] = field(default_factory=list)


@dataclass
class MirrorSnapshot:
    items: Dict[Any, Dict[str, Any]]
    values: Dict[Any, Dict[str, Any]]
    window: Optional[Tuple[date, date]]


class LocalMirror:
    def __init__(self):
        self._items: Dict[Any, Dict[str, Any]] = {}
        self._values: Dict[Any, Dict[str, Any]] = {}
        self._by_key: Dict[Key, List[Any]] = {}
        self.window: Optional[Tuple[date, date]] = None
        self.disposed = False
        # incrementada a cada recarga completa ou descarte
        self.generation = 0

    # ==================== PEÇAS ====================

    def items(self) -> List[Dict[str, Any]]:
        return list(self._items.values())

    def get_item(self, item_id: Any) -> Optional[Dict[str, Any]]:
        return self._items.get(item_id)

    def upsert_item(self, record: Dict[str, Any]) -> Dict[str, Any]:
        item = normalize_record(record)
        self._items[item["id"]] = item
        return item

    def remove_item(self, item_id: Any) -> Optional[Dict[str, Any]]:
        """Remove a peça e as inserções dela (exclusão em cascata)"""
        item = self._items.pop(item_id, None)
        for value in [v for v in self._values.values() if v["media_piece_id"] == item_id]:
            self.remove(value["id"])
        return item

    def replace_item_id(self, old_id: Any, new_id: Any) -> None:
        """Troca o id temporário pelo id do servidor mantendo a ordem das peças"""
        if old_id not in self._items:
            return
        self._items = {
            (new_id if item_id == old_id else item_id): item
            for item_id, item in self._items.items()
        }
        self._items[new_id]["id"] = new_id

        for value in [v for v in self._values.values() if v["media_piece_id"] == old_id]:
            self._unindex(value)
            value["media_piece_id"] = new_id
            self._index(value)

    # ==================== INSERÇÕES ====================

    def values(self) -> List[Dict[str, Any]]:
        return list(self._values.values())

    def get_value(self, value_id: Any) -> Optional[Dict[str, Any]]:
        return self._values.get(value_id)

    def upsert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        value = normalize_record(record)
        previous = self._values.get(value["id"])
        if previous is not None:
            self._unindex(previous)
        self._values[value["id"]] = value
        self._index(value)
        return value

    def remove(self, value_id: Any) -> Optional[Dict[str, Any]]:
        value = self._values.pop(value_id, None)
        if value is not None:
            self._unindex(value)
        return value

    def replace_value_id(self, old_id: Any, new_id: Any) -> None:
        value = self._values.get(old_id)
        if value is None:
            return
        self.remove(old_id)
        value["id"] = new_id
        self.upsert(value)

    def rows_for_key(self, item_id: Any, day: date) -> List[Dict[str, Any]]:
        return [self._values[row_id] for row_id in self._by_key.get((item_id, day), [])]

    def find_by_key(self, item_id: Any, day: date) -> Optional[CellValue]:
        rows = self.rows_for_key(item_id, day)
        if not rows:
            return None
        costs = [row["actual_cost"] for row in rows if row.get("actual_cost") is not None]
        return CellValue(
            id=rows[0]["id"],
            quantity=sum(row["quantity"] for row in rows),
            actual_cost=sum(costs, Decimal("0")) if costs else None,
            row_ids=[row["id"] for row in rows],
        )

    def sum_for_key(self, item_id: Any, day: date) -> int:
        return sum(row["quantity"] for row in self.rows_for_key(item_id, day))

    def _index(self, value: Dict[str, Any]) -> None:
        key = (value["media_piece_id"], value["insertion_date"])
        self._by_key.setdefault(key, []).append(value["id"])

    def _unindex(self, value: Dict[str, Any]) -> None:
        key = (value["media_piece_id"], value["insertion_date"])
        row_ids = self._by_key.get(key, [])
        if value["id"] in row_ids:
            row_ids.remove(value["id"])
        if not row_ids:
            self._by_key.pop(key, None)

    # ==================== ESTADO ====================

    def snapshot(self) -> MirrorSnapshot:
        return MirrorSnapshot(
            items=copy.deepcopy(self._items),
            values=copy.deepcopy(self._values),
            window=self.window,
        )

    def restore(self, snapshot: MirrorSnapshot) -> None:
        self._items = copy.deepcopy(snapshot.items)
        self._values = {}
        self._by_key = {}
        for value in copy.deepcopy(snapshot.values).values():
            self.upsert(value)
        self.window = snapshot.window

    def rebuild(
        self,
        items: Iterable[Dict[str, Any]],
        values: Iterable[Dict[str, Any]],
        window: Optional[Tuple[date, date]] = None,
    ) -> None:
        """Recarga completa (troca de janela ou de projeto)"""
        self._items = {}
        self._values = {}
        self._by_key = {}
        for item in items:
            self.upsert_item(item)
        for value in values:
            self.upsert(value)
        self.window = window
        self.generation += 1
        logger.debug(f"Espelho recarregado: {len(self._items)} peças, {len(self._values)} inserções")

    def dispose(self) -> None:
        self.disposed = True
        self.generation += 1
        self._items = {}
        self._values = {}
        self._by_key = {}
