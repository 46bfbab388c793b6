"""
Gravação otimista das edições da grade

O espelho local é alterado na hora; a escrita remota roda como tarefa
asyncio. Se a escrita falhar, o espelho volta ao snapshot tirado antes da
edição e uma notificação de erro é emitida. Não há nova tentativa.

Cada chave lógica (célula, campo de peça, peça) tem um número de sequência.
Respostas de uma edição já substituída por outra na mesma chave são
descartadas: não revertem nem sobrescrevem valores. Uma recarga do espelho
(troca de janela) invalida todas as edições anteriores a ela.
"""
import asyncio
import logging
import uuid
from datetime import date
from typing import Any, Awaitable, Dict, List, Optional, Set, Tuple
from app.grid.errors import RemoteStoreError
from app.grid.mirror import LocalMirror, MirrorSnapshot, normalize_record
from app.grid.notifications import Notifier
from app.grid.remote_store import RemoteStore, to_wire

logger = logging.getLogger(__name__)

TEMP_PREFIX = "tmp-"

CommitKey = Tuple[Any, ...]


def new_temp_id() -> str:
    return f"{TEMP_PREFIX}{uuid.uuid4().hex}"


def is_temp_id(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(TEMP_PREFIX)


class OptimisticCommitter:
    def __init__(
        self,
        mirror: LocalMirror,
        store: RemoteStore,
        notifier: Notifier,
        items_table: str = "media_pieces",
        values_table: str = "media_insertions",
    ):
        self.mirror = mirror
        self.store = store
        self.notifier = notifier
        self.items_table = items_table
        self.values_table = values_table

        # sequência global: números nunca se repetem entre chaves nem entre recargas
        self._counter = 0
        self._generation = mirror.generation
        self._seq: Dict[CommitKey, int] = {}
        self._aliases: Dict[str, Any] = {}
        self._inserts: Dict[str, asyncio.Future] = {}
        self._failed_inserts: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()

    # ==================== API ====================

    def commit_value(self, item_id: Any, day: date, quantity: int) -> Optional[asyncio.Task]:
        """
        Grava a quantidade de uma célula (peça, data).

        0 remove as linhas da chave; valor igual ao exibido não faz nada.
        """
        loop = asyncio.get_running_loop()

        current = self.mirror.find_by_key(item_id, day)
        if quantity == (current.quantity if current else 0):
            return None

        snapshot = self.mirror.snapshot()
        rows = self.mirror.rows_for_key(item_id, day)
        key, seq = self._next_seq(("value", item_id, day))

        if quantity == 0:
            for row in rows:
                self.mirror.remove(row["id"])
            operation = self._delete_values(rows)
        elif rows:
            primary, duplicates = rows[0], rows[1:]
            for row in duplicates:
                self.mirror.remove(row["id"])
            self.mirror.upsert({**primary, "quantity": quantity})
            operation = self._update_value(key, seq, primary["id"], quantity, duplicates)
        else:
            temp_id = new_temp_id()
            record = {
                "id": temp_id,
                "media_piece_id": item_id,
                "insertion_date": day,
                "quantity": quantity,
                "actual_cost": None,
            }
            self.mirror.upsert(record)
            self._inserts[temp_id] = loop.create_future()
            operation = self._insert_value(key, seq, record)

        return self._spawn(operation, key, seq, snapshot, "Erro ao salvar inserção")

    def commit_field(self, item_id: Any, field: str, value: Any) -> Optional[asyncio.Task]:
        """Grava um campo de uma peça"""
        asyncio.get_running_loop()

        item = self.mirror.get_item(item_id)
        if item is None or item.get(field) == value:
            return None

        snapshot = self.mirror.snapshot()
        key, seq = self._next_seq(("field", item_id, field))
        self.mirror.upsert_item({**item, field: value})

        return self._spawn(
            self._update_item(key, seq, item_id, field, value),
            key, seq, snapshot, "Erro ao salvar peça",
        )

    def insert_item(self, record: Dict[str, Any]) -> str:
        """Cria uma peça; devolve o id temporário usado até a resposta do servidor"""
        loop = asyncio.get_running_loop()

        temp_id = new_temp_id()
        snapshot = self.mirror.snapshot()
        key, seq = self._next_seq(("item", temp_id))
        item = self.mirror.upsert_item({**record, "id": temp_id})
        self._inserts[temp_id] = loop.create_future()

        self._spawn(self._insert_item(key, seq, item), key, seq, snapshot, "Erro ao criar peça")
        return temp_id

    def delete_item(self, item_id: Any) -> Optional[asyncio.Task]:
        """Exclui a peça e, em cascata, as inserções dela"""
        asyncio.get_running_loop()

        if self.mirror.get_item(item_id) is None:
            return None

        snapshot = self.mirror.snapshot()
        key, seq = self._next_seq(("item", item_id))
        self.mirror.remove_item(item_id)

        return self._spawn(self._delete_item(item_id), key, seq, snapshot, "Erro ao excluir peça")

    async def drain(self) -> None:
        """Aguarda todas as escritas em andamento"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    # ==================== SEQUÊNCIA E IDS ====================

    def _canonical(self, record_id: Any) -> Any:
        return self._aliases.get(record_id, record_id)

    def _canonical_key(self, key: CommitKey) -> CommitKey:
        return (key[0], self._canonical(key[1])) + tuple(key[2:])

    def _sync_generation(self) -> None:
        """Após uma recarga do espelho nenhuma edição anterior continua atual"""
        if self.mirror.generation != self._generation:
            self._generation = self.mirror.generation
            self._seq.clear()
            self._failed_inserts.clear()

    def _next_seq(self, key: CommitKey) -> Tuple[CommitKey, int]:
        self._sync_generation()
        key = self._canonical_key(key)
        self._counter += 1
        self._seq[key] = self._counter
        return key, self._counter

    def _is_current(self, key: CommitKey, seq: int) -> bool:
        self._sync_generation()
        return not self.mirror.disposed and self._seq.get(self._canonical_key(key)) == seq

    def _release(self, key: CommitKey, seq: int) -> None:
        key = self._canonical_key(key)
        if self._seq.get(key) == seq:
            del self._seq[key]

    def _register_server_id(self, temp_id: str, server_id: Any) -> None:
        self._aliases[temp_id] = server_id
        for key in [k for k in self._seq if k[1] == temp_id]:
            migrated = self._canonical_key(key)
            self._seq[migrated] = max(self._seq.get(migrated, 0), self._seq.pop(key))

        if not self.mirror.disposed:
            self.mirror.replace_item_id(temp_id, server_id)
            self.mirror.replace_value_id(temp_id, server_id)

    async def _resolve_id(self, record_id: Any) -> Optional[Any]:
        """Id do servidor; aguarda o insert pendente. None se o insert falhou."""
        if record_id in self._aliases:
            return self._aliases[record_id]
        future = self._inserts.get(record_id)
        if future is None:
            # id temporário sem insert pendente nem alias: o insert falhou
            return None if is_temp_id(record_id) else record_id
        try:
            return await asyncio.shield(future)
        except RemoteStoreError:
            return None

    def _settle_insert(self, temp_id: str, server_id: Any = None, error: Optional[Exception] = None) -> None:
        """Resolve o future do insert e o retira do registro; quem já aguarda segura a referência"""
        future = self._inserts.pop(temp_id, None)
        if future is None or future.done():
            return
        if error is None:
            future.set_result(server_id)
        else:
            self._failed_inserts.add(temp_id)
            future.set_exception(error)
            # marca como lida para não gerar aviso de exceção não recuperada
            future.exception()

    # ==================== OPERAÇÕES REMOTAS ====================

    def _spawn(
        self,
        operation: Awaitable[None],
        key: CommitKey,
        seq: int,
        snapshot: MirrorSnapshot,
        title: str,
    ) -> asyncio.Task:
        generation = self.mirror.generation

        async def run():
            try:
                await operation
            except Exception as e:
                self._handle_failure(key, seq, generation, snapshot, title, e)
            finally:
                self._release(key, seq)

        task = asyncio.get_running_loop().create_task(run())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not self._tasks:
            # sem escritas em andamento nenhum snapshot ou operação guarda ids temporários
            self._aliases.clear()
            self._failed_inserts.clear()

    @staticmethod
    def _error_message(error: Exception) -> str:
        return str(error) if isinstance(error, RemoteStoreError) else "Erro inesperado ao salvar"

    def _handle_failure(
        self,
        key: CommitKey,
        seq: int,
        generation: int,
        snapshot: MirrorSnapshot,
        title: str,
        error: Exception,
    ) -> None:
        if self.mirror.disposed:
            return
        if generation != self.mirror.generation:
            # o snapshot é de uma janela já substituída: só avisa
            logger.warning(f"Falha em edição anterior à recarga {key}: {error}")
            self.notifier.error(title, self._error_message(error))
            return
        if not self._is_current(key, seq):
            logger.warning(f"Falha ignorada em edição substituída {key}: {error}")
            return

        logger.error(f"Falha na gravação {key}: {error}")
        self.mirror.restore(snapshot)
        for temp_id, server_id in self._aliases.items():
            self.mirror.replace_item_id(temp_id, server_id)
            self.mirror.replace_value_id(temp_id, server_id)
        # snapshots tirados antes de um insert falhar ainda contêm o registro temporário
        for temp_id in self._failed_inserts:
            self.mirror.remove_item(temp_id)
            self.mirror.remove(temp_id)

        self.notifier.error(title, self._error_message(error))

    async def _require_item_id(self, item_id: Any) -> Any:
        resolved = await self._resolve_id(item_id)
        if resolved is None:
            raise RemoteStoreError("A peça não foi salva no servidor", table=self.items_table)
        return resolved

    async def _insert_value(self, key: CommitKey, seq: int, record: Dict[str, Any]) -> None:
        temp_id = record["id"]
        try:
            item_id = await self._require_item_id(record["media_piece_id"])
            payload = {k: v for k, v in record.items() if k != "id" and v is not None}
            payload["media_piece_id"] = item_id
            created = await self.store.insert(self.values_table, to_wire(payload))
        except Exception as e:
            self._settle_insert(temp_id, error=e)
            raise

        server_id = created["id"]
        self._register_server_id(temp_id, server_id)
        self._settle_insert(temp_id, server_id)

        current = self.mirror.get_value(server_id)
        if current is not None and self._is_current(key, seq):
            self.mirror.upsert({**current, **normalize_record(created)})

    async def _update_value(
        self,
        key: CommitKey,
        seq: int,
        row_id: Any,
        quantity: int,
        duplicates: List[Dict[str, Any]],
    ) -> None:
        server_id = await self._resolve_id(row_id)
        if server_id is None:
            # o insert que criou a linha falhou: grava o estado atual como nova linha
            row = self.mirror.get_value(row_id)
            if row is None:
                return
            loop = asyncio.get_running_loop()
            self._failed_inserts.discard(row_id)
            self._inserts[row_id] = loop.create_future()
            await self._insert_value(key, seq, {**row, "quantity": quantity})
        else:
            updated = await self.store.update(self.values_table, server_id, {"quantity": quantity})
            current = self.mirror.get_value(server_id)
            if updated and current is not None and self._is_current(key, seq):
                self.mirror.upsert({**current, **normalize_record(updated)})

        await self._delete_values(duplicates)

    async def _delete_values(self, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            server_id = await self._resolve_id(row["id"])
            if server_id is None:
                continue
            await self.store.delete(self.values_table, server_id)

    async def _update_item(self, key: CommitKey, seq: int, item_id: Any, field: str, value: Any) -> None:
        server_id = await self._require_item_id(item_id)
        updated = await self.store.update(self.items_table, server_id, to_wire({field: value}))
        if not updated or not self._is_current(key, seq):
            return
        item = self.mirror.get_item(server_id)
        if item is not None and field in updated:
            self.mirror.upsert_item({**item, field: normalize_record(updated)[field]})

    async def _insert_item(self, key: CommitKey, seq: int, item: Dict[str, Any]) -> None:
        temp_id = item["id"]
        try:
            payload = {k: v for k, v in item.items() if k not in ("id", "category_name")}
            created = await self.store.insert(self.items_table, to_wire(payload))
        except Exception as e:
            self._settle_insert(temp_id, error=e)
            raise

        server_id = created["id"]
        self._register_server_id(temp_id, server_id)
        self._settle_insert(temp_id, server_id)

        current = self.mirror.get_item(server_id)
        if current is not None and self._is_current(key, seq):
            self.mirror.upsert_item({**current, **normalize_record(created)})

    async def _delete_item(self, item_id: Any) -> None:
        server_id = await self._resolve_id(item_id)
        if server_id is None:
            return
        await self.store.delete(self.items_table, server_id)
