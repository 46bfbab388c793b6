"""
RemoteStore em memória para os testes da grade
"""
import asyncio
from app.grid import RemoteStore, RemoteStoreError


class FakeStore(RemoteStore):
    """
    Guarda as linhas por tabela e registra cada chamada em `calls`.

    `gate` (asyncio.Event) segura todas as escritas até ser liberado;
    `fail_once` recusa a próxima chamada de uma (operação, tabela).
    """

    def __init__(self, tables=None):
        self.tables = {name: {row["id"]: dict(row) for row in rows} for name, rows in (tables or {}).items()}
        self.calls = []
        self.fail = set()
        self.fail_once = []
        self.gate = None
        self._next_id = 1000

    async def _call(self, operation, table, *args):
        self.calls.append((operation, table) + args)
        if self.gate is not None:
            await self.gate.wait()
        if (operation, table) in self.fail:
            raise RemoteStoreError(f"{operation} recusado", status_code=500, table=table)
        if (operation, table) in self.fail_once:
            self.fail_once.remove((operation, table))
            raise RemoteStoreError(f"{operation} recusado", status_code=500, table=table)

    def writes(self):
        return [call for call in self.calls if call[0] != "query"]

    async def insert(self, table, record):
        await self._call("insert", table, record)
        self._next_id += 1
        row = {**record, "id": self._next_id}
        self.tables.setdefault(table, {})[row["id"]] = row
        return dict(row)

    async def update(self, table, record_id, changes):
        await self._call("update", table, record_id, changes)
        row = self.tables.setdefault(table, {}).setdefault(record_id, {"id": record_id})
        row.update(changes)
        return dict(row)

    async def delete(self, table, record_id):
        await self._call("delete", table, record_id)
        self.tables.get(table, {}).pop(record_id, None)

    async def query(self, table, filters):
        self.calls.append(("query", table, filters))
        if ("query", table) in self.fail:
            raise RemoteStoreError("consulta recusada", status_code=503, table=table)
        return [dict(row) for row in self.tables.get(table, {}).values()]


def run(coro):
    return asyncio.run(coro)
