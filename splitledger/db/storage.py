import copy

from tinydb import TinyDB
from tinydb.middlewares import Middleware
from tinydb.storages import JSONStorage, MemoryStorage

MEMORY = ":memory:"


class UnitOfWorkMiddleware(Middleware):
    """Buffers every write made between begin() and commit() and hands the
    final state to the underlying storage as a single write.

    Outside a unit of work reads and writes pass straight through.
    """

    def __init__(self, storage_cls=JSONStorage):
        super().__init__(storage_cls)
        self._pending = None
        self._dirty = False
        self._depth = 0

    def begin(self) -> None:
        if self._depth == 0:
            # Work on a private copy so MemoryStorage never sees uncommitted state
            self._pending = copy.deepcopy(self.storage.read() or {})
            self._dirty = False
        self._depth += 1

    def commit(self) -> None:
        self._depth -= 1
        if self._depth:
            return
        pending, dirty = self._pending, self._dirty
        self._pending, self._dirty = None, False
        if dirty:
            self.storage.write(pending)

    def rollback(self) -> None:
        self._depth -= 1
        if self._depth == 0:
            self._pending, self._dirty = None, False

    @property
    def in_unit(self) -> bool:
        return self._depth > 0

    def read(self):
        if self._depth:
            return self._pending
        return self.storage.read()

    def write(self, data):
        if self._depth:
            self._pending = data
            self._dirty = True
        else:
            self.storage.write(data)

    def close(self):
        self.storage.close()


def open_database(db_path: str) -> TinyDB:
    """Open the ledger database, in memory when db_path is ':memory:'."""
    if db_path == MEMORY:
        return TinyDB(storage=UnitOfWorkMiddleware(MemoryStorage))
    return TinyDB(db_path, storage=UnitOfWorkMiddleware(JSONStorage))
