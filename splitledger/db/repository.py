import threading
from contextlib import contextmanager
from functools import wraps

from loguru import logger
from pydantic import BaseModel, ValidationError
from tinydb import where

from splitledger.db.storage import open_database
from splitledger.errors import Internal
from splitledger.models.schemas import Account, Request, Transaction


def _locked(method):
    """Serialize access to the database and surface I/O failures as Internal."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except OSError as e:
                logger.error("Storage failure in {}: {}", method.__name__, e)
                raise Internal(f"Storage failure: {e}") from e

    return wrapper


def _load(model: type[BaseModel], doc: dict):
    try:
        return model.model_validate(dict(doc))
    except ValidationError as e:
        raise Internal(
            f"Malformed {model.__name__} record",
            {"doc_id": getattr(doc, "doc_id", None), "errors": e.error_count()},
        ) from e


class LedgerRepository:
    """Single handle on the ledger database.

    Holds three collections: accounts, transactions (the per-account logs,
    keyed by account_id) and requests. Open one per process and close it on
    shutdown.
    """

    def __init__(self, db_path: str = "ledger.json"):
        self._lock = threading.RLock()
        self.db = open_database(db_path)
        self.accounts = self.db.table("accounts", cache_size=0)
        self.transactions = self.db.table("transactions", cache_size=0)
        self.requests = self.db.table("requests", cache_size=0)

    @contextmanager
    def unit_of_work(self):
        """Run a block of reads and writes as one indivisible storage write.

        Other threads are locked out for the duration; if the block raises,
        none of its writes reach storage.
        """
        middleware = self.db.storage
        with self._lock:
            middleware.begin()
            try:
                yield self
            except BaseException:
                middleware.rollback()
                raise
            try:
                middleware.commit()
            except OSError as e:
                logger.error("Failed to commit unit of work: {}", e)
                raise Internal(f"Storage failure: {e}") from e

    # -- accounts --

    @_locked
    def insert_account(self, account: Account) -> Account:
        self.accounts.insert(account.model_dump(mode="json"))
        return account

    @_locked
    def get_account(self, account_id: str) -> Account | None:
        doc = self.accounts.get(where("id") == account_id)
        if doc is None:
            return None
        return _load(Account, doc)

    @_locked
    def find_account(self, user_a: str, user_b: str) -> Account | None:
        """Match the unordered pair in either stored orientation."""
        doc = self.accounts.get(
            ((where("owner_id") == user_a) & (where("related_id") == user_b))
            | ((where("owner_id") == user_b) & (where("related_id") == user_a))
        )
        if doc is None:
            return None
        return _load(Account, doc)

    @_locked
    def accounts_for_user(self, user_id: str) -> list[Account]:
        docs = self.accounts.search(
            (where("owner_id") == user_id) | (where("related_id") == user_id)
        )
        return [_load(Account, doc) for doc in docs]

    @_locked
    def update_account(self, account: Account) -> Account:
        updated = self.accounts.update(
            account.model_dump(mode="json"), where("id") == account.id
        )
        if not updated:
            raise Internal(f"Account '{account.id}' vanished during update")
        return account

    @_locked
    def remove_account(self, account_id: str) -> bool:
        return bool(self.accounts.remove(where("id") == account_id))

    # -- transactions --

    @_locked
    def append_transaction(self, transaction: Transaction) -> Transaction:
        self.transactions.insert(transaction.model_dump(mode="json"))
        return transaction

    @_locked
    def transactions_for_account(self, account_id: str) -> list[Transaction]:
        docs = self.transactions.search(where("account_id") == account_id)
        return [_load(Transaction, doc) for doc in docs]

    @_locked
    def get_transaction(self, account_id: str, transaction_id: str) -> Transaction | None:
        doc = self.transactions.get(
            (where("account_id") == account_id) & (where("id") == transaction_id)
        )
        if doc is None:
            return None
        return _load(Transaction, doc)

    # -- requests --

    @_locked
    def insert_request(self, request: Request) -> Request:
        self.requests.insert(request.model_dump(mode="json"))
        return request

    @_locked
    def get_request(self, request_id: str) -> Request | None:
        doc = self.requests.get(where("id") == request_id)
        if doc is None:
            return None
        return _load(Request, doc)

    @_locked
    def requests_for_owner(self, owner_id: str) -> list[Request]:
        docs = self.requests.search(where("owner_id") == owner_id)
        return [_load(Request, doc) for doc in docs]

    @_locked
    def update_request(self, request_id: str, **fields) -> Request | None:
        if self.requests.get(where("id") == request_id) is None:
            return None
        if fields:
            self.requests.update(fields, where("id") == request_id)
        return self.get_request(request_id)

    def close(self) -> None:
        with self._lock:
            self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
