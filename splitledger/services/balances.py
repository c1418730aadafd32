import math
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger

from splitledger.db.repository import LedgerRepository
from splitledger.errors import InvalidArgument, NoOp, NotFound
from splitledger.models.schemas import Op, Transaction
from splitledger.services.accounts import AccountRegistry

OPS = ("add", "subtract")


def round_amount(amount: float) -> int:
    """Round half away from zero: 1.5 -> 2, 2.3 -> 2."""
    return int(Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _check_amount(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidArgument(f"Amount must be a number, got {amount!r}")
    if not math.isfinite(amount):
        raise InvalidArgument(f"Amount must be finite, got {amount}")
    if amount < 0:
        raise InvalidArgument(f"Amount must not be negative, got {amount}")


class BalanceLedger:
    """Balance mutation plus the append-only log behind it.

    Every mutation updates the account and appends its Transaction in the
    same unit of work.
    """

    def __init__(self, repo: LedgerRepository, accounts: AccountRegistry):
        self.repo = repo
        self.accounts = accounts

    def apply_transaction(
        self,
        account_id: str,
        user_id: str,
        op: Op,
        amount: float,
        request_id: str | None = None,
        description: str = "",
    ) -> Transaction:
        if op not in OPS:
            raise InvalidArgument(f"Unknown operation '{op}'", {"op": op})
        if not user_id:
            raise InvalidArgument("Missing user_id")
        _check_amount(amount)
        rounded = round_amount(amount)

        with self.repo.unit_of_work():
            account = self.accounts.get(account_id)
            transaction = Transaction(
                account_id=account.id,
                op=op,
                user_id=user_id,
                amount=rounded,
                request_id=request_id,
                description=description,
            )
            account.balance += transaction.delta
            self.repo.update_account(account)
            self.repo.append_transaction(transaction)

        logger.info(
            "Applied {} {} to account {} (balance {})",
            op, rounded, account_id, account.balance,
        )
        return transaction

    def settle(self, account_id: str, initiator_user_id: str) -> Transaction:
        """Zero the balance with one opposite-signed transaction."""
        with self.repo.unit_of_work():
            account = self.accounts.get(account_id)
            if account.balance == 0:
                raise NoOp(
                    f"Account '{account_id}' is already settled",
                    {"account_id": account_id},
                )
            op = "subtract" if account.balance > 0 else "add"
            transaction = self.apply_transaction(
                account_id,
                initiator_user_id,
                op,
                abs(account.balance),
                description="Full settlement",
            )

        logger.info("Settled account {} by {}", account_id, initiator_user_id)
        return transaction

    def list_transactions(self, account_id: str) -> list[Transaction]:
        return self.repo.transactions_for_account(account_id)

    def get_transaction(self, account_id: str, transaction_id: str) -> Transaction:
        transaction = self.repo.get_transaction(account_id, transaction_id)
        if transaction is None:
            raise NotFound("Transaction", transaction_id)
        return transaction
