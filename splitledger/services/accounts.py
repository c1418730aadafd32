from loguru import logger

from splitledger.db.repository import LedgerRepository
from splitledger.errors import AlreadyExists, InvalidArgument, NotFound
from splitledger.models.schemas import Account
from splitledger.services.currency import currency_symbol


def _check_pair(owner_id: str, related_id: str) -> None:
    if not owner_id or not related_id:
        raise InvalidArgument(
            "Missing owner_id or related_id",
            {"owner_id": owner_id, "related_id": related_id},
        )


class AccountRegistry:
    """Find and create the pairwise accounts balances live on.

    There is at most one account per unordered pair of users; lookups match
    regardless of which of the two is the stored owner.
    """

    def __init__(self, repo: LedgerRepository, currency: str = "USD"):
        self.repo = repo
        self.currency = currency.upper()

    def create(self, owner_id: str, related_id: str) -> Account:
        _check_pair(owner_id, related_id)
        if owner_id == related_id:
            raise InvalidArgument(f"Cannot open an account between '{owner_id}' and itself")

        with self.repo.unit_of_work():
            if self.repo.find_account(owner_id, related_id) is not None:
                raise AlreadyExists(owner_id, related_id)
            account = Account(
                owner_id=owner_id,
                related_id=related_id,
                currency=self.currency,
                currency_symbol=currency_symbol(self.currency),
            )
            self.repo.insert_account(account)

        logger.info("Created account {} ({} <-> {})", account.id, owner_id, related_id)
        return account

    def find(self, owner_id: str, related_id: str) -> Account | None:
        _check_pair(owner_id, related_id)
        return self.repo.find_account(owner_id, related_id)

    def find_or_create(self, owner_id: str, related_id: str) -> Account:
        with self.repo.unit_of_work():
            account = self.find(owner_id, related_id)
            if account is None:
                account = self.create(owner_id, related_id)
        return account

    def find_all(self, user_id: str) -> list[Account]:
        if not user_id:
            raise InvalidArgument("Missing user_id")
        return self.repo.accounts_for_user(user_id)

    def get(self, account_id: str) -> Account:
        account = self.repo.get_account(account_id)
        if account is None:
            raise NotFound("Account", account_id)
        return account

    def delete(self, account_id: str) -> None:
        # The transaction log is left in place and stays readable by account id
        if not self.repo.remove_account(account_id):
            raise NotFound("Account", account_id)
        logger.info("Deleted account {}", account_id)
