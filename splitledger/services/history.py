from splitledger.db.repository import LedgerRepository
from splitledger.errors import InvalidArgument, NotFound
from splitledger.models.schemas import (
    RenderedEntry,
    Request,
    StatusEntry,
    StatusSummary,
    Transaction,
)


def _render(transaction: Transaction, request: Request | None) -> RenderedEntry:
    """All legs of one split render with the request's date, description and receipts."""
    entry = RenderedEntry(
        transaction_id=transaction.id,
        account_id=transaction.account_id,
        user_id=transaction.user_id,
        op=transaction.op,
        amount=transaction.amount,
        request_id=transaction.request_id,
        date=transaction.created_at,
        description=transaction.description,
    )
    if request is not None:
        entry.date = request.created_at
        entry.description = request.description
        entry.receipt_ids = list(request.receipt_ids)
    return entry


class HistoryView:
    """Read-only projections over accounts, their logs and requests."""

    def __init__(self, repo: LedgerRepository):
        self.repo = repo

    def list_account_history(self, account_id: str, limit: int = 5) -> list[RenderedEntry]:
        transactions = self.repo.transactions_for_account(account_id)
        if not transactions and self.repo.get_account(account_id) is None:
            raise NotFound("Account", account_id)

        requests: dict[str, Request | None] = {}
        entries = []
        for transaction in transactions:
            request = None
            if transaction.request_id:
                if transaction.request_id not in requests:
                    requests[transaction.request_id] = self.repo.get_request(
                        transaction.request_id
                    )
                request = requests[transaction.request_id]
            entries.append(_render(transaction, request))

        entries.sort(key=lambda e: e.date, reverse=True)
        return entries[: max(limit, 0)]

    def status_summary(self, user_id: str) -> StatusSummary:
        if not user_id:
            raise InvalidArgument("Missing user_id")

        summary = StatusSummary(user_id=user_id)
        for account in self.repo.accounts_for_user(user_id):
            if account.balance == 0:
                continue

            you_owe = (account.owner_id == user_id and account.balance < 0) or (
                account.related_id == user_id and account.balance > 0
            )
            magnitude = abs(account.balance)
            summary.entries.append(
                StatusEntry(
                    account_id=account.id,
                    counterparty_id=account.counterparty(user_id),
                    direction="you_owe" if you_owe else "owes_you",
                    amount=magnitude,
                    currency=account.currency,
                    currency_symbol=account.currency_symbol,
                )
            )
            summary.total += -magnitude if you_owe else magnitude
        return summary
