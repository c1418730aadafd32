from datetime import datetime, timedelta

import pytest

from splitledger.errors import NotFound
from splitledger.models.schemas import Request, Transaction

BASE = datetime(2024, 3, 1, 12, 0)


def log_transaction(repo, account_id, minutes, request_id=None, description="", amount=1):
    transaction = Transaction(
        account_id=account_id,
        op="add",
        user_id="U1",
        amount=amount,
        request_id=request_id,
        description=description,
        created_at=BASE + timedelta(minutes=minutes),
    )
    return repo.append_transaction(transaction)


class TestAccountHistory:
    def test_newest_first_and_limited(self, ledger, repo):
        account = ledger.accounts.create("U1", "U2")
        for minutes in (3, 1, 7, 5, 2, 9):
            log_transaction(repo, account.id, minutes)

        entries = ledger.history.list_account_history(account.id)
        assert len(entries) == 5
        dates = [e.date for e in entries]
        assert dates == sorted(dates, reverse=True)
        assert dates[0] == BASE + timedelta(minutes=9)

        assert len(ledger.history.list_account_history(account.id, limit=2)) == 2

    def test_request_overrides_date_description_and_receipts(self, ledger, repo):
        account = ledger.accounts.create("U1", "U2")
        repo.insert_request(
            Request(
                id="req",
                created_at=BASE + timedelta(hours=5),
                created_by_id="U1",
                owner_id="U1",
                related_ids=["U2"],
                amount=4,
                description="Groceries",
                receipt_ids=["rcpt-1"],
            )
        )
        linked = log_transaction(repo, account.id, 0, request_id="req", description="stale")
        plain = log_transaction(repo, account.id, 60, description="Cash")

        entries = ledger.history.list_account_history(account.id)
        assert [e.transaction_id for e in entries] == [linked.id, plain.id]

        assert entries[0].date == BASE + timedelta(hours=5)
        assert entries[0].description == "Groceries"
        assert entries[0].receipt_ids == ["rcpt-1"]

        assert entries[1].description == "Cash"
        assert entries[1].receipt_ids == []

    def test_amended_request_shows_on_every_leg(self, ledger):
        request = ledger.requests.create_request("O", "O", ["A", "B"], 20, "USD")
        ledger.requests.update_description(request.id, "Taxi")
        ledger.requests.attach_receipt(request.id, "rcpt-9")

        for related_id in ("A", "B"):
            account = ledger.accounts.find("O", related_id)
            (entry,) = ledger.history.list_account_history(account.id)
            assert entry.request_id == request.id
            assert entry.description == "Taxi"
            assert entry.receipt_ids == ["rcpt-9"]
            assert entry.date == request.created_at

    def test_deleted_account_history_still_readable(self, ledger):
        account = ledger.accounts.create("U1", "U2")
        ledger.balances.apply_transaction(account.id, "U1", "add", 3)
        ledger.accounts.delete(account.id)

        assert len(ledger.history.list_account_history(account.id)) == 1

    def test_unknown_account(self, ledger):
        with pytest.raises(NotFound):
            ledger.history.list_account_history("missing")

    def test_empty_account(self, ledger):
        account = ledger.accounts.create("U1", "U2")
        assert ledger.history.list_account_history(account.id) == []


class TestStatusSummary:
    def test_owner_with_negative_balance_owes(self, ledger):
        account = ledger.accounts.create("U1", "U2")
        ledger.balances.apply_transaction(account.id, "U1", "subtract", 5)

        (entry,) = ledger.history.status_summary("U1").entries
        assert (entry.counterparty_id, entry.direction, entry.amount) == ("U2", "you_owe", 5)

        (entry,) = ledger.history.status_summary("U2").entries
        assert (entry.counterparty_id, entry.direction, entry.amount) == ("U1", "owes_you", 5)

    def test_owner_with_positive_balance_is_owed(self, ledger):
        account = ledger.accounts.create("U1", "U2")
        ledger.balances.apply_transaction(account.id, "U1", "add", 5)

        (entry,) = ledger.history.status_summary("U1").entries
        assert (entry.counterparty_id, entry.direction, entry.amount) == ("U2", "owes_you", 5)

        (entry,) = ledger.history.status_summary("U2").entries
        assert (entry.counterparty_id, entry.direction, entry.amount) == ("U1", "you_owe", 5)

    def test_total_is_signed_net_and_skips_settled(self, ledger):
        owed = ledger.accounts.create("U1", "U2")
        owing = ledger.accounts.create("U3", "U1")
        settled = ledger.accounts.create("U1", "U4")
        ledger.balances.apply_transaction(owed.id, "U1", "add", 20)
        ledger.balances.apply_transaction(owing.id, "U3", "add", 8)
        ledger.balances.apply_transaction(settled.id, "U1", "add", 2)
        ledger.balances.settle(settled.id, "U4")

        summary = ledger.history.status_summary("U1")
        assert summary.total == 12
        assert {e.counterparty_id for e in summary.entries} == {"U2", "U3"}

    def test_no_accounts(self, ledger):
        summary = ledger.history.status_summary("nobody")
        assert summary.entries == []
        assert summary.total == 0
