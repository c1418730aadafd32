import math

from loguru import logger

from splitledger.db.repository import LedgerRepository
from splitledger.errors import InvalidArgument, NotFound
from splitledger.models.schemas import Request
from splitledger.services.accounts import AccountRegistry
from splitledger.services.balances import BalanceLedger, round_amount
from splitledger.services.currency import CurrencyConverter


class RequestEngine:
    """Creates split requests and amends them afterwards.

    A request divides one amount evenly among its related parties and records
    one transaction per party, all tagged with the request id. The request
    owns the description, receipts and display date of those transactions.
    """

    def __init__(
        self,
        repo: LedgerRepository,
        accounts: AccountRegistry,
        ledger: BalanceLedger,
        converter: CurrencyConverter,
        currency: str = "USD",
    ):
        self.repo = repo
        self.accounts = accounts
        self.ledger = ledger
        self.converter = converter
        self.currency = currency.upper()

    def create_request(
        self,
        creator_id: str,
        owner_id: str,
        related_ids: list[str],
        total_amount: float,
        currency_code: str,
        description: str = "",
    ) -> Request:
        if not creator_id or not owner_id:
            raise InvalidArgument("Missing creator_id or owner_id")
        if not related_ids:
            raise InvalidArgument("A request needs at least one related party")
        if any(not rid for rid in related_ids):
            raise InvalidArgument("Related party ids must not be empty")
        if len(set(related_ids)) != len(related_ids):
            raise InvalidArgument("Related party ids must be distinct")
        if owner_id in related_ids:
            raise InvalidArgument(
                f"Owner '{owner_id}' cannot be one of the related parties"
            )
        if (
            isinstance(total_amount, bool)
            or not isinstance(total_amount, (int, float))
            or not math.isfinite(total_amount)
            or total_amount <= 0
        ):
            raise InvalidArgument(f"Amount must be a positive number, got {total_amount!r}")

        total = self.converter.convert(currency_code, self.currency, total_amount)
        per_party = total / len(related_ids)

        drift = round_amount(per_party) * len(related_ids) - total
        if abs(drift) >= 0.5:
            logger.warning(
                "Split of {} across {} parties drifts by {:.2f}",
                total, len(related_ids), drift,
            )

        request = Request(
            created_by_id=creator_id,
            owner_id=owner_id,
            related_ids=list(related_ids),
            amount=total,
            currency=self.currency,
            description=description,
        )

        with self.repo.unit_of_work():
            for related_id in related_ids:
                account = self.accounts.find_or_create(owner_id, related_id)
                # The stored orientation may be the reverse of this request's
                op = "add" if account.owner_id == owner_id else "subtract"
                amount = per_party
                if account.currency != self.currency:
                    amount = self.converter.convert(self.currency, account.currency, per_party)

                transaction = self.ledger.apply_transaction(
                    account.id, creator_id, op, amount, request_id=request.id
                )
                request.transaction_ids.append(transaction.id)

            self.repo.insert_request(request)

        logger.info(
            "Created request {} for {} {} split across {} parties",
            request.id, total, self.currency, len(related_ids),
        )
        return request

    def get_request(self, request_id: str) -> Request:
        request = self.repo.get_request(request_id)
        if request is None:
            raise NotFound("Request", request_id)
        return request

    def update_description(self, request_id: str, text: str) -> Request:
        request = self.repo.update_request(request_id, description=text)
        if request is None:
            raise NotFound("Request", request_id)
        logger.info("Updated description of request {}", request_id)
        return request

    def attach_receipt(self, request_id: str, receipt_id: str) -> Request:
        if not receipt_id:
            raise InvalidArgument("Missing receipt_id")
        with self.repo.unit_of_work():
            request = self.get_request(request_id)
            request = self.repo.update_request(
                request_id, receipt_ids=[*request.receipt_ids, receipt_id]
            )
        logger.info("Attached receipt {} to request {}", receipt_id, request_id)
        return request

    def get_requests_for_owner(self, user_id: str, limit: int = 5) -> list[Request]:
        if not user_id:
            raise InvalidArgument("Missing user_id")
        requests = self.repo.requests_for_owner(user_id)
        # Stable sort keeps insertion order among equal timestamps
        requests = sorted(requests, key=lambda r: r.created_at, reverse=True)
        return requests[: max(limit, 0)]
