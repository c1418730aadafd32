from fastapi import APIRouter, Depends, Query
from loguru import logger

from splitledger.deps import Ledger, get_ledger
from splitledger.models.schemas import (
    Account,
    ApplyTransactionRequest,
    AttachReceiptRequest,
    ConversionResult,
    CreateAccountRequest,
    CreateSplitRequest,
    RateTable,
    RenderedEntry,
    Request,
    SettleAccountRequest,
    StatusSummary,
    Transaction,
    UpdateRequestDescription,
)
from splitledger.services.currency import resolve_currency_symbol

router = APIRouter()


# -- accounts --


@router.post("/accounts", response_model=Account, status_code=201)
def create_account(request: CreateAccountRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.accounts.create(request.owner_id, request.related_id)


@router.get("/accounts", response_model=list[Account])
def list_accounts(user_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.accounts.find_all(user_id)


@router.get("/accounts/find", response_model=Account | None)
def find_account(owner_id: str, related_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.accounts.find(owner_id, related_id)


@router.get("/accounts/{account_id}", response_model=Account)
def get_account(account_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.accounts.get(account_id)


@router.delete("/accounts/{account_id}")
def delete_account(account_id: str, ledger: Ledger = Depends(get_ledger)):
    ledger.accounts.delete(account_id)
    return {"detail": "Account deleted"}


@router.post("/accounts/{account_id}/transactions", response_model=Transaction, status_code=201)
def apply_transaction(
    account_id: str, request: ApplyTransactionRequest, ledger: Ledger = Depends(get_ledger)
):
    return ledger.balances.apply_transaction(
        account_id,
        request.user_id,
        request.op,
        request.amount,
        request_id=request.request_id,
        description=request.description,
    )


@router.post("/accounts/{account_id}/settle", response_model=Transaction)
def settle_account(
    account_id: str, request: SettleAccountRequest, ledger: Ledger = Depends(get_ledger)
):
    return ledger.balances.settle(account_id, request.user_id)


@router.get("/accounts/{account_id}/history", response_model=list[RenderedEntry])
def account_history(
    account_id: str,
    limit: int | None = Query(None, ge=1, le=500),
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.history.list_account_history(
        account_id, limit=limit or ledger.settings.history_limit
    )


# -- requests --


@router.post("/requests", response_model=Request, status_code=201)
def create_request(request: CreateSplitRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.requests.create_request(
        request.creator_id,
        request.owner_id or request.creator_id,
        request.related_ids,
        request.amount,
        request.currency,
        description=request.description,
    )


@router.get("/requests", response_model=list[Request])
def list_requests(
    owner_id: str,
    limit: int | None = Query(None, ge=1, le=500),
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.requests.get_requests_for_owner(
        owner_id, limit=limit or ledger.settings.requests_limit
    )


@router.get("/requests/{request_id}", response_model=Request)
def get_request(request_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.requests.get_request(request_id)


@router.patch("/requests/{request_id}", response_model=Request)
def update_request(
    request_id: str, request: UpdateRequestDescription, ledger: Ledger = Depends(get_ledger)
):
    return ledger.requests.update_description(request_id, request.description)


@router.post("/requests/{request_id}/receipts", response_model=Request)
def attach_receipt(
    request_id: str, request: AttachReceiptRequest, ledger: Ledger = Depends(get_ledger)
):
    return ledger.requests.attach_receipt(request_id, request.receipt_id)


# -- users --


@router.get("/users/{user_id}/status", response_model=StatusSummary)
def user_status(user_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.history.status_summary(user_id)


# -- currency --


@router.get("/currency/convert", response_model=ConversionResult)
def convert_currency(
    from_code: str, to_code: str, amount: float, ledger: Ledger = Depends(get_ledger)
):
    converted = ledger.converter.convert(from_code, to_code, amount)
    return ConversionResult(
        from_code=from_code.upper(), to_code=to_code.upper(), amount=amount, converted=converted
    )


@router.get("/currency/symbol")
def currency_symbol(text: str):
    return {"text": text, "code": resolve_currency_symbol(text)}


@router.put("/currency/rates", response_model=RateTable)
def refresh_rates(table: RateTable, ledger: Ledger = Depends(get_ledger)):
    logger.info("Rate table pushed with base {}", table.base)
    return ledger.converter.refresh_rates(table)


@router.get("/health")
def health():
    return {"service": "splitledger", "status": "healthy"}
