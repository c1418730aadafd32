from functools import lru_cache

from splitledger.config import Settings, get_settings
from splitledger.db.repository import LedgerRepository
from splitledger.services.accounts import AccountRegistry
from splitledger.services.balances import BalanceLedger
from splitledger.services.currency import DEFAULT_RATES, CurrencyConverter, load_rate_table
from splitledger.services.history import HistoryView
from splitledger.services.requests import RequestEngine


class Ledger:
    """Wires the ledger services around one shared repository handle."""

    def __init__(self, repo: LedgerRepository, converter: CurrencyConverter, settings: Settings):
        self.settings = settings
        self.repo = repo
        self.converter = converter
        self.accounts = AccountRegistry(repo, currency=settings.ledger_currency)
        self.balances = BalanceLedger(repo, self.accounts)
        self.requests = RequestEngine(
            repo, self.accounts, self.balances, converter, currency=settings.ledger_currency
        )
        self.history = HistoryView(repo)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Ledger":
        table = load_rate_table(settings.rates_path) if settings.rates_path else DEFAULT_RATES
        return cls(LedgerRepository(settings.db_path), CurrencyConverter(table), settings)

    def close(self) -> None:
        self.repo.close()


@lru_cache
def get_ledger() -> Ledger:
    return Ledger.from_settings(get_settings())
