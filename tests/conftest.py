import pytest

from splitledger.config import Settings
from splitledger.db.repository import LedgerRepository
from splitledger.deps import Ledger
from splitledger.models.schemas import RateTable
from splitledger.services.currency import CurrencyConverter

RATES = RateTable(base="USD", rates={"USD": 1.0, "EUR": 0.8, "GBP": 0.5, "JPY": 150.0})


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "ledger.json")


@pytest.fixture
def repo(db_path):
    repository = LedgerRepository(db_path)
    yield repository
    repository.close()


@pytest.fixture
def converter():
    return CurrencyConverter(RATES)


@pytest.fixture
def ledger(repo, converter, db_path):
    return Ledger(repo, converter, Settings(db_path=db_path, ledger_currency="USD"))
