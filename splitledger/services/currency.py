"""
Currency conversion over a refreshable rate table.

Every factor in the table is expressed against its base currency. The table
is an immutable snapshot; refreshing swaps the reference in one assignment,
so a concurrent convert() sees either the old table or the new one.
"""

import math
from pathlib import Path
from typing import Callable

from loguru import logger

from splitledger.errors import InvalidArgument, UnknownCurrency
from splitledger.models.schemas import RateTable

SYMBOL_MAP = {
    "$": "USD",
    "€": "EUR",
    "¥": "JPY",
    "₫": "VND",
    "£": "GBP",
    "₩": "KRW",
    "zł": "PLN",
}
DEFAULT_CODE = "USD"

# Longest glyphs first so "zł" wins over any single-character prefix
_SYMBOLS_BY_LENGTH = sorted(SYMBOL_MAP, key=len, reverse=True)
_CODE_TO_SYMBOL = {code: symbol for symbol, code in SYMBOL_MAP.items()}

DEFAULT_RATES = RateTable(base=DEFAULT_CODE, rates={DEFAULT_CODE: 1.0})


def resolve_currency_symbol(text: str) -> str:
    """Map the leading glyph of an amount like '€25' to its ISO code."""
    text = (text or "").strip()
    for symbol in _SYMBOLS_BY_LENGTH:
        if text.startswith(symbol):
            return SYMBOL_MAP[symbol]
    return DEFAULT_CODE


def currency_symbol(code: str) -> str:
    """Display glyph for a currency code, or the code itself."""
    return _CODE_TO_SYMBOL.get(code.upper(), code.upper())


def load_rate_table(path: str | Path) -> RateTable:
    """Read an openexchangerates-style ``{"base": ..., "rates": {...}}`` file."""
    return RateTable.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _validated(table: RateTable) -> RateTable:
    base = table.base.strip().upper()
    if not base:
        raise InvalidArgument("Rate table has no base currency")

    rates: dict[str, float] = {}
    for code, factor in table.rates.items():
        if not math.isfinite(factor) or factor <= 0:
            raise InvalidArgument(
                f"Invalid rate {factor!r} for '{code}'", {"code": code}
            )
        rates[code.upper()] = float(factor)
    rates.setdefault(base, 1.0)
    return RateTable(base=base, rates=rates)


class CurrencyConverter:
    def __init__(self, table: RateTable = DEFAULT_RATES):
        self._table = _validated(table)

    @property
    def table(self) -> RateTable:
        return self._table

    @property
    def base(self) -> str:
        return self._table.base

    def refresh_rates(self, table: RateTable) -> RateTable:
        """Replace the whole rate table. Never mutates the current one."""
        snapshot = _validated(table)
        self._table = snapshot
        logger.info(
            "Loaded {} exchange rates (base {})", len(snapshot.rates), snapshot.base
        )
        return snapshot

    def refresh_from(self, provider: Callable[[], RateTable]) -> bool:
        """Refresh from an external provider, keeping the old table on failure."""
        try:
            self.refresh_rates(provider())
        except Exception as e:
            logger.error("Exchange rate refresh failed, keeping previous table: {}", e)
            return False
        return True

    def is_known(self, code: str) -> bool:
        return code.upper() in self._table.rates

    def convert(self, from_code: str, to_code: str, amount: float) -> float:
        return self._convert(self._table, from_code.upper(), to_code.upper(), amount)

    def _convert(self, table: RateTable, from_code: str, to_code: str, amount: float) -> float:
        for code in (from_code, to_code):
            if code not in table.rates:
                raise UnknownCurrency(code)

        if from_code == to_code:
            return amount
        if from_code == table.base:
            return amount * table.rates[to_code]
        if to_code == table.base:
            return amount / table.rates[from_code]

        logger.warning(
            "Converting {} -> {} through {}; result is approximate",
            from_code, to_code, table.base,
        )
        intermediate = self._convert(table, from_code, table.base, amount)
        return self._convert(table, table.base, to_code, intermediate)
