from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from .utils import TWOPLACES, d, q2

BASE_CURRENCY = "EUR"

# Fallback table used when no DisplayRate row has been fetched yet
STATIC_RATES_FROM_EUR: Dict[str, Decimal] = {
    "EUR": Decimal("1"),
    "USD": Decimal("1.09"),
    "GBP": Decimal("0.86"),
    "CHF": Decimal("0.96"),
}

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "CHF": "CHF",
}


class DisplayConverter:
    """
    Converts canonical EUR estimates for display.

    Converted values are presentation only; stored quotes keep their EUR
    amount. Rates come from DisplayRate rows when available, otherwise from
    the static table, and an unknown currency converts at 1.
    """

    def __init__(self, rates: Optional[Dict[str, Decimal]] = None):
        self._rates = rates

    def _load_rates(self) -> Dict[str, Decimal]:
        from ..models import DisplayRate

        rates = dict(STATIC_RATES_FROM_EUR)
        for row in DisplayRate.objects.all():
            rates[row.currency.upper()] = d(row.rate)
        return rates

    @property
    def rates(self) -> Dict[str, Decimal]:
        if self._rates is None:
            self._rates = self._load_rates()
        return self._rates

    def rate_for(self, currency: Optional[str]) -> Decimal:
        code = (currency or BASE_CURRENCY).upper()
        if code == BASE_CURRENCY:
            return Decimal("1")
        return self.rates.get(code, Decimal("1"))

    @staticmethod
    def symbol_for(currency: Optional[str]) -> str:
        code = (currency or BASE_CURRENCY).upper()
        return CURRENCY_SYMBOLS.get(code, code)

    def convert(self, amount_eur, currency: Optional[str]) -> Decimal:
        return q2(d(amount_eur) * self.rate_for(currency))

    def for_display(self, amount_eur, currency: Optional[str]) -> dict:
        code = (currency or BASE_CURRENCY).upper()
        amount = self.convert(amount_eur, code)
        symbol = self.symbol_for(code)
        return {
            "amount": amount,
            "currency": code,
            "symbol": symbol,
            "rate": self.rate_for(code),
            "formatted": f"{amount.quantize(TWOPLACES):,.2f} {symbol}",
        }


def convert_for_display(amount_eur, currency: Optional[str]) -> dict:
    return DisplayConverter().for_display(amount_eur, currency)
