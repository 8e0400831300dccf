from __future__ import annotations

import warnings
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from django.conf import settings

from . import RateRow

DEFAULT_URL = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"


class EcbXmlProvider:
    """European Central Bank daily reference rates, quoted as 1 EUR = x CCY."""

    source = "ecb"

    def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.url = url or getattr(settings, "FX_PROVIDER_URL", DEFAULT_URL)
        self.timeout = timeout or getattr(settings, "FX_TIMEOUT_SECONDS", 15)

    def _fetch_xml(self) -> str:
        headers = {
            "User-Agent": "FreightBackofficeFXBot/1.0",
            "Accept": "application/xml,text/xml",
        }
        resp = requests.get(self.url, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.text

    @staticmethod
    def _round6(x: Decimal) -> Decimal:
        return x.quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP)

    @staticmethod
    def _parse(xml: str) -> Tuple[Dict[str, Decimal], datetime]:
        """Return (rates by currency, reference date) from the feed."""
        with warnings.catch_warnings():
            # XML feed read with html.parser
            warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
            soup = BeautifulSoup(xml, "html.parser")
        rates: Dict[str, Decimal] = {}
        as_of: Optional[datetime] = None
        # html.parser lower-cases tag and attribute names
        for cube in soup.find_all("cube"):
            stamp = cube.get("time")
            if stamp and as_of is None:
                as_of = datetime.strptime(stamp, "%Y-%m-%d").replace(tzinfo=timezone.utc)
            code = (cube.get("currency") or "").strip().upper()
            raw = (cube.get("rate") or "").strip()
            if len(code) != 3 or not raw:
                continue
            try:
                rate = Decimal(raw)
            except InvalidOperation:
                continue
            if rate > 0:
                rates[code] = rate
        if not rates:
            raise RuntimeError("ECB FX: no rates found in feed")
        return rates, as_of or datetime.now(timezone.utc)

    def fetch(self, currencies: Iterable[str]) -> List[RateRow]:
        xml = self._fetch_xml()
        table, as_of = self._parse(xml)
        out: List[RateRow] = []
        for code in currencies:
            code = code.strip().upper()
            if code in table:
                out.append(RateRow(as_of, "EUR", code, self._round6(table[code]), self.source))
        return out
