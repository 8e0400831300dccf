from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class RateRow:
    as_of_ts: datetime
    base_ccy: str
    quote_ccy: str
    rate: Decimal
    source: str


def load(name: Optional[str], **kwargs):
    """
    Lazy-load an FX provider by name.
    - 'ecb', 'ecb_xml', None -> EcbXmlProvider
    """
    key = (name or "ecb").strip().lower()
    if key in {"ecb", "ecb_xml"}:
        from .ecb_xml import EcbXmlProvider
        return EcbXmlProvider(**kwargs)
    raise ValueError(f"Unknown FX provider '{name}'")
