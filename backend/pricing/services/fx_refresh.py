from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from django.conf import settings

from ..fx_providers import RateRow, load as load_provider
from .currency import STATIC_RATES_FROM_EUR
from .utils import d

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_CURRENCIES = [c for c in STATIC_RATES_FROM_EUR if c != "EUR"]


def _maybe_warn_anomaly(currency: str, prev_rate: Optional[Decimal], new_rate: Decimal) -> None:
    if not prev_rate or d(prev_rate) <= 0:
        return
    threshold = float(getattr(settings, "FX_ANOMALY_PCT", 0.05))
    pct = float(abs(d(new_rate) - d(prev_rate)) / d(prev_rate))
    if pct > threshold:
        logger.warning(
            "FX anomaly: EUR->%s changed by %.2f%% (old=%s new=%s)", currency, pct * 100.0, prev_rate, new_rate
        )


def upsert_display_rate(row: RateRow):
    from ..models import DisplayRate

    previous = DisplayRate.objects.filter(currency=row.quote_ccy).first()
    _maybe_warn_anomaly(row.quote_ccy, previous.rate if previous else None, row.rate)
    obj, _ = DisplayRate.objects.update_or_create(
        currency=row.quote_ccy,
        defaults={"rate": row.rate, "as_of": row.as_of_ts, "source": row.source},
    )
    return obj


def refresh_display_rates(currencies: Optional[List[str]] = None, provider_name: str = "ecb") -> List[RateRow]:
    """
    Fetch display rates and persist them.

    A provider failure is logged and leaves the stored rates (or the static
    table) in place; an empty list is returned in that case.
    """
    wanted = [c.strip().upper() for c in (currencies or DEFAULT_DISPLAY_CURRENCIES) if c.strip()]
    provider = load_provider(provider_name)
    try:
        rows = provider.fetch(wanted)
    except Exception as e:
        logger.warning("FX provider %s failed, keeping previous display rates: %s", provider_name, e)
        return []

    for row in rows:
        upsert_display_rate(row)
    missing = set(wanted) - {r.quote_ccy for r in rows}
    if missing:
        logger.warning("FX provider %s returned no rate for %s", provider_name, ", ".join(sorted(missing)))
    return rows
