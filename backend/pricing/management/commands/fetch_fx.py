from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from pricing.services.fx_refresh import DEFAULT_DISPLAY_CURRENCIES, refresh_display_rates


class Command(BaseCommand):
    help = "Fetch EUR reference rates used to display estimates in other currencies."

    def add_arguments(self, parser):
        parser.add_argument(
            "--currencies", type=str, default=",".join(DEFAULT_DISPLAY_CURRENCIES),
            help="Comma-separated ISO codes, e.g. USD,GBP,CHF",
        )
        parser.add_argument("--provider", type=str, default="ecb", help="FX provider to use (ecb)")

    def handle(self, *args, **options):
        currencies = [c for c in (options["currencies"] or "").split(",") if c.strip()]
        if not currencies:
            raise CommandError("--currencies is required (e.g., USD,GBP)")
        try:
            rows = refresh_display_rates(currencies, options["provider"])
        except ValueError as e:
            raise CommandError(str(e))

        if not rows:
            self.stdout.write(self.style.WARNING("No rates fetched; static display rates remain in use"))
            return
        for r in rows:
            self.stdout.write(self.style.SUCCESS(
                f"Saved {r.base_ccy}->{r.quote_ccy} {r.rate} @ {r.as_of_ts.isoformat()} [{r.source}]"
            ))
