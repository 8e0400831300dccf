# backend/pricing/management/commands/seed_transport_rates.py

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from pricing.models import TransportRate

#region -------- Sample routes: France -> West Africa --------
SAMPLE_RATES = [
    # sea
    ("FR", "BF", "SEA", "0.80", "150.00", "Sea via Abidjan"),
    ("FR", "CI", "SEA", "0.70", "140.00", "Sea to Abidjan"),
    ("FR", "ML", "SEA", "0.90", "160.00", "Sea via Dakar"),
    # air
    ("FR", "BF", "AIR", "4.50", "900.00", "Air to Ouagadougou"),
    ("FR", "CI", "AIR", "4.20", "850.00", "Air to Abidjan"),
    ("FR", "ML", "AIR", "4.80", "950.00", "Air to Bamako"),
]
#endregion


class Command(BaseCommand):
    help = "Idempotently seed sample transport rates (France -> West Africa)."

    @transaction.atomic
    def handle(self, *args, **options):
        created = updated = 0
        for origin, dest, mode, per_kg, per_m3, notes in SAMPLE_RATES:
            _, was_created = TransportRate.objects.update_or_create(
                origin_country_code=origin,
                destination_country_code=dest,
                transport_mode=mode,
                defaults={
                    "rate_per_kg": Decimal(per_kg),
                    "rate_per_m3": Decimal(per_m3),
                    "notes": notes,
                    "is_active": True,
                },
            )
            if was_created:
                created += 1
            else:
                updated += 1
        self.stdout.write(self.style.SUCCESS(f"Transport rates: {created} created, {updated} updated"))
