# backend/pricing/management/commands/seed_pricing_config.py

from django.core.management.base import BaseCommand, CommandError

from pricing.models import PricingConfig
from pricing.services.pricing_config import DEFAULT_PRICING_CONFIG, validate_pricing_config


class Command(BaseCommand):
    help = "Create the default pricing configuration (use --force to overwrite the active one)."

    def add_arguments(self, parser):
        parser.add_argument("--force", action="store_true", help="Reset the active configuration to defaults")

    def handle(self, *args, **options):
        errors = validate_pricing_config(DEFAULT_PRICING_CONFIG)
        if errors:
            raise CommandError("Default pricing config is invalid: " + "; ".join(errors))

        existing = PricingConfig.objects.filter(is_active=True).first()
        if existing and not options["force"]:
            self.stdout.write(self.style.WARNING(
                f"Pricing config #{existing.pk} already exists; pass --force to reset it"
            ))
            return

        config = existing or PricingConfig()
        for key, value in DEFAULT_PRICING_CONFIG.items():
            setattr(config, key, value)
        config.is_active = True
        config.save()
        self.stdout.write(self.style.SUCCESS(f"Pricing config #{config.pk} seeded with defaults"))
