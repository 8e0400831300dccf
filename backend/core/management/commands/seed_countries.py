from django.core.management.base import BaseCommand

from core.models import Country

COUNTRIES = [
    ("FR", "France"),
    ("DE", "Allemagne"),
    ("ES", "Espagne"),
    ("IT", "Italie"),
    ("BE", "Belgique"),
    ("NL", "Pays-Bas"),
    ("GB", "Royaume-Uni"),
    ("PL", "Pologne"),
    ("US", "États-Unis"),
    ("CN", "Chine"),
    ("JP", "Japon"),
    ("AU", "Australie"),
    ("BR", "Brésil"),
    ("CA", "Canada"),
    ("IN", "Inde"),
    ("ZA", "Afrique du Sud"),
    ("MA", "Maroc"),
    ("DZ", "Algérie"),
    ("TN", "Tunisie"),
    ("CI", "Côte d'Ivoire"),
    ("BF", "Burkina Faso"),
    ("SN", "Sénégal"),
    ("ML", "Mali"),
]


class Command(BaseCommand):
    help = "Idempotently seed the reference list of countries."

    def handle(self, *args, **options):
        created = 0
        for code, name in COUNTRIES:
            _, was_created = Country.objects.get_or_create(code=code, defaults={"name": name})
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS(
            f"Countries seeded: {created} created, {len(COUNTRIES) - created} already present"
        ))
