# backend/quotes/management/commands/expire_quotes.py

from django.core.management.base import BaseCommand

from quotes.services import expire_overdue_quotes


class Command(BaseCommand):
    help = "Mark DRAFT and SENT quotes whose validity has passed as EXPIRED."

    def handle(self, *args, **options):
        count = expire_overdue_quotes()
        self.stdout.write(self.style.SUCCESS(f"{count} quote(s) expired"))
