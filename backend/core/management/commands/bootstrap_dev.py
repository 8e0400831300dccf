# backend/core/management/commands/bootstrap_dev.py
import os
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from rest_framework.authtoken.models import Token


class Command(BaseCommand):
    help = "Idempotently ensure a dev ADMIN user + DRF token exists and print the token."

    def handle(self, *args, **opts):
        User = get_user_model()
        username = os.getenv("DEV_ADMIN_USER", "admin")
        email = os.getenv("DEV_ADMIN_EMAIL", "admin@example.com")
        password = os.getenv("DEV_ADMIN_PASS", "ChangeMe123!")

        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": email, "is_staff": True, "is_superuser": True, "role": "ADMIN"},
        )
        if created:
            user.set_password(password)
            user.save()
            self.stdout.write(self.style.SUCCESS(f"Created admin '{username}'"))
        else:
            self.stdout.write(f"Admin '{username}' already exists")

        token, _ = Token.objects.get_or_create(user=user)
        self.stdout.write(self.style.SUCCESS(f"TOKEN: {token.key}"))
