from django.core.management.base import BaseCommand
from accounts.models import CustomUser


class Command(BaseCommand):
    help = 'Create test users, one per role'

    def handle(self, *args, **options):
        users_data = [
            {'username': 'admin_user', 'password': 'admin_password', 'role': CustomUser.ADMIN},
            {'username': 'ops_user', 'password': 'ops_password', 'role': CustomUser.OPERATIONS_MANAGER},
            {'username': 'finance_user', 'password': 'finance_password', 'role': CustomUser.FINANCE_MANAGER},
            {'username': 'client_user', 'password': 'client_password', 'role': CustomUser.CLIENT},
            {'username': 'viewer_user', 'password': 'viewer_password', 'role': CustomUser.VIEWER},
        ]

        for user_data in users_data:
            if CustomUser.objects.filter(username=user_data['username']).exists():
                self.stdout.write(
                    self.style.WARNING(f"User {user_data['username']} already exists")
                )
                continue

            user = CustomUser.objects.create_user(
                username=user_data['username'],
                password=user_data['password'],
                role=user_data['role'],
            )
            self.stdout.write(
                self.style.SUCCESS(f"Successfully created {user_data['role']} user: {user.username}")
            )

        self.stdout.write(self.style.SUCCESS("All test users created successfully!"))
