# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ADMIN = 'ADMIN'
    OPERATIONS_MANAGER = 'OPERATIONS_MANAGER'
    FINANCE_MANAGER = 'FINANCE_MANAGER'
    CLIENT = 'CLIENT'
    VIEWER = 'VIEWER'

    ROLE_CHOICES = [
        (ADMIN, 'Administrator'),
        (OPERATIONS_MANAGER, 'Operations manager'),
        (FINANCE_MANAGER, 'Finance manager'),
        (CLIENT, 'Client'),
        (VIEWER, 'Viewer'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=CLIENT)
    client = models.ForeignKey(
        'clients.Client',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='users',
        help_text="Company a CLIENT user belongs to",
    )
    phone = models.CharField(max_length=20, blank=True, null=True)

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
