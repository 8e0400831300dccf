from django.core.validators import MinLengthValidator
from django.db import models

from core.models import iso2_validator


class Client(models.Model):
    COMPANY = 'COMPANY'
    INDIVIDUAL = 'INDIVIDUAL'
    CLIENT_TYPE_CHOICES = [(COMPANY, 'Company'), (INDIVIDUAL, 'Individual')]

    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    legal_name = models.CharField(max_length=200, blank=True, null=True)
    tax_id = models.CharField(max_length=50, blank=True, null=True, validators=[MinLengthValidator(9)])
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True, null=True)
    address = models.CharField(max_length=200, blank=True, null=True, validators=[MinLengthValidator(5)])
    city = models.CharField(max_length=100, blank=True, null=True)
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    country = models.CharField(max_length=2, validators=[iso2_validator])
    website = models.URLField(blank=True, null=True)
    client_type = models.CharField(max_length=12, choices=CLIENT_TYPE_CHOICES, default=COMPANY)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clients'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='clients_name_idx'),
            models.Index(fields=['email'], name='clients_email_idx'),
        ]

    def __str__(self):
        return self.name
