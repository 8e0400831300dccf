from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.choices import CargoType, Priority
from core.models import iso2_validator


class Quote(models.Model):
    DRAFT = 'DRAFT'
    SENT = 'SENT'
    ACCEPTED = 'ACCEPTED'
    REJECTED = 'REJECTED'
    EXPIRED = 'EXPIRED'
    CANCELLED = 'CANCELLED'
    IN_TREATMENT = 'IN_TREATMENT'
    VALIDATED = 'VALIDATED'
    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (SENT, 'Sent'),
        (ACCEPTED, 'Accepted'),
        (REJECTED, 'Rejected'),
        (EXPIRED, 'Expired'),
        (CANCELLED, 'Cancelled'),
        (IN_TREATMENT, 'In treatment'),
        (VALIDATED, 'Validated'),
    ]

    quote_number = models.CharField(max_length=20, unique=True)
    client = models.ForeignKey('clients.Client', on_delete=models.PROTECT, related_name='quotes')
    origin_country = models.CharField(max_length=2, validators=[iso2_validator])
    destination_country = models.CharField(max_length=2, validators=[iso2_validator])
    cargo_type = models.CharField(max_length=12, choices=CargoType.choices, default=CargoType.GENERAL)
    weight = models.DecimalField(max_digits=12, decimal_places=3)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    volume = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    transport_mode = models.JSONField(default=list)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.STANDARD)
    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='EUR')
    estimated_delivery_days = models.PositiveIntegerField(null=True, blank=True)
    valid_until = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=DRAFT)
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'quotes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['client', '-created_at'], name='quotes_client_created_idx'),
            models.Index(fields=['status'], name='quotes_status_idx'),
        ]

    def __str__(self):
        return self.quote_number


class QuotePackage(models.Model):
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name='packages')
    description = models.CharField(max_length=255, blank=True, null=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    cargo_type = models.CharField(max_length=12, choices=CargoType.choices, default=CargoType.GENERAL)
    weight = models.DecimalField(max_digits=12, decimal_places=3)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'quote_packages'
        ordering = ['id']

    def __str__(self):
        return f"{self.quote_id} x{self.quantity} {self.cargo_type}"


class QuoteLog(models.Model):
    CREATED = 'CREATED'
    UPDATED = 'UPDATED'
    STATUS_CHANGED = 'STATUS_CHANGED'
    TREATMENT_STARTED = 'TREATMENT_STARTED'
    TREATMENT_VALIDATED = 'TREATMENT_VALIDATED'
    ACTION_CHOICES = [
        (CREATED, 'Created'),
        (UPDATED, 'Updated'),
        (STATUS_CHANGED, 'Status changed'),
        (TREATMENT_STARTED, 'Treatment started'),
        (TREATMENT_VALIDATED, 'Treatment validated'),
    ]

    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name='logs')
    action = models.CharField(max_length=24, choices=ACTION_CHOICES)
    old_status = models.CharField(max_length=20, blank=True, null=True)
    new_status = models.CharField(max_length=20, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'quote_logs'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.quote_id} {self.action} {self.old_status}->{self.new_status}"


class GuestQuote(models.Model):
    """
    Estimate requested from the public calculator by a visitor without an
    account. Staff turn it into a regular Quote once the prospect has a
    client record.
    """
    access_token = models.CharField(max_length=64, unique=True)
    contact_name = models.CharField(max_length=100)
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=20, blank=True, null=True)
    company_name = models.CharField(max_length=100, blank=True, null=True)
    origin_country = models.CharField(max_length=2, validators=[iso2_validator])
    destination_country = models.CharField(max_length=2, validators=[iso2_validator])
    cargo_type = models.CharField(max_length=12, choices=CargoType.choices, default=CargoType.GENERAL)
    weight = models.DecimalField(max_digits=12, decimal_places=3)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    volume = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    transport_mode = models.JSONField(default=list)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.STANDARD)
    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='EUR')
    estimated_delivery_days = models.PositiveIntegerField(null=True, blank=True)
    valid_until = models.DateTimeField()
    message = models.TextField(blank=True, null=True)
    converted_quote = models.OneToOneField(
        Quote, null=True, blank=True, on_delete=models.SET_NULL, related_name='guest_quote'
    )
    converted_at = models.DateTimeField(null=True, blank=True)
    converted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'guest_quotes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['contact_email'], name='guest_quotes_email_idx'),
        ]

    def __str__(self):
        return f"{self.contact_email} {self.origin_country}->{self.destination_country}"

    @property
    def is_converted(self):
        return self.converted_quote_id is not None
