from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.choices import CargoType
from core.models import iso2_validator


class PickupRequest(models.Model):
    NEW = 'NEW'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELED = 'CANCELED'
    STATUS_CHOICES = [
        (NEW, 'New'),
        (IN_PROGRESS, 'In progress'),
        (COMPLETED, 'Completed'),
        (CANCELED, 'Canceled'),
    ]

    MORNING = 'MORNING'
    AFTERNOON = 'AFTERNOON'
    EVENING = 'EVENING'
    FLEXIBLE = 'FLEXIBLE'
    TIME_SLOT_CHOICES = [
        (MORNING, 'Morning (8h-12h)'),
        (AFTERNOON, 'Afternoon (14h-18h)'),
        (EVENING, 'Evening (18h-20h)'),
        (FLEXIBLE, 'Flexible'),
    ]

    tracking_number = models.CharField(max_length=20, unique=True)
    tracking_token = models.CharField(max_length=64, unique=True)
    token_expires_at = models.DateTimeField()

    client = models.ForeignKey(
        'clients.Client', null=True, blank=True, on_delete=models.SET_NULL, related_name='pickups'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='pickups'
    )

    contact_name = models.CharField(max_length=100, blank=True, null=True)
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=20)

    pickup_address = models.CharField(max_length=200)
    pickup_city = models.CharField(max_length=100)
    pickup_postal_code = models.CharField(max_length=20)
    pickup_country = models.CharField(max_length=2, default='FR', validators=[iso2_validator])

    requested_date = models.DateTimeField()
    time_slot = models.CharField(max_length=10, choices=TIME_SLOT_CHOICES, default=FLEXIBLE)
    scheduled_date = models.DateTimeField(null=True, blank=True)

    cargo_type = models.CharField(max_length=12, choices=CargoType.choices, default=CargoType.GENERAL)
    estimated_weight = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    estimated_volume = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    package_count = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    description = models.TextField(blank=True, null=True)
    special_instructions = models.TextField(blank=True, null=True)
    access_instructions = models.TextField(blank=True, null=True)

    driver_name = models.CharField(max_length=100, blank=True, null=True)
    driver_phone = models.CharField(max_length=20, blank=True, null=True)

    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=NEW)
    cancellation_reason = models.TextField(blank=True, null=True)
    completion_notes = models.TextField(blank=True, null=True)
    actual_pickup_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pickup_requests'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='pickups_status_idx'),
            models.Index(fields=['contact_email'], name='pickups_contact_email_idx'),
        ]

    def __str__(self):
        return self.tracking_number


class PickupLog(models.Model):
    CREATED = 'CREATED'
    STATUS_CHANGED = 'STATUS_CHANGED'
    ATTACHED_TO_ACCOUNT = 'ATTACHED_TO_ACCOUNT'
    DRIVER_ASSIGNED = 'DRIVER_ASSIGNED'
    DRIVER_CHANGED = 'DRIVER_CHANGED'
    SCHEDULED = 'SCHEDULED'
    RESCHEDULED = 'RESCHEDULED'
    ACTION_CHOICES = [
        (CREATED, 'Created'),
        (STATUS_CHANGED, 'Status changed'),
        (ATTACHED_TO_ACCOUNT, 'Attached to account'),
        (DRIVER_ASSIGNED, 'Driver assigned'),
        (DRIVER_CHANGED, 'Driver changed'),
        (SCHEDULED, 'Scheduled'),
        (RESCHEDULED, 'Rescheduled'),
    ]

    pickup = models.ForeignKey(PickupRequest, on_delete=models.CASCADE, related_name='logs')
    action = models.CharField(max_length=24, choices=ACTION_CHOICES)
    old_status = models.CharField(max_length=12, blank=True, null=True)
    new_status = models.CharField(max_length=12, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'pickup_logs'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.pickup_id} {self.action}"
