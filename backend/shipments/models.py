from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.choices import CargoType, Priority
from core.models import iso2_validator


class Shipment(models.Model):
    DRAFT = 'DRAFT'
    PENDING_APPROVAL = 'PENDING_APPROVAL'
    APPROVED = 'APPROVED'
    PENDING = 'PENDING'
    PICKED_UP = 'PICKED_UP'
    IN_TRANSIT = 'IN_TRANSIT'
    AT_CUSTOMS = 'AT_CUSTOMS'
    CUSTOMS_CLEARED = 'CUSTOMS_CLEARED'
    OUT_FOR_DELIVERY = 'OUT_FOR_DELIVERY'
    READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    DELIVERED = 'DELIVERED'
    ON_HOLD = 'ON_HOLD'
    EXCEPTION = 'EXCEPTION'
    CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (PENDING_APPROVAL, 'Pending approval'),
        (APPROVED, 'Approved'),
        (PENDING, 'Pending'),
        (PICKED_UP, 'Picked up'),
        (IN_TRANSIT, 'In transit'),
        (AT_CUSTOMS, 'At customs'),
        (CUSTOMS_CLEARED, 'Customs cleared'),
        (OUT_FOR_DELIVERY, 'Out for delivery'),
        (READY_FOR_PICKUP, 'Ready for pickup'),
        (DELIVERED, 'Delivered'),
        (ON_HOLD, 'On hold'),
        (EXCEPTION, 'Exception'),
        (CANCELLED, 'Cancelled'),
    ]

    tracking_number = models.CharField(max_length=20, unique=True)
    client = models.ForeignKey('clients.Client', on_delete=models.PROTECT, related_name='shipments')
    quote = models.ForeignKey(
        'quotes.Quote', null=True, blank=True, on_delete=models.SET_NULL, related_name='shipments'
    )

    origin_address = models.CharField(max_length=200)
    origin_city = models.CharField(max_length=100)
    origin_postal_code = models.CharField(max_length=20, blank=True, null=True)
    origin_country = models.CharField(max_length=2, validators=[iso2_validator])
    origin_contact = models.CharField(max_length=100, blank=True, null=True)
    origin_phone = models.CharField(max_length=20, blank=True, null=True)

    destination_address = models.CharField(max_length=200)
    destination_city = models.CharField(max_length=100)
    destination_postal_code = models.CharField(max_length=20, blank=True, null=True)
    destination_country = models.CharField(max_length=2, validators=[iso2_validator])
    destination_contact = models.CharField(max_length=100, blank=True, null=True)
    destination_phone = models.CharField(max_length=20, blank=True, null=True)

    cargo_type = models.CharField(max_length=12, choices=CargoType.choices, default=CargoType.GENERAL)
    weight = models.DecimalField(max_digits=12, decimal_places=3)
    volume = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    package_count = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default='EUR')
    description = models.TextField()
    special_instructions = models.TextField(blank=True, null=True)
    transport_mode = models.JSONField(default=list)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.STANDARD)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=DRAFT)

    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    requested_pickup_date = models.DateTimeField(null=True, blank=True)
    estimated_delivery_date = models.DateTimeField(null=True, blank=True)
    actual_pickup_date = models.DateTimeField(null=True, blank=True)
    actual_delivery_date = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shipments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['client', '-created_at'], name='shipments_client_created_idx'),
            models.Index(fields=['status'], name='shipments_status_idx'),
            models.Index(fields=['destination_country', 'created_at'], name='shipments_dest_created_idx'),
        ]

    def __str__(self):
        return self.tracking_number


class ShipmentLog(models.Model):
    """Tracking event: one row per status change."""
    shipment = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name='logs')
    old_status = models.CharField(max_length=20, blank=True, null=True)
    new_status = models.CharField(max_length=20)
    location = models.CharField(max_length=200, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'shipment_logs'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.shipment_id} {self.old_status}->{self.new_status}"
