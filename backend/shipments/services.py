"""
Shipment lifecycle: tracking numbers, creation and status updates.

Tracking numbers read ``{CC}-{XXX}-{DDYY}-{#####}``: destination country,
three random characters, day of month + 2-digit year, and the day's sequence
for that destination.
"""

import logging
import random
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from core.exceptions import WorkflowError

from .models import Shipment, ShipmentLog

logger = logging.getLogger(__name__)

TRACKING_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MANUAL_UPDATE_LOCATION = "Manual update"

# statuses that stamp a date on the shipment
STATUS_DATE_FIELDS = {
    Shipment.PICKED_UP: "actual_pickup_date",
    Shipment.DELIVERED: "actual_delivery_date",
}


def _day_bounds(now=None):
    local = timezone.localtime(now or timezone.now())
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return local, start, start + timedelta(days=1)


def generate_tracking_number(destination_country: str, now=None) -> str:
    country = (destination_country or "").upper()[:2]
    local, start, end = _day_bounds(now)
    date_code = f"{local:%d}{local:%y}"
    sequence = Shipment.objects.filter(
        destination_country=country, created_at__gte=start, created_at__lt=end
    ).count() + 1

    while True:
        code = "".join(random.choice(TRACKING_ALPHABET) for _ in range(3))
        number = f"{country}-{code}-{date_code}-{sequence:05d}"
        if not Shipment.objects.filter(tracking_number=number).exists():
            return number
        logger.info("Tracking number %s already taken, regenerating", number)


def log_status_change(shipment, old_status, new_status, user=None, location=None, notes=None):
    return ShipmentLog.objects.create(
        shipment=shipment,
        old_status=old_status,
        new_status=new_status,
        location=location,
        notes=notes,
        changed_by=user if user is not None and user.is_authenticated else None,
    )


@transaction.atomic
def create_shipment(data: dict, user=None) -> Shipment:
    data = dict(data)
    data.setdefault("status", Shipment.DRAFT)
    shipment = Shipment.objects.create(
        tracking_number=generate_tracking_number(data["destination_country"]),
        created_by=user if user is not None and user.is_authenticated else None,
        **data,
    )
    log_status_change(shipment, None, shipment.status, user, notes="Shipment created")
    logger.info("Shipment %s created for client %s", shipment.tracking_number, shipment.client_id)
    return shipment


@transaction.atomic
def update_shipment_status(shipment: Shipment, status: str, user=None, location=None, notes=None) -> Shipment:
    valid = {value for value, _ in Shipment.STATUS_CHOICES}
    if status not in valid:
        raise WorkflowError(f"Unknown shipment status '{status}'")

    old_status = shipment.status
    shipment.status = status
    update_fields = ["status", "updated_at"]
    date_field = STATUS_DATE_FIELDS.get(status)
    if date_field:
        setattr(shipment, date_field, timezone.now())
        update_fields.append(date_field)
    shipment.save(update_fields=update_fields)

    log_status_change(
        shipment, old_status, status, user,
        location=location or MANUAL_UPDATE_LOCATION,
        notes=notes or f"Status changed to {status}",
    )
    logger.info("Shipment %s: %s -> %s", shipment.tracking_number, old_status, status)
    return shipment


def delete_shipment(shipment: Shipment) -> None:
    if shipment.status != Shipment.DRAFT:
        raise WorkflowError("Only draft shipments can be deleted")
    shipment.delete()


def public_tracking(tracking_number: str):
    """
    Tracking data safe to show without authentication.

    Draft shipments are not public; costs, contacts and internal notes are
    never included. Returns None when nothing can be shown.
    """
    shipment = (
        Shipment.objects.select_related("client")
        .filter(tracking_number=(tracking_number or "").strip().upper())
        .first()
    )
    if shipment is None or shipment.status == Shipment.DRAFT:
        return None

    return {
        "tracking_number": shipment.tracking_number,
        "status": shipment.status,
        "status_label": shipment.get_status_display(),
        "origin_city": shipment.origin_city,
        "origin_country": shipment.origin_country,
        "destination_city": shipment.destination_city,
        "destination_country": shipment.destination_country,
        "cargo_type": shipment.cargo_type,
        "weight": shipment.weight,
        "package_count": shipment.package_count,
        "transport_mode": shipment.transport_mode,
        "estimated_delivery_date": shipment.estimated_delivery_date,
        "actual_pickup_date": shipment.actual_pickup_date,
        "actual_delivery_date": shipment.actual_delivery_date,
        "client_name": shipment.client.name,
        "events": [
            {
                "status": log.new_status,
                "status_label": dict(Shipment.STATUS_CHOICES).get(log.new_status, log.new_status),
                "location": log.location,
                "timestamp": log.created_at,
            }
            for log in shipment.logs.all()
        ],
    }
