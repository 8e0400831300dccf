"""
Pickup requests: collection of cargo at a client address.

    NEW --> IN_PROGRESS --> COMPLETED
     |          |
     +----------+--> CANCELED

Every pickup gets a public tracking number (``PK-YYYYMMDD-XXXXX``) and a
random tracking token that lets a guest follow the request without an
account until ``token_expires_at``.
"""

import logging
import random
import string
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import WorkflowError

from .models import PickupLog, PickupRequest

logger = logging.getLogger(__name__)

NUMBER_ALPHABET = string.ascii_uppercase + string.digits

VALID_TRANSITIONS = {
    PickupRequest.NEW: (PickupRequest.IN_PROGRESS, PickupRequest.CANCELED),
    PickupRequest.IN_PROGRESS: (PickupRequest.COMPLETED, PickupRequest.CANCELED),
    PickupRequest.COMPLETED: (),
    PickupRequest.CANCELED: (),
}
TERMINAL_STATUSES = (PickupRequest.COMPLETED, PickupRequest.CANCELED)


class TrackingTokenExpired(WorkflowError):
    """Raised when a guest tracking token is past its expiry"""
    pass


def _actor(user):
    return user if user is not None and user.is_authenticated else None


def generate_pickup_number(now=None) -> str:
    local = timezone.localtime(now or timezone.now())
    while True:
        suffix = "".join(random.choice(NUMBER_ALPHABET) for _ in range(5))
        number = f"PK-{local:%Y%m%d}-{suffix}"
        if not PickupRequest.objects.filter(tracking_number=number).exists():
            return number


def generate_tracking_token() -> str:
    return uuid.uuid4().hex


def token_expiry(now=None):
    return (now or timezone.now()) + timedelta(hours=getattr(settings, "PICKUP_TOKEN_TTL_HOURS", 72))


def log_pickup(pickup, action, old_status=None, new_status=None, user=None, notes=None, metadata=None):
    return PickupLog.objects.create(
        pickup=pickup,
        action=action,
        old_status=old_status,
        new_status=new_status,
        notes=notes,
        metadata=metadata or {},
        changed_by=_actor(user),
    )


@transaction.atomic
def create_pickup(data: dict, user=None) -> PickupRequest:
    """
    Create a NEW pickup request.

    An authenticated user owns the request; a CLIENT user's company is used
    when no client is given. Guests (``user`` None) only get the token.
    """
    data = dict(data)
    actor = _actor(user)
    if actor is not None:
        data.setdefault("user", actor)
        if data.get("client") is None and actor.client_id:
            data["client"] = actor.client

    pickup = PickupRequest.objects.create(
        tracking_number=generate_pickup_number(),
        tracking_token=generate_tracking_token(),
        token_expires_at=token_expiry(),
        status=PickupRequest.NEW,
        **data,
    )
    log_pickup(
        pickup, PickupLog.CREATED, None, PickupRequest.NEW, actor,
        notes="Guest request" if actor is None else None,
    )
    logger.info("Pickup %s created (%s)", pickup.tracking_number, "guest" if actor is None else actor.username)
    return pickup


def create_guest_pickup(data: dict) -> PickupRequest:
    return create_pickup(data, user=None)


def track_pickup_by_token(token: str, now=None):
    """
    Public lookup by tracking token. Returns None for an unknown token and
    raises TrackingTokenExpired once the token is past its validity.
    """
    pickup = PickupRequest.objects.filter(tracking_token=(token or "").strip()).first()
    if pickup is None:
        return None
    if (now or timezone.now()) > pickup.token_expires_at:
        raise TrackingTokenExpired(
            "This tracking link has expired. Create an account to keep following your request."
        )
    return pickup


@transaction.atomic
def attach_pickups_to_account(user) -> int:
    """Link guest pickups whose contact email (or phone) matches ``user``. Returns the count."""
    match = Q(contact_email__iexact=user.email) if user.email else Q(pk__in=[])
    if getattr(user, "phone", None):
        match |= Q(contact_phone=user.phone)

    attached = 0
    for pickup in PickupRequest.objects.filter(user__isnull=True).filter(match):
        matched_by = "email" if user.email and pickup.contact_email.lower() == user.email.lower() else "phone"
        pickup.user = user
        if user.client_id:
            pickup.client_id = user.client_id
        pickup.save(update_fields=["user", "client", "updated_at"])
        log_pickup(
            pickup, PickupLog.ATTACHED_TO_ACCOUNT, user=user,
            notes="Attached to account",
            metadata={"email": user.email, "matched_by": matched_by},
        )
        attached += 1

    if attached:
        logger.info("Attached %s pickup(s) to %s", attached, user.username)
    return attached


@transaction.atomic
def update_pickup_status(pickup: PickupRequest, status: str, user=None, notes=None,
                         completion_notes=None, actual_pickup_date=None) -> PickupRequest:
    old_status = pickup.status
    if status not in VALID_TRANSITIONS.get(old_status, ()):
        raise WorkflowError(f"Transition {old_status} -> {status} is not allowed")

    pickup.status = status
    update_fields = ["status", "updated_at"]
    if status == PickupRequest.COMPLETED:
        pickup.actual_pickup_date = actual_pickup_date or timezone.now()
        update_fields.append("actual_pickup_date")
        if completion_notes:
            pickup.completion_notes = completion_notes
            update_fields.append("completion_notes")
    pickup.save(update_fields=update_fields)

    log_pickup(pickup, PickupLog.STATUS_CHANGED, old_status, status, user, notes)
    logger.info("Pickup %s: %s -> %s", pickup.tracking_number, old_status, status)
    return pickup


@transaction.atomic
def cancel_pickup(pickup: PickupRequest, user=None, reason=None) -> PickupRequest:
    if pickup.status in TERMINAL_STATUSES:
        raise WorkflowError(f"A pickup in status {pickup.status} cannot be canceled")
    old_status = pickup.status
    pickup.status = PickupRequest.CANCELED
    pickup.cancellation_reason = reason
    pickup.save(update_fields=["status", "cancellation_reason", "updated_at"])
    log_pickup(pickup, PickupLog.STATUS_CHANGED, old_status, PickupRequest.CANCELED, user, reason)
    return pickup


@transaction.atomic
def assign_driver(pickup: PickupRequest, driver_name: str, driver_phone=None, user=None) -> PickupRequest:
    if pickup.status in TERMINAL_STATUSES:
        raise WorkflowError(f"A pickup in status {pickup.status} cannot be assigned a driver")

    previous = pickup.driver_name
    pickup.driver_name = driver_name
    pickup.driver_phone = driver_phone
    pickup.save(update_fields=["driver_name", "driver_phone", "updated_at"])

    if previous:
        log_pickup(
            pickup, PickupLog.DRIVER_CHANGED, user=user, notes="Driver changed",
            metadata={"old_driver_name": previous, "new_driver_name": driver_name},
        )
    else:
        log_pickup(
            pickup, PickupLog.DRIVER_ASSIGNED, user=user,
            metadata={"driver_name": driver_name, "driver_phone": driver_phone},
        )
    return pickup


@transaction.atomic
def schedule_pickup(pickup: PickupRequest, scheduled_date, time_slot=None, user=None, notes=None) -> PickupRequest:
    if pickup.status in TERMINAL_STATUSES:
        raise WorkflowError(f"A pickup in status {pickup.status} cannot be scheduled")

    previous = pickup.scheduled_date
    pickup.scheduled_date = scheduled_date
    if time_slot:
        pickup.time_slot = time_slot
    pickup.save(update_fields=["scheduled_date", "time_slot", "updated_at"])

    metadata = {"scheduled_date": scheduled_date.isoformat(), "time_slot": pickup.time_slot}
    if previous is not None:
        metadata["old_scheduled_date"] = previous.isoformat()
        log_pickup(pickup, PickupLog.RESCHEDULED, user=user, notes=notes, metadata=metadata)
    else:
        log_pickup(pickup, PickupLog.SCHEDULED, user=user, notes=notes, metadata=metadata)
    return pickup


def get_pickup_history(pickup: PickupRequest):
    return pickup.logs.select_related("changed_by")
