"""
Quote lifecycle.

    DRAFT --send--> SENT --accept--> ACCEPTED --start_treatment--> IN_TREATMENT
                         --reject--> REJECTED                        |
    ACCEPTED / IN_TREATMENT --convert_to_shipment--> VALIDATED  <----+
    any non-terminal status --cancel--> CANCELLED
    DRAFT / SENT past valid_until --expire--> EXPIRED

Prices are always computed here from the pricing estimator and stored in EUR.
Guest quotes (public calculator requests) are converted once into a DRAFT quote.
"""

import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.exceptions import WorkflowError
from pricing.dataclasses import Package
from pricing.services.estimator import calculate_volume, estimate_quote
from pricing.services.utils import has_dimensions, q3

from .models import GuestQuote, Quote, QuoteLog, QuotePackage

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (Quote.REJECTED, Quote.EXPIRED, Quote.CANCELLED, Quote.VALIDATED)
LOCKED_STATUSES = (Quote.ACCEPTED, Quote.EXPIRED, Quote.IN_TREATMENT, Quote.VALIDATED)
EXPIRABLE_STATUSES = (Quote.DRAFT, Quote.SENT)
CONVERTIBLE_STATUSES = (Quote.ACCEPTED, Quote.IN_TREATMENT)

PRICING_FIELDS = (
    "origin_country", "destination_country", "cargo_type", "weight",
    "length", "width", "height", "transport_mode", "priority",
)


def _actor(user):
    return user if user is not None and user.is_authenticated else None


def generate_quote_number(now=None) -> str:
    local = timezone.localtime(now or timezone.now())
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    sequence = Quote.objects.filter(created_at__gte=start, created_at__lt=start + timedelta(days=1)).count() + 1
    number = f"QTE-{local:%Y%m%d}-{sequence:05d}"
    while Quote.objects.filter(quote_number=number).exists():
        sequence += 1
        number = f"QTE-{local:%Y%m%d}-{sequence:05d}"
    return number


def default_valid_until(now=None):
    return (now or timezone.now()) + timedelta(days=getattr(settings, "QUOTE_VALIDITY_DAYS", 30))


def log_quote(quote, action, old_status=None, new_status=None, user=None, notes=None, metadata=None):
    return QuoteLog.objects.create(
        quote=quote,
        action=action,
        old_status=old_status,
        new_status=new_status,
        notes=notes,
        metadata=metadata or {},
        changed_by=_actor(user),
    )


def price_quote(fields: dict, packages: Optional[List[Package]] = None) -> dict:
    """Run the estimator on quote fields; ``packages`` switches to multi-package pricing."""
    return estimate_quote(
        origin=fields["origin_country"],
        destination=fields["destination_country"],
        transport_modes=fields["transport_mode"],
        cargo_type=fields.get("cargo_type"),
        priority=fields.get("priority"),
        weight_kg=fields.get("weight"),
        length_cm=fields.get("length"),
        width_cm=fields.get("width"),
        height_cm=fields.get("height"),
        packages=packages or None,
    )


def _volume(fields: dict) -> Optional[Decimal]:
    dims = (fields.get("length"), fields.get("width"), fields.get("height"))
    if has_dimensions(*dims):
        return q3(calculate_volume(*dims))
    return None


def _apply_estimate(quote: Quote, estimate: dict) -> None:
    quote.estimated_cost = estimate["estimated_cost"]
    quote.currency = estimate["currency"]
    quote.estimated_delivery_days = estimate["estimated_delivery_days"]
    if estimate.get("lines"):
        quote.weight = estimate["total_weight"]
        quote.cargo_type = estimate["dominant_cargo_type"]


def _save_packages(quote: Quote, packages: List[Package], estimate: dict) -> None:
    quote.packages.all().delete()
    for pkg, line in zip(packages, estimate.get("lines", [])):
        QuotePackage.objects.create(
            quote=quote,
            description=pkg.description,
            quantity=pkg.quantity,
            cargo_type=line["cargo_type"],
            weight=pkg.weight_kg,
            length=pkg.length_cm,
            width=pkg.width_cm,
            height=pkg.height_cm,
            unit_price=line["unit_price"],
            total_price=line["line_total"],
        )


@transaction.atomic
def create_quote(fields: dict, packages: Optional[List[Package]] = None, user=None) -> Quote:
    fields = dict(fields)
    estimate = price_quote(fields, packages)
    quote = Quote(
        quote_number=generate_quote_number(),
        status=Quote.DRAFT,
        created_by=_actor(user),
        **fields,
    )
    if quote.valid_until is None:
        quote.valid_until = default_valid_until()
    quote.volume = _volume(fields)
    _apply_estimate(quote, estimate)
    quote.save()
    if packages:
        _save_packages(quote, packages, estimate)

    log_quote(quote, QuoteLog.CREATED, None, Quote.DRAFT, user)
    logger.info("Quote %s created for client %s: %s EUR", quote.quote_number, quote.client_id, quote.estimated_cost)
    return quote


@transaction.atomic
def update_quote(quote: Quote, fields: dict, packages: Optional[List[Package]] = None, user=None) -> Quote:
    if quote.status in LOCKED_STATUSES:
        raise WorkflowError(f"A quote in status {quote.status} cannot be modified")

    repricing = packages is not None or any(
        key in fields and fields[key] != getattr(quote, key) for key in PRICING_FIELDS
    )
    for key, value in fields.items():
        setattr(quote, key, value)
    if quote.valid_until is None:
        quote.valid_until = default_valid_until()

    if repricing:
        current = {key: getattr(quote, key) for key in PRICING_FIELDS}
        if packages is None and quote.packages.exists():
            packages = [
                Package(
                    weight_kg=p.weight, cargo_type=p.cargo_type, quantity=p.quantity,
                    length_cm=p.length, width_cm=p.width, height_cm=p.height, description=p.description,
                )
                for p in quote.packages.all()
            ]
        estimate = price_quote(current, packages)
        quote.volume = _volume(current)
        _apply_estimate(quote, estimate)
        if packages:
            _save_packages(quote, packages, estimate)

    quote.save()
    log_quote(
        quote, QuoteLog.UPDATED, quote.status, quote.status, user,
        notes="Repriced" if repricing else None,
    )
    return quote


def delete_quote(quote: Quote) -> None:
    if quote.status != Quote.DRAFT:
        raise WorkflowError("Only draft quotes can be deleted")
    quote.delete()


def _transition(quote: Quote, new_status: str, user=None, notes=None, action=QuoteLog.STATUS_CHANGED,
                metadata=None, **stamps) -> Quote:
    old_status = quote.status
    quote.status = new_status
    for field, value in stamps.items():
        setattr(quote, field, value)
    quote.save(update_fields=["status", "updated_at", *stamps.keys()])
    log_quote(quote, action, old_status, new_status, user, notes, metadata)
    logger.info("Quote %s: %s -> %s", quote.quote_number, old_status, new_status)
    return quote


@transaction.atomic
def send_quote(quote: Quote, user=None) -> Quote:
    if quote.status != Quote.DRAFT:
        raise WorkflowError("Only draft quotes can be sent")
    return _transition(quote, Quote.SENT, user)


def accept_quote(quote: Quote, user=None, notes=None) -> Quote:
    if quote.status != Quote.SENT:
        raise WorkflowError("Only sent quotes can be accepted")
    # the expiry is committed before the error is raised
    with transaction.atomic():
        if quote.valid_until < timezone.now():
            _transition(quote, Quote.EXPIRED, user, notes="Validity passed at acceptance")
            expired = True
        else:
            _transition(quote, Quote.ACCEPTED, user, notes, accepted_at=timezone.now())
            expired = False
    if expired:
        raise WorkflowError("This quote has expired")
    return quote


@transaction.atomic
def reject_quote(quote: Quote, user=None, reason=None) -> Quote:
    if quote.status != Quote.SENT:
        raise WorkflowError("Only sent quotes can be rejected")
    return _transition(
        quote, Quote.REJECTED, user, reason,
        rejected_at=timezone.now(), rejection_reason=reason,
    )


@transaction.atomic
def cancel_quote(quote: Quote, user=None, reason=None) -> Quote:
    if quote.status in TERMINAL_STATUSES:
        raise WorkflowError(f"A quote in status {quote.status} cannot be cancelled")
    return _transition(quote, Quote.CANCELLED, user, reason)


@transaction.atomic
def start_treatment(quote: Quote, user=None, notes=None) -> Quote:
    if quote.status != Quote.ACCEPTED:
        raise WorkflowError("Only accepted quotes can be taken into treatment")
    return _transition(
        quote, Quote.IN_TREATMENT, user, notes,
        action=QuoteLog.TREATMENT_STARTED,
        metadata={"agent_id": getattr(user, "pk", None), "agent_name": getattr(user, "username", None)},
    )


@transaction.atomic
def convert_to_shipment(quote: Quote, shipment_data: Optional[dict] = None, user=None):
    """
    Create a DRAFT shipment from an accepted quote and mark the quote VALIDATED.

    ``shipment_data`` supplies addresses, contacts and description; missing
    origin address fields fall back to the client's address.
    """
    from shipments.services import create_shipment

    if quote.status not in CONVERTIBLE_STATUSES:
        raise WorkflowError("Only accepted quotes can be converted to a shipment")

    data = dict(shipment_data or {})
    client = quote.client
    package_count = sum(p.quantity for p in quote.packages.all()) or 1
    estimated_delivery = None
    if quote.estimated_delivery_days:
        estimated_delivery = timezone.now() + timedelta(days=quote.estimated_delivery_days)

    shipment = create_shipment({
        "client": client,
        "quote": quote,
        "origin_address": data.get("origin_address") or client.address or "",
        "origin_city": data.get("origin_city") or client.city or "",
        "origin_postal_code": data.get("origin_postal_code") or client.postal_code,
        "origin_country": quote.origin_country,
        "origin_contact": data.get("origin_contact"),
        "origin_phone": data.get("origin_phone") or client.phone,
        "destination_address": data.get("destination_address") or "",
        "destination_city": data.get("destination_city") or "",
        "destination_postal_code": data.get("destination_postal_code"),
        "destination_country": quote.destination_country,
        "destination_contact": data.get("destination_contact"),
        "destination_phone": data.get("destination_phone"),
        "cargo_type": quote.cargo_type,
        "weight": quote.weight,
        "volume": quote.volume,
        "package_count": package_count,
        "currency": quote.currency,
        "description": data.get("description") or f"Shipment for quote {quote.quote_number}",
        "special_instructions": data.get("special_instructions"),
        "transport_mode": list(quote.transport_mode),
        "priority": quote.priority,
        "estimated_cost": quote.estimated_cost,
        "estimated_delivery_date": estimated_delivery,
    }, user=user)

    _transition(
        quote, Quote.VALIDATED, user,
        notes=f"Converted to shipment {shipment.tracking_number}",
        action=QuoteLog.TREATMENT_VALIDATED,
        metadata={"shipment_id": shipment.pk, "tracking_number": shipment.tracking_number},
    )
    return shipment


def expire_overdue_quotes(now=None) -> int:
    """Flag DRAFT/SENT quotes whose validity has passed as EXPIRED. Returns the count."""
    now = now or timezone.now()
    expired = 0
    overdue = Quote.objects.filter(status__in=EXPIRABLE_STATUSES, valid_until__lt=now)
    for quote in overdue.iterator():
        with transaction.atomic():
            _transition(quote, Quote.EXPIRED, notes="Validity passed")
        expired += 1
    return expired


@transaction.atomic
def create_guest_quote(fields: dict) -> GuestQuote:
    """Price a public calculator request and keep it under a random access token."""
    fields = dict(fields)
    estimate = price_quote(fields)
    guest = GuestQuote(access_token=uuid.uuid4().hex, **fields)
    if guest.valid_until is None:
        guest.valid_until = default_valid_until()
    guest.volume = _volume(fields)
    guest.estimated_cost = estimate["estimated_cost"]
    guest.currency = estimate["currency"]
    guest.estimated_delivery_days = estimate["estimated_delivery_days"]
    guest.save()
    logger.info("Guest quote %s created for %s: %s EUR", guest.pk, guest.contact_email, guest.estimated_cost)
    return guest


def get_guest_quote_by_token(token: str) -> Optional[GuestQuote]:
    return GuestQuote.objects.filter(access_token=token).select_related('converted_quote').first()


@transaction.atomic
def convert_guest_quote(guest: GuestQuote, client, user=None) -> Quote:
    """
    Turn a guest request into a DRAFT quote for ``client``.

    The quote is re-priced with the current configuration. A guest quote can
    only be converted once.
    """
    guest = GuestQuote.objects.select_for_update().get(pk=guest.pk)
    if guest.is_converted:
        raise WorkflowError("This guest quote has already been converted")

    now = timezone.now()
    fields = {key: getattr(guest, key) for key in PRICING_FIELDS}
    fields["client"] = client
    fields["transport_mode"] = list(guest.transport_mode)
    fields["valid_until"] = guest.valid_until if guest.valid_until > now else default_valid_until(now)
    fields["notes"] = guest.message or f"Requested by {guest.contact_name} <{guest.contact_email}>"
    quote = create_quote(fields, user=user)

    guest.converted_quote = quote
    guest.converted_at = now
    guest.converted_by = _actor(user)
    guest.save(update_fields=["converted_quote", "converted_at", "converted_by"])
    log_quote(
        quote, QuoteLog.UPDATED, Quote.DRAFT, Quote.DRAFT, user,
        notes="Converted from guest quote",
        metadata={"guest_quote_id": guest.pk, "contact_email": guest.contact_email},
    )
    return quote
