"""Admission and lifecycle of hotel bookings."""

import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction

from .availability import find_conflicts
from .exceptions import ConflictError, ForbiddenError, NotFoundError, StorageError, ValidationError
from .intervals import make_interval, parse_check_in, parse_positive_int
from .locking import serialized_for_hotel
from .models import Booking

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(action):
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Storage failure while %s", action)
        raise StorageError() from exc


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _owned_booking(booking_id, acting_user_id, *, for_update=False, with_hotel=False):
    qs = Booking.objects.all()
    if for_update:
        qs = qs.select_for_update()
    elif with_hotel:
        qs = qs.select_related("hotel")
    try:
        booking = qs.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFoundError()
    if booking.user_id != acting_user_id:
        raise ForbiddenError()
    return booking


def _reject(hotel_id, candidate, conflicts, booking_id=None):
    logger.info(
        "Rejected %s at hotel %s for %s: overlaps bookings %s",
        f"update of booking {booking_id}" if booking_id else "admission",
        hotel_id,
        candidate,
        [conflict.pk for conflict in conflicts],
    )
    raise ConflictError()


def admit_booking(hotel_id, user_id, check_in, nights, guests=1):
    """Create a booking if the hotel is free for the whole stay.

    The conflict check and the insert run under the hotel's serialization
    lock, so concurrent admissions for the same hotel cannot both succeed on
    overlapping dates. Raises ``ValidationError`` for bad input,
    ``NotFoundError`` for an unknown hotel, ``ConflictError`` when the dates are
    taken and ``StorageError`` when the database fails. Nothing is written on
    any failure.
    """
    required = {"hotel_id": hotel_id, "user_id": user_id, "check_in": check_in, "nights": nights}
    missing = [name for name, value in required.items() if _is_blank(value)]
    if missing:
        raise ValidationError(f"missing required fields: {', '.join(missing)}")

    hotel_id = parse_positive_int(hotel_id, "hotel_id")
    candidate = make_interval(parse_check_in(check_in), parse_positive_int(nights, "nights"))
    guests = 1 if _is_blank(guests) else parse_positive_int(guests, "guests")

    with _storage_errors("admitting a booking"):
        with serialized_for_hotel(hotel_id) as hotel:
            conflicts = find_conflicts(hotel.pk, candidate)
            if conflicts:
                _reject(hotel.pk, candidate, conflicts)
            booking = Booking.objects.create(
                hotel=hotel,
                user_id=user_id,
                check_in=candidate.start,
                nights=candidate.nights,
                guests=guests,
            )

    logger.info("Admitted booking %s at hotel %s for %s", booking.pk, hotel_id, candidate)
    return booking


def bookings_for_user(user_id):
    with _storage_errors("listing bookings"):
        return list(Booking.objects.for_user(user_id).select_related("hotel"))


def get_booking(booking_id, acting_user_id):
    with _storage_errors("loading a booking"):
        return _owned_booking(booking_id, acting_user_id, with_hotel=True)


def update_booking(booking_id, acting_user_id, check_in=None, nights=None, guests=None):
    """Change the dates, length or party size of a booking.

    Date changes are re-checked against the other bookings of the same hotel
    (the booking's own stay is left out of the check). On conflict the stored
    booking is left untouched.
    """
    if _is_blank(check_in) and _is_blank(nights) and _is_blank(guests):
        raise ValidationError("no changes provided")

    with _storage_errors("updating a booking"):
        booking = _owned_booking(booking_id, acting_user_id)

        new_check_in = None if _is_blank(check_in) else parse_check_in(check_in)
        new_nights = None if _is_blank(nights) else parse_positive_int(nights, "nights")
        new_guests = None if _is_blank(guests) else parse_positive_int(guests, "guests")

        with serialized_for_hotel(booking.hotel_id):
            # re-read under the lock, the booking may have changed or gone meanwhile
            booking = _owned_booking(booking.pk, acting_user_id, for_update=True)
            changed = ["updated_at"]

            if new_check_in is not None or new_nights is not None:
                candidate = make_interval(
                    new_check_in if new_check_in is not None else booking.check_in,
                    new_nights if new_nights is not None else booking.nights,
                )
                conflicts = find_conflicts(booking.hotel_id, candidate, exclude_booking_id=booking.pk)
                if conflicts:
                    _reject(booking.hotel_id, candidate, conflicts, booking_id=booking.pk)
                booking.check_in = candidate.start
                booking.nights = candidate.nights
                changed += ["check_in", "nights"]

            if new_guests is not None:
                booking.guests = new_guests
                changed.append("guests")

            booking.save(update_fields=changed)

    logger.info("Updated booking %s at hotel %s to %s", booking.pk, booking.hotel_id, booking.interval)
    return booking


def cancel_booking(booking_id, acting_user_id):
    """Delete a booking owned by ``acting_user_id``, freeing its dates."""
    with _storage_errors("cancelling a booking"):
        with transaction.atomic():
            booking = _owned_booking(booking_id, acting_user_id, for_update=True)
            hotel_id = booking.hotel_id
            booking.delete()

    logger.info("Cancelled booking %s at hotel %s", booking_id, hotel_id)
