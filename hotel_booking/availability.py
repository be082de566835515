"""Conflict checks between a candidate stay and a hotel's existing bookings."""

from .intervals import overlaps
from .models import Booking, Hotel


def find_conflicts(hotel_id, candidate, exclude_booking_id=None):
    """Return the bookings of ``hotel_id`` whose stay overlaps ``candidate``.

    The database only narrows the read to bookings starting before the
    candidate ends; the overlap itself is decided by ``overlaps`` so that
    back-to-back stays are never reported.
    """
    bookings = Booking.objects.for_hotel(hotel_id, exclude_id=exclude_booking_id).filter(
        check_in__lt=candidate.end,
    )
    return [booking for booking in bookings if overlaps(booking.interval, candidate)]


def has_conflict(hotel_id, candidate, exclude_booking_id=None):
    return bool(find_conflicts(hotel_id, candidate, exclude_booking_id=exclude_booking_id))


def available_hotels(candidate, queryset=None):
    """Hotels with no booking overlapping ``candidate``."""
    if queryset is None:
        queryset = Hotel.objects.all()
    bookings = Booking.objects.filter(
        hotel__in=queryset.values("pk"),
        check_in__lt=candidate.end,
    ).only("hotel_id", "check_in", "nights")
    busy = {booking.hotel_id for booking in bookings if overlaps(booking.interval, candidate)}
    return queryset.exclude(pk__in=busy)
