"""
Per-hotel serialization of booking writes.

Two requests for the same hotel must not both pass the conflict check before
either of them commits. ``serialized_for_hotel`` holds a mutex dedicated to the
hotel for the whole check-and-write sequence and, inside it, locks the hotel
row with ``SELECT ... FOR UPDATE`` so that other processes sharing the database
queue up behind the same row. Requests for different hotels take different
mutexes and different rows.
"""

import threading
import weakref
from contextlib import contextmanager

from django.conf import settings
from django.db import transaction

from .exceptions import NotFoundError, StorageError
from .models import Hotel

_registry_guard = threading.Lock()
# entries disappear once no request holds or waits on the lock
_hotel_locks = weakref.WeakValueDictionary()


def lock_for_hotel(hotel_id):
    with _registry_guard:
        lock = _hotel_locks.get(hotel_id)
        if lock is None:
            lock = _hotel_locks[hotel_id] = threading.Lock()
        return lock


@contextmanager
def serialized_for_hotel(hotel_id):
    """Yield the locked ``Hotel`` inside an atomic block.

    Raises ``NotFoundError`` for an unknown hotel and ``StorageError`` when the
    hotel stays busy longer than ``BOOKING_LOCK_TIMEOUT`` seconds.
    """
    lock = lock_for_hotel(int(hotel_id))
    if not lock.acquire(timeout=settings.BOOKING_LOCK_TIMEOUT):
        raise StorageError("timed out waiting for hotel lock")
    try:
        with transaction.atomic():
            try:
                hotel = Hotel.objects.select_for_update().get(pk=hotel_id)
            except Hotel.DoesNotExist:
                raise NotFoundError("hotel not found")
            yield hotel
    finally:
        lock.release()
