from django.contrib.auth import get_user_model
from django.db import DatabaseError, connections
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status
from datetime import date, datetime, timedelta
from unittest import mock
import gc
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial

from .availability import available_hotels, find_conflicts, has_conflict
from .exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRangeError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .intervals import Interval, make_interval, overlaps, parse_check_in, parse_positive_int
from .locking import lock_for_hotel
from .models import Booking, Hotel
from . import locking, services

User = get_user_model()


class IntervalTestCase(SimpleTestCase):
    """Half-open stay intervals"""

    def test_interval_ends_on_check_out_day(self):
        interval = make_interval(date(2024, 6, 1), 3)
        self.assertEqual(interval.start, date(2024, 6, 1))
        self.assertEqual(interval.end, date(2024, 6, 4))
        self.assertEqual(interval.nights, 3)

    def test_invalid_ranges_are_rejected(self):
        for check_in, nights in [
            (date(2024, 6, 1), 0),
            (date(2024, 6, 1), -2),
            (date(2024, 6, 1), 1.5),
            (date(2024, 6, 1), True),
            ("2024-06-01", 2),
            (datetime(2024, 6, 1, 12, 0), 2),
            (None, 2),
            (date.max, 1),
        ]:
            with self.subTest(check_in=check_in, nights=nights):
                with self.assertRaises(InvalidRangeError):
                    make_interval(check_in, nights)

    def test_invalid_range_is_a_validation_error(self):
        with self.assertRaises(ValidationError):
            make_interval(date(2024, 6, 1), 0)

    def test_overlap_is_symmetric(self):
        base = date(2024, 6, 1)
        intervals = [make_interval(base + timedelta(days=offset), nights)
                     for offset in range(0, 6) for nights in (1, 2, 4)]
        for a in intervals:
            for b in intervals:
                self.assertEqual(overlaps(a, b), overlaps(b, a), f"{a} vs {b}")

    def test_interval_overlaps_itself(self):
        for nights in (1, 2, 7, 30):
            with self.subTest(nights=nights):
                interval = make_interval(date(2024, 6, 1), nights)
                self.assertTrue(overlaps(interval, interval))
                self.assertTrue(interval.overlaps(interval))

    def test_back_to_back_stays_do_not_overlap(self):
        day = date(2024, 6, 1)
        for n in range(1, 5):
            for m in range(1, 5):
                with self.subTest(n=n, m=m):
                    first = make_interval(day, n)
                    second = make_interval(day + timedelta(days=n), m)
                    self.assertFalse(overlaps(first, second))
                    self.assertFalse(overlaps(second, first))

    def test_partial_and_enclosing_overlaps(self):
        existing = make_interval(date(2024, 6, 5), 4)  # Jun 5-8, out Jun 9
        scenarios = [
            (date(2024, 6, 3), 3, 'starts before and overlaps'),
            (date(2024, 6, 7), 5, 'starts during existing stay'),
            (date(2024, 6, 6), 1, 'completely within existing stay'),
            (date(2024, 6, 1), 20, 'completely encompasses existing stay'),
        ]
        for check_in, nights, description in scenarios:
            with self.subTest(scenario=description):
                self.assertTrue(overlaps(existing, make_interval(check_in, nights)))

    def test_start_must_precede_end(self):
        with self.assertRaises(InvalidRangeError):
            Interval(date(2024, 6, 2), date(2024, 6, 2))

    def test_parse_check_in(self):
        self.assertEqual(parse_check_in("2024-06-01"), date(2024, 6, 1))
        self.assertEqual(parse_check_in(date(2024, 6, 1)), date(2024, 6, 1))
        self.assertEqual(parse_check_in(datetime(2024, 6, 1, 15, 30)), date(2024, 6, 1))
        for value in ["2024-02-30", "06/01/2024", "tomorrow", "", None, 20240601]:
            with self.subTest(value=value):
                with self.assertRaises(InvalidRangeError):
                    parse_check_in(value)

    def test_parse_positive_int(self):
        self.assertEqual(parse_positive_int(3, "nights"), 3)
        self.assertEqual(parse_positive_int("3", "nights"), 3)
        self.assertEqual(parse_positive_int(" 3.0 ", "nights"), 3)
        self.assertEqual(parse_positive_int(2.0, "nights"), 2)
        for value in [0, -1, "0", "2.5", 2.5, "two", "", None, True, "nan", "inf"]:
            with self.subTest(value=value):
                with self.assertRaises(ValidationError) as ctx:
                    parse_positive_int(value, "nights")
                self.assertIn("nights", str(ctx.exception))


class BookingFixturesMixin:

    def make_hotel(self, name="Harbour View", city="Lisbon", price_cents=10000):
        return Hotel.objects.create(name=name, city=city, price_cents=price_cents)

    def make_user(self, username):
        return User.objects.create_user(username=username, password="not-used-here")

    def make_booking(self, hotel, user, check_in, nights, guests=1):
        return Booking.objects.create(hotel=hotel, user=user, check_in=check_in,
                                      nights=nights, guests=guests)


class ConflictCheckTestCase(BookingFixturesMixin, TestCase):
    """Conflict checks against stored bookings"""

    def setUp(self):
        self.hotel = self.make_hotel()
        self.other_hotel = self.make_hotel(name="Alfama House")
        self.user = self.make_user("u1")
        self.existing = self.make_booking(self.hotel, self.user, date(2024, 6, 1), 3)

    def test_overlapping_candidate_conflicts(self):
        candidate = make_interval(date(2024, 6, 3), 2)
        self.assertTrue(has_conflict(self.hotel.pk, candidate))
        self.assertEqual(find_conflicts(self.hotel.pk, candidate), [self.existing])

    def test_back_to_back_candidates_do_not_conflict(self):
        self.assertFalse(has_conflict(self.hotel.pk, make_interval(date(2024, 6, 4), 2)))
        self.assertFalse(has_conflict(self.hotel.pk, make_interval(date(2024, 5, 29), 3)))

    def test_other_hotels_are_ignored(self):
        self.assertFalse(has_conflict(self.other_hotel.pk, make_interval(date(2024, 6, 1), 3)))

    def test_excluded_booking_is_ignored(self):
        candidate = make_interval(date(2024, 6, 2), 3)
        self.assertTrue(has_conflict(self.hotel.pk, candidate))
        self.assertFalse(has_conflict(self.hotel.pk, candidate, exclude_booking_id=self.existing.pk))

    def test_long_stay_starting_earlier_is_found(self):
        self.make_booking(self.hotel, self.user, date(2024, 5, 1), 45)  # through Jun 14
        conflicts = find_conflicts(self.hotel.pk, make_interval(date(2024, 6, 10), 1))
        self.assertEqual(len(conflicts), 1)
        self.assertEqual(conflicts[0].nights, 45)

    def test_available_hotels_excludes_busy_hotels(self):
        busy = make_interval(date(2024, 6, 2), 1)
        free = make_interval(date(2024, 6, 4), 1)
        self.assertEqual(list(available_hotels(busy)), [self.other_hotel])
        self.assertCountEqual(list(available_hotels(free)), [self.hotel, self.other_hotel])
        self.assertEqual(list(available_hotels(busy, Hotel.objects.filter(pk=self.hotel.pk))), [])


class AdmissionTestCase(BookingFixturesMixin, TestCase):
    """Admitting new bookings"""

    def setUp(self):
        self.hotel = self.make_hotel()
        self.user = self.make_user("u1")
        self.other_user = self.make_user("u2")
        self.make_booking(self.hotel, self.user, date(2024, 6, 1), 3)

    def test_check_out_day_can_be_booked(self):
        booking = services.admit_booking(self.hotel.pk, self.other_user.pk, "2024-06-04", 2)
        self.assertEqual(booking.check_in, date(2024, 6, 4))
        self.assertEqual(booking.nights, 2)
        self.assertEqual(booking.guests, 1)
        self.assertEqual(booking.user_id, self.other_user.pk)
        self.assertEqual(booking.check_out, date(2024, 6, 6))

    def test_overlapping_request_is_rejected_without_side_effect(self):
        with self.assertRaises(ConflictError) as ctx:
            services.admit_booking(self.hotel.pk, self.other_user.pk, "2024-06-03", 2)
        self.assertEqual(str(ctx.exception), "hotel unavailable for requested dates")
        self.assertEqual(Booking.objects.count(), 1)

    def test_numeric_strings_are_accepted(self):
        booking = services.admit_booking(str(self.hotel.pk), self.user.pk, "2024-07-01", "3.0", "2")
        self.assertEqual(booking.nights, 3)
        self.assertEqual(booking.guests, 2)

    def test_missing_guests_defaults_to_one(self):
        booking = services.admit_booking(self.hotel.pk, self.user.pk, date(2024, 7, 1), 1, None)
        self.assertEqual(booking.guests, 1)

    def test_invalid_input_is_rejected(self):
        cases = [
            dict(hotel_id=None, check_in="2024-07-01", nights=2),
            dict(hotel_id=self.hotel.pk, check_in=None, nights=2),
            dict(hotel_id=self.hotel.pk, check_in="", nights=2),
            dict(hotel_id=self.hotel.pk, check_in="2024-07-01", nights=None),
            dict(hotel_id=self.hotel.pk, check_in="2024-07-01", nights=0),
            dict(hotel_id=self.hotel.pk, check_in="2024-07-01", nights="2.5"),
            dict(hotel_id=self.hotel.pk, check_in="2024-02-30", nights=2),
            dict(hotel_id=self.hotel.pk, check_in="not a date", nights=2),
            dict(hotel_id=self.hotel.pk, check_in="2024-07-01", nights=2, guests=0),
            dict(hotel_id="abc", check_in="2024-07-01", nights=2),
        ]
        for case in cases:
            with self.subTest(case=case):
                with self.assertRaises(ValidationError):
                    services.admit_booking(user_id=self.user.pk, **case)
        self.assertEqual(Booking.objects.count(), 1)

    def test_missing_acting_user_is_rejected(self):
        with self.assertRaises(ValidationError):
            services.admit_booking(self.hotel.pk, None, "2024-07-01", 2)

    def test_unknown_hotel(self):
        with self.assertRaises(NotFoundError):
            services.admit_booking(self.hotel.pk + 1000, self.user.pk, "2024-07-01", 2)

    def test_cancelled_booking_frees_dates(self):
        booking = services.admit_booking(self.hotel.pk, self.user.pk, "2024-08-01", 5)
        with self.assertRaises(ConflictError):
            services.admit_booking(self.hotel.pk, self.other_user.pk, "2024-08-03", 1)

        services.cancel_booking(booking.pk, self.user.pk)

        again = services.admit_booking(self.hotel.pk, self.other_user.pk, "2024-08-03", 1)
        self.assertEqual(again.user_id, self.other_user.pk)

    def test_storage_failure_is_reported(self):
        with mock.patch("hotel_booking.services.find_conflicts", side_effect=DatabaseError("gone")):
            with self.assertRaises(StorageError) as ctx:
                services.admit_booking(self.hotel.pk, self.user.pk, "2024-07-01", 2)
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertEqual(Booking.objects.count(), 1)

    @override_settings(BOOKING_LOCK_TIMEOUT=0.01)
    def test_busy_hotel_times_out(self):
        lock = lock_for_hotel(self.hotel.pk)
        lock.acquire()
        try:
            with self.assertRaises(StorageError):
                services.admit_booking(self.hotel.pk, self.user.pk, "2024-07-01", 2)
        finally:
            lock.release()
        self.assertEqual(Booking.objects.count(), 1)

    def test_hotels_are_serialized_independently(self):
        other_hotel = self.make_hotel(name="Alfama House")
        self.assertIs(lock_for_hotel(self.hotel.pk), lock_for_hotel(self.hotel.pk))
        self.assertIsNot(lock_for_hotel(self.hotel.pk), lock_for_hotel(other_hotel.pk))

        lock = lock_for_hotel(self.hotel.pk)
        lock.acquire()
        try:
            booking = services.admit_booking(other_hotel.pk, self.user.pk, "2024-06-01", 3)
        finally:
            lock.release()
        self.assertEqual(booking.hotel_id, other_hotel.pk)

    def test_unknown_hotels_do_not_grow_lock_table(self):
        gc.collect()
        before = len(locking._hotel_locks)
        for i in range(200):
            with self.assertRaises(NotFoundError):
                services.admit_booking(900000 + i, self.user.pk, "2024-07-01", 2)
        gc.collect()
        self.assertLessEqual(len(locking._hotel_locks), before)

    def test_lock_is_shared_while_held(self):
        lock = lock_for_hotel(self.hotel.pk)
        gc.collect()
        self.assertIn(self.hotel.pk, locking._hotel_locks)
        self.assertIs(lock_for_hotel(self.hotel.pk), lock)


class ConcurrentCallsMixin:

    def _run_concurrently(self, calls):
        """Start every call at the same moment and collect how each one ended."""
        barrier = threading.Barrier(len(calls))

        def run(label, call):
            try:
                barrier.wait()
                booking = call()
                return {'label': label, 'success': True, 'booking_id': booking.pk}
            except ConflictError as e:
                return {'label': label, 'success': False, 'conflict': True, 'error': str(e)}
            except Exception as e:
                return {'label': label, 'success': False, 'conflict': False, 'error': repr(e)}
            finally:
                connections.close_all()

        results = []
        with ThreadPoolExecutor(max_workers=len(calls)) as executor:
            futures = [executor.submit(run, label, call) for label, call in calls]
            for future in as_completed(futures):
                results.append(future.result())
        return results

    def assertNoOverlaps(self, hotel):
        bookings = list(Booking.objects.filter(hotel=hotel))
        for i, a in enumerate(bookings):
            for b in bookings[i + 1:]:
                self.assertFalse(overlaps(a.interval, b.interval), f"{a} overlaps {b}")
        return bookings


class RaceConditionTestCase(ConcurrentCallsMixin, BookingFixturesMixin, TransactionTestCase):
    """Concurrent admissions for the same hotel and dates"""

    def setUp(self):
        self.hotel = self.make_hotel(name="Race Hotel")
        self.users = [self.make_user(f"racer{i}") for i in range(5)]

    def _admit_concurrently(self, requests):
        return self._run_concurrently([
            (user.username, partial(services.admit_booking, hotel.pk, user.pk, check_in, nights))
            for user, hotel, check_in, nights in requests
        ])

    def test_two_simultaneous_requests_one_wins(self):
        results = self._admit_concurrently([
            (self.users[0], self.hotel, "2024-07-01", 2),
            (self.users[1], self.hotel, "2024-07-01", 2),
        ])

        successful = [r for r in results if r['success']]
        conflicts = [r for r in results if not r['success'] and r['conflict']]
        self.assertEqual(len(successful), 1, results)
        self.assertEqual(len(conflicts), 1, results)
        self.assertEqual(Booking.objects.filter(hotel=self.hotel).count(), 1)

    def test_many_overlapping_requests_one_wins(self):
        results = self._admit_concurrently([
            (user, self.hotel, f"2024-07-0{i + 1}", 3) for i, user in enumerate(self.users)
        ])

        bookings = self.assertNoOverlaps(self.hotel)
        self.assertEqual(len(bookings), len([r for r in results if r['success']]))
        self.assertTrue(all(r['success'] or r['conflict'] for r in results), results)

    def test_identical_requests_exactly_one_succeeds(self):
        results = self._admit_concurrently([
            (user, self.hotel, "2024-09-10", 4) for user in self.users
        ])

        successful = [r for r in results if r['success']]
        conflicts = [r for r in results if not r['success'] and r['conflict']]
        self.assertEqual(len(successful), 1, results)
        self.assertEqual(len(conflicts), len(self.users) - 1, results)
        self.assertEqual(Booking.objects.filter(hotel=self.hotel).count(), 1)


class UpdateRaceTestCase(ConcurrentCallsMixin, BookingFixturesMixin, TransactionTestCase):
    """A date change racing a new admission for the same hotel and dates"""

    def setUp(self):
        self.hotel = self.make_hotel(name="Race Hotel")
        self.mover = self.make_user("mover")
        self.newcomer = self.make_user("newcomer")
        self.booking = self.make_booking(self.hotel, self.mover, date(2024, 6, 1), 2)

    def test_move_and_admit_onto_same_dates_one_wins(self):
        for attempt in range(5):
            with self.subTest(attempt=attempt):
                Booking.objects.exclude(pk=self.booking.pk).delete()
                Booking.objects.filter(pk=self.booking.pk).update(check_in=date(2024, 6, 1), nights=2)

                results = self._run_concurrently([
                    ('update', partial(services.update_booking, self.booking.pk, self.mover.pk,
                                       check_in="2024-07-01")),
                    ('admit', partial(services.admit_booking, self.hotel.pk, self.newcomer.pk,
                                      "2024-07-01", 2)),
                ])

                successful = [r for r in results if r['success']]
                conflicts = [r for r in results if not r['success'] and r['conflict']]
                self.assertEqual(len(successful), 1, results)
                self.assertEqual(len(conflicts), 1, results)

                bookings = self.assertNoOverlaps(self.hotel)
                self.booking.refresh_from_db()
                if successful[0]['label'] == 'update':
                    self.assertEqual(len(bookings), 1)
                    self.assertEqual(self.booking.check_in, date(2024, 7, 1))
                else:
                    self.assertEqual(len(bookings), 2)
                    self.assertEqual(self.booking.check_in, date(2024, 6, 1))


class LifecycleTestCase(BookingFixturesMixin, TestCase):
    """Updating, listing and cancelling existing bookings"""

    def setUp(self):
        self.hotel = self.make_hotel()
        self.u1 = self.make_user("u1")
        self.u2 = self.make_user("u2")
        self.b1 = self.make_booking(self.hotel, self.u1, date(2024, 6, 1), 3)
        self.b2 = self.make_booking(self.hotel, self.u2, date(2024, 6, 10), 2)

    def test_update_onto_other_booking_conflicts(self):
        with self.assertRaises(ConflictError):
            services.update_booking(self.b1.pk, self.u1.pk, check_in="2024-06-09")

        self.b1.refresh_from_db()
        self.assertEqual(self.b1.check_in, date(2024, 6, 1))
        self.assertEqual(self.b1.nights, 3)

    def test_extending_nights_into_other_booking_conflicts(self):
        with self.assertRaises(ConflictError):
            services.update_booking(self.b1.pk, self.u1.pk, nights=10)
        self.b1.refresh_from_db()
        self.assertEqual(self.b1.nights, 3)

    def test_shift_within_own_dates_is_allowed(self):
        booking = services.update_booking(self.b1.pk, self.u1.pk, check_in="2024-06-02")
        self.assertEqual(booking.check_in, date(2024, 6, 2))
        self.assertEqual(booking.nights, 3)

    def test_extend_up_to_next_check_in(self):
        booking = services.update_booking(self.b1.pk, self.u1.pk, nights=9)
        self.assertEqual(booking.check_out, self.b2.check_in)

    def test_guest_only_update_skips_conflict_check(self):
        with mock.patch("hotel_booking.services.find_conflicts") as oracle:
            booking = services.update_booking(self.b1.pk, self.u1.pk, guests="3")
        oracle.assert_not_called()
        self.assertEqual(booking.guests, 3)
        self.b1.refresh_from_db()
        self.assertEqual(self.b1.guests, 3)

    def test_update_by_other_user_is_forbidden(self):
        with self.assertRaises(ForbiddenError):
            services.update_booking(self.b1.pk, self.u2.pk, guests=2)
        self.b1.refresh_from_db()
        self.assertEqual(self.b1.guests, 1)

    def test_update_missing_booking(self):
        with self.assertRaises(NotFoundError):
            services.update_booking(self.b2.pk + 1000, self.u1.pk, guests=2)
        with self.assertRaises(NotFoundError):
            services.update_booking("abc", self.u1.pk, guests=2)

    def test_update_with_invalid_values(self):
        for patch in [dict(), dict(nights=0), dict(check_in="2024-13-01"), dict(guests=-1)]:
            with self.subTest(patch=patch):
                with self.assertRaises(ValidationError):
                    services.update_booking(self.b1.pk, self.u1.pk, **patch)
        self.b1.refresh_from_db()
        self.assertEqual((self.b1.check_in, self.b1.nights, self.b1.guests), (date(2024, 6, 1), 3, 1))

    def test_cancel_by_other_user_is_forbidden(self):
        with self.assertRaises(ForbiddenError):
            services.cancel_booking(self.b1.pk, self.u2.pk)
        self.assertTrue(Booking.objects.filter(pk=self.b1.pk).exists())

    def test_cancel_twice_reports_not_found(self):
        services.cancel_booking(self.b1.pk, self.u1.pk)
        self.assertFalse(Booking.objects.filter(pk=self.b1.pk).exists())
        with self.assertRaises(NotFoundError):
            services.cancel_booking(self.b1.pk, self.u1.pk)

    def test_bookings_for_user(self):
        later = self.make_booking(self.make_hotel(name="Canal Residence", city="Amsterdam"),
                                  self.u1, date(2024, 9, 1), 2)
        bookings = services.bookings_for_user(self.u1.pk)
        self.assertEqual([b.pk for b in bookings], [later.pk, self.b1.pk])
        self.assertEqual(bookings[0].hotel.name, "Canal Residence")
        self.assertEqual(services.bookings_for_user(self.make_user("u3").pk), [])

    def test_get_booking_checks_owner(self):
        self.assertEqual(services.get_booking(self.b1.pk, self.u1.pk), self.b1)
        with self.assertRaises(ForbiddenError):
            services.get_booking(self.b1.pk, self.u2.pk)
        with self.assertRaises(NotFoundError):
            services.get_booking(self.b2.pk + 1000, self.u1.pk)


class BookingAPITestCase(BookingFixturesMixin, APITestCase):
    """Booking endpoints"""

    def setUp(self):
        self.hotel = self.make_hotel(price_cents=15000)
        self.guest = self.make_user("guest")
        self.other = self.make_user("other")
        self.client.force_authenticate(self.guest)
        self.list_url = reverse('booking-list')

    def detail_url(self, booking):
        return reverse('booking-detail', args=[booking.pk])

    def test_create_booking(self):
        response = self.client.post(self.list_url, {
            'hotel_id': self.hotel.pk,
            'check_in': '2024-06-01',
            'nights': '3',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['check_out'], '2024-06-04')
        self.assertEqual(response.data['guests'], 1)
        self.assertEqual(response.data['total_dollar'], 450.0)
        self.assertEqual(response.data['hotel']['id'], self.hotel.pk)
        self.assertEqual(Booking.objects.get().user, self.guest)

    def test_conflict_is_distinguished_from_bad_input(self):
        self.make_booking(self.hotel, self.other, date(2024, 6, 1), 3)

        conflict = self.client.post(self.list_url, {
            'hotel_id': self.hotel.pk, 'check_in': '2024-06-03', 'nights': 2,
        }, format='json')
        self.assertEqual(conflict.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(conflict.data, {'error': 'hotel unavailable for requested dates'})

        invalid = self.client.post(self.list_url, {
            'hotel_id': self.hotel.pk, 'check_in': '2024-06-30', 'nights': 0,
        }, format='json')
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('nights', invalid.data)

        missing = self.client.post(self.list_url, {'hotel_id': self.hotel.pk}, format='json')
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('check_in', missing.data)
        self.assertIn('nights', missing.data)

        self.assertEqual(Booking.objects.count(), 1)

    def test_unknown_hotel(self):
        response = self.client.post(self.list_url, {
            'hotel_id': self.hotel.pk + 1000, 'check_in': '2024-06-01', 'nights': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_storage_failure(self):
        with mock.patch("hotel_booking.services.find_conflicts", side_effect=DatabaseError("gone")):
            response = self.client.post(self.list_url, {
                'hotel_id': self.hotel.pk, 'check_in': '2024-06-01', 'nights': 1,
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn('error', response.data)
        self.assertEqual(Booking.objects.count(), 0)

    def test_list_only_own_bookings(self):
        mine = self.make_booking(self.hotel, self.guest, date(2024, 6, 1), 2)
        self.make_booking(self.hotel, self.other, date(2024, 6, 5), 2)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([b['id'] for b in response.data], [mine.pk])
        self.assertEqual(response.data[0]['hotel']['name'], self.hotel.name)

    def test_retrieve(self):
        mine = self.make_booking(self.hotel, self.guest, date(2024, 6, 1), 2)
        theirs = self.make_booking(self.hotel, self.other, date(2024, 6, 5), 2)

        self.assertEqual(self.client.get(self.detail_url(mine)).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.detail_url(theirs)).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/bookings/abc/').status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_booking(self):
        mine = self.make_booking(self.hotel, self.guest, date(2024, 6, 1), 2)
        self.make_booking(self.hotel, self.other, date(2024, 6, 10), 2)

        moved = self.client.patch(self.detail_url(mine), {'check_in': '2024-06-04'}, format='json')
        self.assertEqual(moved.status_code, status.HTTP_200_OK, moved.data)
        self.assertEqual(moved.data['check_out'], '2024-06-06')

        clash = self.client.patch(self.detail_url(mine), {'nights': 8}, format='json')
        self.assertEqual(clash.status_code, status.HTTP_409_CONFLICT)

        empty = self.client.patch(self.detail_url(mine), {}, format='json')
        self.assertEqual(empty.status_code, status.HTTP_400_BAD_REQUEST)

        mine.refresh_from_db()
        self.assertEqual((mine.check_in, mine.nights), (date(2024, 6, 4), 2))

    def test_put_is_not_allowed(self):
        mine = self.make_booking(self.hotel, self.guest, date(2024, 6, 1), 2)
        response = self.client.put(self.detail_url(mine), {'guests': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_patch_and_delete_foreign_booking(self):
        theirs = self.make_booking(self.hotel, self.other, date(2024, 6, 1), 2)

        patch = self.client.patch(self.detail_url(theirs), {'guests': 4}, format='json')
        self.assertEqual(patch.status_code, status.HTTP_403_FORBIDDEN)

        delete = self.client.delete(self.detail_url(theirs))
        self.assertEqual(delete.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Booking.objects.filter(pk=theirs.pk).exists())

    def test_delete_booking(self):
        mine = self.make_booking(self.hotel, self.guest, date(2024, 6, 1), 2)

        first = self.client.delete(self.detail_url(mine))
        self.assertEqual(first.status_code, status.HTTP_204_NO_CONTENT)

        second = self.client.delete(self.detail_url(mine))
        self.assertEqual(second.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        response = self.client.get(self.list_url)
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))


class HotelAPITestCase(BookingFixturesMixin, APITestCase):
    """Hotel search with availability filter"""

    def setUp(self):
        self.lisbon = self.make_hotel(name="Alfama House", city="Lisbon", price_cents=13000)
        self.amsterdam = self.make_hotel(name="Canal Residence", city="Amsterdam", price_cents=18000)
        self.make_booking(self.lisbon, self.make_user("u1"), date(2024, 6, 1), 3)
        self.list_url = reverse('hotel-list')

    def names(self, response):
        return sorted(hotel['name'] for hotel in response.data)

    def test_list_is_public(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.names(response), ["Alfama House", "Canal Residence"])
        self.assertEqual(response.data[0]['price_dollar'], 130.0)

    def test_filters(self):
        self.assertEqual(self.names(self.client.get(self.list_url, {'city': 'lis'})), ["Alfama House"])
        self.assertEqual(self.names(self.client.get(self.list_url, {'max_price': 150})), ["Alfama House"])

    def test_availability_filter(self):
        busy = self.client.get(self.list_url, {'check_in': '2024-06-02', 'nights': 1})
        self.assertEqual(self.names(busy), ["Canal Residence"])

        back_to_back = self.client.get(self.list_url, {'check_in': '2024-06-04', 'nights': 2})
        self.assertEqual(self.names(back_to_back), ["Alfama House", "Canal Residence"])

    def test_availability_filter_needs_both_params(self):
        response = self.client.get(self.list_url, {'check_in': '2024-06-02'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get(self.list_url, {'check_in': '2024-06-02', 'nights': 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class HealthTestCase(SimpleTestCase):

    def test_health_and_welcome(self):
        self.assertEqual(self.client.get('/health').json(), {'status': 'ok'})
        self.assertIn('message', self.client.get('/').json())
