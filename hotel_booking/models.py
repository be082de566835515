from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from .intervals import make_interval


class Hotel(models.Model):
    name = models.CharField(max_length=150)
    city = models.CharField(max_length=100)
    price_cents = models.PositiveIntegerField(validators=[MinValueValidator(0)])
    amenities = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["city", "price_cents"], name="hotel_city_price_idx")]

    def __str__(self):
        return f"{self.name} ({self.city})"


class BookingQuerySet(models.QuerySet):
    def for_hotel(self, hotel_id, exclude_id=None):
        qs = self.filter(hotel_id=hotel_id)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs

    def for_user(self, user_id):
        return self.filter(user_id=user_id)


class Booking(models.Model):
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name="bookings")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings")
    check_in = models.DateField()
    nights = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    guests = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["hotel", "check_in"], name="booking_hotel_checkin_idx")]

    def __str__(self):
        return f"Booking {self.pk} at hotel {self.hotel_id} {self.interval}"

    @property
    def interval(self):
        return make_interval(self.check_in, self.nights)

    @property
    def check_out(self):
        return self.interval.end
