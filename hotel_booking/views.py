from django.http import JsonResponse
from rest_framework import permissions, status, viewsets
from rest_framework.response import Response
from rest_framework.views import exception_handler

from . import services
from .availability import available_hotels
from .exceptions import BookingError
from .intervals import make_interval
from .models import Hotel
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    HotelSerializer,
)


def welcome(request):
    return JsonResponse({"message": "Welcome to the Hotel Booking API"})


def health_check(request):
    return JsonResponse({"status": "ok"})


class HotelViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Hotel.objects.all()
    serializer_class = HotelSerializer
    permission_classes = [permissions.AllowAny]

    def list(self, request):
        """Search hotels, optionally only those free for a stay"""
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        hotels = self.get_queryset()
        if 'city' in params:
            hotels = hotels.filter(city__icontains=params['city'])
        if 'max_price' in params:
            hotels = hotels.filter(price_cents__lte=params['max_price'] * 100)
        if 'check_in' in params:
            hotels = available_hotels(make_interval(params['check_in'], params['nights']), hotels)

        serializer = self.get_serializer(hotels, many=True)
        return Response(serializer.data)


class BookingViewSet(viewsets.ViewSet):
    """Bookings of the authenticated user"""
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r'\d+'

    def list(self, request):
        bookings = services.bookings_for_user(request.user.pk)
        return Response(BookingSerializer(bookings, many=True).data)

    def create(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.admit_booking(user_id=request.user.pk, **serializer.validated_data)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        booking = services.get_booking(pk, request.user.pk)
        return Response(BookingSerializer(booking).data)

    def partial_update(self, request, pk=None):
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.update_booking(pk, request.user.pk, **serializer.validated_data)
        return Response(BookingSerializer(booking).data)

    def destroy(self, request, pk=None):
        services.cancel_booking(pk, request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


def booking_exception_handler(exc, context):
    if isinstance(exc, BookingError):
        return Response({'error': exc.message}, status=exc.status_code)
    return exception_handler(exc, context)
