from rest_framework.routers import DefaultRouter
from hotel_booking.views import HotelViewSet, BookingViewSet

router = DefaultRouter()
router.register(r'hotels', HotelViewSet)
router.register(r'bookings', BookingViewSet, basename='booking')

urlpatterns = router.urls
