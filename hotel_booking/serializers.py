from rest_framework import serializers

from .models import Booking, Hotel


class HotelSerializer(serializers.ModelSerializer):

    class Meta:
        model = Hotel
        fields = '__all__'

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['price_dollar'] = instance.price_cents / 100.0
        return data


class BookingSerializer(serializers.ModelSerializer):
    hotel = HotelSerializer(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    check_out = serializers.DateField(read_only=True)

    class Meta:
        model = Booking
        fields = ['id', 'hotel', 'user_id', 'check_in', 'check_out', 'nights', 'guests',
                  'created_at', 'updated_at']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['total_dollar'] = instance.hotel.price_cents * instance.nights / 100.0
        return data


class BookingCreateSerializer(serializers.Serializer):
    hotel_id = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    nights = serializers.IntegerField(min_value=1)
    guests = serializers.IntegerField(min_value=1, default=1)


class BookingUpdateSerializer(serializers.Serializer):
    check_in = serializers.DateField(required=False)
    nights = serializers.IntegerField(min_value=1, required=False)
    guests = serializers.IntegerField(min_value=1, required=False)

    def validate(self, data):
        if not data:
            raise serializers.ValidationError("No changes provided")
        return data


class AvailabilityQuerySerializer(serializers.Serializer):
    """Query parameters accepted by the hotel search."""
    city = serializers.CharField(required=False)
    max_price = serializers.IntegerField(min_value=0, required=False)
    check_in = serializers.DateField(required=False)
    nights = serializers.IntegerField(min_value=1, required=False)

    def validate(self, data):
        if ('check_in' in data) != ('nights' in data):
            raise serializers.ValidationError("check_in and nights must be given together")
        return data
