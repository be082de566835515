from django.core.management.base import BaseCommand
from hotel_booking.models import Hotel


class Command(BaseCommand):
    help = 'Populate database with sample hotels'

    def handle(self, *args, **options):
        hotels_data = [
            {
                'name': 'Harbour View Inn',
                'city': 'Lisbon',
                'price_cents': 9500,  # $95
                'amenities': ['Wi-Fi', 'Breakfast'],
                'description': 'Small inn overlooking the river mouth'
            },
            {
                'name': 'Alfama House',
                'city': 'Lisbon',
                'price_cents': 13000,  # $130
                'amenities': ['Wi-Fi', 'Terrace'],
                'description': 'Restored townhouse in the old quarter'
            },
            {
                'name': 'Canal Residence',
                'city': 'Amsterdam',
                'price_cents': 18000,  # $180
                'amenities': ['Wi-Fi', 'Bicycle rental', 'Bar'],
                'description': 'Canal-side rooms close to the central station'
            },
            {
                'name': 'Vondel Lodge',
                'city': 'Amsterdam',
                'price_cents': 11000,  # $110
                'amenities': ['Wi-Fi', 'Garden'],
                'description': 'Quiet lodge next to the park'
            },
            {
                'name': 'Old Town Suites',
                'city': 'Prague',
                'price_cents': 8000,  # $80
                'amenities': ['Wi-Fi', 'Kitchenette'],
                'description': 'Apartments two streets from the main square'
            },
            {
                'name': 'Castle Hill Hotel',
                'city': 'Prague',
                'price_cents': 21000,  # $210
                'amenities': ['Wi-Fi', 'Spa', 'Restaurant', 'Parking'],
                'description': 'Hotel below the castle with a spa floor'
            },
        ]

        for hotel_data in hotels_data:
            hotel, created = Hotel.objects.get_or_create(
                name=hotel_data['name'],
                city=hotel_data['city'],
                defaults=hotel_data
            )

            if created:
                self.stdout.write(f'Created hotel: {hotel.name} - {hotel.city}')
            else:
                self.stdout.write(f'Hotel {hotel.name} already exists')

        self.stdout.write(
            self.style.SUCCESS('Successfully populated database with sample hotels')
        )
