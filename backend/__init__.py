"""Service layer: bookings, flights and identity"""
