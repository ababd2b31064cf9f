"""Booking backend for service providers: availability, bookings, settings."""
