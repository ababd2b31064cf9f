from .tables import Base, ArtistSettings, Services, Bookings

__all__ = ["Base", "ArtistSettings", "Services", "Bookings"]
