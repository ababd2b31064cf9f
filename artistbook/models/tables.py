from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Text, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class ArtistSettings(Base):
    __tablename__ = 'artist_settings'

    artist_id = Column(Text, nullable=False, unique=True)
    working_hours = Column(Text, nullable=False, server_default=text("'{}'"))
    slot_interval = Column(Integer, nullable=False, server_default=text('30'))
    buffer_minutes = Column(Integer, nullable=False, server_default=text('0'))
    timezone = Column(Text, nullable=False, server_default=text("'America/Santiago'"))
    min_advance_hours = Column(Float, nullable=False, server_default=text('2'))
    max_advance_days = Column(Integer, nullable=False, server_default=text('60'))
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class Services(Base):
    __tablename__ = 'services'

    artist_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    deposit = Column(Float, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='service')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_artist_start', 'artist_id', 'start_time'),
    )

    artist_id = Column(Text, nullable=False)
    service_id = Column(ForeignKey('services.id', ondelete='SET NULL'))
    client_name = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)  # ISO 8601, UTC
    end_time = Column(Text, nullable=False)    # ISO 8601, UTC
    status = Column(Text, nullable=False, server_default=text("'PENDING'"))
    deposit_paid = Column(Integer, nullable=False, server_default=text('0'))
    # Snapshot fields: service terms at booking time
    price_snapshot = Column(Float)
    duration_snapshot = Column(Integer)
    service_name_snapshot = Column(Text)
    id = Column(Integer, primary_key=True)
    cancel_reason = Column(Text)
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    service = relationship('Services', back_populates='bookings')
