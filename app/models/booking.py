# app/models/booking.py
"""
Vehicle reservations.
Non-cancelled bookings of one vehicle must never overlap on [start, end).
On PostgreSQL that rule is enforced by an exclusion constraint created right
after the table; the service-level recheck only fails fast before it.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, CheckConstraint, DDL, event
from app.database import Base
from app.models.enums import BookingStatus, BookingType

EXCLUSION_CONSTRAINT = "bookings_no_overlap"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_reference = Column(String(50), unique=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    client_name = Column(String(200), nullable=False)
    client_phone = Column(String(50))
    client_email = Column(String(200))

    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=False, index=True)
    start_location = Column(String(200))
    end_location = Column(String(200))

    status = Column(String(30), nullable=False, default=BookingStatus.DRAFT.value, index=True)
    booking_type = Column(String(20), nullable=False, default=BookingType.SELF_DRIVE.value)
    health_at_booking = Column(String(20))   # snapshot, written once at creation
    chauffeur_id = Column(String(100))
    chauffeur_name = Column(String(200))
    invoice_number = Column(String(50))
    notes = Column(Text)

    created_by = Column(String(100))
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    __table_args__ = (
        CheckConstraint("end_datetime > start_datetime", name="bookings_end_after_start"),
    )

    def __repr__(self):
        return (f"<Booking {self.id} vehicle={self.vehicle_id} "
                f"{self.start_datetime}→{self.end_datetime} status={self.status}>")


# PostgreSQL only: authoritative non-overlap guarantee per vehicle
event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {EXCLUSION_CONSTRAINT} "
        "EXCLUDE USING gist (vehicle_id WITH =, tsrange(start_datetime, end_datetime, '[)') WITH &&) "
        f"WHERE (status <> '{BookingStatus.CANCELLED.value}')"
    ).execute_if(dialect="postgresql"),
)
