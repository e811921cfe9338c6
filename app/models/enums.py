# app/models/enums.py
"""
String enumerations shared by models, schemas and services.
Stored as plain strings in the database, so values must never change.
"""

from enum import Enum


class Health(str, Enum):
    EXCELLENT = "Excellent"
    OK = "OK"
    GROUNDED = "Grounded"


class VehicleStatus(str, Enum):
    AVAILABLE = "Available"
    ON_HIRE = "On Hire"
    GROUNDED = "Grounded"


class IssuePriority(str, Enum):
    DANGEROUS = "Dangerous"
    IMPORTANT = "Important"
    NICE_TO_FIX = "Nice to Fix"
    AESTHETIC = "Aesthetic"


class IssueStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class BookingStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    ADVANCE_PAYMENT_NOT_PAID = "Advance Payment Not Paid"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


class BookingType(str, Enum):
    SELF_DRIVE = "self_drive"
    CHAUFFEUR = "chauffeur"
    TRANSFER = "transfer"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    MECHANIC = "mechanic"
    DRIVER = "driver"
