"""SQLAlchemy models for the club booking backend.

All models are imported here so that ``Base.metadata`` knows every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from app.models.booking import Booking
from app.models.member import Member
from app.models.resource import Hold, MaintenanceWindow, Resource, StandingReservation
from app.models.voucher import PaymentVoucher

__all__ = [
    "Booking",
    "Hold",
    "MaintenanceWindow",
    "Member",
    "PaymentVoucher",
    "Resource",
    "StandingReservation",
]
