# Import all models so that SQLAlchemy registers them for metadata.create_all
from villa_booking.models.user import User
from villa_booking.models.audit_log import AuditLog
from villa_booking.models.property import Property
from villa_booking.models.image import PropertyImage
from villa_booking.models.pricing_rule import PricingRule
from villa_booking.models.blackout_date import BlackoutDate
from villa_booking.models.booking import Booking

__all__ = [
    "User",
    "AuditLog",
    "Property",
    "PropertyImage",
    "PricingRule",
    "BlackoutDate",
    "Booking",
]
