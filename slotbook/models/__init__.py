from slotbook.models.template import Template, TemplateCreate, TemplatePublic, TemplateUpdate, TimeRange
from slotbook.models.booking_link import BookingLink, BookingLinkCreate, BookingLinkPublic, BookingLinkUpdate
from slotbook.models.booking import Booking, BookingCreate, BookingDetails, BookingPublic

__all__ = [
    "Template",
    "TemplateCreate",
    "TemplatePublic",
    "TemplateUpdate",
    "TimeRange",
    "BookingLink",
    "BookingLinkCreate",
    "BookingLinkPublic",
    "BookingLinkUpdate",
    "Booking",
    "BookingCreate",
    "BookingDetails",
    "BookingPublic",
]
