from .user import User, UserRole
from .celebrity import Celebrity
from .booking import Booking
from .campaign import Campaign
from .message import Message, SenderRole
from .read_watermark import ReadWatermark
from ..threads.identity import ThreadKind

__all__ = [
    "User",
    "UserRole",
    "Celebrity",
    "Booking",
    "Campaign",
    "Message",
    "SenderRole",
    "ReadWatermark",
    "ThreadKind",
]
