from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from ..threads.identity import ThreadKind
from .message import MessageResponse


class Counterpart(BaseModel):
    display_name: str
    image_url: Optional[str] = None


class CustomerSnapshot(BaseModel):
    id: int
    username: str
    first_name: Optional[str] = None


class ThreadSummary(BaseModel):
    thread_id: str
    kind: ThreadKind
    reference_id: int
    last_message: Optional[MessageResponse] = None
    counterpart: Counterpart
    unread: int = 0
    # Creation time of the owning booking/campaign; orders message-less threads
    created_at: datetime
    preview_label: str = ""
    # Only populated for agents; customers never see who else is involved.
    customer: Optional[CustomerSnapshot] = None


class MarkReadResponse(BaseModel):
    thread_id: str
    last_read_at: datetime
