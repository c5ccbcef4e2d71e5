"""Read-only access to bookings and campaigns.

The booking/campaign lifecycle lives elsewhere; the inbox only needs who owns
a transaction and which celebrity the thread speaks for.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from .. import models
from ..threads.identity import ThreadKind, ThreadRef

UNKNOWN_COUNTERPART = "Unknown"


@dataclass(frozen=True)
class TransactionRecord:
    kind: ThreadKind
    id: int
    user_id: int
    counterpart_display_name: str
    counterpart_image_url: Optional[str]
    created_at: Optional[datetime]

    @property
    def ref(self) -> ThreadRef:
        return ThreadRef(self.kind, self.id)


_MODELS = {
    ThreadKind.BOOKING: models.Booking,
    ThreadKind.CAMPAIGN: models.Campaign,
}


def _to_record(kind: ThreadKind, row) -> TransactionRecord:
    celebrity = row.celebrity
    return TransactionRecord(
        kind=kind,
        id=int(row.id),
        user_id=int(row.user_id),
        counterpart_display_name=(celebrity.name if celebrity and celebrity.name else UNKNOWN_COUNTERPART),
        counterpart_image_url=celebrity.image_url if celebrity else None,
        created_at=row.created_at,
    )


def _list(db: Session, kind: ThreadKind, user_id: int | None = None) -> List[TransactionRecord]:
    model = _MODELS[kind]
    query = db.query(model).options(joinedload(model.celebrity))
    if user_id is not None:
        query = query.filter(model.user_id == user_id)
    return [_to_record(kind, row) for row in query.order_by(model.id.asc()).all()]


def get_bookings_of(db: Session, user_id: int) -> List[TransactionRecord]:
    return _list(db, ThreadKind.BOOKING, user_id)


def get_campaigns_of(db: Session, user_id: int) -> List[TransactionRecord]:
    return _list(db, ThreadKind.CAMPAIGN, user_id)


def get_all_bookings(db: Session) -> List[TransactionRecord]:
    return _list(db, ThreadKind.BOOKING)


def get_all_campaigns(db: Session) -> List[TransactionRecord]:
    return _list(db, ThreadKind.CAMPAIGN)


def get_transaction(db: Session, ref: ThreadRef) -> TransactionRecord | None:
    """Return the transaction behind a thread, or None if it no longer exists."""
    model = _MODELS[ref.kind]
    row = (
        db.query(model)
        .options(joinedload(model.celebrity))
        .filter(model.id == ref.reference_id)
        .first()
    )
    if row is None:
        return None
    return _to_record(ref.kind, row)
