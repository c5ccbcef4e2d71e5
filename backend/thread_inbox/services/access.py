"""Who may see and write which thread.

Customers are scoped to the transactions they own. Agents see every thread
and may write to any of them while acting as the celebrity's representative;
there is no per-celebrity assignment.
"""

from dataclasses import dataclass
from typing import List, Tuple

from sqlalchemy.orm import Session

from ..crud import crud_transaction
from ..crud.crud_transaction import TransactionRecord
from ..models.user import UserRole
from ..threads.identity import ThreadRef, parse
from ..utils.errors import ThreadAccessDenied


@dataclass(frozen=True)
class ActorContext:
    actor_id: int
    role: UserRole

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT

    @property
    def opposing_role(self) -> UserRole:
        return opposing(self.role)


def opposing(role: UserRole) -> UserRole:
    return UserRole.CUSTOMER if role == UserRole.AGENT else UserRole.AGENT


def directory_scope(db: Session, actor: ActorContext) -> List[TransactionRecord]:
    """Transactions whose threads the actor can see."""
    if actor.is_agent:
        return crud_transaction.get_all_bookings(db) + crud_transaction.get_all_campaigns(db)
    return crud_transaction.get_bookings_of(db, actor.actor_id) + crud_transaction.get_campaigns_of(
        db, actor.actor_id
    )


def authorize_read(db: Session, actor: ActorContext, thread_id: str) -> Tuple[ThreadRef, TransactionRecord]:
    ref = parse(thread_id)
    record = crud_transaction.get_transaction(db, ref)
    if record is None:
        raise ThreadAccessDenied(thread_id, "missing")
    if not actor.is_agent and record.user_id != actor.actor_id:
        raise ThreadAccessDenied(thread_id, "not_owner")
    return ref, record


def authorize_write(
    db: Session,
    actor: ActorContext,
    thread_id: str,
    claimed_role: UserRole,
) -> Tuple[ThreadRef, TransactionRecord]:
    """Same scope as reading, and the role marker must match the actor."""
    parse(thread_id)
    if claimed_role != actor.role:
        raise ThreadAccessDenied(thread_id, "role_mismatch")
    return authorize_read(db, actor, thread_id)
