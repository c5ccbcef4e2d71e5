"""Thread identity: ``(kind, reference_id)`` <-> ``"{kind}-{reference_id}"``.

A thread is never stored. Its identity is derived from the transaction that
owns it, and the kind is part of the string, so booking 7 and campaign 7 can
never share a thread.
"""

from __future__ import annotations

import enum
import re
from typing import NamedTuple

from ..utils.errors import MalformedThreadId


class ThreadKind(str, enum.Enum):
    BOOKING = "booking"
    CAMPAIGN = "campaign"


class ThreadRef(NamedTuple):
    kind: ThreadKind
    reference_id: int

    @property
    def thread_id(self) -> str:
        return resolve(self.kind, self.reference_id)

    def __str__(self) -> str:
        return self.thread_id


# Canonical decimal only: no sign, no leading zeros, no surrounding whitespace.
_THREAD_ID_RE = re.compile(r"^(?P<kind>[a-z]+)-(?P<ref>[1-9][0-9]*)$")


def _coerce_kind(kind: ThreadKind | str) -> ThreadKind:
    if isinstance(kind, ThreadKind):
        return kind
    try:
        return ThreadKind(kind)
    except ValueError:
        raise MalformedThreadId(f"{kind}-?") from None


def resolve(kind: ThreadKind | str, reference_id: int) -> str:
    """Return the canonical thread id for a transaction."""
    kind = _coerce_kind(kind)
    if isinstance(reference_id, bool) or not isinstance(reference_id, int) or reference_id <= 0:
        raise MalformedThreadId(f"{kind.value}-{reference_id}")
    return f"{kind.value}-{reference_id}"


def parse(thread_id: str) -> ThreadRef:
    """Inverse of :func:`resolve`; raises ``MalformedThreadId``."""
    if not isinstance(thread_id, str):
        raise MalformedThreadId(thread_id)
    match = _THREAD_ID_RE.match(thread_id)
    if not match:
        raise MalformedThreadId(thread_id)
    try:
        kind = ThreadKind(match.group("kind"))
    except ValueError:
        raise MalformedThreadId(thread_id) from None
    return ThreadRef(kind, int(match.group("ref")))


def ref_for(kind: ThreadKind | str, reference_id: int) -> ThreadRef:
    return ThreadRef(_coerce_kind(kind), reference_id)
