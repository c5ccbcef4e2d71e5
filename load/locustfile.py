"""
Locust load script for the thread inbox.

Reproduces the client's polling cadence:
- Directory poll every THREAD_LIST_POLL_SECONDS with ETag caching (/api/v1/threads)
- Active-thread poll every ACTIVE_THREAD_POLL_SECONDS with ETag caching
- Opening a thread: immediate message fetch plus POST /read
- Occasional sends, with the fetch-after-write the composer performs

Configure with env vars:
- INBOX_BEARERS: CSV of bearer tokens (e.g. the output of load/seed_inbox.py)
- INBOX_TEST_ACTORS: CSV of `actor_id:role` pairs; tokens are minted locally
  with the app's SECRET_KEY when INBOX_BEARERS is not set
- INBOX_SEND_RATIO: share of active-thread ticks that also send (default 0.05)

Run:
  locust -f load/locustfile.py --host http://localhost:8000
"""

from __future__ import annotations

import os
import random
import time
from typing import Dict, List, Optional, Tuple

from locust import HttpUser, task, constant, events
import logging

from thread_inbox.api.auth import decode_access_token, token_for
from thread_inbox.core.config import settings


# --- Config -------------------------------------------------------------------

DEFAULT_ACTORS = [(1, "customer"), (2, "customer"), (3, "agent")]


def _load_actors() -> List[Tuple[int, str]]:
    raw = os.getenv("INBOX_TEST_ACTORS", "").strip()
    out: List[Tuple[int, str]] = []
    for piece in raw.split(","):
        piece = piece.strip()
        if not piece or ":" not in piece:
            continue
        actor_id, role = piece.split(":", 1)
        if actor_id.strip().isdigit() and role.strip():
            out.append((int(actor_id), role.strip().lower()))
    return out or DEFAULT_ACTORS


def _load_tokens() -> List[Tuple[str, str]]:
    """Return ``(token, role)`` pairs for the simulated users."""
    raw = os.getenv("INBOX_BEARERS", "").strip()
    if raw:
        # Tokens must be signed with this SECRET_KEY; the role claim is the send marker.
        return [(tok.strip(), decode_access_token(tok.strip())["role"]) for tok in raw.split(",") if tok.strip()]
    return [(token_for(actor_id, role), role) for actor_id, role in _load_actors()]


INBOX_TOKENS = _load_tokens()
SEND_RATIO = float(os.getenv("INBOX_SEND_RATIO", "0.05") or 0.05)
API = settings.API_V1_STR


# --- Helpers ------------------------------------------------------------------

def _auth_header(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _safe_json(resp):
    try:
        return resp.json()
    except ValueError:
        return None


# --- The User Model -----------------------------------------------------------

class InboxUser(HttpUser):
    """One open inbox: a directory loop and, once a thread is open, a message loop.

    Locust ticks once per second; each loop fires when its own interval has
    elapsed, the way the client's two periodic tasks do.
    """

    wait_time = constant(1)

    token: Optional[str] = None
    role: str = "customer"
    etags: Dict[str, str] = {}
    threads: List[str] = []
    active: Optional[str] = None
    next_directory: float = 0.0
    next_thread: float = 0.0

    def on_start(self):
        idx = (self.environment.runner.user_count if self.environment and self.environment.runner else random.randint(0, 10)) % len(INBOX_TOKENS)
        self.token, self.role = INBOX_TOKENS[idx]
        self.etags = {}
        self.threads = []
        self.active = None

    def _get(self, path: str, name: str):
        headers = _auth_header(self.token)
        if path in self.etags:
            headers["If-None-Match"] = self.etags[path]
        r = self.client.get(f"{API}{path}", headers=headers, name=name)
        if r.status_code == 200 and r.headers.get("ETag"):
            self.etags[path] = r.headers["ETag"]
        return r

    def _open(self, thread_id: str) -> None:
        self.active = thread_id
        self._get(f"/threads/{thread_id}/messages", "/threads/[id]/messages")
        self.client.post(
            f"{API}/threads/{thread_id}/read",
            headers=_auth_header(self.token),
            name="/threads/[id]/read",
        )
        self.next_thread = time.time() + settings.ACTIVE_THREAD_POLL_SECONDS

    # ---- tasks ----

    @task
    def tick(self):
        now = time.time()
        if now >= self.next_directory:
            self.next_directory = now + settings.THREAD_LIST_POLL_SECONDS
            r = self._get("/threads", "/threads")
            if r.status_code == 200:
                body = _safe_json(r) or []
                self.threads = [row["thread_id"] for row in body if row.get("thread_id")]
            if self.threads and (self.active not in self.threads or random.random() < 0.1):
                self._open(random.choice(self.threads))
                return

        if self.active and now >= self.next_thread:
            if random.random() < SEND_RATIO:
                self.client.post(
                    f"{API}/threads/{self.active}/messages",
                    json={"role": self.role, "text": f"load test {int(now)}"},
                    headers=_auth_header(self.token),
                    name="/threads/[id]/messages POST",
                )
            self._get(f"/threads/{self.active}/messages", "/threads/[id]/messages")
            self.next_thread = now + settings.ACTIVE_THREAD_POLL_SECONDS


# --- Optional event hooks -----------------------------------------------------

@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    roles = ", ".join(role for _, role in INBOX_TOKENS)
    logging.getLogger("locust").info(f"Starting test with {len(INBOX_TOKENS)} actors ({roles})")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    logging.getLogger("locust").info("Test finished")
