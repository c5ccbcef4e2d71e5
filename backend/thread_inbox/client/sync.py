"""Polling synchronisation for the inbox UI.

Two independent loops keep the local view fresh: the thread directory and
the messages of the one open thread. Every poll fetches full state and
replaces the local copy wholesale, so a missed tick heals on the next one.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..core.config import settings
from ..schemas.message import MessageResponse
from ..schemas.threads import ThreadSummary
from ..threads.identity import ThreadKind, resolve
from ..utils.errors import PollTransientFailure
from .api import InboxClient
from .periodic import PeriodicTask

logger = logging.getLogger(__name__)

DIRECTORY_LOOP = "directory"
THREAD_LOOP = "thread"


class InboxSync:
    def __init__(
        self,
        client: InboxClient,
        *,
        directory_interval: float | None = None,
        thread_interval: float | None = None,
        failure_threshold: int | None = None,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self.client = client
        self.directory_interval = directory_interval or settings.THREAD_LIST_POLL_SECONDS
        self.thread_interval = thread_interval or settings.ACTIVE_THREAD_POLL_SECONDS
        self.failure_threshold = failure_threshold or settings.POLL_FAILURE_THRESHOLD
        self.on_change = on_change

        self.threads: List[ThreadSummary] = []
        self.messages: List[MessageResponse] = []
        self.active_thread_id: Optional[str] = None
        # Bumped on every selection change; responses for an older value are dropped.
        self.generation = 0
        self.pending_link: Optional[str] = None

        self._failures: Dict[str, int] = {DIRECTORY_LOOP: 0, THREAD_LOOP: 0}
        self._directory_task: Optional[PeriodicTask] = None
        self._thread_task: Optional[PeriodicTask] = None

    @property
    def connection_lost(self) -> bool:
        return any(n >= self.failure_threshold for n in self._failures.values())

    def failures(self, loop: str) -> int:
        return self._failures[loop]

    def _notify(self, what: str) -> None:
        if self.on_change is not None:
            self.on_change(what)

    def _record(self, loop: str, ok: bool) -> None:
        was_lost = self.connection_lost
        self._failures[loop] = 0 if ok else self._failures[loop] + 1
        if self.connection_lost != was_lost:
            logger.info("Connection %s", "lost" if self.connection_lost else "restored")
            self._notify("connection")

    async def start(self) -> None:
        if self._directory_task is None:
            self._directory_task = PeriodicTask(
                self.refresh_directory,
                self.directory_interval,
                name="inbox-directory",
            )
        self._directory_task.start(immediate=True)

    async def stop(self) -> None:
        if self._directory_task is not None:
            await self._directory_task.cancel()
        await self._stop_thread_loop()

    async def refresh_directory(self) -> None:
        try:
            threads = await self.client.directory()
        except PollTransientFailure as exc:
            logger.warning("Directory poll failed: %s", exc)
            self._record(DIRECTORY_LOOP, ok=False)
            return
        self._record(DIRECTORY_LOOP, ok=True)
        self.threads = threads
        self._notify(DIRECTORY_LOOP)
        if self.pending_link and any(t.thread_id == self.pending_link for t in threads):
            link, self.pending_link = self.pending_link, None
            await self.select_thread(link)

    async def _fetch_messages(self, generation: int, thread_id: str) -> None:
        try:
            rows = await self.client.messages(thread_id)
        except PollTransientFailure as exc:
            logger.warning("Message poll for %s failed: %s", thread_id, exc)
            self._record(THREAD_LOOP, ok=False)
            return
        self._record(THREAD_LOOP, ok=True)
        if generation != self.generation:
            logger.debug("Discarding stale messages for %s", thread_id)
            return
        self.messages = rows
        self._notify(THREAD_LOOP)

    async def _poll_active(self) -> None:
        if self.active_thread_id is None:
            return
        await self._fetch_messages(self.generation, self.active_thread_id)

    async def _stop_thread_loop(self) -> None:
        task, self._thread_task = self._thread_task, None
        if task is not None:
            await task.cancel()

    async def select_thread(self, thread_id: str) -> None:
        """Open a thread: fetch it right away, mark it read, then poll it."""
        self.generation += 1
        generation = self.generation
        await self._stop_thread_loop()
        self.active_thread_id = thread_id
        self.messages = []
        self._notify(THREAD_LOOP)

        await self._fetch_messages(generation, thread_id)
        if generation != self.generation:
            return
        try:
            await self.client.mark_read(thread_id)
        except PollTransientFailure as exc:
            logger.warning("Mark read for %s failed: %s", thread_id, exc)
        if generation != self.generation:
            return

        self._thread_task = PeriodicTask(
            self._poll_active,
            self.thread_interval,
            name=f"inbox-thread-{thread_id}",
        )
        self._thread_task.start()

    async def clear_selection(self) -> None:
        self.generation += 1
        await self._stop_thread_loop()
        self.active_thread_id = None
        self.messages = []
        self._notify(THREAD_LOOP)

    async def open_link(self, kind: ThreadKind | str, reference_id: int) -> None:
        """Select a thread named by a deep link, waiting for the directory if needed."""
        thread_id = resolve(kind, reference_id)
        if any(t.thread_id == thread_id for t in self.threads):
            self.pending_link = None
            await self.select_thread(thread_id)
        else:
            self.pending_link = thread_id

    async def refresh_active(self) -> None:
        """Fetch the open thread now; the next scheduled tick is skipped."""
        if self._thread_task is not None:
            await self._thread_task.run_now()
        else:
            await self._poll_active()
