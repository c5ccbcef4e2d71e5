import asyncio
from datetime import datetime

from thread_inbox.client import InboxSync, PeriodicTask
from thread_inbox.client.sync import DIRECTORY_LOOP, THREAD_LOOP
from thread_inbox.models import UserRole
from thread_inbox.schemas import MessageResponse, ThreadSummary
from thread_inbox.utils.errors import PollTransientFailure


def _summary(thread_id: str) -> ThreadSummary:
    kind, ref = thread_id.split("-")
    return ThreadSummary(
        thread_id=thread_id,
        kind=kind,
        reference_id=int(ref),
        counterpart={"display_name": "Nova"},
        created_at=datetime(2024, 1, 1),
    )


def _message(thread_id: str, id: int, text: str) -> MessageResponse:
    return MessageResponse(
        id=id,
        thread_id=thread_id,
        sender_role=UserRole.AGENT,
        text=text,
        created_at=datetime(2024, 1, 1),
    )


class FakeClient:
    def __init__(self):
        self.threads = []
        self.log = {}
        self.fail_directory = False
        self.fail_messages = False
        self.gates = {}
        self.calls = []
        self.marked = []

    async def directory(self):
        self.calls.append("directory")
        if self.fail_directory:
            raise PollTransientFailure("down")
        return list(self.threads)

    async def messages(self, thread_id):
        self.calls.append(("messages", thread_id))
        gate = self.gates.get(thread_id)
        if gate is not None:
            await gate.wait()
        if self.fail_messages:
            raise PollTransientFailure("down")
        return list(self.log.get(thread_id, []))

    async def mark_read(self, thread_id):
        self.marked.append(thread_id)


def test_selecting_fetches_immediately_and_marks_read():
    client = FakeClient()
    client.log["booking-1"] = [_message("booking-1", 1, "hi")]

    async def run():
        sync = InboxSync(client, thread_interval=60)
        await sync.select_thread("booking-1")
        await sync.stop()
        return sync

    sync = asyncio.run(run())
    assert [m.text for m in sync.messages] == ["hi"]
    assert client.marked == ["booking-1"]
    assert sync.active_thread_id == "booking-1"


def test_stale_response_for_previous_thread_is_discarded():
    client = FakeClient()
    client.log["booking-1"] = [_message("booking-1", 1, "old thread")]
    client.log["booking-2"] = [_message("booking-2", 1, "new thread")]
    gate = asyncio.Event()

    async def run():
        client.gates["booking-1"] = gate
        sync = InboxSync(client, thread_interval=60)
        slow = asyncio.create_task(sync.select_thread("booking-1"))
        await asyncio.sleep(0)
        await sync.select_thread("booking-2")
        # The first fetch resolves only after the user moved on.
        gate.set()
        await slow
        await sync.stop()
        return sync

    sync = asyncio.run(run())
    assert sync.active_thread_id == "booking-2"
    assert [m.text for m in sync.messages] == ["new thread"]
    assert client.marked == ["booking-2"]


def test_connection_lost_after_consecutive_failures_and_cleared_on_success():
    client = FakeClient()
    client.fail_directory = True

    async def run():
        sync = InboxSync(client, failure_threshold=3)
        states = []
        for _ in range(3):
            await sync.refresh_directory()
            states.append(sync.connection_lost)
        client.fail_directory = False
        await sync.refresh_directory()
        states.append(sync.connection_lost)
        return sync, states

    sync, states = asyncio.run(run())
    assert states == [False, False, True, False]
    assert sync.failures(DIRECTORY_LOOP) == 0


def test_message_loop_failures_counted_separately():
    client = FakeClient()
    client.fail_messages = True

    async def run():
        sync = InboxSync(client, thread_interval=60, failure_threshold=2)
        await sync.select_thread("booking-1")
        await sync.refresh_active()
        await sync.stop()
        return sync

    sync = asyncio.run(run())
    assert sync.failures(THREAD_LOOP) == 2
    assert sync.failures(DIRECTORY_LOOP) == 0
    assert sync.connection_lost
    assert sync.messages == []


def test_deep_link_waits_for_directory():
    client = FakeClient()

    async def run():
        sync = InboxSync(client, thread_interval=60)
        await sync.open_link("campaign", 7)
        assert sync.active_thread_id is None
        assert sync.pending_link == "campaign-7"

        await sync.refresh_directory()
        assert sync.active_thread_id is None

        client.threads = [_summary("campaign-7")]
        await sync.refresh_directory()
        await sync.stop()
        return sync

    sync = asyncio.run(run())
    assert sync.active_thread_id == "campaign-7"
    assert sync.pending_link is None
    assert client.marked == ["campaign-7"]


def test_directory_replaced_wholesale():
    client = FakeClient()
    client.threads = [_summary("booking-1"), _summary("booking-2")]

    async def run():
        sync = InboxSync(client)
        await sync.refresh_directory()
        client.threads = [_summary("booking-2")]
        await sync.refresh_directory()
        return sync

    sync = asyncio.run(run())
    assert [t.thread_id for t in sync.threads] == ["booking-2"]


def test_periodic_task_runs_until_cancelled():
    ticks = []

    async def tick():
        ticks.append(1)

    async def run():
        task = PeriodicTask(tick, 0.01)
        task.start(immediate=True)
        await asyncio.sleep(0.055)
        await task.cancel()
        count = len(ticks)
        await asyncio.sleep(0.03)
        return count

    count = asyncio.run(run())
    assert count >= 2
    assert len(ticks) == count


def test_manual_run_skips_the_next_tick():
    ticks = []

    async def tick():
        ticks.append(asyncio.get_running_loop().time())

    async def run():
        task = PeriodicTask(tick, 0.2)
        task.start()
        await asyncio.sleep(0.15)
        await task.run_now()
        # Without the reset a scheduled tick would land at ~0.2s.
        await asyncio.sleep(0.1)
        during = len(ticks)
        await task.cancel()
        return during

    assert asyncio.run(run()) == 1


def test_periodic_task_survives_errors():
    errors = []
    ticks = []

    async def tick():
        ticks.append(1)
        raise RuntimeError("boom")

    async def run():
        task = PeriodicTask(tick, 0.01, on_error=errors.append)
        task.start(immediate=True)
        await asyncio.sleep(0.045)
        await task.cancel()

    asyncio.run(run())
    assert len(ticks) >= 2
    assert all(isinstance(e, RuntimeError) for e in errors)
