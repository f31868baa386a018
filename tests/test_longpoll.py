"""Tests for the long-poll engine: offsets, dispatch order, retries and shutdown."""

import asyncio
import sys
import os
import threading

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from bot.longpoll import LongPoll, LongPollHandle, LongPollOptions
from sdk.exceptions import DecodeError, PayloadError, TelegramError, TransportError
from sdk.methods import GetUpdates
from sdk.models import AllowedUpdate, Update


# ── Fakes ────────────────────────────────────────────────────────────────────


def _update(update_id: int) -> Update:
    return Update.model_validate(
        {
            "update_id": update_id,
            "message": {
                "message_id": update_id,
                "date": 0,
                "chat": {"id": 1, "type": "private"},
                "text": f"msg {update_id}",
            },
        }
    )


class FakeClient:
    """Plays back scripted ``getUpdates`` outcomes, then shuts the poll down."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[GetUpdates] = []
        self.handle: LongPollHandle | None = None

    async def aexecute(self, method: GetUpdates):
        self.calls.append(method)
        if not self.outcomes:
            self.handle.shutdown()
            return []
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeSleep:
    """Simulated clock: records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingHandler:
    def __init__(self, fail_on: tuple[int, ...] = ()) -> None:
        self.seen: list[int] = []
        self.fail_on = fail_on

    async def handle(self, update: Update) -> None:
        self.seen.append(update.update_id)
        if update.update_id in self.fail_on:
            raise RuntimeError(f"boom {update.update_id}")


def _make_poll(client: FakeClient, handler, options: LongPollOptions | None = None):
    sleep = FakeSleep()
    poll = LongPoll(client, handler, options, sleep=sleep)
    client.handle = poll.get_handle()
    return poll, sleep


# ── Options and handle ───────────────────────────────────────────────────────


class TestLongPollOptions:
    def test_defaults(self) -> None:
        options = LongPollOptions()
        assert options.limit == 100
        assert options.poll_timeout == 10
        assert options.offset == 0
        assert options.allowed_updates == frozenset()

    @pytest.mark.parametrize("limit", [0, 101])
    def test_limit_bounds(self, limit) -> None:
        with pytest.raises(ValidationError):
            LongPollOptions(limit=limit)

    def test_backoff_bounds(self) -> None:
        with pytest.raises(ValidationError):
            LongPollOptions(error_timeout=10, max_error_timeout=5)


class TestLongPollHandle:
    def test_idempotent(self) -> None:
        handle = LongPollHandle()
        assert not handle.is_shutdown
        handle.shutdown()
        handle.shutdown()
        assert handle.is_shutdown

    def test_shutdown_from_other_thread(self) -> None:
        handle = LongPollHandle()
        threads = [threading.Thread(target=handle.shutdown) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert handle.is_shutdown

    def test_same_handle_every_time(self) -> None:
        poll = LongPoll(FakeClient(), RecordingHandler())
        assert poll.get_handle() is poll.get_handle()


# ── Offsets and dispatch ─────────────────────────────────────────────────────


class TestOffsets:
    """The offset only ever moves forward, past the last dispatched update."""

    @pytest.mark.asyncio
    async def test_offset_after_batch_despite_failures(self) -> None:
        client = FakeClient([_update(5), _update(6), _update(9)])
        handler = RecordingHandler(fail_on=(6,))
        poll, _ = _make_poll(client, handler)

        await poll.run()

        assert handler.seen == [5, 6, 9]
        assert [call.offset for call in client.calls] == [0, 10]
        assert poll.offset == 10

    @pytest.mark.asyncio
    async def test_empty_batch_keeps_offset(self) -> None:
        client = FakeClient([], [], [_update(3)])
        poll, _ = _make_poll(client, RecordingHandler())

        await poll.run()

        assert [call.offset for call in client.calls] == [0, 0, 0, 4]

    @pytest.mark.asyncio
    async def test_initial_offset_from_options(self) -> None:
        client = FakeClient()
        poll, _ = _make_poll(client, RecordingHandler(), LongPollOptions(offset=42))

        await poll.run()

        assert client.calls[0].offset == 42

    @pytest.mark.asyncio
    async def test_offset_never_decreases(self) -> None:
        client = FakeClient([_update(10)], [_update(4)])
        handler = RecordingHandler()
        poll, _ = _make_poll(client, handler)

        await poll.run()

        assert [call.offset for call in client.calls] == [0, 11, 11]

    @pytest.mark.asyncio
    async def test_batch_dispatched_in_id_order(self) -> None:
        client = FakeClient([_update(9), _update(5), _update(6)])
        handler = RecordingHandler()
        poll, _ = _make_poll(client, handler)

        await poll.run()

        assert handler.seen == [5, 6, 9]
        assert poll.offset == 10

    @pytest.mark.asyncio
    async def test_request_uses_options(self) -> None:
        options = LongPollOptions(limit=10, poll_timeout=25, allowed_updates={AllowedUpdate.MESSAGE})
        client = FakeClient()
        poll, _ = _make_poll(client, RecordingHandler(), options)

        await poll.run()

        request = client.calls[0]
        assert request.limit == 10
        assert request.timeout == 25
        assert request.allowed_updates == {AllowedUpdate.MESSAGE}

    @pytest.mark.asyncio
    async def test_handler_failure_is_logged(self, caplog) -> None:
        client = FakeClient([_update(1)])
        poll, _ = _make_poll(client, RecordingHandler(fail_on=(1,)))

        await poll.run()

        failures = [r for r in caplog.records if r.getMessage() == "Update handler failed"]
        assert len(failures) == 1
        assert failures[0].update_id == 1


class TestSequentialDispatch:
    @pytest.mark.asyncio
    async def test_one_update_at_a_time(self) -> None:
        events: list[str] = []

        async def on_update(update: Update) -> None:
            events.append(f"start {update.update_id}")
            await asyncio.sleep(0)
            events.append(f"end {update.update_id}")

        client = FakeClient([_update(1), _update(2)])
        poll, _ = _make_poll(client, on_update)

        await poll.run()

        assert events == ["start 1", "end 1", "start 2", "end 2"]


# ── Errors and retries ───────────────────────────────────────────────────────


class TestRetries:
    """Recoverable failures sleep and retry at the same offset."""

    @pytest.mark.asyncio
    async def test_retry_after_is_honoured(self) -> None:
        flood = TelegramError("Too Many Requests: retry after 3", error_code=429, retry_after=3)
        client = FakeClient(flood, [_update(1)])
        poll, sleep = _make_poll(client, RecordingHandler())

        await poll.run()

        assert sleep.delays == [3]
        assert sum(sleep.delays) >= 3
        assert [call.offset for call in client.calls] == [0, 0, 2]

    @pytest.mark.asyncio
    async def test_exponential_backoff_resets_after_success(self) -> None:
        client = FakeClient(
            TransportError("offline"),
            DecodeError("garbage", 502),
            TelegramError("Internal Server Error", error_code=500),
            TransportError("offline"),
            [_update(1)],
            TransportError("offline"),
        )
        options = LongPollOptions(error_timeout=1, max_error_timeout=5)
        poll, sleep = _make_poll(client, RecordingHandler(), options)

        await poll.run()

        assert sleep.delays == [1, 2, 4, 5, 1]
        assert [call.offset for call in client.calls] == [0, 0, 0, 0, 0, 2, 2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [401, 404])
    async def test_fatal_error_codes_stop(self, code) -> None:
        client = FakeClient(TelegramError("Unauthorized", error_code=code))
        handler = RecordingHandler()
        poll, sleep = _make_poll(client, handler)

        with pytest.raises(TelegramError) as exc_info:
            await poll.run()

        assert exc_info.value.error_code == code
        assert len(client.calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_payload_error_stops(self) -> None:
        client = FakeClient(PayloadError("broken"))
        poll, _ = _make_poll(client, RecordingHandler())

        with pytest.raises(PayloadError):
            await poll.run()

    @pytest.mark.asyncio
    async def test_shutdown_during_backoff(self) -> None:
        client = FakeClient(TransportError("offline"))
        poll, _ = _make_poll(client, RecordingHandler())

        async def sleep_then_stop(delay: float) -> None:
            poll.get_handle().shutdown()

        poll._sleep = sleep_then_stop
        await poll.run()

        assert len(client.calls) == 1


# ── Shutdown ─────────────────────────────────────────────────────────────────


class TestShutdown:
    """Shutdown is observed between batches only."""

    @pytest.mark.asyncio
    async def test_shutdown_mid_batch_finishes_batch(self) -> None:
        seen: list[int] = []
        poll = None

        async def on_update(update: Update) -> None:
            seen.append(update.update_id)
            if update.update_id == 1:
                poll.get_handle().shutdown()
            await asyncio.sleep(0)

        client = FakeClient([_update(1), _update(2)], [_update(3)])
        poll, _ = _make_poll(client, on_update)

        await poll.run()

        assert seen == [1, 2]
        assert len(client.calls) == 1
        assert poll.offset == 3

    @pytest.mark.asyncio
    async def test_shutdown_before_run(self) -> None:
        client = FakeClient([_update(1)])
        poll, _ = _make_poll(client, RecordingHandler())
        poll.get_handle().shutdown()

        await poll.run()

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_run_only_once(self) -> None:
        client = FakeClient()
        poll, _ = _make_poll(client, RecordingHandler())

        await poll.run()

        with pytest.raises(RuntimeError):
            await poll.run()
