"""Long-polling update loop.

:class:`LongPoll` repeatedly calls ``getUpdates``, hands every update of a
batch to the handler -- one at a time, in ``update_id`` order, each awaited
before the next -- and then moves the offset past the batch.  Handler
failures are logged and skipped; the offset moves on regardless, so
delivery is at-least-once per run.

Error policy for the ``getUpdates`` call itself:

- transport and decode failures, and API errors without ``retry_after``,
  are retried at the same offset after an exponential backoff bounded by
  ``max_error_timeout``;
- an API error carrying ``retry_after`` waits at least that many seconds;
- a broken payload or an unusable token (401/404) stops the loop and is
  re-raised to the caller of :meth:`LongPoll.run`.

Shutdown is cooperative: :meth:`LongPollHandle.shutdown` may be called from
any task or thread, any number of times; the loop notices it between
batches and never interrupts an in-flight request or handler.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, Callable, FrozenSet, List, Optional

from pydantic import BaseModel, Field, model_validator

from core.logger import TelepollLogger
from bot.handler import HandlerFunc, UpdateHandler, as_handler
from sdk.client import BotClient
from sdk.exceptions import DecodeError, TelegramError, TransportError
from sdk.methods import GetUpdates
from sdk.models import AllowedUpdate, Update

logger = TelepollLogger.get_logger()

DEFAULT_LIMIT = 100
DEFAULT_POLL_TIMEOUT = 10
DEFAULT_ERROR_TIMEOUT = 5.0
DEFAULT_MAX_ERROR_TIMEOUT = 60.0

# Error codes meaning the token itself is unusable; retrying cannot help.
FATAL_ERROR_CODES: FrozenSet[int] = frozenset({401, 404})

SleepFunc = Callable[[float], Awaitable[None]]


class LongPollOptions(BaseModel):
    """Settings fixed for the lifetime of one polling run.

    Attributes:
        offset: First update id to request; 0 starts from the earliest
            unconfirmed update.
        limit: Updates per batch, 1-100.
        poll_timeout: Seconds the server may hold ``getUpdates`` open;
            0 means short polling.
        allowed_updates: Update types to receive; empty means the server
            default set.
        error_timeout: First backoff delay after a failed poll, in seconds.
        max_error_timeout: Upper bound of the backoff delay.
    """

    offset: int = 0
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=100)
    poll_timeout: int = Field(DEFAULT_POLL_TIMEOUT, ge=0)
    allowed_updates: FrozenSet[AllowedUpdate] = frozenset()
    error_timeout: float = Field(DEFAULT_ERROR_TIMEOUT, gt=0)
    max_error_timeout: float = Field(DEFAULT_MAX_ERROR_TIMEOUT, gt=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_backoff(self) -> "LongPollOptions":
        if self.max_error_timeout < self.error_timeout:
            raise ValueError("max_error_timeout must not be lower than error_timeout")
        return self


class LongPollHandle:
    """Idempotent, thread-safe shutdown switch for a :class:`LongPoll`."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def shutdown(self) -> None:
        """Ask the loop to stop after the current batch."""
        self._event.set()

    @property
    def is_shutdown(self) -> bool:
        return self._event.is_set()


class LongPoll:
    """Receives updates with ``getUpdates`` and dispatches them to a handler.

    Usage::

        poll = LongPoll(client, handler, LongPollOptions(poll_timeout=30))
        handle = poll.get_handle()
        loop.add_signal_handler(signal.SIGTERM, handle.shutdown)
        await poll.run()
    """

    def __init__(
        self,
        client: BotClient,
        handler: UpdateHandler | HandlerFunc,
        options: Optional[LongPollOptions] = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._client = client
        self._handler = as_handler(handler)
        self._options = options or LongPollOptions()
        self._sleep = sleep
        self._handle = LongPollHandle()
        self._offset = self._options.offset
        self._failures = 0
        self._started = False

    @property
    def offset(self) -> int:
        """Offset the next ``getUpdates`` call will use."""
        return self._offset

    @property
    def options(self) -> LongPollOptions:
        return self._options

    def get_handle(self) -> LongPollHandle:
        """Return the shutdown handle shared by every caller."""
        return self._handle

    async def run(self) -> None:
        """Poll until shut down.

        Raises:
            PayloadError: If the ``getUpdates`` request cannot be built.
            TelegramError: If the API rejects the token (401/404).
            RuntimeError: If called a second time.
        """
        if self._started:
            raise RuntimeError("LongPoll.run() may only be called once")
        self._started = True

        logger.info("Long polling started", extra={"offset": self._offset, "limit": self._options.limit, "poll_timeout": self._options.poll_timeout})
        while not self._handle.is_shutdown:
            updates = await self._poll()
            if updates is None:
                continue
            if updates:
                await self._dispatch(updates)
                self._offset = max(self._offset, updates[-1].update_id + 1)
        logger.info("Long polling stopped", extra={"offset": self._offset})

    # ------------------------------------------------------------------
    #  Internal helpers
    # ------------------------------------------------------------------

    def _build_request(self) -> GetUpdates:
        return GetUpdates(
            offset=self._offset,
            limit=self._options.limit,
            timeout=self._options.poll_timeout,
            allowed_updates=set(self._options.allowed_updates),
        )

    async def _poll(self) -> Optional[List[Update]]:
        """Fetch one batch sorted by ``update_id``, or ``None`` after a recoverable error."""
        try:
            updates = await self._client.aexecute(self._build_request())
        except TelegramError as exc:
            if exc.error_code in FATAL_ERROR_CODES and not exc.can_retry:
                logger.error("getUpdates rejected the bot token, stopping", extra={"error_code": exc.error_code, "description": exc.description})
                raise
            if exc.retry_after is not None:
                delay = float(max(exc.retry_after, 0))
            else:
                delay = self._next_backoff()
            logger.warning("getUpdates failed, retrying", extra={"error": str(exc), "delay": delay, "offset": self._offset})
        except (TransportError, DecodeError) as exc:
            delay = self._next_backoff()
            logger.warning("getUpdates failed, retrying", extra={"error": str(exc), "delay": delay, "offset": self._offset})
        else:
            self._failures = 0
            if updates:
                logger.debug("Received updates", extra={"count": len(updates), "offset": self._offset})
            return sorted(updates, key=lambda update: update.update_id)

        await self._sleep(delay)
        return None

    def _next_backoff(self) -> float:
        delay = min(self._options.error_timeout * (2 ** self._failures), self._options.max_error_timeout)
        self._failures += 1
        return delay

    async def _dispatch(self, updates: List[Update]) -> None:
        for update in updates:
            try:
                await self._handler.handle(update)
            except Exception:
                logger.exception("Update handler failed", extra={"update_id": update.update_id})
