"""Update delivery layer -- handler capability and the long-poll engine.

This package may import from ``core/`` and ``sdk/`` only.
"""

from bot.handler import FunctionHandler, SerializedHandler, UpdateHandler, as_handler
from bot.longpoll import LongPoll, LongPollHandle, LongPollOptions

__all__ = [
    # Engine
    "LongPoll",
    "LongPollHandle",
    "LongPollOptions",
    # Handlers
    "UpdateHandler",
    "FunctionHandler",
    "SerializedHandler",
    "as_handler",
]
