"""Telegram Bot API SDK -- request building, execution and file downloads.

Usage::

    from sdk import BotClient, ClientConfig, TelegramError
    from sdk.methods import SendMessage

    client = BotClient(ClientConfig("123:ABC"))
    try:
        client.execute(SendMessage(chat_id=42, text="hi"))
    except TelegramError as exc:
        print(exc.error_code, exc.retry_after)
"""

from sdk.client import BotClient
from sdk.config import ClientConfig
from sdk.exceptions import (
    ApiError,
    ConfigError,
    DecodeError,
    DownloadFileError,
    FormError,
    PayloadError,
    TelegramError,
    TransportError,
)
from sdk.files import InputFile
from sdk.form import Form
from sdk.payload import Payload

__all__ = [
    "ApiError",
    "BotClient",
    "ClientConfig",
    "ConfigError",
    "DecodeError",
    "DownloadFileError",
    "Form",
    "FormError",
    "InputFile",
    "Payload",
    "PayloadError",
    "TelegramError",
    "TransportError",
]
