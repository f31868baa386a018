"""Declarative definitions of Bot API methods.

Each method is a pydantic model naming the remote method (``api_method``),
the shape of its ``result`` (``response_type``) and its parameters.  The
shared :meth:`Method.into_payload` picks the wire format:

- a ``bodyless`` method without parameters is a plain ``GET``;
- a method with at least one file to upload becomes ``multipart/form-data``;
- anything else is posted as JSON.

Usage::

    from sdk.methods import SendMessage, SendDocument
    from sdk.files import InputFile

    client.execute(SendMessage(chat_id=42, text="hello"))
    client.execute(SendDocument(chat_id=42, document=InputFile.path("report.pdf")))
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Literal, Optional, Set, Union

from pydantic import BaseModel, Field

from sdk.files import InputFile
from sdk.form import Form, to_form_text, to_jsonable
from sdk.models import (
    AllowedUpdate,
    BotCommand,
    ChatId,
    File,
    Message,
    MessageEntity,
    MessageId,
    ReplyMarkup,
    Update,
    User,
    WebhookInfo,
)
from sdk.payload import Payload

FileRef = Union[InputFile, str]


class Method(BaseModel):
    """Base class of every API method."""

    api_method: ClassVar[str]
    response_type: ClassVar[Any] = bool
    bodyless: ClassVar[bool] = False

    model_config = {"arbitrary_types_allowed": True, "populate_by_name": True}

    def long_poll_wait(self) -> float:
        """Seconds the server may legitimately hold this request open."""
        return 0

    def iter_params(self):
        """Yield ``(api_name, value)`` for every parameter that is set."""
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if value is not None:
                yield field.alias or name, value

    def into_payload(self) -> Payload:
        params = list(self.iter_params())
        if self.bodyless and not params:
            return Payload.empty(self.api_method)
        if any(isinstance(value, InputFile) and value.is_upload for _, value in params):
            return Payload.form(self.api_method, Form(params))
        return Payload.json(self.api_method, dict(params))


# ── Updates and webhooks ─────────────────────────────────────────────────────


class GetUpdates(Method):
    """Receive incoming updates using long polling."""

    api_method: ClassVar[str] = "getUpdates"
    response_type: ClassVar[Any] = List[Update]

    offset: Optional[int] = None
    limit: Optional[int] = Field(None, ge=1, le=100)
    timeout: Optional[int] = Field(None, ge=0)
    allowed_updates: Optional[Set[AllowedUpdate]] = None

    def long_poll_wait(self) -> float:
        return self.timeout or 0


class SetWebhook(Method):
    api_method: ClassVar[str] = "setWebhook"

    url: str
    certificate: Optional[InputFile] = None
    ip_address: Optional[str] = None
    max_connections: Optional[int] = Field(None, ge=1, le=100)
    allowed_updates: Optional[Set[AllowedUpdate]] = None
    drop_pending_updates: Optional[bool] = None
    secret_token: Optional[str] = None


class DeleteWebhook(Method):
    api_method: ClassVar[str] = "deleteWebhook"

    drop_pending_updates: Optional[bool] = None


class GetWebhookInfo(Method):
    api_method: ClassVar[str] = "getWebhookInfo"
    response_type: ClassVar[Any] = WebhookInfo
    bodyless: ClassVar[bool] = True


# ── Bot ──────────────────────────────────────────────────────────────────────


class GetMe(Method):
    """Basic information about the bot; handy for checking the token."""

    api_method: ClassVar[str] = "getMe"
    response_type: ClassVar[Any] = User
    bodyless: ClassVar[bool] = True


class LogOut(Method):
    api_method: ClassVar[str] = "logOut"
    bodyless: ClassVar[bool] = True


class Close(Method):
    api_method: ClassVar[str] = "close"
    bodyless: ClassVar[bool] = True


class SetMyCommands(Method):
    api_method: ClassVar[str] = "setMyCommands"

    commands: List[BotCommand] = Field(max_length=100)
    scope: Optional[Dict[str, Any]] = None
    language_code: Optional[str] = None


class GetMyCommands(Method):
    api_method: ClassVar[str] = "getMyCommands"
    response_type: ClassVar[Any] = List[BotCommand]

    scope: Optional[Dict[str, Any]] = None
    language_code: Optional[str] = None


class DeleteMyCommands(Method):
    api_method: ClassVar[str] = "deleteMyCommands"

    scope: Optional[Dict[str, Any]] = None
    language_code: Optional[str] = None


# ── Messages ─────────────────────────────────────────────────────────────────


class SendMessage(Method):
    api_method: ClassVar[str] = "sendMessage"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    text: str
    message_thread_id: Optional[int] = None
    parse_mode: Optional[str] = None
    entities: Optional[List[MessageEntity]] = None
    disable_web_page_preview: Optional[bool] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None
    reply_markup: Optional[ReplyMarkup] = None


class ForwardMessage(Method):
    api_method: ClassVar[str] = "forwardMessage"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    from_chat_id: ChatId
    message_id: int
    message_thread_id: Optional[int] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None


class CopyMessage(Method):
    api_method: ClassVar[str] = "copyMessage"
    response_type: ClassVar[Any] = MessageId

    chat_id: ChatId
    from_chat_id: ChatId
    message_id: int
    message_thread_id: Optional[int] = None
    caption: Optional[str] = None
    parse_mode: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None
    reply_markup: Optional[ReplyMarkup] = None


class DeleteMessage(Method):
    api_method: ClassVar[str] = "deleteMessage"

    chat_id: ChatId
    message_id: int


class SendPhoto(Method):
    api_method: ClassVar[str] = "sendPhoto"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    photo: FileRef
    message_thread_id: Optional[int] = None
    caption: Optional[str] = None
    parse_mode: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    has_spoiler: Optional[bool] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None
    reply_markup: Optional[ReplyMarkup] = None


class SendDocument(Method):
    """Send a general file (up to 50 MB)."""

    api_method: ClassVar[str] = "sendDocument"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    document: FileRef
    message_thread_id: Optional[int] = None
    thumbnail: Optional[InputFile] = None
    caption: Optional[str] = None
    parse_mode: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    disable_content_type_detection: Optional[bool] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None
    reply_markup: Optional[ReplyMarkup] = None


class SendLocation(Method):
    api_method: ClassVar[str] = "sendLocation"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    latitude: float
    longitude: float
    message_thread_id: Optional[int] = None
    horizontal_accuracy: Optional[float] = Field(None, ge=0, le=1500)
    live_period: Optional[int] = None
    heading: Optional[int] = Field(None, ge=1, le=360)
    proximity_alert_radius: Optional[int] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None
    reply_markup: Optional[ReplyMarkup] = None


class SendDice(Method):
    """Send an animated emoji showing a random value."""

    api_method: ClassVar[str] = "sendDice"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    emoji: Optional[str] = None
    message_thread_id: Optional[int] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None
    reply_markup: Optional[ReplyMarkup] = None


class SendChatAction(Method):
    api_method: ClassVar[str] = "sendChatAction"

    chat_id: ChatId
    action: str
    message_thread_id: Optional[int] = None


class AnswerCallbackQuery(Method):
    api_method: ClassVar[str] = "answerCallbackQuery"

    callback_query_id: str
    text: Optional[str] = None
    show_alert: Optional[bool] = None
    url: Optional[str] = None
    cache_time: Optional[int] = None


class GetFile(Method):
    """Resolve a ``file_id`` into a :class:`~sdk.models.File` with a download path."""

    api_method: ClassVar[str] = "getFile"
    response_type: ClassVar[Any] = File

    file_id: str


# ── Media groups ─────────────────────────────────────────────────────────────


class InputMedia(BaseModel):
    """One item of a media group."""

    type: str
    media: FileRef
    caption: Optional[str] = None
    parse_mode: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None

    model_config = {"arbitrary_types_allowed": True}

    def to_api_dict(self, attach) -> Dict[str, Any]:
        """Serialize the item, turning each file into a string via *attach*."""
        data: Dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, InputFile):
                value = attach(name, value)
            data[name] = to_jsonable(value)
        return data


class InputMediaPhoto(InputMedia):
    type: Literal["photo"] = "photo"
    has_spoiler: Optional[bool] = None


class InputMediaVideo(InputMedia):
    type: Literal["video"] = "video"
    thumbnail: Optional[InputFile] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None
    supports_streaming: Optional[bool] = None
    has_spoiler: Optional[bool] = None


class InputMediaAudio(InputMedia):
    type: Literal["audio"] = "audio"
    thumbnail: Optional[InputFile] = None
    duration: Optional[int] = None
    performer: Optional[str] = None
    title: Optional[str] = None


class InputMediaDocument(InputMedia):
    type: Literal["document"] = "document"
    thumbnail: Optional[InputFile] = None
    disable_content_type_detection: Optional[bool] = None


MediaGroupItem = Union[InputMediaPhoto, InputMediaVideo, InputMediaAudio, InputMediaDocument]


class SendMediaGroup(Method):
    """Send 2-10 photos, videos, documents or audios as an album.

    Uploaded files travel as extra multipart fields referenced from the
    ``media`` array as ``attach://<field>``.
    """

    api_method: ClassVar[str] = "sendMediaGroup"
    response_type: ClassVar[Any] = List[Message]

    chat_id: ChatId
    media: List[MediaGroupItem] = Field(min_length=2, max_length=10)
    message_thread_id: Optional[int] = None
    disable_notification: Optional[bool] = None
    protect_content: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    allow_sending_without_reply: Optional[bool] = None

    def into_payload(self) -> Payload:
        uploads: List[tuple[str, InputFile]] = []

        def attach_for(index: int):
            def attach(field_name: str, file: InputFile) -> str:
                if not file.is_upload:
                    return file.as_text()
                key = f"attach_{field_name}_{index}"
                uploads.append((key, file))
                return f"attach://{key}"

            return attach

        media = [item.to_api_dict(attach_for(index)) for index, item in enumerate(self.media)]
        params = [(name, value) for name, value in self.iter_params() if name != "media"]
        if not uploads:
            return Payload.json(self.api_method, dict(params, media=media))

        form = Form(params)
        for key, file in uploads:
            form.insert(key, file)
        form.insert("media", to_form_text(media))
        return Payload.form(self.api_method, form)


__all__ = [
    "AnswerCallbackQuery",
    "Close",
    "CopyMessage",
    "DeleteMessage",
    "DeleteMyCommands",
    "DeleteWebhook",
    "FileRef",
    "ForwardMessage",
    "GetFile",
    "GetMe",
    "GetMyCommands",
    "GetUpdates",
    "GetWebhookInfo",
    "InputMedia",
    "InputMediaAudio",
    "InputMediaDocument",
    "InputMediaPhoto",
    "InputMediaVideo",
    "LogOut",
    "Method",
    "SendChatAction",
    "SendDice",
    "SendDocument",
    "SendLocation",
    "SendMediaGroup",
    "SendMessage",
    "SendPhoto",
    "SetMyCommands",
    "SetWebhook",
]
