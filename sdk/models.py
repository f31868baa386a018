"""Pydantic data models for the Telegram Bot API objects used by telepoll.

Every class mirrors an object from https://core.telegram.org/bots/api.
Unknown fields are kept (``extra="allow"``) so that objects sent by newer
API versions survive a parse/serialize round trip unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

ChatId = Union[int, str]


class TelegramObject(BaseModel):
    """Base for all API objects."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    def to_dict(self) -> dict[str, Any]:
        """Serialize using API field names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Response envelope ────────────────────────────────────────────────────────


class ResponseParameters(TelegramObject):
    """Describes why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None


class ResponseEnvelope(TelegramObject):
    """Top-level wrapper of every Bot API response."""

    ok: bool
    result: Any = None
    description: Optional[str] = None
    error_code: Optional[int] = None
    parameters: Optional[ResponseParameters] = None


# ── Users and chats ──────────────────────────────────────────────────────────


class User(TelegramObject):
    """A Telegram user or bot."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: Optional[bool] = None
    can_join_groups: Optional[bool] = None
    can_read_all_group_messages: Optional[bool] = None
    supports_inline_queries: Optional[bool] = None


class Chat(TelegramObject):
    """A chat."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_forum: Optional[bool] = None


class ChatInviteLink(TelegramObject):
    invite_link: str
    creator: User
    creates_join_request: bool
    is_primary: bool
    is_revoked: bool
    name: Optional[str] = None
    expire_date: Optional[int] = None
    member_limit: Optional[int] = None
    pending_join_request_count: Optional[int] = None


class ChatMember(TelegramObject):
    """Membership of a user in a chat.

    The API splits this into one type per ``status``; the status-specific
    fields are carried as extras.
    """

    status: str
    user: User


class ChatMemberUpdated(TelegramObject):
    """Changes in the status of a chat member."""

    chat: Chat
    from_field: User = Field(alias="from")
    date: int
    old_chat_member: ChatMember
    new_chat_member: ChatMember
    invite_link: Optional[ChatInviteLink] = None
    via_join_request: Optional[bool] = None
    via_chat_folder_invite_link: Optional[bool] = None


class ChatJoinRequest(TelegramObject):
    """A request to join the chat."""

    chat: Chat
    from_field: User = Field(alias="from")
    user_chat_id: int
    date: int
    bio: Optional[str] = None
    invite_link: Optional[ChatInviteLink] = None


# ── Message content ──────────────────────────────────────────────────────────


class MessageEntity(TelegramObject):
    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional[User] = None
    language: Optional[str] = None
    custom_emoji_id: Optional[str] = None


class PhotoSize(TelegramObject):
    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: Optional[int] = None


class Document(TelegramObject):
    file_id: str
    file_unique_id: str
    thumbnail: Optional[PhotoSize] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Audio(TelegramObject):
    file_id: str
    file_unique_id: str
    duration: int
    performer: Optional[str] = None
    title: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Video(TelegramObject):
    file_id: str
    file_unique_id: str
    width: int
    height: int
    duration: int
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Voice(TelegramObject):
    file_id: str
    file_unique_id: str
    duration: int
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Contact(TelegramObject):
    phone_number: str
    first_name: str
    last_name: Optional[str] = None
    user_id: Optional[int] = None
    vcard: Optional[str] = None


class Dice(TelegramObject):
    emoji: str
    value: int


class Location(TelegramObject):
    latitude: float
    longitude: float
    horizontal_accuracy: Optional[float] = None
    live_period: Optional[int] = None
    heading: Optional[int] = None
    proximity_alert_radius: Optional[int] = None


class PollOption(TelegramObject):
    text: str
    voter_count: int


class Poll(TelegramObject):
    id: str
    question: str
    options: List[PollOption]
    total_voter_count: int
    is_closed: bool
    is_anonymous: bool
    type: str
    allows_multiple_answers: bool
    correct_option_id: Optional[int] = None
    explanation: Optional[str] = None
    open_period: Optional[int] = None
    close_date: Optional[int] = None


class PollAnswer(TelegramObject):
    poll_id: str
    option_ids: List[int]
    voter_chat: Optional[Chat] = None
    user: Optional[User] = None


class Message(TelegramObject):
    """A message."""

    message_id: int
    date: int
    chat: Chat
    message_thread_id: Optional[int] = None
    from_field: Optional[User] = Field(None, alias="from")
    sender_chat: Optional[Chat] = None
    reply_to_message: Optional[Message] = None
    via_bot: Optional[User] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    author_signature: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List[MessageEntity]] = None
    audio: Optional[Audio] = None
    document: Optional[Document] = None
    photo: Optional[List[PhotoSize]] = None
    video: Optional[Video] = None
    voice: Optional[Voice] = None
    caption: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    contact: Optional[Contact] = None
    dice: Optional[Dice] = None
    poll: Optional[Poll] = None
    location: Optional[Location] = None
    new_chat_members: Optional[List[User]] = None
    left_chat_member: Optional[User] = None
    new_chat_title: Optional[str] = None
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None
    reply_markup: Optional[InlineKeyboardMarkup] = None


class MessageId(TelegramObject):
    message_id: int


class File(TelegramObject):
    """A file ready to be downloaded via :meth:`BotClient.download_file`."""

    file_id: str
    file_unique_id: str
    file_size: Optional[int] = None
    file_path: Optional[str] = None


# ── Keyboards ────────────────────────────────────────────────────────────────


class InlineKeyboardButton(TelegramObject):
    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    switch_inline_query: Optional[str] = None
    switch_inline_query_current_chat: Optional[str] = None


class InlineKeyboardMarkup(TelegramObject):
    inline_keyboard: List[List[InlineKeyboardButton]]


class KeyboardButton(TelegramObject):
    text: str
    request_contact: Optional[bool] = None
    request_location: Optional[bool] = None


class ReplyKeyboardMarkup(TelegramObject):
    keyboard: List[List[KeyboardButton]]
    is_persistent: Optional[bool] = None
    resize_keyboard: Optional[bool] = None
    one_time_keyboard: Optional[bool] = None
    input_field_placeholder: Optional[str] = None
    selective: Optional[bool] = None


class ReplyKeyboardRemove(TelegramObject):
    remove_keyboard: Literal[True]
    selective: Optional[bool] = None


class ForceReply(TelegramObject):
    force_reply: Literal[True]
    input_field_placeholder: Optional[str] = None
    selective: Optional[bool] = None


ReplyMarkup = Union[InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove, ForceReply]


# ── Queries ──────────────────────────────────────────────────────────────────


class CallbackQuery(TelegramObject):
    """An incoming callback query from an inline keyboard button."""

    id: str
    from_field: User = Field(alias="from")
    chat_instance: str
    message: Optional[Message] = None
    inline_message_id: Optional[str] = None
    data: Optional[str] = None
    game_short_name: Optional[str] = None


class InlineQuery(TelegramObject):
    id: str
    from_field: User = Field(alias="from")
    query: str
    offset: str
    chat_type: Optional[str] = None
    location: Optional[Location] = None


class ChosenInlineResult(TelegramObject):
    result_id: str
    from_field: User = Field(alias="from")
    query: str
    location: Optional[Location] = None
    inline_message_id: Optional[str] = None


class ShippingAddress(TelegramObject):
    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str


class OrderInfo(TelegramObject):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None


class ShippingQuery(TelegramObject):
    id: str
    from_field: User = Field(alias="from")
    invoice_payload: str
    shipping_address: ShippingAddress


class PreCheckoutQuery(TelegramObject):
    id: str
    from_field: User = Field(alias="from")
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: Optional[str] = None
    order_info: Optional[OrderInfo] = None


# ── Bot settings ─────────────────────────────────────────────────────────────


class BotCommand(TelegramObject):
    command: str
    description: str


class WebhookInfo(TelegramObject):
    """Current status of a webhook."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    max_connections: Optional[int] = None
    allowed_updates: Optional[List[str]] = None


# ── Updates ──────────────────────────────────────────────────────────────────


class AllowedUpdate(str, Enum):
    """Update type names accepted by ``allowed_updates``."""

    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    EDITED_CHANNEL_POST = "edited_channel_post"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    CALLBACK_QUERY = "callback_query"
    SHIPPING_QUERY = "shipping_query"
    PRE_CHECKOUT_QUERY = "pre_checkout_query"
    POLL = "poll"
    POLL_ANSWER = "poll_answer"
    MY_CHAT_MEMBER = "my_chat_member"
    CHAT_MEMBER = "chat_member"
    CHAT_JOIN_REQUEST = "chat_join_request"


class Update(TelegramObject):
    """An incoming update.  At most one of the optional fields is present."""

    update_id: int
    message: Optional[Message] = None
    edited_message: Optional[Message] = None
    channel_post: Optional[Message] = None
    edited_channel_post: Optional[Message] = None
    inline_query: Optional[InlineQuery] = None
    chosen_inline_result: Optional[ChosenInlineResult] = None
    callback_query: Optional[CallbackQuery] = None
    shipping_query: Optional[ShippingQuery] = None
    pre_checkout_query: Optional[PreCheckoutQuery] = None
    poll: Optional[Poll] = None
    poll_answer: Optional[PollAnswer] = None
    my_chat_member: Optional[ChatMemberUpdated] = None
    chat_member: Optional[ChatMemberUpdated] = None
    chat_join_request: Optional[ChatJoinRequest] = None

    @property
    def kind(self) -> Optional[AllowedUpdate]:
        """Type of the payload carried by this update, if a known one."""
        for allowed in AllowedUpdate:
            if getattr(self, allowed.value) is not None:
                return allowed
        return None

    def get_message(self) -> Optional[Message]:
        """Message of a message/post update, or of a callback query."""
        message = self.message or self.edited_message or self.channel_post or self.edited_channel_post
        if message is None and self.callback_query is not None:
            message = self.callback_query.message
        return message

    def get_chat_id(self) -> Optional[int]:
        message = self.get_message()
        if message is not None:
            return message.chat.id
        for member_update in (self.my_chat_member, self.chat_member, self.chat_join_request):
            if member_update is not None:
                return member_update.chat.id
        return None

    def get_user(self) -> Optional[User]:
        """The user that caused the update, when there is one."""
        for query in (
            self.callback_query,
            self.inline_query,
            self.chosen_inline_result,
            self.shipping_query,
            self.pre_checkout_query,
            self.my_chat_member,
            self.chat_member,
            self.chat_join_request,
        ):
            if query is not None:
                return query.from_field
        if self.poll_answer is not None:
            return self.poll_answer.user
        message = self.get_message()
        return message.from_field if message is not None else None


for _model in (Message, CallbackQuery, Update):
    _model.model_rebuild()
