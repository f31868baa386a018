"""Exception hierarchy for the telepoll Telegram SDK.

Every error raised by :mod:`sdk` derives from :class:`ApiError` so callers can
catch the whole family at once, while each concrete class stays inspectable:

- :class:`PayloadError` -- the request could not be built (bad file source,
  unserializable value).  The original failure is chained as ``__cause__``.
- :class:`TransportError` -- connection, TLS or timeout failure.
- :class:`DecodeError` -- the response body is not the expected envelope or
  the ``result`` does not match the method's response shape.
- :class:`TelegramError` -- the API answered ``{"ok": false, ...}``.
- :class:`DownloadFileError` -- a file download returned a non-2xx status.
"""

from typing import Optional


class ApiError(Exception):
    """Base class for all SDK errors."""


class ConfigError(ApiError):
    """Raised when a client configuration value is unusable."""


class FormError(ApiError):
    """Raised when a multipart form cannot be built."""


class PayloadError(ApiError):
    """Raised when a payload cannot be converted into an HTTP request."""

    def __init__(self, message: str) -> None:
        super().__init__(f"could not build an HTTP request: {message}")


class TransportError(ApiError):
    """Raised on transport-level failures (connection, TLS, timeout)."""


class DecodeError(ApiError):
    """Raised when a response cannot be decoded.

    Attributes:
        status_code: HTTP status code of the offending response, when known.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (status={status_code})"
        super().__init__(message)


class TelegramError(ApiError):
    """Error envelope returned by the Telegram Bot API.

    Attributes:
        description: Human-readable description supplied by the API.
        error_code: Numeric error code, usually mirroring the HTTP status.
        retry_after: Seconds to wait before repeating the request, if any.
        migrate_to_chat_id: New id of a group migrated to a supergroup.
    """

    def __init__(
        self,
        description: str,
        error_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        migrate_to_chat_id: Optional[int] = None,
    ) -> None:
        self.description = description
        self.error_code = error_code
        self.retry_after = retry_after
        self.migrate_to_chat_id = migrate_to_chat_id
        message = f"a telegram error has occurred: description={description}"
        if error_code is not None:
            message += f"; error_code={error_code}"
        if migrate_to_chat_id is not None:
            message += f"; migrate_to_chat_id={migrate_to_chat_id}"
        if retry_after is not None:
            message += f"; retry_after={retry_after}"
        super().__init__(message)

    @property
    def can_retry(self) -> bool:
        """Whether the API told us when the request may be repeated."""
        return self.retry_after is not None


class DownloadFileError(ApiError):
    """Raised when the file endpoint answers with a non-2xx status.

    Attributes:
        status: HTTP status code.
        text: Response body decoded as text.
    """

    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self.text = text
        super().__init__(f"failed to download file: status={status} text={text}")
