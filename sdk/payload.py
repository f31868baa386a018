"""Transport-agnostic request descriptors.

A :class:`Payload` records *what* to send for one API call -- URL path,
HTTP verb and body kind -- without touching the network.  Construction
never raises: a JSON serialization failure is stored and only surfaced,
as a :class:`~sdk.exceptions.PayloadError`, when the payload is turned
into a :class:`requests.Request` by :meth:`Payload.into_request`.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Optional

import requests

from sdk.exceptions import FormError, PayloadError
from sdk.form import Form, to_jsonable

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"


class BodyKind(str, Enum):
    FORM = "form"
    JSON = "json"
    EMPTY = "empty"


class Payload:
    """Description of a single HTTP request to the Bot API."""

    __slots__ = ("url_path", "http_verb", "body_kind", "_form", "_json_text", "_json_error", "_consumed")

    def __init__(self, url_path: str, http_verb: HttpVerb, body_kind: BodyKind) -> None:
        self.url_path = url_path
        self.http_verb = http_verb
        self.body_kind = body_kind
        self._form: Optional[Form] = None
        self._json_text: Optional[str] = None
        self._json_error: Optional[Exception] = None
        self._consumed = False

    # ------------------------------------------------------------------
    #  Constructors
    # ------------------------------------------------------------------

    @classmethod
    def form(cls, path: str, form: Form) -> "Payload":
        """POST with a ``multipart/form-data`` body."""
        payload = cls(path, HttpVerb.POST, BodyKind.FORM)
        payload._form = form
        return payload

    @classmethod
    def json(cls, path: str, data: Any) -> "Payload":
        """POST with *data* serialized to JSON right away.

        A serialization failure is kept and re-raised on execution.
        """
        payload = cls(path, HttpVerb.POST, BodyKind.JSON)
        try:
            payload._json_text = json.dumps(to_jsonable(data), ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            payload._json_error = exc
        return payload

    @classmethod
    def empty(cls, path: str) -> "Payload":
        """GET without a body."""
        return cls(path, HttpVerb.GET, BodyKind.EMPTY)

    # ------------------------------------------------------------------
    #  Accessors
    # ------------------------------------------------------------------

    @property
    def form_data(self) -> Optional[Form]:
        return self._form

    @property
    def json_text(self) -> Optional[str]:
        """Serialized JSON body, or ``None`` if serialization failed."""
        return self._json_text

    @property
    def json_error(self) -> Optional[Exception]:
        return self._json_error

    def build_url(self, base_url: str, token: str) -> str:
        """Return ``{base_url}/bot{token}/{url_path}``."""
        return f"{base_url}/bot{token}/{self.url_path}"

    # ------------------------------------------------------------------
    #  Conversion
    # ------------------------------------------------------------------

    def into_request(self, base_url: str, token: str) -> requests.Request:
        """Consume the payload into an unprepared :class:`requests.Request`.

        Raises:
            PayloadError: If the body cannot be built, or the payload was
                already consumed.
        """
        if self._consumed:
            raise PayloadError(f"payload for {self.url_path!r} was already consumed")
        self._consumed = True

        url = self.build_url(base_url, token)
        if self.body_kind is BodyKind.FORM:
            try:
                parts = self._form.build() if self._form is not None else []
            except FormError as exc:
                raise PayloadError(str(exc)) from exc
            logger.debug("Sending multipart body", extra={"api_endpoint": self.url_path, "fields": [name for name, _ in parts]})
            return requests.Request(self.http_verb.value, url, files=parts)

        if self.body_kind is BodyKind.JSON:
            if self._json_error is not None:
                raise PayloadError(f"can not serialize JSON: {self._json_error}") from self._json_error
            logger.debug("Sending JSON body", extra={"api_endpoint": self.url_path, "body": self._json_text})
            return requests.Request(
                self.http_verb.value,
                url,
                data=self._json_text.encode("utf-8"),
                headers={"Content-Type": CONTENT_TYPE_JSON},
            )

        logger.debug("Sending empty body", extra={"api_endpoint": self.url_path})
        return requests.Request(self.http_verb.value, url)

    def __repr__(self) -> str:
        return f"Payload({self.http_verb.value} {self.url_path!r}, body={self.body_kind.value})"


__all__ = ["BodyKind", "HttpVerb", "Payload", "CONTENT_TYPE_JSON"]
