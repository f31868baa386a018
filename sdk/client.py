"""BotClient -- executes Bot API methods and streams file downloads.

HTTP calls use the ``requests`` library.  Every call goes through
:meth:`BotClient.execute`, which turns a :class:`~sdk.methods.Method` into a
:class:`~sdk.payload.Payload`, sends it, and decodes the response envelope
into the method's ``response_type`` or raises a typed error from
:mod:`sdk.exceptions`.

The ``a``-prefixed coroutines (:meth:`BotClient.aexecute`,
:meth:`BotClient.adownload_file`) offload the blocking I/O via
:func:`asyncio.to_thread` so the event loop is never blocked.

The client holds no mutable state besides the ``requests`` connection pool,
so one instance can be shared by the long-poll loop and any number of
handlers.  It never retries on its own.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Iterator, Optional, Union

import requests
from pydantic import TypeAdapter, ValidationError

from sdk.config import ClientConfig
from sdk.exceptions import (
    DecodeError,
    DownloadFileError,
    TelegramError,
    TransportError,
)
from sdk.methods import Method
from sdk.models import ResponseEnvelope
from sdk.payload import Payload

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024

_adapters: dict[Any, TypeAdapter] = {}


def _adapter_for(response_type: Any) -> TypeAdapter:
    adapter = _adapters.get(response_type)
    if adapter is None:
        adapter = _adapters[response_type] = TypeAdapter(response_type)
    return adapter


def _mask(url: str, token: str) -> str:
    return url.replace(token, "***")


class BotClient:
    """Client for the Telegram Bot API.

    Usage::

        from sdk import BotClient, ClientConfig
        from sdk.methods import GetMe

        with BotClient(ClientConfig("123:ABC")) as client:
            me = client.execute(GetMe())
    """

    def __init__(self, config: Union[ClientConfig, str], session: Optional[requests.Session] = None) -> None:
        """Create a new client.

        Args:
            config: Connection settings, or a bare bot token for the defaults.
            session: Pre-built session to use instead of a fresh one.

        Raises:
            ConfigError: If *config* is a token that does not validate.
        """
        if isinstance(config, str):
            config = ClientConfig(config)
        self._config = config
        self._session = session or requests.Session()
        if config.proxy is not None:
            self._session.proxies.update(config.proxies)
        logger.debug("BotClient initialised", extra={"host": config.host, "proxy": config.proxy is not None})

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------
    #  Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def __enter__(self) -> "BotClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"BotClient(host={self._config.host!r}, token='...')"

    # ------------------------------------------------------------------
    #  Method execution
    # ------------------------------------------------------------------

    def execute(self, method: Method) -> Any:
        """Execute *method* and return its decoded result.

        Raises:
            PayloadError: If the request body could not be built.
            TransportError: On connection, TLS or timeout failures.
            DecodeError: If the body is not a valid envelope or the result
                does not match ``method.response_type``.
            TelegramError: If the API answered ``ok: false``.
        """
        payload = method.into_payload()
        timeout = self._config.timeout + method.long_poll_wait()
        response = self._send(payload, timeout=timeout, stream=False)
        return self._decode(method, payload, response)

    async def aexecute(self, method: Method) -> Any:
        """Async variant of :meth:`execute`, run in a worker thread."""
        return await asyncio.to_thread(self.execute, method)

    def _send(self, payload: Payload, timeout: float, stream: bool) -> requests.Response:
        request = payload.into_request(self._config.host, self._config.token)
        prepared = self._session.prepare_request(request)
        logger.debug(
            "Execute request",
            extra={"http_method": prepared.method, "url": _mask(prepared.url, self._config.token)},
        )
        try:
            return self._session.send(prepared, timeout=timeout, stream=stream)
        except requests.RequestException as exc:
            raise TransportError(f"{payload.url_path} request failed: {exc}") from exc

    def _decode(self, method: Method, payload: Payload, response: requests.Response) -> Any:
        endpoint = payload.url_path
        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(f"{endpoint} returned a non-JSON body", response.status_code) from exc

        try:
            envelope = ResponseEnvelope.model_validate(body)
        except ValidationError as exc:
            raise DecodeError(f"{endpoint} returned a malformed envelope: {exc}", response.status_code) from exc

        if not envelope.ok:
            params = envelope.parameters
            error = TelegramError(
                envelope.description or "no description",
                error_code=envelope.error_code,
                retry_after=params.retry_after if params else None,
                migrate_to_chat_id=params.migrate_to_chat_id if params else None,
            )
            logger.warning(
                "Telegram API error",
                extra={"api_endpoint": endpoint, "error_code": error.error_code, "description": error.description},
            )
            raise error

        if envelope.result is None:
            raise DecodeError(f"{endpoint} response is ok, but result is not provided", response.status_code)
        try:
            return _adapter_for(method.response_type).validate_python(envelope.result)
        except ValidationError as exc:
            raise DecodeError(f"{endpoint} result has an unexpected shape: {exc}", response.status_code) from exc

    # ------------------------------------------------------------------
    #  File download
    # ------------------------------------------------------------------

    def download_file(self, file_path: str, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
        """Stream a file from ``{host}/file/bot{token}/{file_path}``.

        Use :class:`~sdk.methods.GetFile` to obtain *file_path*.  The
        returned iterator is lazy and single-pass; the connection is
        released once it is exhausted or closed.

        Raises:
            DownloadFileError: If the server answers with a non-2xx status.
            TransportError: On connection, TLS or timeout failures.
        """
        payload = Payload.empty(file_path)
        url = payload.build_url(f"{self._config.host}/file", self._config.token)
        logger.debug("Downloading file", extra={"url": _mask(url, self._config.token)})
        try:
            response = self._session.get(url, timeout=self._config.timeout, stream=True)
        except requests.RequestException as exc:
            raise TransportError(f"file download failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            try:
                text = response.text
            finally:
                response.close()
            raise DownloadFileError(response.status_code, text)
        return self._iter_chunks(response, chunk_size)

    @staticmethod
    def _iter_chunks(response: requests.Response, chunk_size: int) -> Iterator[bytes]:
        try:
            for chunk in response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        except requests.RequestException as exc:
            raise TransportError(f"file download interrupted: {exc}") from exc
        finally:
            response.close()

    async def adownload_file(self, file_path: str, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Async variant of :meth:`download_file`.

        Each chunk is pulled in a worker thread::

            async for chunk in await client.adownload_file(file.file_path):
                fh.write(chunk)
        """
        chunks = await asyncio.to_thread(self.download_file, file_path, chunk_size)
        return _aiter_chunks(chunks)


_DONE = object()


async def _aiter_chunks(chunks: Iterator[bytes]) -> AsyncIterator[bytes]:
    pending: Optional[asyncio.Future] = None
    try:
        while True:
            pending = asyncio.ensure_future(asyncio.to_thread(next, chunks, _DONE))
            chunk = await asyncio.shield(pending)
            pending = None
            if chunk is _DONE:
                break
            yield chunk
    finally:
        if pending is not None:
            # A cancelled consumer leaves the worker inside next(); the
            # generator can only be closed once that call has returned.
            await asyncio.wait([pending])
            if not pending.cancelled():
                pending.exception()
        chunks.close()
