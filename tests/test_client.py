"""Tests for BotClient and the SDK error model."""

import asyncio
import json
import sys
import os
import threading
from unittest.mock import patch, MagicMock

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.client import BotClient
from sdk.config import ClientConfig
from sdk.exceptions import (
    ApiError,
    DecodeError,
    DownloadFileError,
    PayloadError,
    TelegramError,
    TransportError,
)
from sdk.files import InputFile
from sdk.methods import GetFile, GetMe, GetUpdates, SendDocument, SendMessage
from sdk.models import File, Message, Update, User

TOKEN = "123:ABC"


def _response(body=None, status: int = 200, chunks=None, text: str = "") -> MagicMock:
    """Build a fake ``requests.Response``."""
    resp = MagicMock()
    resp.status_code = status
    if body is None:
        resp.json.side_effect = ValueError("No JSON")
    else:
        resp.json.return_value = body
    resp.text = text
    resp.iter_content.return_value = iter(chunks or [])
    return resp


@pytest.fixture()
def client():
    c = BotClient(ClientConfig(TOKEN, host="https://api.example.com", timeout=5))
    yield c
    c.close()


# ── Exceptions ───────────────────────────────────────────────────────────────


class TestExceptions:
    """Validate the exception hierarchy and messages."""

    def test_hierarchy(self) -> None:
        for cls in (PayloadError, TransportError, DecodeError, TelegramError, DownloadFileError):
            assert issubclass(cls, ApiError)

    def test_telegram_error_fields(self) -> None:
        exc = TelegramError("Too Many Requests", error_code=429, retry_after=3)
        assert exc.can_retry
        assert "error_code=429" in str(exc)
        assert "retry_after=3" in str(exc)

    def test_telegram_error_without_retry(self) -> None:
        exc = TelegramError("Bad Request: chat not found", error_code=400)
        assert not exc.can_retry
        assert exc.migrate_to_chat_id is None

    def test_decode_error_status(self) -> None:
        exc = DecodeError("bad body", 502)
        assert exc.status_code == 502
        assert "status=502" in str(exc)

    def test_download_error_text(self) -> None:
        exc = DownloadFileError(404, "Not Found")
        assert "404" in str(exc)
        assert "Not Found" in str(exc)


# ── Construction ─────────────────────────────────────────────────────────────


class TestClientInit:
    def test_from_token(self) -> None:
        c = BotClient(TOKEN)
        assert c.config.host == "https://api.telegram.org"
        assert TOKEN not in repr(c)

    def test_proxy_applied_to_session(self) -> None:
        c = BotClient(ClientConfig(TOKEN, proxy="socks5://127.0.0.1:1080"))
        assert c._session.proxies["https"] == "socks5://127.0.0.1:1080"

    def test_context_manager_closes_session(self) -> None:
        session = MagicMock()
        with BotClient(TOKEN, session=session):
            pass
        session.close.assert_called_once()


# ── execute ──────────────────────────────────────────────────────────────────


class TestExecute:
    """Validate request building and envelope decoding."""

    @patch("sdk.client.requests.Session.send")
    def test_get_me(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response({"ok": True, "result": {"id": 1, "is_bot": True, "first_name": "Bot"}})

        me = client.execute(GetMe())
        assert isinstance(me, User)
        assert me.first_name == "Bot"

        prepared = mock_send.call_args[0][0]
        assert prepared.method == "GET"
        assert prepared.url == f"https://api.example.com/bot{TOKEN}/getMe"
        assert mock_send.call_args[1]["timeout"] == 5

    @patch("sdk.client.requests.Session.send")
    def test_json_body(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(
            {"ok": True, "result": {"message_id": 7, "date": 0, "chat": {"id": 42, "type": "private"}, "text": "hi"}}
        )

        message = client.execute(SendMessage(chat_id=42, text="hi"))
        assert isinstance(message, Message)
        assert message.message_id == 7

        prepared = mock_send.call_args[0][0]
        assert prepared.method == "POST"
        assert prepared.headers["Content-Type"] == "application/json"
        assert json.loads(prepared.body) == {"chat_id": 42, "text": "hi"}

    @patch("sdk.client.requests.Session.send")
    def test_multipart_body(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(
            {"ok": True, "result": {"message_id": 8, "date": 0, "chat": {"id": 42, "type": "private"}}}
        )

        client.execute(SendDocument(chat_id=42, document=InputFile.reader(b"%PDF-1.4", name="a.pdf")))

        prepared = mock_send.call_args[0][0]
        assert prepared.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="document"; filename="a.pdf"' in prepared.body
        assert b"%PDF-1.4" in prepared.body

    @patch("sdk.client.requests.Session.send")
    def test_long_poll_extends_timeout(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response({"ok": True, "result": []})

        assert client.execute(GetUpdates(offset=0, timeout=30)) == []
        assert mock_send.call_args[1]["timeout"] == 35

    @patch("sdk.client.requests.Session.send")
    def test_updates_decoded(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(
            {"ok": True, "result": [{"update_id": 5, "message": {"message_id": 1, "date": 0, "chat": {"id": 1, "type": "private"}}}]}
        )

        updates = client.execute(GetUpdates())
        assert [type(u) for u in updates] == [Update]
        assert updates[0].update_id == 5

    @patch("sdk.client.requests.Session.send")
    def test_telegram_error(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(
            {
                "ok": False,
                "error_code": 429,
                "description": "Too Many Requests: retry after 3",
                "parameters": {"retry_after": 3},
            },
            status=429,
        )

        with pytest.raises(TelegramError) as exc_info:
            client.execute(SendMessage(chat_id=1, text="x"))
        assert exc_info.value.error_code == 429
        assert exc_info.value.retry_after == 3
        assert exc_info.value.description.startswith("Too Many Requests")

    @patch("sdk.client.requests.Session.send")
    def test_migrate_to_chat_id(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(
            {
                "ok": False,
                "error_code": 400,
                "description": "Bad Request: group chat was upgraded to a supergroup chat",
                "parameters": {"migrate_to_chat_id": -1001234},
            },
            status=400,
        )

        with pytest.raises(TelegramError) as exc_info:
            client.execute(SendMessage(chat_id=-1, text="x"))
        assert exc_info.value.migrate_to_chat_id == -1001234
        assert not exc_info.value.can_retry

    @patch("sdk.client.requests.Session.send")
    def test_non_json_body(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(None, status=502)

        with pytest.raises(DecodeError) as exc_info:
            client.execute(GetMe())
        assert exc_info.value.status_code == 502

    @patch("sdk.client.requests.Session.send")
    def test_shape_mismatch(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response({"ok": True, "result": {"unexpected": True}})

        with pytest.raises(DecodeError, match="unexpected shape"):
            client.execute(GetMe())

    @patch("sdk.client.requests.Session.send")
    def test_missing_result(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response({"ok": True})

        with pytest.raises(DecodeError, match="result is not provided"):
            client.execute(GetMe())

    @patch("sdk.client.requests.Session.send")
    def test_transport_error(self, mock_send: MagicMock, client) -> None:
        mock_send.side_effect = requests.ConnectionError("offline")

        with pytest.raises(TransportError) as exc_info:
            client.execute(GetMe())
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    @patch("sdk.client.requests.Session.send")
    def test_payload_error_sends_nothing(self, mock_send: MagicMock, client, tmp_path) -> None:
        with pytest.raises(PayloadError):
            client.execute(SendDocument(chat_id=1, document=InputFile.path(tmp_path / "missing.pdf")))
        mock_send.assert_not_called()

    @pytest.mark.asyncio
    @patch("sdk.client.requests.Session.send")
    async def test_aexecute(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(
            {"ok": True, "result": {"file_id": "f", "file_unique_id": "u", "file_path": "documents/a.pdf"}}
        )

        file = await client.aexecute(GetFile(file_id="f"))
        assert isinstance(file, File)
        assert file.file_path == "documents/a.pdf"


# ── download_file ────────────────────────────────────────────────────────────


class TestDownloadFile:
    """Validate streaming downloads."""

    @patch("sdk.client.requests.Session.send")
    def test_streams_chunks_in_order(self, mock_send: MagicMock, client) -> None:
        resp = _response(chunks=[b"ab", b"", b"cd", b"ef"])
        mock_send.return_value = resp

        data = b"".join(client.download_file("documents/a.pdf"))
        assert data == b"abcdef"
        resp.close.assert_called_once()

        prepared = mock_send.call_args[0][0]
        assert prepared.url == f"https://api.example.com/file/bot{TOKEN}/documents/a.pdf"
        assert mock_send.call_args[1]["stream"] is True

    @patch("sdk.client.requests.Session.send")
    def test_error_status(self, mock_send: MagicMock, client) -> None:
        resp = _response(status=400, text="bad-request")
        mock_send.return_value = resp

        with pytest.raises(DownloadFileError) as exc_info:
            client.download_file("documents/a.pdf")
        assert exc_info.value.status == 400
        assert "400" in str(exc_info.value)
        assert "bad-request" in str(exc_info.value)
        resp.close.assert_called_once()

    @patch("sdk.client.requests.Session.send")
    def test_interrupted_stream(self, mock_send: MagicMock, client) -> None:
        def broken(chunk_size):
            yield b"ab"
            raise requests.ConnectionError("reset")

        resp = _response()
        resp.iter_content.side_effect = broken
        mock_send.return_value = resp

        chunks = client.download_file("documents/a.pdf")
        assert next(chunks) == b"ab"
        with pytest.raises(TransportError):
            next(chunks)

    @patch("sdk.client.requests.Session.send")
    def test_connection_failure(self, mock_send: MagicMock, client) -> None:
        mock_send.side_effect = requests.Timeout("slow")

        with pytest.raises(TransportError):
            client.download_file("documents/a.pdf")

    @pytest.mark.asyncio
    @patch("sdk.client.requests.Session.send")
    async def test_async_download(self, mock_send: MagicMock, client) -> None:
        mock_send.return_value = _response(chunks=[b"12", b"34"])

        received = [chunk async for chunk in await client.adownload_file("photos/p.jpg")]
        assert received == [b"12", b"34"]

    @pytest.mark.asyncio
    @patch("sdk.client.requests.Session.send")
    async def test_cancelled_download_releases_response(self, mock_send: MagicMock, client) -> None:
        waiting = threading.Event()
        release = threading.Event()

        def slow_chunks():
            yield b"12"
            waiting.set()
            release.wait(5)
            yield b"34"

        resp = _response()
        resp.iter_content.return_value = slow_chunks()
        mock_send.return_value = resp
        received = []

        async def consume() -> None:
            async for chunk in await client.adownload_file("photos/p.jpg"):
                received.append(chunk)

        task = asyncio.create_task(consume())
        assert await asyncio.to_thread(waiting.wait, 5)
        task.cancel()
        release.set()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert received == [b"12"]
        resp.close.assert_called_once()
