"""Entry point -- echo bot on top of the long-poll engine.

Text messages are echoed back as replies; documents are streamed to
``DOWNLOAD_DIR``.  SIGINT / SIGTERM ask the engine to stop after the batch
in progress.
"""

import asyncio
import contextlib
import os
import signal

from bot.longpoll import LongPoll
from config import DOWNLOAD_DIR, load_client_config, load_poll_options
from core.logger import TelepollLogger
from sdk.client import BotClient
from sdk.exceptions import ApiError
from sdk.methods import GetFile, SendMessage
from sdk.models import Message, Update

logger = TelepollLogger.get_logger()


class EchoHandler:
    """Replies to text with the same text and saves incoming documents."""

    def __init__(self, client: BotClient, download_dir: str) -> None:
        self._client = client
        self._download_dir = download_dir

    async def handle(self, update: Update) -> None:
        message = update.message
        if message is None:
            logger.debug("Skipping update", extra={"update_id": update.update_id, "kind": update.kind})
            return

        if message.document is not None:
            await self._save_document(message)
        elif message.text:
            await self._client.aexecute(
                SendMessage(chat_id=message.chat.id, text=message.text, reply_to_message_id=message.message_id)
            )
            logger.info("Echoed message", extra={"update_id": update.update_id, "chat_id": message.chat.id})

    async def _save_document(self, message: Message) -> None:
        document = message.document
        chat_id = message.chat.id
        try:
            file = await self._client.aexecute(GetFile(file_id=document.file_id))
            if not file.file_path:
                logger.warning("File has no download path", extra={"file_id": document.file_id})
                return

            name = os.path.basename(document.file_name or file.file_path)
            target = os.path.join(self._download_dir, name)
            await asyncio.to_thread(os.makedirs, self._download_dir, exist_ok=True)
            size = await self._stream_to_file(file.file_path, target)
        except (ApiError, OSError) as exc:
            logger.error("Document download failed", extra={"chat_id": chat_id, "file_id": document.file_id, "error": str(exc)})
            await self._client.aexecute(SendMessage(chat_id=chat_id, text="Could not save the document."))
            return

        logger.info("Document saved", extra={"chat_id": chat_id, "path": target, "size": size})
        await self._client.aexecute(
            SendMessage(chat_id=chat_id, text=f"Saved {name} ({size} bytes)", reply_to_message_id=message.message_id)
        )

    async def _stream_to_file(self, file_path: str, target: str) -> int:
        """Download into ``<target>.part`` and move it over *target* once complete."""
        partial = target + ".part"
        size = 0
        fh = await asyncio.to_thread(open, partial, "wb")
        try:
            try:
                async for chunk in await self._client.adownload_file(file_path):
                    await asyncio.to_thread(fh.write, chunk)
                    size += len(chunk)
            finally:
                await asyncio.to_thread(fh.close)
            await asyncio.to_thread(os.replace, partial, target)
        except BaseException:
            # Cancellation included: a truncated download never stays on disk.
            with contextlib.suppress(FileNotFoundError):
                os.remove(partial)
            raise
        return size


async def run() -> None:
    client = BotClient(load_client_config())
    poll = LongPoll(client, EchoHandler(client, DOWNLOAD_DIR), load_poll_options())

    handle = poll.get_handle()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle.shutdown)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler.
            signal.signal(sig, lambda *_: handle.shutdown())

    logger.info("Bot is running. Polling for updates...")
    try:
        await poll.run()
    finally:
        client.close()


def main() -> None:
    TelepollLogger.attach("sdk")
    try:
        asyncio.run(run())
    except ApiError as exc:
        logger.error("Bot stopped with an error", extra={"error": str(exc)})
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
