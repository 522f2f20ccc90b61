"""
Telegram Messaging Client

Sends operator notifications to a Telegram chat through the Bot API.

One client is created at application startup (see ``intake.main``) and
handed to request handlers through ``get_messaging_client``. When no bot
token/chat id is configured the client logs messages instead of sending
them, so local development works without a bot.
"""

import asyncio
import logging
from pathlib import Path

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024


class TelegramError(Exception):
    """Raised when the Bot API rejects a request or cannot be reached."""


def _markup_safe_cut(text: str, limit: int) -> int:
    """
    Largest cut point <= ``limit`` that does not fall inside an HTML tag or
    entity. Falls back to ``limit`` when no such point exists.
    """
    if len(text) <= limit:
        return len(text)

    cut = limit
    head = text[:cut]
    tag_start = head.rfind("<")
    if tag_start > head.rfind(">"):
        cut = tag_start

    head = text[:cut]
    entity_start = head.rfind("&")
    if entity_start > head.rfind(";"):
        cut = entity_start

    return cut or limit


def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split text into chunks no longer than ``max_length``.

    Chunks break on line boundaries where possible so HTML markup on a line
    is not cut in half; single lines longer than the limit are hard-split,
    never inside a tag or entity.
    """
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > max_length:
            if current:
                chunks.append(current)
                current = ""
            cut = _markup_safe_cut(line, max_length)
            chunks.append(line[:cut])
            line = line[cut:]

        if len(current) + len(line) > max_length:
            chunks.append(current)
            current = line
        else:
            current += line

    if current:
        chunks.append(current)
    return chunks


class TelegramClient:
    """Async Bot API client bound to a single chat."""

    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.chat_id = chat_id
        self.enabled = bool(bot_token and chat_id)
        self._http = httpx.AsyncClient(
            base_url=f"{TELEGRAM_API_URL}/bot{bot_token or 'disabled'}",
            timeout=timeout,
            transport=transport,
        )

    async def _call(self, method: str, **kwargs) -> dict:
        try:
            response = await self._http.post(f"/{method}", **kwargs)
        except httpx.HTTPError as e:
            raise TelegramError(f"{method} request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400 or not payload.get("ok"):
            description = payload.get("description", response.text[:200])
            raise TelegramError(f"{method} rejected ({response.status_code}): {description}")

        return payload.get("result") or {}

    async def send_message(self, text: str, parse_mode: str | None = "HTML") -> list[int]:
        """
        Send a message, chunking anything over 4096 characters.

        Returns:
            Telegram message ids of the sent chunks (empty when disabled)

        Raises:
            TelegramError: If any chunk fails to send
        """
        if not self.enabled:
            logger.info(f"Telegram not configured - message not sent ({len(text)} chars)")
            return []

        message_ids = []
        for chunk in split_message(text):
            body = {"chat_id": self.chat_id, "text": chunk}
            if parse_mode:
                body["parse_mode"] = parse_mode
            result = await self._call("sendMessage", json=body)
            message_ids.append(result.get("message_id"))

        return message_ids

    async def send_document(
        self,
        path: Path,
        caption: str,
        parse_mode: str | None = "HTML",
    ) -> int | None:
        """
        Send a stored file with a caption.

        Raises:
            TelegramError: If the upload fails
            FileNotFoundError: If ``path`` does not exist
        """
        if not self.enabled:
            logger.info(f"Telegram not configured - document {path.name} not sent")
            return None

        content = await asyncio.to_thread(path.read_bytes)
        caption = caption[: _markup_safe_cut(caption, MAX_CAPTION_LENGTH)]
        data = {"chat_id": self.chat_id, "caption": caption}
        if parse_mode:
            data["parse_mode"] = parse_mode

        result = await self._call(
            "sendDocument",
            data=data,
            files={"document": (path.name, content)},
        )
        return result.get("message_id")

    async def aclose(self) -> None:
        await self._http.aclose()


def get_messaging_client(request: Request) -> TelegramClient:
    """FastAPI dependency returning the client created at startup."""
    return request.app.state.messaging_client
