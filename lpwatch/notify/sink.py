import itertools
import logging
from typing import Optional, Protocol

import backoff
import httpx

from lpwatch.errors import NotificationError

log = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class NotificationSink(Protocol):
    async def send(self, destination: str, text: str, edit_message_id: Optional[str] = None) -> Optional[str]:
        """Send `text`, or replace the text of `edit_message_id`; returns the message id."""


class LogSink:
    """Writes notifications to the log; the default when no bot token is configured."""

    def __init__(self):
        self._ids = itertools.count(1)

    async def send(self, destination: str, text: str, edit_message_id: Optional[str] = None) -> Optional[str]:
        message_id = edit_message_id if edit_message_id is not None else str(next(self._ids))
        verb = "edit" if edit_message_id is not None else "send"
        log.info("[notify] %s %s/%s\n%s", verb, destination, message_id, text)
        return message_id


class TelegramSink:
    """Bot API over httpx: sendMessage for new messages, editMessageText for updates."""

    def __init__(self, token: str, client: Optional[httpx.AsyncClient] = None, base_url: str = TELEGRAM_API):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=f"{base_url}/bot{token}", timeout=15)

    async def send(self, destination: str, text: str, edit_message_id: Optional[str] = None) -> Optional[str]:
        if edit_message_id is not None:
            await self._call("editMessageText", {
                "chat_id": destination,
                "message_id": int(edit_message_id),
                "text": text,
                "disable_web_page_preview": True,
            })
            return str(edit_message_id)

        result = await self._call("sendMessage", {
            "chat_id": destination,
            "text": text,
            "disable_web_page_preview": True,
        })
        return str(result["message_id"])

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @backoff.on_exception(backoff.expo, httpx.RequestError, max_tries=3, jitter=None)
    async def _call(self, method: str, payload: dict):
        resp = await self._client.post(f"/{method}", json=payload)
        body = resp.json()
        if not body.get("ok"):
            description = body.get("description", "")
            # editing with identical text is refused but leaves the message as wanted
            if method == "editMessageText" and "message is not modified" in description:
                return {}
            raise NotificationError(f"telegram {method} failed ({resp.status_code}): {description}")
        return body.get("result") or {}
