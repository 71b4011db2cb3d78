from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import httpx

from hospital_bot.config import Settings, settings as default_settings
from hospital_bot.log import hash_user_id
from hospital_bot.messages import Button, ListSection
from hospital_bot.utils.validators import sanitize_digits

logger = logging.getLogger(__name__)

# WhatsApp caps: 3 reply buttons, 20-char titles, 24-char list row titles
MAX_BUTTONS = 3
MAX_BUTTON_TITLE = 20
MAX_ROW_TITLE = 24


class WhatsAppError(RuntimeError):
    def __init__(self, status: int, detail: str):
        super().__init__(f"WhatsApp API error {status}: {detail}")
        self.status = status
        self.detail = detail


class WhatsAppGateway:
    """Outbound messages through the WhatsApp Cloud API."""

    def __init__(self, settings: Settings = default_settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = f"{settings.whatsapp_api_base}/{settings.whatsapp_phone_number_id}"
        self.timeout = settings.request_timeout_seconds
        self.headers = {
            "Authorization": f"Bearer {settings.whatsapp_access_token}",
            "Content-Type": "application/json",
        }
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self.headers,
            transport=self.transport,
        )

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if "to" in payload:
            payload = {**payload, "to": sanitize_digits(payload["to"])}
        async with self._client() as client:
            r = await client.post("/messages", json={"messaging_product": "whatsapp", **payload})
            if r.status_code not in (200, 201):
                raise WhatsAppError(r.status_code, r.text)
            return r.json()

    async def send_text(self, user_id: str, text: str) -> None:
        await self._post({"to": user_id, "type": "text", "text": {"body": text}})
        logger.debug(f"Sent text to {hash_user_id(user_id)}")

    async def send_list(self, user_id: str, body: str, button_label: str, sections: List[ListSection]) -> None:
        await self._post(
            {
                "to": user_id,
                "type": "interactive",
                "interactive": {
                    "type": "list",
                    "body": {"text": body},
                    "action": {
                        "button": button_label[:MAX_BUTTON_TITLE],
                        "sections": [
                            {
                                "title": s.title[:MAX_ROW_TITLE],
                                "rows": [
                                    {
                                        "id": r.id,
                                        "title": r.title[:MAX_ROW_TITLE],
                                        **({"description": r.description} if r.description else {}),
                                    }
                                    for r in s.rows
                                ],
                            }
                            for s in sections
                        ],
                    },
                },
            }
        )

    async def send_buttons(self, user_id: str, body: str, buttons: List[Button]) -> None:
        await self._post(
            {
                "to": user_id,
                "type": "interactive",
                "interactive": {
                    "type": "button",
                    "body": {"text": body},
                    "action": {
                        "buttons": [
                            {"type": "reply", "reply": {"id": b.id, "title": b.title[:MAX_BUTTON_TITLE]}}
                            for b in buttons[:MAX_BUTTONS]
                        ]
                    },
                },
            }
        )

    async def mark_read(self, message_id: str) -> None:
        await self._post({"status": "read", "message_id": message_id})
