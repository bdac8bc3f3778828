# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""WhatsApp messaging via the UltraMsg API."""

import logging
from typing import Any

import httpx

from eventreg_server.config import settings
from eventreg_server.services.phone import format_phone_for_gateway

logger = logging.getLogger(__name__)


def is_send_success(response: httpx.Response) -> bool:
    """
    Interpret an UltraMsg response. JSON bodies are checked for
    sent/id/messageId/error markers; otherwise the HTTP status decides.
    """
    try:
        data: Any = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        if (
            data.get("sent") in (True, "true")
            or data.get("id")
            or data.get("messageId")
            or (data.get("error") is False and data.get("sent") is not False)
        ):
            return True
        if data.get("error") or data.get("errorMessage") or data.get("message"):
            return False
        if data.get("sent") is False:
            return False
    return response.is_success


class UltraMsgGateway:
    """
    Sends text and image messages. Every send returns True/False and never
    raises; network errors and timeouts are logged and reported as False.
    """

    def __init__(
        self,
        token: str | None = None,
        instance_id: str | None = None,
        app_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.token = token if token is not None else settings.message_token
        self.instance_id = instance_id if instance_id is not None else settings.message_instance_id
        self.app_url = (app_url or settings.message_app_url).strip().rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.gateway_timeout_seconds,
            follow_redirects=True,
        )

    @property
    def configured(self) -> bool:
        return bool(self.token and self.instance_id)

    def _url(self, endpoint: str) -> str:
        # MESSAGE_APP_URL may already include the instance path
        if self.instance_id and self.instance_id in self.app_url:
            return f"{self.app_url}/messages/{endpoint}"
        return f"{self.app_url}/{self.instance_id}/messages/{endpoint}"

    async def _post(self, endpoint: str, phone: str, fields: dict[str, str]) -> bool:
        if not self.configured:
            logger.warning("WhatsApp gateway not configured; dropping %s message to %s", endpoint, phone)
            return False
        data = {"token": self.token, "to": format_phone_for_gateway(phone), **fields}
        try:
            response = await self._client.post(self._url(endpoint), data=data)
        except httpx.HTTPError as e:
            logger.warning("WhatsApp %s send to %s failed: %s", endpoint, phone, e)
            return False
        ok = is_send_success(response)
        if not ok:
            logger.warning(
                "WhatsApp %s send to %s rejected: %s %s",
                endpoint, phone, response.status_code, response.text[:200],
            )
        return ok

    async def send_text(self, phone: str, body: str) -> bool:
        """Send a plain text message."""
        return await self._post("chat", phone, {"body": body})

    async def send_image(self, phone: str, image_base64: str, caption: str | None = None) -> bool:
        """Send a base64 PNG image with optional caption."""
        fields = {"image": f"data:image/png;base64,{image_base64}"}
        if caption:
            fields["caption"] = caption
        return await self._post("image", phone, fields)

    async def aclose(self) -> None:
        await self._client.aclose()
