"""HTTP client dispatching shift assignment notifications."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Raised when the notification webhook rejects a request."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"Notification webhook error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class Notifier:
    """Async wrapper posting assignment notices to a webhook.

    Without a webhook URL every notice is only logged.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def send_assignment(self, operator_id: str, shift_id: str, **details: Any) -> None:
        payload: Dict[str, Any] = {
            "type": "shift_assignment",
            "operator_id": operator_id,
            "shift_id": shift_id,
            **details,
        }
        if not self.webhook_url:
            logger.info("No webhook configured; skipping notice for %s on %s", operator_id, shift_id)
            return
        response = await self._client.post(self.webhook_url, json=payload)
        if response.status_code >= 400:
            raise NotificationError(response.status_code, response.text or "unknown_error")
        logger.info("Assignment notice sent to %s for shift %s", operator_id, shift_id)


__all__ = ["Notifier", "NotificationError"]
