"""Outbound mail delivery."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when a message could not be handed to the mail provider."""


@dataclass(slots=True)
class MailMessage:
    recipient: str
    subject: str
    body: str


class Mailer(Protocol):
    async def send(self, message: MailMessage) -> None:
        ...


class HTTPMailer:
    """Send mail through a JSON HTTP mail API."""

    def __init__(self, endpoint: str, sender: str, api_key: str | None = None, timeout: float = 10.0) -> None:
        self._endpoint = endpoint
        self._sender = sender
        self._api_key = api_key
        self._timeout = timeout

    async def send(self, message: MailMessage) -> None:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        payload = {
            "from": self._sender,
            "to": message.recipient,
            "subject": message.subject,
            "text": message.body,
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._endpoint, json=payload, headers=headers)
        if response.status_code >= 400:
            raise MailDeliveryError(f"Mail API response {response.status_code}: {response.text}")


class LogMailer:
    """Development mailer that writes messages to the log instead of sending them."""

    async def send(self, message: MailMessage) -> None:
        logger.info("Mail to %s | %s\n%s", message.recipient, message.subject, message.body)


async def deliver(mailer: Mailer, message: MailMessage, timeout: float | None = None) -> None:
    """Send ``message``, converting every failure (timeouts included) to ``MailDeliveryError``."""

    try:
        await asyncio.wait_for(mailer.send(message), timeout=timeout)
    except MailDeliveryError:
        logger.exception("Failed to deliver mail to %s", message.recipient)
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to deliver mail to %s: %s", message.recipient, exc)
        raise MailDeliveryError(str(exc) or exc.__class__.__name__) from exc
