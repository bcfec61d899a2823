import logging
from typing import Optional

import httpx

from .. import settings

log = logging.getLogger("subscriptions.notify")


class Notifier:
    """Tells a new subscriber the token that lists their filters."""

    async def notify(self, email: str, token: str) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class LogNotifier(Notifier):
    async def notify(self, email: str, token: str) -> None:
        log.info("new subscriber %s; delivery of the access token is not configured", email)


class HttpNotifier(Notifier):
    """Hands the message to an external mail service over HTTP."""

    def __init__(self, url: str, *, timeout: float = 5.0, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def notify(self, email: str, token: str) -> None:
        r = await self._client.post(self.url, json={"email": email, "token": token})
        r.raise_for_status()

    async def aclose(self) -> None:
        await self._client.aclose()


def build_notifier() -> Notifier:
    if settings.NOTIFY_URL:
        return HttpNotifier(settings.NOTIFY_URL, timeout=settings.NOTIFY_TIMEOUT_SECONDS)
    return LogNotifier()
