from typing import Optional

from ..database import build_store
from ..services import Services, build_notifier, build_services

_services: Optional[Services] = None


def get_services() -> Services:
    """Process-wide services, built on first use from settings."""
    global _services
    if _services is None:
        _services = build_services(build_store(), build_notifier())
    return _services


async def close_services() -> None:
    global _services
    if _services is not None:
        await _services.aclose()
        _services = None
