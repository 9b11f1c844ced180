"""Fire-and-forget delivery of stock notifications."""

from __future__ import annotations

from typing import Any, Callable

from inventory_kernel.logging_config import get_logger

logger = get_logger("services.events")


def dispatch(publish: Callable[[Any], None], event: Any) -> bool:
    """Call ``publish(event)``; log and return False if it raises.

    Publisher implementations are outside the kernel and may fail in any
    way, so every exception is caught here and never reaches the caller.
    """
    try:
        publish(event)
    except Exception:
        logger.error(
            "event_publish_failed",
            extra={"event_type": type(event).__name__},
            exc_info=True,
        )
        return False
    return True
