"""
Cross-context messaging.

A page context can die at any moment (tab closed, document replaced, browser
gone). Sends never assume delivery: each returns a tagged SendResult.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .errors import ContextInvalidated

logger = logging.getLogger(__name__)


DEFAULT_SEND_TIMEOUT = 30.0

# Playwright messages for pages, frames and contexts that no longer exist
CONTEXT_DEAD_MARKERS = (
    "target page, context or browser has been closed",
    "execution context was destroyed",
    "target closed",
    "frame was detached",
    "browser has been closed",
    "context invalidated",
)


def is_context_destroyed(exc: BaseException) -> bool:
    if isinstance(exc, ContextInvalidated):
        return True
    msg = str(exc).lower()
    return any(m in msg for m in CONTEXT_DEAD_MARKERS)


class Delivery(str, Enum):
    OK = "ok"
    CONTEXT_DEAD = "context-dead"
    TIMEOUT = "timeout"


@dataclass
class SendResult:
    status: Delivery
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == Delivery.OK

    def unwrap(self) -> Any:
        """Value on success; ContextInvalidated or TimeoutError otherwise."""
        if self.status == Delivery.OK:
            return self.value
        if self.status == Delivery.CONTEXT_DEAD:
            raise ContextInvalidated(self.error or "")
        raise asyncio.TimeoutError(self.error or "no reply from page context")


class ContextChannel:
    """Sends messages to a handler living in another context."""

    def __init__(
        self,
        handler: Callable[[dict], Awaitable[Any]],
        is_alive: Callable[[], bool] = lambda: True,
        timeout: float = DEFAULT_SEND_TIMEOUT,
        name: str = "",
    ):
        self.handler = handler
        self.is_alive = is_alive
        self.timeout = timeout
        self.name = name
        self.closed = False

    def close(self) -> None:
        self.closed = True

    async def send(self, message: dict) -> SendResult:
        action = (message or {}).get("action", "?")
        if self.closed or not self.is_alive():
            return SendResult(Delivery.CONTEXT_DEAD, error=f"{self.name or 'page'} context is gone")
        try:
            value = await asyncio.wait_for(self.handler(message), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("No reply to %s from %s within %.0fs", action, self.name or "page", self.timeout)
            return SendResult(Delivery.TIMEOUT, error=f"{action} timed out after {self.timeout:.0f}s")
        except Exception as e:
            if is_context_destroyed(e):
                self.closed = True
                logger.warning("%s context died during %s: %s", self.name or "page", action, e)
                return SendResult(Delivery.CONTEXT_DEAD, error=str(e))
            raise
        return SendResult(Delivery.OK, value=value)


async def guarded(awaitable: Awaitable[Any]) -> Any:
    """Await a cross-context call, turning low-level teardown errors into ContextInvalidated."""
    try:
        return await awaitable
    except ContextInvalidated:
        raise
    except Exception as e:
        if is_context_destroyed(e):
            raise ContextInvalidated(str(e)) from e
        raise
