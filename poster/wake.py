"""
Wake sources for the fill loop.

A wake source decides when the next fill pass runs. ``wait()`` returns True
when the page changed and False when it merely timed out; either way the
caller runs another pass, bounded by its attempt counter.
"""
import asyncio
from typing import Awaitable, Callable


WAIT_FOR_MUTATION_JS = """
(timeoutMs) => new Promise((resolve) => {
  const target = document.body || document.documentElement;
  let done = false;
  let timer = null;
  const observer = new MutationObserver(() => finish(true));
  function finish(changed) {
    if (done) return;
    done = true;
    observer.disconnect();
    if (timer) clearTimeout(timer);
    resolve(changed);
  }
  observer.observe(target, { childList: true, subtree: true });
  timer = setTimeout(() => finish(false), timeoutMs);
})
"""


class WakeSource:
    async def wait(self) -> bool:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class IntervalWakeSource(WakeSource):
    """Fixed-interval timer."""

    def __init__(self, interval: float = 2.0, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.interval = interval
        self.sleep = sleep

    async def wait(self) -> bool:
        await self.sleep(self.interval)
        return True


class MutationWakeSource(WakeSource):
    """
    Wakes on the next structural change under ``document.body``.

    Each wait installs a one-shot MutationObserver in the page, so nothing
    lingers in the page between passes. A quiet page still wakes after
    ``quiet_timeout`` seconds.
    """

    def __init__(self, page, quiet_timeout: float = 3.0, settle: float = 0.3,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.page = page
        self.quiet_timeout = quiet_timeout
        self.settle = settle
        self.sleep = sleep

    async def wait(self) -> bool:
        changed = await self.page.evaluate(WAIT_FOR_MUTATION_JS, int(self.quiet_timeout * 1000))
        if changed and self.settle:
            # Let a burst of renders land before the next pass
            await self.sleep(self.settle)
        return bool(changed)
