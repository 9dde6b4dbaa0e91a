"""
Form-Fill Orchestrator: drives one pending post through the create form.

    idle -> observing -> filling -> completing -> verified | uncertain | failed

Two loops run side by side once a record is loaded. The fill loop runs a pass
on every wake until every applicable field is filled and the images are up,
giving up after ``max_attempts`` passes. The completion scan reads the page
text every ``scan_interval`` seconds; a success phrase hands over to the
Verification Probe, an error phrase is only reported as progress.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from playwright.async_api import Error as PlaywrightError

from scraper.locator import FieldLocator
from scraper.models import VehicleRecord

from .channel import is_context_destroyed
from .completion import PageSignal, classify_page_text, find_listing_url
from .errors import ContextInvalidated, FieldNotFound, FillExhausted, VerificationUncertain
from .fields import CHECKBOXES, FORM_FIELDS, FormFiller, field_values
from .images import ImageUploader
from .models import MAX_FILL_ATTEMPTS, FieldStatus, FillAttempt, Phase, PostingOutcome
from .store import PendingPostStore
from .typist import Typist
from .verify import VerificationProbe
from .wake import MutationWakeSource, WakeSource

logger = logging.getLogger(__name__)


SCAN_INTERVAL = 2.0
COMPLETION_TIMEOUT = 15 * 60
REVERIFY_DELAY = 15.0

Notify = Callable[[Dict[str, Any]], Awaitable[None]]


async def log_notify(message: Dict[str, Any]) -> None:
    logger.info("Notification: %s", message)


def progress(message: str) -> Dict[str, Any]:
    return {"action": "progress", "message": message}


class FormFillOrchestrator:
    """One instance per page instance; ``run()`` may only be awaited once."""

    def __init__(
        self,
        page,
        store: PendingPostStore,
        probe: VerificationProbe,
        typist: Optional[Typist] = None,
        wake: Optional[WakeSource] = None,
        uploader: Optional[ImageUploader] = None,
        notify: Notify = log_notify,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        max_attempts: int = MAX_FILL_ATTEMPTS,
        scan_interval: float = SCAN_INTERVAL,
        completion_timeout: float = COMPLETION_TIMEOUT,
        reverify_delay: float = REVERIFY_DELAY,
        overrides: Optional[Dict[str, str]] = None,
    ):
        self.page = page
        self.store = store
        self.probe = probe
        self.typist = typist or Typist(sleep=sleep)
        self.wake = wake or MutationWakeSource(page, sleep=sleep)
        self.uploader = uploader or ImageUploader(page, sleep=sleep)
        self.filler = FormFiller(page, self.typist, sleep=sleep)
        self.notify = notify
        self.sleep = sleep
        self.clock = clock
        self.max_attempts = max_attempts
        self.scan_interval = scan_interval
        self.completion_timeout = completion_timeout
        self.reverify_delay = reverify_delay
        self.overrides = overrides or {}

        self.attempt: Optional[FillAttempt] = None
        self.outcome: Optional[PostingOutcome] = None
        self.values: Dict[str, str] = {}
        self._done = asyncio.Event()
        self._started_at: float = 0.0
        self._last_error_text: Optional[str] = None
        self._completing = False

    @property
    def phase(self) -> Phase:
        return self.attempt.phase if self.attempt else Phase.IDLE

    def load_pending(self) -> Optional[VehicleRecord]:
        data = self.store.load()
        if not data:
            return None
        return VehicleRecord.from_dict(data)

    async def run(self, record: Optional[VehicleRecord] = None) -> Optional[FillAttempt]:
        """
        Drive the attempt to a terminal phase.

        Without an explicit record the stored pending post is used; when there
        is none the orchestrator stays idle and returns None.
        """
        record = record or self.load_pending()
        if record is None:
            logger.info("No pending post; staying idle")
            return None

        self.attempt = FillAttempt(record=record, max_attempts=self.max_attempts)
        self.values = field_values(record, self.overrides)
        for name in self.values:
            self.attempt.field_status[name] = FieldStatus.NOT_FOUND
        self.attempt.phase = Phase.OBSERVING
        self._started_at = self.clock()
        logger.info("Posting %s (%d fields, %d images)", record.display_title or "?",
                    len(self.values), len(record.images))
        await self.notify(progress(f"Filling form for {record.display_title or 'vehicle'}"))

        fill_task = asyncio.ensure_future(self._guard(self._fill_loop()))
        scan_task = asyncio.ensure_future(self._guard(self._scan_loop()))
        try:
            await self._done.wait()
        finally:
            for task in (fill_task, scan_task):
                task.cancel()
            await asyncio.gather(fill_task, scan_task, return_exceptions=True)
            await self.wake.close()
        return self.attempt

    async def _guard(self, coro) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except ContextInvalidated as e:
            await self.fail(str(e))
        except Exception as e:
            if is_context_destroyed(e):
                await self.fail(str(ContextInvalidated(str(e))))
            else:
                logger.exception("Posting attempt crashed")
                await self.fail(f"Unexpected error: {e}")

    # fill loop

    def resolved(self) -> bool:
        a = self.attempt
        images_pending = bool(a.record.images) and not a.images_done
        return not a.unresolved() and not images_pending

    async def _fill_loop(self) -> None:
        a = self.attempt
        while not a.phase.terminal and not self._completing:
            if a.exhausted:
                pending = a.unresolved()
                if a.record.images and not a.images_done:
                    pending.append("images")
                err = FillExhausted(a.attempts, pending)
                logger.error("%s", err)
                await self.fail(str(err))
                return

            await self.fill_pass()
            if a.phase.terminal or self._completing:
                return
            if self.resolved():
                a.phase = Phase.COMPLETING
                logger.info("All fields filled after %d pass(es)", a.attempts)
                await self.notify(progress("Form filled; waiting for the listing to be published"))
                return

            await self.wake.wait()

    async def fill_pass(self) -> None:
        """One pass over the form in fixed order; filled fields are left alone."""
        a = self.attempt
        a.attempts += 1
        a.phase = Phase.FILLING
        logger.debug("Fill pass %d/%d", a.attempts, a.max_attempts)
        locator = FieldLocator(self.page)

        for form_field in FORM_FIELDS:
            name = form_field.name
            if name not in a.field_status or a.is_filled(name):
                continue
            try:
                ok = await self.filler.fill(form_field, self.values[name], locator)
            except FieldNotFound as e:
                logger.debug("%s (pass %d)", e, a.attempts)
                a.field_status[name] = FieldStatus.SKIPPED
                continue
            except PlaywrightError as e:
                if is_context_destroyed(e):
                    raise
                logger.warning("Filling %s failed: %s", name, e)
                a.field_status[name] = FieldStatus.SKIPPED
                continue
            a.field_status[name] = FieldStatus.FILLED if ok else FieldStatus.SKIPPED
            if ok:
                logger.info("Filled %s", name)

        for name, selectors in CHECKBOXES:
            if name not in a.ticked and await self.filler.tick(selectors, name, locator):
                a.ticked.add(name)

        if a.record.images and not a.images_done:
            try:
                a.images_uploaded = await self.uploader.upload_all(a.record.images)
                a.images_done = True
                await self.notify(progress(f"Uploaded {a.images_uploaded} of "
                                           f"{min(len(a.record.images), self.uploader.max_images)} images"))
            except FieldNotFound:
                logger.debug("Image input not rendered yet (pass %d)", a.attempts)

        if not a.phase.terminal and not self._completing:
            a.phase = Phase.OBSERVING

    # completion scan

    async def page_text(self) -> str:
        try:
            return await self.page.inner_text("body", timeout=5_000)
        except PlaywrightError as e:
            if is_context_destroyed(e):
                raise ContextInvalidated(str(e)) from e
            logger.debug("Could not read page text: %s", e)
            return ""

    async def _scan_loop(self) -> None:
        a = self.attempt
        while not a.phase.terminal:
            await self.sleep(self.scan_interval)
            if a.phase.terminal:
                return

            text = await self.page_text()
            signal = classify_page_text(text)
            if signal == PageSignal.SUCCESS:
                await self.complete()
                return
            if signal == PageSignal.ERROR:
                if text != self._last_error_text:
                    self._last_error_text = text
                    logger.warning("Page shows an error message; continuing")
                    await self.notify(progress("The page reported an error; it is often transient, still watching"))

            if self.clock() - self._started_at > self.completion_timeout:
                await self.fail(f"No confirmation within {self.completion_timeout / 60:.0f} minutes")
                return

    async def complete(self) -> None:
        """A success phrase appeared: verify, re-verifying once before settling on uncertain."""
        a = self.attempt
        self._completing = True
        a.phase = Phase.COMPLETING
        await self.notify(progress("Listing submitted; verifying it is live"))
        listing_url = await find_listing_url(self.page)

        outcome = await self.probe.verify(a.record, a.attempts, listing_url)
        if not outcome.verified and self.reverify_delay:
            await self.notify(progress(f"Not in the listing index yet; checking again in {self.reverify_delay:.0f}s"))
            await self.sleep(self.reverify_delay)
            outcome = await self.probe.verify(a.record, a.attempts, listing_url)

        if outcome.verified:
            a.phase = Phase.VERIFIED
        else:
            outcome.uncertain = True
            a.phase = Phase.UNCERTAIN
            logger.warning("%s", VerificationUncertain(outcome.message))
        # Cleared on uncertain too: the form was submitted and must not be refilled
        self.store.clear()
        await self.finish(outcome)

    async def fail(self, reason: str) -> None:
        a = self.attempt
        if a.phase.terminal:
            return
        a.phase = Phase.FAILED
        a.reason = reason
        logger.error("Posting failed: %s", reason)
        await self.finish(PostingOutcome(
            vehicle_id=a.record.vehicle_id,
            verified=False,
            listing_url="",
            message=reason,
            attempt=a.attempts,
            vin=a.record.vin,
        ))

    async def finish(self, outcome: PostingOutcome) -> None:
        self.outcome = outcome
        try:
            await self.notify(outcome.to_message())
        finally:
            self._done.set()
