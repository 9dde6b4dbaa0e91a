"""
Page agent: the page-resident side of the engine.

One agent is bound to one Playwright page. It answers hub messages and owns
at most one running orchestrator. When the page closes or loads a new
document the agent is dead for good, like a content script whose page went
away; the hub has to attach a fresh agent.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from scraper.base import ExtractionError
from scraper.core import scrape_page
from scraper.models import VehicleRecord

from .channel import ContextChannel
from .errors import FieldNotFound
from .images import ImageUploader
from .orchestrator import FormFillOrchestrator, Notify, log_notify
from .store import PendingPostStore
from .verify import VerificationProbe

logger = logging.getLogger(__name__)


class PageAgent:
    def __init__(
        self,
        page,
        store: PendingPostStore,
        notify: Notify = log_notify,
        probe: Optional[VerificationProbe] = None,
        orchestrator_factory: Optional[Callable[..., FormFillOrchestrator]] = None,
        overrides: Optional[Dict[str, str]] = None,
    ):
        self.page = page
        self.store = store
        self.notify = notify or log_notify
        self.probe = probe or VerificationProbe.for_context(page.context)
        self.orchestrator_factory = orchestrator_factory or FormFillOrchestrator
        self.overrides = overrides or {}
        self.orchestrator: Optional[FormFillOrchestrator] = None
        self.task: Optional[asyncio.Task] = None
        # Wire-format record the running fill was started with
        self.current: Optional[Dict[str, Any]] = None
        self.dead = False
        self.channel = ContextChannel(self.handle, is_alive=self.alive, name=f"page {page.url}")

        page.on("close", self._on_gone)
        page.on("domcontentloaded", self._on_gone)

    def alive(self) -> bool:
        return not self.dead and not self.page.is_closed()

    def _on_gone(self, *_):
        if self.dead:
            return
        self.dead = True
        self.channel.close()
        if self.task and not self.task.done():
            logger.info("Page went away; dropping in-flight fill for %s", self.page.url)
            self.task.cancel()

    @property
    def busy(self) -> bool:
        return self.task is not None and not self.task.done()

    def start(self, record: Optional[VehicleRecord] = None, data: Optional[Dict[str, Any]] = None) -> asyncio.Task:
        """Start an orchestrator; a running one is replaced."""
        self.current = data
        if self.busy:
            logger.info("Replacing running fill with a new record")
            self.task.cancel()
        self.orchestrator = self.orchestrator_factory(
            self.page, self.store, self.probe, notify=self.notify, overrides=self.overrides,
        )
        self.task = asyncio.ensure_future(self.orchestrator.run(record))
        return self.task

    def resume(self) -> Optional[asyncio.Task]:
        """Pick up a pending post stored before this page loaded."""
        pending = self.store.load()
        if pending is None:
            logger.debug("Nothing pending for %s", self.page.url)
            return None
        logger.info("Resuming pending post on %s", self.page.url)
        return self.start(data=pending)

    async def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        action = (message or {}).get("action")
        if action == "ping":
            return {"success": True, "url": self.page.url, "busy": self.busy}

        if action == "fillFormWithData":
            data = message.get("data") or {}
            if not data:
                return {"success": False, "error": "No vehicle data supplied"}
            if self.busy and data == self.current:
                return {"success": True, "message": "Form fill already running"}
            self.store.save(data)
            self.start(VehicleRecord.from_dict(data), data)
            return {"success": True, "message": "Form fill started"}

        if action == "scrape":
            try:
                rec = await scrape_page(self.page, message.get("scraper"))
            except ExtractionError as e:
                return {"success": False, "error": str(e)}
            return {"success": True, "data": rec.to_dict()}

        if action == "uploadSpecificImage":
            url = message.get("imageUrl") or message.get("url")
            if not url:
                return {"success": False, "error": "No image URL supplied"}
            uploader = ImageUploader(self.page)
            try:
                ok = await uploader.upload_url(url, int(message.get("index") or 1))
            except FieldNotFound as e:
                return {"success": False, "error": str(e)}
            return {"success": ok}

        return {"success": False, "error": f"Unknown action: {action}"}
