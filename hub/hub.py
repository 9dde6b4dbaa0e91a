"""
Coordination Hub: the long-lived process between the operator UI, the page
agents and the backend.
"""
import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional

from poster.channel import Delivery, SendResult
from poster.errors import ContextInvalidated
from poster.store import SESSION_KEY, KeyValueStore, PendingPostStore
from scraper.utils import now_iso

from .backend import BackendClient
from .config import Config, config
from .errors import BackendError, HubError, NoSession, SessionExpired
from .realtime import RealtimeChannel
from .session import Session
from .tabs import TabRouter

logger = logging.getLogger(__name__)


class CoordinationHub:
    def __init__(
        self,
        store: KeyValueStore,
        backend: BackendClient,
        tabs: Optional[TabRouter] = None,
        realtime: Optional[RealtimeChannel] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        cfg: Config = config,
    ):
        self.store = store
        self.pending = PendingPostStore(store)
        self.backend = backend
        self.tabs = tabs
        self.realtime = realtime
        self.clock = clock
        self.sleep = sleep
        self.cfg = cfg
        self.session: Optional[Session] = None
        self.posted: Dict[str, float] = {}
        self.progress: Deque[Dict[str, Any]] = deque(maxlen=cfg.PROGRESS_LOG_SIZE)
        self._health_task: Optional[asyncio.Task] = None

    # lifecycle

    async def start(self) -> None:
        self.session = Session.from_dict(self.store.get(SESSION_KEY))
        if self.session:
            logger.info("Restored session for user %s", self.session.user_id)
            await self._connect_realtime()
        self._health_task = asyncio.ensure_future(self._health_loop())

    async def stop(self) -> None:
        if self._health_task:
            self._health_task.cancel()
            await asyncio.gather(self._health_task, return_exceptions=True)
        if self.realtime:
            await self.realtime.disconnect()
        await self.backend.aclose()

    # session

    async def set_session(self, session: Session) -> None:
        self.session = session
        self.store.set(SESSION_KEY, session.to_dict())
        logger.info("Session stored for user %s", session.user_id)
        await self._connect_realtime()

    async def clear_session(self) -> None:
        self.session = None
        self.store.remove(SESSION_KEY)
        logger.info("Session cleared")
        if self.realtime:
            await self.realtime.disconnect()

    def require_session(self) -> Session:
        if self.session is None:
            raise NoSession("Not signed in")
        return self.session

    async def _connect_realtime(self) -> None:
        if not self.realtime or not self.session:
            return
        try:
            await self.realtime.connect(self.session)
        except Exception as e:  # socketio raises its own ConnectionError family
            logger.warning("Realtime channel unavailable: %s", e)

    async def check_session(self) -> bool:
        """
        Validate the held session against the backend.

        Authorization failures clear the session; network trouble keeps it.
        """
        if self.session is None:
            return False
        try:
            await self.backend.validate_key(self.session)
        except SessionExpired as e:
            logger.warning("Session rejected by backend: %s", e)
            self.record("Session expired; please sign in again", level="error")
            await self.clear_session()
            return False
        except BackendError as e:
            logger.warning("Session check inconclusive, keeping session: %s", e)
            return True
        logger.debug("Session still valid")
        return True

    async def _health_loop(self) -> None:
        while True:
            await self.sleep(self.cfg.SESSION_CHECK_MINUTES * 60)
            await self.check_session()

    # progress

    def record(self, message: str, level: str = "info", vehicle_id: Optional[str] = None,
               **extra) -> Dict[str, Any]:
        entry = {"ts": now_iso(), "level": level, "message": message, "vehicleId": vehicle_id}
        entry.update(extra)
        self.progress.append(entry)
        return entry

    def recent_progress(self, limit: int = 50) -> List[Dict[str, Any]]:
        items = list(self.progress)
        return items[-limit:] if limit else items

    # posting

    def _prune_posted(self, now: float) -> None:
        if len(self.posted) <= self.cfg.DEDUP_PRUNE_SIZE:
            return
        cutoff = now - self.cfg.DEDUP_MAX_AGE
        stale = [vid for vid, ts in self.posted.items() if ts < cutoff]
        for vid in stale:
            del self.posted[vid]
        logger.debug("Pruned %d posted-vehicle entries", len(stale))

    async def mark_posted(self, vehicle_id: str, listing_url: str) -> Dict[str, Any]:
        """
        Tell the backend a vehicle is live.

        A repeat for the same vehicle within the idempotency window is
        acknowledged without a second backend call.
        """
        now = self.clock()
        last = self.posted.get(vehicle_id)
        if last is not None and now - last < self.cfg.IDEMPOTENCY_WINDOW:
            logger.info("Duplicate posted report for %s ignored", vehicle_id)
            return {"success": True, "duplicate": True}

        session = self.require_session()
        self.posted[vehicle_id] = now
        self._prune_posted(now)
        try:
            data = await self.backend.mark_posted(session, vehicle_id, listing_url)
        except SessionExpired:
            self.posted.pop(vehicle_id, None)
            await self.clear_session()
            raise
        except BackendError:
            self.posted.pop(vehicle_id, None)
            raise
        return {"success": True, "duplicate": False, "data": data}

    async def log_activity(self, payload: Dict[str, Any]) -> bool:
        if self.session is None:
            return False
        try:
            await self.backend.log_activity(self.session, payload)
        except (BackendError, SessionExpired) as e:
            logger.warning("Activity log not delivered: %s", e)
            return False
        return True

    async def handle_page_message(self, message: Dict[str, Any]) -> None:
        """Notifications coming up from page agents."""
        action = message.get("action")
        if action == "progress":
            self.record(message.get("message", ""))
        elif action == "postComplete":
            await self._post_complete(message)
        elif action == "logActivity":
            await self.log_activity(message.get("data") or {})
        else:
            logger.debug("Unhandled page message: %s", action)

    async def _post_complete(self, message: Dict[str, Any]) -> None:
        vehicle_id = message.get("vehicleId")
        verified = bool(message.get("verified"))
        if verified:
            level = "success"
        elif message.get("uncertain"):
            level = "warning"
        else:
            level = "error"
        self.record(message.get("message", ""), level=level, vehicle_id=vehicle_id,
                    verified=verified, listingUrl=message.get("listingUrl"))

        await self.log_activity({
            "action": "post_vehicle",
            "vehicleId": vehicle_id,
            "success": verified,
            "uncertain": bool(message.get("uncertain")),
            "message": message.get("message"),
            "listingUrl": message.get("listingUrl"),
        })
        if not (verified and vehicle_id):
            return
        try:
            await self.mark_posted(vehicle_id, message.get("listingUrl") or "")
        except HubError as e:
            logger.error("Could not mark %s as posted: %s", vehicle_id, e)
            self.record(f"Listing is live but the backend was not updated: {e}", level="error",
                        vehicle_id=vehicle_id)

    @staticmethod
    def delivered(result: SendResult) -> Any:
        """Unwrap a page reply; dead contexts surface as reload-required."""
        if result.status == Delivery.CONTEXT_DEAD:
            raise ContextInvalidated("the posting tab was closed or reloaded")
        return result.unwrap()

    async def start_automation(self, vehicle: Dict[str, Any], vehicle_id: Optional[str] = None) -> Dict[str, Any]:
        if self.tabs is None:
            raise HubError("Browser automation is not available")
        data = dict(vehicle or {})
        if vehicle_id:
            data.setdefault("_id", vehicle_id)
        self.pending.save(data)
        agent = await self.tabs.acquire()
        self.record("Starting automation", vehicle_id=data.get("_id"))
        return self.delivered(await agent.channel.send({"action": "fillFormWithData", "data": data}))

    async def on_start_posting(self, vehicle_id: Optional[str], vehicle: Dict[str, Any]) -> None:
        """Realtime ``start-posting-vehicle`` handler."""
        try:
            await self.start_automation(vehicle, vehicle_id)
        except (HubError, ContextInvalidated, asyncio.TimeoutError) as e:
            logger.error("Could not start posting %s: %s", vehicle_id, e)
            self.record(f"Could not start posting: {e}", level="error", vehicle_id=vehicle_id)

    async def scrape(self, url: str, site: Optional[str] = None) -> Dict[str, Any]:
        """Scrape a listing page in a throwaway tab."""
        if self.tabs is None:
            raise HubError("Browser automation is not available")
        agent = await self.tabs.open(url)
        try:
            return self.delivered(await agent.channel.send({"action": "scrape", "scraper": site}))
        finally:
            if not agent.page.is_closed():
                await agent.page.close()
