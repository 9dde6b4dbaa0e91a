"""
Tab routing: find or open the page that should receive an automation request.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from playwright.async_api import Error as PlaywrightError

from poster.agent import PageAgent
from poster.orchestrator import Notify
from poster.store import PendingPostStore

from .errors import HubError

logger = logging.getLogger(__name__)


READY_STATE_JS = "() => document.readyState"


class TabRouter:
    """Keeps one PageAgent per live page in the browser context."""

    def __init__(
        self,
        context,
        pending: PendingPostStore,
        notify: Notify,
        create_url: str,
        load_attempts: int = 10,
        load_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        agent_factory: Callable[..., PageAgent] = PageAgent,
        overrides=None,
    ):
        self.context = context
        self.pending = pending
        self.notify = notify
        self.create_url = create_url
        self.load_attempts = load_attempts
        self.load_interval = load_interval
        self.sleep = sleep
        self.agent_factory = agent_factory
        self.overrides = overrides
        self.agents: List[PageAgent] = []

    def live_agents(self) -> List[PageAgent]:
        self.agents = [a for a in self.agents if a.alive()]
        return self.agents

    def find(self, url_prefix: Optional[str] = None) -> Optional[PageAgent]:
        prefix = url_prefix or self.create_url
        for agent in self.live_agents():
            if agent.page.url.startswith(prefix):
                return agent
        return None

    async def wait_ready(self, page) -> bool:
        """Poll the document until it has finished loading."""
        for i in range(self.load_attempts):
            try:
                if await page.evaluate(READY_STATE_JS) == "complete":
                    logger.debug("Tab ready after %d check(s)", i + 1)
                    return True
            except PlaywrightError as e:
                logger.debug("Tab not ready yet: %s", e)
            await self.sleep(self.load_interval)
        logger.warning("Tab still loading after %d checks; continuing", self.load_attempts)
        return False

    async def open(self, url: str) -> PageAgent:
        if self.context is None:
            raise HubError("No browser context is running")
        page = await self.context.new_page()
        logger.info("Opening tab: %s", url)
        await page.goto(url, wait_until="commit", timeout=60_000)
        await self.wait_ready(page)
        return self.attach(page)

    def agent_for(self, page) -> Optional[PageAgent]:
        for agent in self.live_agents():
            if agent.page is page:
                return agent
        return None

    def attach(self, page, resume: bool = True) -> PageAgent:
        """
        Bind an agent to ``page``, reusing a live one.

        A fresh agent on the create page picks up the stored pending post.
        """
        agent = self.agent_for(page)
        if agent is not None:
            return agent
        agent = self.agent_factory(page, self.pending, notify=self.notify, overrides=self.overrides)
        self.agents.append(agent)
        if resume and page.url.startswith(self.create_url):
            agent.resume()
        return agent

    def watch(self) -> None:
        """Attach an agent each time a create page finishes loading, reloads included."""
        self.context.on("page", self._track)
        for page in self.context.pages:
            self._track(page)
            self._on_load(page)

    def _track(self, page) -> None:
        page.on("load", self._on_load)

    def _on_load(self, page) -> None:
        if page.url.startswith(self.create_url):
            logger.debug("Create page loaded: %s", page.url)
            self.attach(page)

    async def acquire(self) -> PageAgent:
        """A live agent on the create page, opening a tab if none exists."""
        agent = self.find()
        if agent is not None:
            logger.debug("Reusing create tab %s", agent.page.url)
            return agent
        return await self.open(self.create_url)
