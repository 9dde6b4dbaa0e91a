"""
Field Locator: resolve a semantic field to a live element on an unfamiliar page.

Selectors are tried in order and the first one that resolves to a non-empty
element wins. When none match, callers fall back to a regular expression over
the page's full rendered text, since text patterns drift more slowly than markup.
"""
import logging
import re
from typing import Iterable, Optional, Pattern, Union

from playwright.async_api import Error as PlaywrightError

from .utils import clean_text

logger = logging.getLogger(__name__)


PRICE_PATTERN = re.compile(r"\$[\d,]+")
MILEAGE_PATTERN = re.compile(r"([\d,]+)\s*mi\b", re.I)
VIN_PATTERN = re.compile(r"\b[A-HJ-NPR-Z0-9]{17}\b")

# Elements examined per selector when looking for a non-empty match
MAX_CANDIDATES = 10


class FieldLocator:
    """Ordered-selector lookup bound to one page."""

    def __init__(self, page, timeout_ms: int = 2000):
        self.page = page
        self.timeout_ms = timeout_ms
        self._body_text: Optional[str] = None

    async def locate(self, selectors: Iterable[str], require_visible: bool = False, field: str = ""):
        """
        Return the first element matched by any selector, or None.

        Without ``require_visible`` an element only counts when its text is
        non-empty; with it, presence plus visibility is enough (inputs have no
        text).
        """
        for sel in selectors:
            try:
                loc = self.page.locator(sel)
                n = await loc.count()
                for i in range(min(n, MAX_CANDIDATES)):
                    el = loc.nth(i)
                    if require_visible:
                        if await el.is_visible():
                            logger.debug("Field %s matched selector %s", field or "?", sel)
                            return el
                        continue
                    text = clean_text(await el.inner_text(timeout=self.timeout_ms))
                    if text:
                        logger.debug("Field %s matched selector %s", field or "?", sel)
                        return el
            except PlaywrightError as e:
                logger.debug("Selector %s failed: %s", sel, e)
        if field:
            logger.debug("Field %s: no selector matched", field)
        return None

    async def text(self, selectors: Iterable[str], field: str = "") -> Optional[str]:
        """Return the cleaned text of the first matching element."""
        el = await self.locate(selectors, field=field)
        if el is None:
            return None
        try:
            return clean_text(await el.inner_text(timeout=self.timeout_ms)) or None
        except PlaywrightError:
            return None

    async def body_text(self) -> str:
        """Full rendered text of the page, read once per locator."""
        if self._body_text is None:
            try:
                self._body_text = await self.page.inner_text("body", timeout=self.timeout_ms)
            except PlaywrightError as e:
                logger.warning("Could not read page text: %s", e)
                self._body_text = ""
        return self._body_text

    async def pattern(self, regex: Union[str, Pattern[str]], group: int = 0) -> Optional[str]:
        """Scan the page text with a field-specific pattern."""
        if isinstance(regex, str):
            regex = re.compile(regex)
        m = regex.search(await self.body_text())
        if not m:
            return None
        return m.group(group)

    async def text_or_pattern(
        self,
        selectors: Iterable[str],
        regex: Union[str, Pattern[str]],
        field: str = "",
    ) -> Optional[str]:
        """Two-tier lookup: selectors first, then the page-text pattern."""
        value = await self.text(selectors, field=field)
        if value:
            return value
        value = await self.pattern(regex)
        if value:
            logger.debug("Field %s resolved from page text", field or "?")
        return value
