"""
Core scraping orchestration and browser management.
"""
import asyncio
import os
import random
from typing import Awaitable, Callable, List, Optional

from playwright.async_api import async_playwright

from .base import ExtractionError
from .models import VehicleRecord
from .sites import detect_site, get_adapter


USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


def launch_args(headless: bool) -> List[str]:
    """Chromium flags shared by the scraper and the poster."""
    args = ["--disable-blink-features=AutomationControlled"]
    if headless:
        args += ["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"]
    return args


async def new_browser_context(p, headless: bool, storage_state_path: Optional[str] = None, logger=None):
    """Launch Chromium and open a desktop-sized en-US context."""
    is_headless = bool(headless) or os.getenv("HEADLESS", "").strip().lower() in ("1", "true")

    if not is_headless:
        browser = await p.chromium.launch(
            headless=False,
            channel="chrome",
            args=launch_args(False),
            slow_mo=50,
        )
    else:
        browser = await p.chromium.launch(headless=True, args=launch_args(True))
    if logger:
        logger.info(f">>> Headless mode: {is_headless}")

    ctx_kwargs = {}
    if storage_state_path and os.path.exists(storage_state_path):
        ctx_kwargs["storage_state"] = storage_state_path
        if logger:
            logger.info(f">>> Using existing storage state: {storage_state_path}")

    context = await browser.new_context(
        **ctx_kwargs,
        viewport={"width": 1280, "height": 900},
        user_agent=USER_AGENT,
        locale="en-US",
    )
    context.set_default_timeout(30_000)
    context.set_default_navigation_timeout(45_000)
    return browser, context


async def scrape_page(page, site: Optional[str] = None, logger=None) -> VehicleRecord:
    """Run the matching adapter against an already-loaded listing page."""
    site = site or detect_site(page.url)
    if not site:
        raise ExtractionError(f"Unrecognized listing site: {page.url}")
    if logger:
        logger.info(f">>> Extracting {site} listing: {page.url}")
    return await get_adapter(site, page).extract()


async def scrape_urls(
    context,
    urls: List[str],
    site: Optional[str] = None,
    logger=None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> List[VehicleRecord]:
    """
    Visit each listing URL once in ``context`` and extract a VehicleRecord.

    A listing that will not load or will not extract is logged and skipped;
    it never affects other listings.
    """
    records: List[VehicleRecord] = []
    page = await context.new_page()

    for u in urls:
        if logger:
            logger.info(f">>> Opening listing: {u}")
        try:
            await page.goto(u, timeout=120_000, wait_until="domcontentloaded")
        except Exception:
            # Recreate page if crashed
            if page.is_closed():
                page = await context.new_page()
            try:
                await page.goto(u, timeout=120_000, wait_until="domcontentloaded")
            except Exception as e:
                if logger:
                    logger.error(f">>> Could not open {u}: {e}")
                continue

        try:
            await page.wait_for_load_state("networkidle", timeout=15_000)
        except Exception:
            # Dealer pages keep polling; settle for a short pause
            await sleep(random.uniform(1.2, 2.5))

        try:
            records.append(await scrape_page(page, site or detect_site(u), logger))
        except ExtractionError as e:
            if logger:
                logger.error(f">>> Extraction failed for {u}: {e}")

        await sleep(random.uniform(0.8, 1.6))

    return records


async def run_scrape(
    urls: List[str],
    site: Optional[str] = None,
    headless: bool = True,
    storage_state_path: Optional[str] = None,
    logger=None
) -> List[VehicleRecord]:
    """Launch a browser and scrape ``urls`` with it."""
    async with async_playwright() as p:
        browser, context = await new_browser_context(p, headless, storage_state_path, logger)
        try:
            return await scrape_urls(context, urls, site, logger)
        finally:
            await context.close()
            await browser.close()
