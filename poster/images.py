"""
Image upload pipeline: fetch bytes, wrap them as an in-memory file and hand
them to the page's image file input.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError

from scraper.models import MAX_LISTING_IMAGES

from .errors import FieldNotFound, UploadError

logger = logging.getLogger(__name__)


FILE_INPUT_SELECTORS = (
    'input[type="file"][accept*="image"]',
    'input[type="file"]',
)
UPLOAD_PAUSE = 1.0
FETCH_TIMEOUT_MS = 30_000

ImageFetcher = Callable[[str], Awaitable[Tuple[bytes, str]]]


def context_fetcher(context) -> ImageFetcher:
    """Fetch through the browser context so cookies and referrer rules apply."""
    async def fetch(url: str) -> Tuple[bytes, str]:
        try:
            resp = await context.request.get(url, timeout=FETCH_TIMEOUT_MS)
        except PlaywrightError as e:
            raise UploadError(url, str(e)) from e
        if not resp.ok:
            raise UploadError(url, f"HTTP {resp.status}")
        mime = (resp.headers.get("content-type") or "image/jpeg").split(";")[0].strip()
        if not mime.startswith("image/"):
            raise UploadError(url, f"unexpected content type {mime}")
        return await resp.body(), mime
    return fetch


class ImageUploader:
    """Uploads images one at a time with a fixed pause between them."""

    def __init__(
        self,
        page,
        fetch: Optional[ImageFetcher] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_images: int = MAX_LISTING_IMAGES,
        pause: float = UPLOAD_PAUSE,
    ):
        self.page = page
        self.fetch = fetch or context_fetcher(page.context)
        self.sleep = sleep
        self.max_images = max_images
        self.pause = pause

    async def file_input(self):
        for sel in FILE_INPUT_SELECTORS:
            loc = self.page.locator(sel)
            try:
                if await loc.count():
                    return loc.first
            except PlaywrightError as e:
                logger.debug("File input selector %s failed: %s", sel, e)
        return None

    async def upload_one(self, file_input, url: str, index: int) -> bool:
        """Upload a single image; failures are logged and reported as False."""
        try:
            data, mime = await self.fetch(url)
            try:
                await file_input.set_input_files(files=[{
                    "name": f"vehicle_image_{index}.jpg",
                    "mimeType": mime,
                    "buffer": data,
                }])
            except PlaywrightError as e:
                raise UploadError(url, str(e)) from e
        except UploadError as e:
            logger.warning("%s", e)
            return False
        logger.info("Uploaded image %d (%d bytes)", index, len(data))
        return True

    async def upload_all(self, urls: Sequence[str]) -> int:
        """
        Upload up to ``max_images`` images serially.

        Raises FieldNotFound when the page has no file input yet; returns the
        number of images that made it.
        """
        file_input = await self.file_input()
        if file_input is None:
            raise FieldNotFound("images")

        batch = list(urls)[: self.max_images]
        uploaded = 0
        for i, url in enumerate(batch, start=1):
            if await self.upload_one(file_input, url, i):
                uploaded += 1
            if i < len(batch):
                await self.sleep(self.pause)
        logger.info("Uploaded %d of %d images", uploaded, len(batch))
        return uploaded

    async def upload_url(self, url: str, index: int = 1) -> bool:
        file_input = await self.file_input()
        if file_input is None:
            raise FieldNotFound("images")
        return await self.upload_one(file_input, url, index)
