"""
API route handlers for on-demand scraping.
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from poster.errors import ContextInvalidated
from scraper.sites import ADAPTERS, detect_site

from ..errors import HubError
from ..hub import CoordinationHub
from ..models import ScrapeIn
from .deps import get_hub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["scrape"])


@router.post("/scrape")
async def scrape(payload: ScrapeIn, hub: CoordinationHub = Depends(get_hub)):
    """Open the listing in a tab and run its site adapter."""
    site = payload.scraper or detect_site(payload.url)
    if site not in ADAPTERS:
        raise HTTPException(status_code=400, detail=f"Unsupported listing site: {payload.url}")
    try:
        return await hub.scrape(payload.url, site)
    except ContextInvalidated as e:
        raise HTTPException(status_code=409, detail=f"{e}. Reload and try again.")
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Scrape timed out")
    except HubError as e:
        raise HTTPException(status_code=503, detail=str(e))
