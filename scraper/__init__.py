"""
Vehicle listing scraper package.
"""
from .base import ExtractionError, SiteAdapter
from .core import run_scrape, scrape_page, scrape_urls
from .export import save_output_rows
from .locator import FieldLocator
from .models import VehicleRecord, clean_record
from .sites import ADAPTERS, detect_site, get_adapter
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "ADAPTERS",
    "ExtractionError",
    "FieldLocator",
    "SiteAdapter",
    "VehicleRecord",
    "clean_record",
    "detect_site",
    "get_adapter",
    "run_scrape",
    "scrape_page",
    "scrape_urls",
    "save_output_rows",
    "init_logger",
    "now_iso"
]
