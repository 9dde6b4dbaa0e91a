"""
Registry of site scrape adapters.
"""
from typing import Dict, Optional, Type
from urllib.parse import urlparse

from .autotrader import AutotraderAdapter
from .base import ExtractionError, SiteAdapter
from .brownboys import BrownBoysAdapter
from .cargurus import CarGurusAdapter
from .cars import CarsAdapter


ADAPTERS: Dict[str, Type[SiteAdapter]] = {
    "autotrader": AutotraderAdapter,
    "cargurus": CarGurusAdapter,
    "cars": CarsAdapter,
    "brownboys": BrownBoysAdapter,
}

HOSTS = {
    "autotrader.com": "autotrader",
    "autotrader.ca": "autotrader",
    "cargurus.com": "cargurus",
    "cargurus.ca": "cargurus",
    "cars.com": "cars",
    "brownboysauto.com": "brownboys",
}


def detect_site(url: str) -> Optional[str]:
    """Map a listing URL to a site tag."""
    host = (urlparse(url).hostname or "").lower()
    for domain, tag in HOSTS.items():
        if host == domain or host.endswith("." + domain):
            return tag
    return None


def get_adapter(site: str, page) -> SiteAdapter:
    """Instantiate the adapter for a site tag."""
    try:
        cls = ADAPTERS[site]
    except KeyError:
        raise ExtractionError(f"No scrape adapter for site '{site}'") from None
    return cls(page)
