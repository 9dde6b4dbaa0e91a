"""
Utility functions for text cleaning, vehicle field parsing, and logging.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple


VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
VIN_SEARCH_RE = re.compile(r"\b[A-HJ-NPR-Z0-9]{17}\b")
TITLE_RE = re.compile(r"(\d{4})\s+([A-Za-z][A-Za-z-]*)\s+([A-Za-z0-9][A-Za-z0-9\s.\-/]*)")


def init_logger(
    name: str = "fbmkt",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "fbmkt.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def clean_optional(s: Optional[str]) -> Optional[str]:
    """Like clean_text, but empty results become None."""
    cleaned = clean_text(s)
    return cleaned or None


def clean_price(price_text: Optional[str]) -> Optional[str]:
    """
    Reduce a price string to a unit-free digit string.

    "$25,995.00" -> "25995". Cents are dropped; the destination form only
    accepts whole amounts.
    """
    if not price_text:
        return None
    s = price_text.replace("\xa0", " ")
    m = re.search(r"(\d[\d,]*)(?:\.\d+)?", s)
    if not m:
        return None
    digits = m.group(1).replace(",", "")
    return digits.lstrip("0") or "0"


def clean_mileage(text: Optional[str]) -> Optional[str]:
    """
    Reduce a mileage string to a unit-free digit string.

    Handles "45,210 mi", "45210 miles", "12 345 km" and "45K mi".
    """
    if not text:
        return None
    t = text.replace("\xa0", " ")
    m = re.search(r"(\d{1,3}(?:[,\s]\d{3})+(?!\d)|\d+)\s*([kK](?![a-zA-Z]))?", t)
    if not m:
        return None
    num = re.sub(r"[,\s]", "", m.group(1))
    try:
        value = int(num)
    except ValueError:
        return None
    if m.group(2):
        value *= 1000
    return str(value)


def clean_vin(text: Optional[str]) -> Optional[str]:
    """
    Return a valid 17-character VIN found in text, or None.

    Labels such as "VIN:" are tolerated. Anything that fails the VIN pattern
    (I, O and Q are never used) is treated as absent.
    """
    if not text:
        return None
    candidate = clean_text(text).upper()
    if VIN_RE.match(candidate):
        return candidate
    m = VIN_SEARCH_RE.search(candidate)
    if m:
        return m.group(0)
    return None


def clean_phone(text: Optional[str]) -> Optional[str]:
    """Keep digits only."""
    if not text:
        return None
    digits = re.sub(r"\D", "", text)
    return digits or None


def parse_title(text: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Split a listing heading into (year, make, model).

    "2023 Toyota Camry SE" -> ("2023", "Toyota", "Camry SE")
    """
    if not text:
        return (None, None, None)
    m = TITLE_RE.search(clean_text(text))
    if not m:
        return (None, None, None)
    return (m.group(1), m.group(2), clean_text(m.group(3)) or None)


def split_trim(model: Optional[str], trim: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Drop a known trim suffix from a model string."""
    if not model or not trim:
        return (model, trim)
    if model.lower().endswith(" " + trim.lower()):
        return (clean_text(model[: -len(trim)]), trim)
    return (model, trim)


def dedupe(items: Iterable[str]) -> List[str]:
    """Remove duplicates while preserving order."""
    uniq, seen = [], set()
    for item in items:
        if item and item not in seen:
            uniq.append(item)
            seen.add(item)
    return uniq
