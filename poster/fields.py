"""
Vehicle form fields on the marketplace "create vehicle" page.

Each field knows its selector candidates, how it is driven (typed text or a
combobox pick) and how its value is derived from a VehicleRecord.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from scraper.locator import FieldLocator
from scraper.models import VehicleRecord
from scraper.utils import clean_text

from .errors import FieldNotFound
from .typist import Typist

logger = logging.getLogger(__name__)


CREATE_VEHICLE_URL = "https://www.facebook.com/marketplace/create/vehicle"

TEXT = "text"
SELECT = "select"

OPTION_SELECTORS = ('[role="listbox"] [role="option"]', '[role="option"]')
OPTION_WAIT_ROUNDS = 10
OPTION_WAIT = 0.2

VEHICLE_TYPE = "Car/van"

COLORS = (
    "Black", "Blue", "Brown", "Gold", "Green", "Grey", "Pink", "Purple", "Red",
    "Silver", "Orange", "White", "Yellow", "Charcoal", "Off white", "Tan",
    "Beige", "Burgundy", "Turquoise",
)
COLOR_ALIASES = {
    "gray": "Grey",
    "graphite": "Charcoal",
    "maroon": "Burgundy",
    "cream": "Off white",
    "ivory": "Off white",
    "pearl": "White",
    "champagne": "Beige",
    "bronze": "Brown",
    "teal": "Turquoise",
    "navy": "Blue",
}

CONDITIONS = ("Excellent", "Very good", "Good", "Fair", "Poor")
FUEL_TYPES = ("Diesel", "Electric", "Petrol", "Flex", "Hybrid", "Plug-in hybrid", "Other")
TRANSMISSIONS = ("Manual transmission", "Automatic transmission")
BODY_STYLES = (
    "Coupé", "Van", "Saloon", "Hatchback", "4x4", "Convertible", "Estate",
    "MPV/People carrier", "Small car", "Other",
)
# Dealer-site wording to the form's body-style names; first hit wins
BODY_STYLE_KEYWORDS = (
    ("convertible", "Convertible"),
    ("cabriolet", "Convertible"),
    ("coupe", "Coupé"),
    ("coupé", "Coupé"),
    ("sedan", "Saloon"),
    ("saloon", "Saloon"),
    ("hatchback", "Hatchback"),
    ("station wagon", "Estate"),
    ("wagon", "Estate"),
    ("estate", "Estate"),
    ("sport utility", "4x4"),
    ("suv", "4x4"),
    ("4x4", "4x4"),
    ("minivan", "MPV/People carrier"),
    ("people carrier", "MPV/People carrier"),
    ("mpv", "MPV/People carrier"),
    ("van", "Van"),
    ("small car", "Small car"),
    ("compact", "Small car"),
)


def map_color(text: Optional[str]) -> Optional[str]:
    """Closest palette entry for a free-text color, or None."""
    if not text:
        return None
    t = clean_text(text).lower()
    # Longest names first so "off white" wins over "white"
    for color in sorted(COLORS, key=len, reverse=True):
        if re.search(r"\b%s\b" % re.escape(color.lower()), t):
            return color
    for alias, color in COLOR_ALIASES.items():
        if alias in t:
            return color
    return None


def map_fuel(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    t = text.lower()
    if "plug" in t:
        return "Plug-in hybrid"
    if "hybrid" in t:
        return "Hybrid"
    if "diesel" in t:
        return "Diesel"
    if "electric" in t or t.strip() == "ev":
        return "Electric"
    if "flex" in t or "e85" in t:
        return "Flex"
    if "gas" in t or "petrol" in t or "unleaded" in t:
        return "Petrol"
    return "Other"


def map_condition(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    t = text.lower()
    for cond in ("very good", "excellent", "good", "fair", "poor"):
        if cond in t:
            return cond.capitalize()
    if "new" in t and "used" not in t:
        return "Excellent"
    if "certified" in t:
        return "Very good"
    if "used" in t or "pre-owned" in t:
        return "Good"
    return None


def map_transmission(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    t = text.lower()
    if "manual" in t or re.search(r"\bm/?t\b", t):
        return "Manual transmission"
    if "auto" in t or "cvt" in t or re.search(r"\ba/?t\b", t):
        return "Automatic transmission"
    return None


def map_drivetrain(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    t = text.lower()
    if "all" in t or "awd" in t:
        return "AWD"
    if "4x4" in t or "4wd" in t or "four" in t:
        return "4WD"
    if "front" in t or "fwd" in t:
        return "FWD"
    if "rear" in t or "rwd" in t:
        return "RWD"
    return None


def map_body_style(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    t = clean_text(text).lower()
    for style in BODY_STYLES:
        if t == style.lower():
            return style
    for keyword, style in BODY_STYLE_KEYWORDS:
        if re.search(r"\b%s\b" % re.escape(keyword), t):
            return style
    return None


def location_from_address(address: Optional[str]) -> Optional[str]:
    """
    Dealer address trimmed for the location typeahead.

    The typeahead matches on street, city and state; a trailing country or
    ZIP code makes it offer nothing.
    """
    if not address:
        return None
    loc = clean_text(address)
    loc = re.sub(r",?\s*(USA|United States)$", "", loc, flags=re.IGNORECASE)
    loc = re.sub(r"\s+\d{5}(-\d{4})?$", "", loc)
    return loc.strip(" ,") or None


def _combobox(label: str) -> Sequence[str]:
    return (
        f'label[role="combobox"][aria-haspopup="listbox"]:has-text("{label}")',
        f'div[role="combobox"][aria-haspopup="listbox"]:has-text("{label}")',
        f'[role="combobox"][aria-label*="{label}" i]',
    )


def _input(label: str) -> Sequence[str]:
    return (
        f'input[aria-label="{label}"]',
        f'input[aria-label*="{label}" i]',
        f'input[placeholder*="{label}" i]',
        f'label:has-text("{label}") input',
    )


@dataclass(frozen=True)
class FormField:
    name: str
    kind: str
    selectors: Sequence[str]
    value: Callable[[VehicleRecord], Optional[str]]
    # Pick the first suggestion after typing (typeahead inputs)
    suggest: bool = False


# Fill order on the create-vehicle form
FORM_FIELDS: List[FormField] = [
    FormField("category", SELECT, _combobox("Vehicle type"), lambda r: VEHICLE_TYPE),
    FormField("year", SELECT, _combobox("Year"), lambda r: r.year),
    FormField("make", TEXT, _input("Make"), lambda r: r.make),
    FormField("model", TEXT, _input("Model"), lambda r: r.model),
    FormField("mileage", TEXT, _input("Mileage"), lambda r: r.mileage),
    FormField("vin", TEXT, _input("VIN") + _input("Vehicle identification number"), lambda r: r.vin),
    FormField("price", TEXT, _input("Price"), lambda r: r.price),
    FormField("title", TEXT, _input("Title"), lambda r: r.display_title or None),
    FormField(
        "description",
        TEXT,
        (
            'textarea[aria-label*="description" i]',
            'label:has-text("Description") textarea',
            'textarea[placeholder*="description" i]',
            'div[contenteditable="true"][aria-label*="description" i]',
        ),
        lambda r: r.description,
    ),
    FormField("location", TEXT, _input("Location"), lambda r: location_from_address(r.dealer_address),
              suggest=True),
    FormField("condition", SELECT, _combobox("condition"), lambda r: map_condition(r.condition)),
    FormField("transmission", SELECT, _combobox("Transmission"), lambda r: map_transmission(r.transmission)),
    FormField("drivetrain", SELECT, _combobox("Drivetrain"), lambda r: map_drivetrain(r.drivetrain)),
    FormField("fuel_type", SELECT, _combobox("Fuel type"), lambda r: map_fuel(r.fuel_type)),
    FormField("exterior_color", SELECT, _combobox("Exterior colour") + _combobox("Exterior color"),
              lambda r: map_color(r.exterior_color)),
    FormField("interior_color", SELECT, _combobox("Interior colour") + _combobox("Interior color"),
              lambda r: map_color(r.interior_color)),
    FormField("body_style", SELECT, _combobox("Body style"), lambda r: map_body_style(r.body_style)),
]


def _checkbox(label: str) -> Sequence[str]:
    return (
        f'label:has-text("{label}") input[type="checkbox"]',
        f'label:has-text("{label}") [role="checkbox"]',
        f'label:has-text("{label}") [role="radio"]',
    )


# Seller declarations ticked after the fields; absent boxes are not an error
CHECKBOXES = (
    ("clean_title", _checkbox("This vehicle has a clean title") + _checkbox("Clean title")),
    ("no_damage", _checkbox("no significant damage")),
)


def field_values(record: VehicleRecord, overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Form values for the fields this record can fill, in fill order.

    ``overrides`` supply values for fields the record leaves empty.
    """
    overrides = overrides or {}
    values: Dict[str, str] = {}
    for form_field in FORM_FIELDS:
        value = form_field.value(record) or overrides.get(form_field.name)
        value = clean_text(value) if form_field.name != "description" else (value or "").strip()
        if value:
            values[form_field.name] = value
    return values


def _option_matches(text: str, wanted: str) -> bool:
    return clean_text(text).lower() == wanted.lower()


class FormFiller:
    """Drives one form field at a time."""

    def __init__(self, page, typist: Typist, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.page = page
        self.typist = typist
        self.sleep = sleep

    async def fill(self, form_field: FormField, value: str, locator: FieldLocator) -> bool:
        """
        Fill ``form_field`` with ``value``.

        Raises FieldNotFound when no selector resolves; returns False when the
        element was found but the value did not stick.
        """
        el = await locator.locate(form_field.selectors, require_visible=True, field=form_field.name)
        if el is None:
            raise FieldNotFound(form_field.name)

        if form_field.kind == SELECT:
            return await self.choose(el, value, form_field.name)

        typed = await self.typist.type(el, value)
        if form_field.suggest:
            await self.pick_first_suggestion(form_field.name)
            return True
        return clean_text(typed) == clean_text(value)

    async def _options(self):
        for _ in range(OPTION_WAIT_ROUNDS):
            for sel in OPTION_SELECTORS:
                options = self.page.locator(sel)
                if await options.count():
                    return options
            await self.sleep(OPTION_WAIT)
        return None

    async def choose(self, combobox, value: str, name: str = "") -> bool:
        """Open a combobox and click the option whose text matches ``value``."""
        try:
            await combobox.click()
        except PlaywrightError as e:
            logger.debug("Could not open %s dropdown: %s", name, e)
            return False

        options = await self._options()
        if options is None:
            logger.debug("No options appeared for %s", name)
            return False

        n = await options.count()
        fallback = None
        for i in range(n):
            opt = options.nth(i)
            try:
                text = await opt.inner_text()
            except PlaywrightError:
                continue
            if _option_matches(text, value):
                await opt.click()
                logger.info("Selected %s = %s", name, value)
                return True
            if fallback is None and value.lower() in text.lower():
                fallback = opt

        if fallback is not None:
            await fallback.click()
            logger.info("Selected %s ~ %s", name, value)
            return True

        logger.warning("Option %r not offered for %s", value, name)
        try:
            await self.page.keyboard.press("Escape")
        except PlaywrightError as e:
            logger.debug("Could not close %s dropdown: %s", name, e)
        return False

    async def tick(self, selectors: Sequence[str], name: str, locator: FieldLocator) -> bool:
        """Check a checkbox once; an already-checked box is left as is."""
        box = await locator.locate(selectors, require_visible=True, field=name)
        if box is None:
            return False
        try:
            if not await box.is_checked():
                await box.click()
                await self.sleep(0.3)
        except PlaywrightError as e:
            logger.debug("Could not tick %s: %s", name, e)
            return False
        logger.info("Ticked %s", name)
        return True

    async def pick_first_suggestion(self, name: str = "") -> bool:
        await self.sleep(1.0)
        options = await self._options()
        if options is None:
            return False
        try:
            await options.first.click()
        except PlaywrightError as e:
            logger.debug("Suggestion for %s not clickable: %s", name, e)
            return False
        return True
