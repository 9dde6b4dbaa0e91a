"""
Data models for scraped vehicle listings.
"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

from .utils import (
    clean_mileage,
    clean_optional,
    clean_phone,
    clean_price,
    clean_text,
    clean_vin,
    dedupe,
)


# Per-listing photo limit on the destination marketplace
MAX_LISTING_IMAGES = 24

# snake_case attribute -> wire key used by the backend and cross-context messages
WIRE_KEYS = {
    "vehicle_id": "_id",
    "scraped_at": "scrapedAt",
    "exterior_color": "exteriorColor",
    "interior_color": "interiorColor",
    "dealer_name": "dealerName",
    "dealer_phone": "dealerPhone",
    "dealer_address": "dealerAddress",
    "stock_number": "stockNumber",
    "body_style": "bodyStyle",
    "fuel_type": "fuelType",
}


@dataclass
class VehicleRecord:
    """A normalized vehicle listing produced by one visit to a source page."""

    source: str
    scraped_at: str
    url: str

    # Identity
    year: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None

    # Unit-free digit strings
    price: Optional[str] = None
    mileage: Optional[str] = None

    vin: Optional[str] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    drivetrain: Optional[str] = None
    transmission: Optional[str] = None
    engine: Optional[str] = None
    condition: Optional[str] = None
    body_style: Optional[str] = None
    fuel_type: Optional[str] = None
    mpg: Optional[str] = None

    # Seller
    dealer_name: Optional[str] = None
    dealer_phone: Optional[str] = None
    dealer_address: Optional[str] = None
    stock_number: Optional[str] = None

    description: Optional[str] = None
    images: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)

    # Backend identifier, attached when the record comes back from the queue
    vehicle_id: Optional[str] = None

    @property
    def title(self) -> str:
        """Listing title as "year make model"."""
        return clean_text(" ".join(p for p in (self.year, self.make, self.model) if p))

    @property
    def display_title(self) -> str:
        """Title including the trim, as typed into the destination form."""
        base = self.title
        if self.trim and not base.lower().endswith(self.trim.lower()):
            base = f"{base} {self.trim}"
        return clean_text(base)

    def with_images(self, urls: List[str]) -> "VehicleRecord":
        """Return a copy with a replaced image list (still capped)."""
        return replace(self, images=dedupe(urls)[:MAX_LISTING_IMAGES])

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire format."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            out[WIRE_KEYS.get(f.name, f.name)] = getattr(self, f.name)
        out["images"] = list(self.images)
        out["features"] = list(self.features)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VehicleRecord":
        """Build a record from wire (camelCase) or snake_case keys, then clean it."""
        reverse = {v: k for k, v in WIRE_KEYS.items()}
        names = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = reverse.get(key, key)
            if name == "id":
                name = "vehicle_id"
            if name in names and value is not None:
                kwargs[name] = value
        kwargs.setdefault("source", "unknown")
        kwargs.setdefault("scraped_at", "")
        kwargs.setdefault("url", "")
        for name in ("year", "price", "mileage", "vehicle_id"):
            if name in kwargs and not isinstance(kwargs[name], str):
                kwargs[name] = str(kwargs[name])
        return clean_record(cls(**kwargs))


def clean_record(rec: VehicleRecord) -> VehicleRecord:
    """
    Uniform cleanup pass shared by every adapter.

    Collapses whitespace in every string field, strips currency and unit
    characters from price and mileage, validates the VIN and keeps only
    digits in the dealer phone.
    """
    updates: Dict[str, Any] = {}
    for f in fields(rec):
        value = getattr(rec, f.name)
        if isinstance(value, str):
            updates[f.name] = clean_optional(value)

    updates["source"] = clean_text(rec.source)
    updates["scraped_at"] = clean_text(rec.scraped_at)
    updates["url"] = clean_text(rec.url)
    updates["price"] = clean_price(rec.price)
    updates["mileage"] = clean_mileage(rec.mileage)
    updates["vin"] = clean_vin(rec.vin)
    updates["dealer_phone"] = clean_phone(rec.dealer_phone)
    updates["images"] = dedupe(clean_text(u) for u in rec.images)[:MAX_LISTING_IMAGES]
    updates["features"] = dedupe(clean_text(x) for x in rec.features)
    return replace(rec, **updates)
