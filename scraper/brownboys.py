"""
Brown Boys Auto (brownboysauto.com) listing adapter.
"""
from typing import Optional, Tuple

from .base import SiteAdapter

DETAIL_ROW = ".vehicle_single_detail_div__container"


def _detail(label: str) -> Tuple[str, ...]:
    """Selectors for the value half of a 'Label : value' detail row."""
    row = f"{DETAIL_ROW}:has(span:first-child:has-text('{label}'))"
    return (f"{row} span:last-of-type", f"{row} div.d-flex.align-items-center")


class BrownBoysAdapter(SiteAdapter):
    """Dealer site built from label/value detail rows and an image-gallery slider."""

    site = "brownboys"
    heading_selectors = ("h1",)
    field_selectors = {
        "year": _detail("Year"),
        "make": _detail("Make"),
        "model": _detail("Model"),
        "body_style": _detail("Body Style"),
        "mileage": _detail("Odometer"),
        "transmission": _detail("Transmission"),
        "exterior_color": _detail("Exterior Color"),
        "interior_color": _detail("Interior Color"),
        "fuel_type": _detail("Fuel Type"),
        "stock_number": _detail("Stock Number"),
        "vin": _detail("Vin"),
        "engine": _detail("Engine"),
        "drivetrain": _detail("Drivetrain"),
        "price": (".price-value", ".final-price", ".internet-price"),
        "description": (".DetaileProductCustomrWeb-description-text",),
    }
    image_selectors = (".image-gallery-slide img.image-gallery-image",)
    image_attributes = ("src",)

    async def extract_identity(self, heading: Optional[str]):
        year, make, model = await super().extract_identity(heading)
        if heading and not (year and make and model):
            # Headings here are plain "2023 Hyundai Elantra"
            parts = heading.split(" ")
            year = year or (parts[0] if len(parts) > 0 else None)
            make = make or (parts[1] if len(parts) > 1 else None)
            model = model or (parts[2] if len(parts) > 2 else None)
        return year, make, model
