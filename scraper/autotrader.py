"""
Autotrader.com listing adapter.
"""
from .base import SiteAdapter


class AutotraderAdapter(SiteAdapter):
    """Autotrader tags most detail fields with data-cmp attributes."""

    site = "autotrader"
    heading_selectors = ("h1[data-cmp='heading']", "h1.heading-2", "h1")
    field_selectors = {
        "year": ("[data-cmp='year']", ".heading-3.heading-base span", "span[class*='year']"),
        "make": ("[data-cmp='make']", "h1.heading-2 span:first-child"),
        "model": ("[data-cmp='model']", "h1.heading-2 span:nth-child(2)"),
        "trim": ("[data-cmp='trim']", "h1.heading-2 span:last-child", "[class*='trim']"),
        "price": ("[data-cmp='vdpPrice']", ".first-price", "span[class*='Price']", "[class*='price']"),
        "mileage": ("[data-cmp='mileage']", "[data-cmp='vehicleMileage']", "div[class*='mileage']"),
        "vin": ("[data-cmp='vin']", "span[class*='vin']", "[class*='VIN']"),
        "exterior_color": ("[data-cmp='exteriorColor']", "div:has-text('Exterior Color') + div", "[class*='exteriorColor']"),
        "interior_color": ("[data-cmp='interiorColor']", "div:has-text('Interior Color') + div", "[class*='interiorColor']"),
        "drivetrain": ("[data-cmp='drivetrain']", "div:has-text('Drivetrain') + div"),
        "transmission": ("[data-cmp='transmission']", "div:has-text('Transmission') + div"),
        "engine": ("[data-cmp='engine']", "div:has-text('Engine') + div"),
        "mpg": ("[data-cmp='mpgCity']", "div:has-text('MPG') + div"),
        "condition": ("[data-cmp='inventoryType']", "span[class*='condition']"),
        "dealer_name": ("[data-cmp='dealerName']", "h3[class*='dealer']", "[class*='sellerName']"),
        "dealer_phone": ("[data-cmp='phoneNumber']", "a[href^='tel:']"),
        "dealer_address": ("[data-cmp='dealerAddress']", "div[class*='address']"),
        "stock_number": ("[data-cmp='stockNumber']", "div:has-text('Stock') + div"),
        "description": ("[data-cmp='vdpComments']", "div[class*='description']", "[class*='comments']"),
    }
    image_selectors = (
        "img[data-cmp='media']",
        "img[class*='media']",
        "img[class*='carousel']",
        "img[src*='vehicle']",
        "picture img",
    )
    feature_selectors = (
        "[data-cmp='features'] li",
        "ul[class*='feature'] li",
        "div[class*='feature'] span",
    )
    thumbnail_rules = (
        (r"_small\b", "_large"),
        (r"_thumb\b", "_full"),
    )
