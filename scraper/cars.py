"""
Cars.com listing adapter.
"""
from .base import SiteAdapter


class CarsAdapter(SiteAdapter):
    """Cars.com marks detail fields with data-qa attributes."""

    site = "cars"
    heading_selectors = ("h1.listing-title", "h1[class*='title']", "h1")
    field_selectors = {
        "price": ("span.primary-price", "[class*='price-section'] span", "span[class*='Price']", ".vehicle-pricing"),
        "mileage": ("[data-qa='mileage']", "li[class*='mileage']", "p.listing-mileage", "dt:has-text('Mileage') + dd"),
        "vin": ("[data-qa='vin']", "dd[class*='vin']", "dt:has-text('VIN') + dd"),
        "exterior_color": ("[data-qa='exterior-color']", "dd[class*='exterior']", "dt:has-text('Exterior color') + dd"),
        "interior_color": ("[data-qa='interior-color']", "dd[class*='interior']", "dt:has-text('Interior color') + dd"),
        "drivetrain": ("[data-qa='drivetrain']", "dd[class*='drivetrain']", "dt:has-text('Drivetrain') + dd"),
        "transmission": ("[data-qa='transmission']", "dd[class*='transmission']", "dt:has-text('Transmission') + dd"),
        "engine": ("[data-qa='engine']", "dd[class*='engine']", "dt:has-text('Engine') + dd"),
        "mpg": ("[data-qa='mpg']", "dd[class*='mpg']", "dt:has-text('MPG') + dd"),
        "fuel_type": ("[data-qa='fuel-type']", "dt:has-text('Fuel type') + dd"),
        "condition": ("[data-qa='condition']", "span[class*='condition']", "p.new-used"),
        "dealer_name": ("[data-qa='dealer-name']", "h2[class*='seller']", "div[class*='dealer-name']"),
        "dealer_phone": ("[data-qa='phone-number']", "a[href^='tel:']", "button[class*='phone']"),
        "dealer_address": ("[data-qa='dealer-address']", "address", "div[class*='address']"),
        "stock_number": ("[data-qa='stock-number']", "dd[class*='stock']", "dt:has-text('Stock #') + dd"),
        "description": ("[data-qa='description']", "div[class*='comments']", "p[class*='description']"),
        "trim": ("[data-qa='trim']", "dd[class*='trim']"),
        "body_style": ("[data-qa='body-style']", "dd[class*='body']"),
    }
    image_selectors = (
        "img[data-qa='vehicle-image']",
        "picture img",
        "img[class*='hero']",
        "img[class*='vehicle']",
        "img[src*='cloudfront']",
    )
    feature_selectors = (
        "[data-qa='features'] li",
        "ul[class*='feature'] li",
        "div[class*='amenities'] li",
    )
    thumbnail_rules = (
        (r"_small\b", "_large"),
        (r"_medium\b", "_large"),
    )
