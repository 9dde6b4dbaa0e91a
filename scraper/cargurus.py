"""
CarGurus.com listing adapter.
"""
from .base import SiteAdapter


class CarGurusAdapter(SiteAdapter):
    """CarGurus renders specs as <dt>/<dd> pairs; identity comes from the heading."""

    site = "cargurus"
    heading_selectors = ("h1.vdp-header-title", "h1[data-cg-ft='vdp-listing-title']", "h1")
    field_selectors = {
        "price": (".price-section span", "span[class*='price']", "div[class*='pricing']"),
        "mileage": ("dt:has-text('Mileage') + dd", "div[class*='mileage']"),
        "vin": ("dt:has-text('VIN') + dd", "div[class*='vin']"),
        "exterior_color": ("dt:has-text('Exterior') + dd",),
        "interior_color": ("dt:has-text('Interior') + dd",),
        "drivetrain": ("dt:has-text('Drivetrain') + dd",),
        "transmission": ("dt:has-text('Transmission') + dd",),
        "engine": ("dt:has-text('Engine') + dd",),
        "mpg": ("dt:has-text('MPG') + dd",),
        "trim": ("dt:has-text('Trim') + dd", "span[class*='trim']"),
        "body_style": ("dt:has-text('Body') + dd", "span[class*='body']"),
        "fuel_type": ("dt:has-text('Fuel') + dd",),
        "condition": ("span[class*='condition']", "div[class*='badge']"),
        "dealer_name": ("h2[class*='dealer']", "div[class*='seller-name']", "a[class*='dealer-link']"),
        "dealer_phone": ("a[href^='tel:']", "button[class*='phone']", "span[class*='phone']"),
        "dealer_address": ("address", "div[class*='dealer-address']", "p[class*='location']"),
        "stock_number": ("dt:has-text('Stock') + dd",),
        "description": ("div[class*='description']", "p[class*='comments']", "div[class*='seller-comments']"),
    }
    image_selectors = (
        "img[class*='gallery']",
        "img[class*='vehicle']",
        "picture img",
        "img[src*='cargurus']",
    )
    feature_selectors = (
        "ul[class*='features'] li",
        "div[class*='amenities'] li",
        "ul[class*='options'] li",
    )
    thumbnail_rules = (
        (r"_sm\.", "_lg."),
        (r"_thumb\.", "_full."),
    )
