"""
Tests for the site scrape adapters, run against fake pages.
"""
import asyncio

import pytest

from scraper.base import ExtractionError, collect_image_urls, upgrade_size_segment
from scraper.locator import FieldLocator, PRICE_PATTERN
from scraper.models import MAX_LISTING_IMAGES
from scraper.sites import ADAPTERS, detect_site, get_adapter


THUMBNAILS = [
    ("autotrader", "https://images.autotrader.com/scaler/640x480/abc_small.jpg"),
    ("autotrader", "https://images.autotrader.com/hn/c/abc_thumb.jpg"),
    ("cargurus", "https://static.cargurus.com/images/forsale/2024/01/01/320x240/photo_sm.jpg"),
    ("cargurus", "https://static.cargurus.com/images/forsale/photo_thumb.jpeg"),
    ("cars", "https://platform.cstatic-images.com/in/v2/stock_photos/96x72/photo_small.png"),
    ("cars", "https://platform.cstatic-images.com/in/v2/photo_medium.png"),
]


@pytest.mark.parametrize("site,url", THUMBNAILS)
def test_thumbnail_urls_are_upgraded(fake_page, site, url):
    adapter = get_adapter(site, fake_page(url="https://example.com"))
    upgraded = adapter.upgrade_image_url(url)
    assert upgraded != url
    for marker in ("640x480", "320x240", "96x72", "_small", "_thumb", "_sm.", "_medium"):
        if marker in url:
            assert marker not in upgraded


def test_large_size_segment_is_left_alone():
    url = "https://img.example.com/1920x1440/photo.jpg"
    assert upgrade_size_segment(url) == url


def test_image_list_is_capped_in_order():
    raw = [f"https://img.example.com/{i}/photo.jpg" for i in range(26)]
    urls = collect_image_urls(raw, lambda u: u)
    assert len(urls) == MAX_LISTING_IMAGES
    assert urls == raw[:MAX_LISTING_IMAGES]


def test_images_dedupe_by_upgraded_url():
    raw = [
        "https://img.example.com/640x480/a.jpg",
        "https://img.example.com/320x240/a.jpg",
        "/relative/b.jpg",
        None,
        "data:image/gif;base64,R0lGODlhAQABAAAAACw=",
        "https://img.example.com/640x480/c.jpg",
    ]
    urls = collect_image_urls(raw, upgrade_size_segment, base_url="https://img.example.com/listing/9")
    assert urls == [
        "https://img.example.com/1920x1440/a.jpg",
        "https://img.example.com/relative/b.jpg",
        "https://img.example.com/1920x1440/c.jpg",
    ]


def test_relative_image_sources_resolve_against_page(fake_page, fake_element):
    page = fake_page(url="https://www.cars.com/vehicledetail/abc/")
    adapter = get_adapter("cars", page)
    selector = adapter.image_selectors[0]
    page.add(selector, fake_element(attrs={"src": "//img.cars.com/640x480/a.jpg"}))
    page.add(selector, fake_element(attrs={"src": "/photos/640x480/b.jpg"}))
    page.add(selector, fake_element(attrs={"src": "https://img.cars.com/320x240/a.jpg"}))

    urls = asyncio.run(adapter.scrape_images())

    assert urls == [
        "https://img.cars.com/1920x1440/a.jpg",
        "https://www.cars.com/photos/1920x1440/b.jpg",
    ]


def test_adjacent_size_segments_are_both_upgraded():
    url = "https://img.example.com/320x240/640x480/photo.jpg"
    assert upgrade_size_segment(url) == "https://img.example.com/1920x1440/1920x1440/photo.jpg"


def test_detect_site():
    assert detect_site("https://www.autotrader.com/cars-for-sale/vehicle/123") == "autotrader"
    assert detect_site("https://www.cargurus.com/Cars/inventorylisting/x") == "cargurus"
    assert detect_site("https://www.cars.com/vehicledetail/abc/") == "cars"
    assert detect_site("https://brownboysauto.com/cars/2023-hyundai") == "brownboys"
    assert detect_site("https://www.notcars.com/listing") is None
    assert set(ADAPTERS) == {"autotrader", "cargurus", "cars", "brownboys"}


def test_unknown_site_raises():
    with pytest.raises(ExtractionError):
        get_adapter("craigslist", object())


def test_autotrader_extract(fake_page, fake_element):
    page = fake_page(
        url="https://www.autotrader.com/cars-for-sale/vehicle/123",
        body_text="2023 Toyota Camry SE  45,210 mi  VIN 4T1G11AK5PU123456",
    )
    page.add("h1[data-cmp='heading']", fake_element("2023 Toyota Camry SE"))
    page.add("[data-cmp='vdpPrice']", fake_element("  $25,995 "))
    page.add("[data-cmp='exteriorColor']", fake_element("Midnight   Black Metallic"))
    page.add("[data-cmp='dealerName']", fake_element(""))
    page.add("h3[class*='dealer']", fake_element("Sunrise Toyota"))
    page.add("a[href^='tel:']", fake_element("(555) 201-3344"))
    page.add("[data-cmp='features'] li", fake_element("Backup Camera"))
    page.add("[data-cmp='features'] li", fake_element("Backup Camera"))
    page.add("[data-cmp='features'] li", fake_element("Apple CarPlay"))
    for i in range(26):
        page.add("img[data-cmp='media']", fake_element(attrs={
            "src": f"https://images.autotrader.com/scaler/640x480/photo{i}_small.jpg",
        }))

    rec = asyncio.run(get_adapter("autotrader", page).extract())

    assert rec.source == "autotrader"
    assert (rec.year, rec.make) == ("2023", "Toyota")
    assert "Camry" in rec.model
    assert rec.price == "25995"
    assert rec.mileage == "45210"
    assert rec.vin == "4T1G11AK5PU123456"
    assert rec.exterior_color == "Midnight Black Metallic"
    assert rec.dealer_name == "Sunrise Toyota"
    assert rec.dealer_phone == "5552013344"
    assert rec.features == ["Backup Camera", "Apple CarPlay"]
    assert len(rec.images) == MAX_LISTING_IMAGES
    assert rec.images[0] == "https://images.autotrader.com/scaler/1920x1440/photo0_large.jpg"
    assert rec.images[-1].endswith("photo23_large.jpg")
    assert rec.interior_color is None


def test_cars_structured_trim_is_split_from_model(fake_page, fake_element):
    page = fake_page(url="https://www.cars.com/vehicledetail/abc/")
    page.add("h1.listing-title", fake_element("Used 2020 Honda Accord Sport"))
    page.add("[data-qa='trim']", fake_element("Sport"))
    page.add("dt:has-text('Mileage') + dd", fake_element("31,002 mi."))

    rec = asyncio.run(get_adapter("cars", page).extract())

    assert (rec.year, rec.make, rec.model, rec.trim) == ("2020", "Honda", "Accord", "Sport")
    assert rec.mileage == "31002"
    assert rec.price is None


def test_brownboys_heading_fallback(fake_page, fake_element):
    page = fake_page(url="https://brownboysauto.com/cars/123")
    page.add("h1", fake_element("2022 Kia"))
    rec = asyncio.run(get_adapter("brownboys", page).extract())
    assert (rec.year, rec.make) == ("2022", "Kia")


def test_missing_heading_raises(fake_page):
    page = fake_page(url="https://www.cargurus.com/Cars/inventorylisting/x", body_text="Nothing here")
    with pytest.raises(ExtractionError):
        asyncio.run(get_adapter("cargurus", page).extract())


def test_locator_prefers_first_non_empty_selector(fake_page, fake_element):
    page = fake_page(body_text="Now only $19,999!")
    page.add(".empty", fake_element("   "))
    page.add(".second", fake_element("Second"))
    locator = FieldLocator(page)

    assert asyncio.run(locator.text([".missing", ".empty", ".second"])) == "Second"
    assert asyncio.run(locator.text([".missing"])) is None
    assert asyncio.run(locator.text_or_pattern([".missing"], PRICE_PATTERN)) == "$19,999"
