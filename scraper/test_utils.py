"""
Tests for text cleaning and the VehicleRecord model.
"""
import pytest

from scraper.models import MAX_LISTING_IMAGES, VehicleRecord, clean_record
from scraper.utils import (
    clean_mileage,
    clean_phone,
    clean_price,
    clean_text,
    clean_vin,
    dedupe,
    parse_title,
    split_trim,
)


def test_text_cleaning():
    assert clean_text("  Hello   World  \n") == "Hello World"
    assert clean_text(None) == ""
    assert clean_text("") == ""


@pytest.mark.parametrize("raw,expected", [
    ("$25,995", "25995"),
    ("$25,995.00", "25995"),
    ("CAD 1,299", "1299"),
    ("Call for price", None),
    (None, None),
])
def test_price_cleaning(raw, expected):
    assert clean_price(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("45,210 mi", "45210"),
    ("45210 miles", "45210"),
    ("12 345 km", "12345"),
    ("45K mi", "45000"),
    ("Mileage unknown", None),
])
def test_mileage_cleaning(raw, expected):
    assert clean_mileage(raw) == expected


def test_vin_cleaning_is_idempotent():
    vin = "1HGCM82633A004352"
    assert clean_vin(vin) == vin
    assert clean_vin(clean_vin(vin)) == vin
    assert clean_vin("VIN: 1hgcm82633a004352") == vin


@pytest.mark.parametrize("bad", ["1HGCM82633A00435", "1HGCM82633A00435O", "IHGCM82633A004352", "", None])
def test_invalid_vin_is_absent(bad):
    assert clean_vin(bad) is None


def test_phone_keeps_digits():
    assert clean_phone("(555) 123-4567") == "5551234567"
    assert clean_phone("call us") is None


def test_title_parsing():
    year, make, model = parse_title("2023 Toyota Camry SE")
    assert (year, make) == ("2023", "Toyota")
    assert "Camry SE" in model
    assert parse_title("Great deal!") == (None, None, None)
    assert parse_title("Used 2019 Mercedes-Benz C 300 4MATIC")[1] == "Mercedes-Benz"


def test_split_trim():
    assert split_trim("Camry SE", "SE") == ("Camry", "SE")
    assert split_trim("Camry", "SE") == ("Camry", "SE")
    assert split_trim(None, "SE") == (None, "SE")


def test_dedupe_preserves_order():
    assert dedupe(["b", "a", "b", "", "c", "a"]) == ["b", "a", "c"]


def test_clean_record_strips_units_and_whitespace():
    rec = VehicleRecord(
        source="cars",
        scraped_at="2024-01-01T00:00:00+00:00",
        url=" https://www.cars.com/vehicledetail/1/ ",
        make="  Honda ",
        model="Civic\n  EX",
        price=" $21,450 ",
        mileage="33,120 mi.",
        vin="1hgcm82633a004352",
        dealer_phone="+1 (555) 010-2000",
        exterior_color="   ",
        images=["https://a/1.jpg", "https://a/1.jpg"] + [f"https://a/{i}.jpg" for i in range(2, 40)],
        features=["Sunroof", "Sunroof", " Heated   seats "],
    )
    cleaned = clean_record(rec)
    assert cleaned.make == "Honda"
    assert cleaned.model == "Civic EX"
    assert cleaned.price == "21450"
    assert cleaned.mileage == "33120"
    assert cleaned.vin == "1HGCM82633A004352"
    assert cleaned.dealer_phone == "15550102000"
    assert cleaned.exterior_color is None
    assert cleaned.url == "https://www.cars.com/vehicledetail/1/"
    assert len(cleaned.images) == MAX_LISTING_IMAGES
    assert cleaned.images[0] == "https://a/1.jpg"
    assert cleaned.features == ["Sunroof", "Heated seats"]

    for value in (cleaned.price, cleaned.mileage):
        assert "$" not in value and "," not in value and value == value.strip()


def test_record_wire_format_round_trip():
    data = {
        "_id": "veh-42",
        "year": 2021,
        "make": "Ford",
        "model": "F-150",
        "trim": "XLT",
        "price": 38999,
        "exteriorColor": "Oxford White",
        "images": ["https://img/1.jpg"],
    }
    rec = VehicleRecord.from_dict(data)
    assert rec.vehicle_id == "veh-42"
    assert rec.year == "2021"
    assert rec.price == "38999"
    assert rec.exterior_color == "Oxford White"
    assert rec.source == "unknown"
    assert rec.title == "2021 Ford F-150"
    assert rec.display_title == "2021 Ford F-150 XLT"

    wire = rec.to_dict()
    assert wire["_id"] == "veh-42"
    assert wire["exteriorColor"] == "Oxford White"
    assert VehicleRecord.from_dict(wire) == rec
