"""
Tests for form field values, body style mapping and seller checkboxes.
"""
import asyncio
import random

import pytest

from poster.fields import (
    CHECKBOXES,
    FORM_FIELDS,
    FormFiller,
    field_values,
    location_from_address,
    map_body_style,
)
from poster.models import FieldStatus, Phase
from poster.orchestrator import FormFillOrchestrator
from poster.store import KeyValueStore, PendingPostStore
from poster.typist import Typist
from poster.verify import VerificationProbe
from poster.wake import IntervalWakeSource
from scraper.locator import FieldLocator
from scraper.models import VehicleRecord


VIN = "1HGCM82633A004352"


def record(**kw):
    data = dict(source="cars", scraped_at="", url="", year="2019", make="Toyota", model="Camry",
                vin=VIN, vehicle_id="veh-4")
    data.update(kw)
    return VehicleRecord(**data)


@pytest.mark.parametrize("address,expected", [
    ("123 Main St, Lake Charles, LA 70634", "123 Main St, Lake Charles, LA"),
    ("123 Main St, Lake Charles, LA 70634-1234", "123 Main St, Lake Charles, LA"),
    ("500 Oak Ave, Austin, TX 78701, USA", "500 Oak Ave, Austin, TX"),
    ("Houston, TX, United States", "Houston, TX"),
    ("  Baton   Rouge, LA  ", "Baton Rouge, LA"),
    ("", None),
    (None, None),
])
def test_location_from_address(address, expected):
    assert location_from_address(address) == expected


def test_location_comes_from_dealer_address():
    values = field_values(record(dealer_address="123 Main St, Lake Charles, LA 70634"))
    assert values["location"] == "123 Main St, Lake Charles, LA"


def test_location_setting_only_fills_gaps():
    overrides = {"location": "Austin, TX"}
    assert field_values(record(), overrides)["location"] == "Austin, TX"
    with_address = field_values(record(dealer_address="9 Elm St, Lafayette, LA 70501"), overrides)
    assert with_address["location"] == "9 Elm St, Lafayette, LA"


@pytest.mark.parametrize("text,expected", [
    ("Sedan", "Saloon"),
    ("Sedan 4D", "Saloon"),
    ("Coupe", "Coupé"),
    ("SUV", "4x4"),
    ("Sport Utility", "4x4"),
    ("Minivan", "MPV/People carrier"),
    ("Cargo Van", "Van"),
    ("Station Wagon", "Estate"),
    ("Convertible", "Convertible"),
    ("hatchback", "Hatchback"),
    ("Estate", "Estate"),
    ("Crew Cab Pickup", None),
    (None, None),
])
def test_map_body_style(text, expected):
    assert map_body_style(text) == expected


def test_body_style_fills_after_interior_color():
    names = [f.name for f in FORM_FIELDS]
    assert names.index("body_style") == names.index("interior_color") + 1
    assert field_values(record(body_style="Sedan"))["body_style"] == "Saloon"
    assert "body_style" not in field_values(record())


def test_tick_checks_once_and_leaves_checked_boxes(fake_page, fake_element, instant_sleep):
    page = fake_page()
    clean = page.add(CHECKBOXES[0][1][0], fake_element())
    damage = page.add(CHECKBOXES[1][1][0], fake_element(checked=True))
    filler = FormFiller(page, Typist(sleep=instant_sleep), sleep=instant_sleep)
    locator = FieldLocator(page)

    async def scenario():
        first = await filler.tick(CHECKBOXES[0][1], "clean_title", locator)
        again = await filler.tick(CHECKBOXES[0][1], "clean_title", locator)
        other = await filler.tick(CHECKBOXES[1][1], "no_damage", locator)
        return first, again, other

    assert asyncio.run(scenario()) == (True, True, True)
    assert clean.checked and clean.clicks == 1
    assert damage.checked and damage.clicks == 0


def test_missing_checkbox_is_not_ticked(fake_page, instant_sleep):
    page = fake_page()
    filler = FormFiller(page, Typist(sleep=instant_sleep), sleep=instant_sleep)
    assert asyncio.run(filler.tick(CHECKBOXES[0][1], "clean_title", FieldLocator(page))) is False


def _orchestrator(page, instant_sleep, notify):
    async def fetch():
        return VIN

    return FormFillOrchestrator(
        page,
        PendingPostStore(KeyValueStore(":memory:")),
        VerificationProbe(fetch),
        typist=Typist(rng=random.Random(7), sleep=instant_sleep),
        wake=IntervalWakeSource(0, sleep=instant_sleep),
        notify=notify,
        sleep=instant_sleep,
    )


def test_body_style_and_checkboxes_are_filled(fake_page, fake_element, instant_sleep):
    page = fake_page()
    for form_field in FORM_FIELDS:
        page.add(form_field.selectors[0], fake_element(form_field.name))
    page.add('[role="listbox"] [role="option"]', fake_element("Car/van"))
    page.add('[role="listbox"] [role="option"]', fake_element("2019"))
    page.add('[role="listbox"] [role="option"]', fake_element("Saloon"))
    boxes = [page.add(selectors[0], fake_element()) for _, selectors in CHECKBOXES]

    async def notify(message):
        if message.get("message", "").startswith("Form filled"):
            page.body_text = "Your listing is live!"

    orch = _orchestrator(page, instant_sleep, notify)
    attempt = asyncio.run(orch.run(record(body_style="Sedan 4D", dealer_address="1 Bay Rd, Sulphur, LA 70663")))

    assert attempt.phase == Phase.VERIFIED
    assert attempt.field_status["body_style"] == FieldStatus.FILLED
    assert attempt.field_status["location"] == FieldStatus.FILLED
    assert attempt.ticked == {"clean_title", "no_damage"}
    assert all(box.checked for box in boxes)


def test_absent_checkboxes_do_not_hold_up_completion(fake_page, fake_element, instant_sleep):
    page = fake_page()
    for name in ("year", "make", "model"):
        selectors = next(f.selectors for f in FORM_FIELDS if f.name == name)
        page.add(selectors[0], fake_element(name))
    page.add('[role="listbox"] [role="option"]', fake_element("2019"))
    page.add('[role="listbox"] [role="option"]', fake_element("Car/van"))
    page.add(next(f.selectors[0] for f in FORM_FIELDS if f.name == "category"), fake_element("category"))
    page.add(next(f.selectors[0] for f in FORM_FIELDS if f.name == "vin"), fake_element("vin"))
    page.add(next(f.selectors[0] for f in FORM_FIELDS if f.name == "title"), fake_element("title"))

    async def notify(message):
        if message.get("message", "").startswith("Form filled"):
            page.body_text = "Listing created"

    attempt = asyncio.run(_orchestrator(page, instant_sleep, notify).run(record()))

    assert attempt.phase == Phase.VERIFIED
    assert attempt.attempts == 1
    assert attempt.ticked == set()
