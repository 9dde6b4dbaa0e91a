"""
Tests for CSV export and the scrape CLI arguments.
"""
import pandas as pd

from scraper.cli import parse_args
from scraper.export import records_to_frame, save_output_rows
from scraper.models import VehicleRecord


def _record(**kw):
    base = dict(source="cars", scraped_at="2024-05-01T12:00:00+00:00", url="https://www.cars.com/vehicledetail/1/")
    base.update(kw)
    return VehicleRecord(**base)


def test_records_to_frame_joins_lists():
    df = records_to_frame([_record(year="2019", make="Mazda", model="CX-5", trim="Touring",
                                   images=["https://a/1.jpg", "https://a/2.jpg"], features=["AWD"])])
    row = df.iloc[0]
    assert row["title"] == "2019 Mazda CX-5 Touring"
    assert row["img_urls"] == "https://a/1.jpg|https://a/2.jpg"
    assert row["features"] == "AWD"


def test_save_output_rows_csv(tmp_path):
    out = tmp_path / "vehicles.csv"
    df = save_output_rows([_record(price="19999"), _record(price="20500")], str(out))
    assert len(df) == 2
    loaded = pd.read_csv(out, dtype=str)
    assert list(loaded["price"]) == ["19999", "20500"]


def test_parse_args_defaults():
    args = parse_args(["--url", "https://www.cars.com/vehicledetail/1/", "--url", "https://www.cars.com/vehicledetail/2/"])
    assert len(args.url) == 2
    assert args.site is None
    assert args.out == "vehicles_export.csv"
    assert not args.headless
