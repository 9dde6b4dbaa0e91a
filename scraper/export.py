"""
Export utilities for scraped vehicle records.
"""
from typing import List

import pandas as pd

from .models import VehicleRecord


def records_to_frame(records: List[VehicleRecord]) -> pd.DataFrame:
    """Flatten records into one row each; list fields are pipe-joined."""
    rows = []
    for x in records:
        rows.append({
            "source": x.source,
            "scraped_at": x.scraped_at,
            "url": x.url,
            "vehicle_id": x.vehicle_id,
            "title": x.display_title,
            "year": x.year,
            "make": x.make,
            "model": x.model,
            "trim": x.trim,
            "price": x.price,
            "mileage": x.mileage,
            "vin": x.vin,
            "exterior_color": x.exterior_color,
            "interior_color": x.interior_color,
            "drivetrain": x.drivetrain,
            "transmission": x.transmission,
            "engine": x.engine,
            "fuel_type": x.fuel_type,
            "body_style": x.body_style,
            "condition": x.condition,
            "dealer_name": x.dealer_name,
            "dealer_phone": x.dealer_phone,
            "dealer_address": x.dealer_address,
            "stock_number": x.stock_number,
            "description": x.description,
            "img_urls": "|".join(x.images) if x.images else "",
            "features": "|".join(x.features) if x.features else "",
        })
    return pd.DataFrame(rows)


def save_output_rows(records: List[VehicleRecord], out_path: str, logger=None) -> pd.DataFrame:
    """Save records to CSV or Excel file."""
    df = records_to_frame(records)
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
    else:
        print(f">>> Saved {len(df)} rows to {out_path}")
    return df
