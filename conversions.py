# conversions.py
from __future__ import annotations

import re
from typing import Dict, List

# Value of one unit of each currency in GBP (demo rates, not live FX)
CURRENCIES: Dict[str, float] = {
    "GBP": 1.0,
    "USD": 0.79,
}

LOCALE_CURRENCY: Dict[str, str] = {"UK": "GBP", "US": "USD", "OTHER": "GBP"}
SYMBOLS: Dict[str, str] = {"GBP": "£", "USD": "$"}

_US_ZIP = re.compile(r"^\d{5}(-\d{4})?$")
_UK_POSTCODE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]?\s?[0-9][A-Z]{2}$", re.IGNORECASE)


def is_us_zip(postcode: str) -> bool:
    return bool(_US_ZIP.match(postcode.strip()))


def is_uk_postcode(postcode: str) -> bool:
    return bool(_UK_POSTCODE.match(postcode.strip()))


def locale_for(postcode: str) -> str:
    if is_us_zip(postcode):
        return "US"
    if is_uk_postcode(postcode):
        return "UK"
    return "OTHER"


def convert_currency(amount: float, from_locale: str, to_locale: str) -> int:
    src = LOCALE_CURRENCY.get(from_locale)
    dst = LOCALE_CURRENCY.get(to_locale)
    if src not in CURRENCIES or dst not in CURRENCIES:
        raise ValueError("Locale not supported")
    if src == dst:
        return round(amount)
    return round(amount * CURRENCIES[src] / CURRENCIES[dst])


def format_currency(amount: float, locale: str = "UK") -> str:
    symbol = SYMBOLS[LOCALE_CURRENCY.get(locale, "GBP")]
    return f"{symbol}{amount:,.0f}"


def carbon_quicktips() -> List[str]:
    return [
        "1 tonne CO₂ ≈ 2,500 miles in an average petrol car",
        "£1 of spending ≈ 0.4 kg CO₂ in our model",
        "A mature tree absorbs ~22 kg CO₂ a year",
        "UK average footprint ≈ 12.7 t CO₂ a year",
    ]
