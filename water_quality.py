# water_quality.py
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import requests

log = logging.getLogger(__name__)

CHARACTERISTICS: List[str] = [
    "pH",
    "Temperature, water",
    "Dissolved oxygen (DO)",
    "Turbidity",
    "Conductivity",
    "Nitrate",
    "Phosphorus",
    "Ammonia",
    "Chloride",
    "Total dissolved solids",
    "Lead",
    "E. coli",
]

US_STATE_CODES: Dict[str, str] = {
    "Alabama": "US:01", "Alaska": "US:02", "Arizona": "US:04", "Arkansas": "US:05",
    "California": "US:06", "Colorado": "US:08", "Connecticut": "US:09", "Delaware": "US:10",
    "District of Columbia": "US:11", "Florida": "US:12", "Georgia": "US:13", "Hawaii": "US:15",
    "Idaho": "US:16", "Illinois": "US:17", "Indiana": "US:18", "Iowa": "US:19",
    "Kansas": "US:20", "Kentucky": "US:21", "Louisiana": "US:22", "Maine": "US:23",
    "Maryland": "US:24", "Massachusetts": "US:25", "Michigan": "US:26", "Minnesota": "US:27",
    "Mississippi": "US:28", "Missouri": "US:29", "Montana": "US:30", "Nebraska": "US:31",
    "Nevada": "US:32", "New Hampshire": "US:33", "New Jersey": "US:34", "New Mexico": "US:35",
    "New York": "US:36", "North Carolina": "US:37", "North Dakota": "US:38", "Ohio": "US:39",
    "Oklahoma": "US:40", "Oregon": "US:41", "Pennsylvania": "US:42", "Rhode Island": "US:44",
    "South Carolina": "US:45", "South Dakota": "US:46", "Tennessee": "US:47", "Texas": "US:48",
    "Utah": "US:49", "Vermont": "US:50", "Virginia": "US:51", "Washington": "US:53",
    "West Virginia": "US:54", "Wisconsin": "US:55", "Wyoming": "US:56", "Puerto Rico": "US:72",
    "Virgin Islands": "US:78",
}

RATING_INFO: Dict[str, Dict[str, str]] = {
    "excellent": {"description": "Excellent water quality", "color": "#059669"},
    "good": {"description": "Good water quality", "color": "#2563eb"},
    "fair": {"description": "Fair water quality", "color": "#d97706"},
    "poor": {"description": "Poor water quality", "color": "#dc2626"},
}

# Query filter name -> portal parameter name
_FILTERS = {
    "statecode": "statecode",
    "characteristic": "characteristicName",
    "start_date": "startDateLo",
    "end_date": "startDateHi",
    "sample_media": "sampleMedia",
    "min_results": "minresults",
    "lat": "lat",
    "lon": "long",
    "within": "within",
    "site_id": "siteid",
}

COLUMNS = ["id", "date", "site", "characteristic", "value", "unit", "location", "source", "rating"]

_MOCK_ROWS: List[Dict[str, Any]] = [
    {"id": "mock-1", "date": "2024-01-15", "site": "Thames River - London Bridge", "characteristic": "pH",
     "value": 7.2, "unit": "pH units", "location": "London, UK", "source": "Environment Agency"},
    {"id": "mock-2", "date": "2024-01-15", "site": "Thames River - London Bridge", "characteristic": "Dissolved Oxygen",
     "value": 8.5, "unit": "mg/L", "location": "London, UK", "source": "Environment Agency"},
    {"id": "mock-3", "date": "2024-01-14", "site": "River Tagus - Lisbon", "characteristic": "Temperature",
     "value": 15.2, "unit": "°C", "location": "Lisbon, Portugal", "source": "Portuguese Environment Agency"},
    {"id": "mock-4", "date": "2024-01-14", "site": "Volta River - Accra", "characteristic": "Turbidity",
     "value": 12.3, "unit": "NTU", "location": "Accra, Ghana", "source": "Ghana EPA"},
    {"id": "mock-5", "date": "2024-01-13", "site": "River Colne - Watford", "characteristic": "Nitrate",
     "value": 2.8, "unit": "mg/L", "location": "Watford, UK", "source": "Environment Agency"},
]

# region filter -> demo locations it covers
_MOCK_REGIONS: Dict[str, List[str]] = {
    "uk": ["London", "Watford"],
    "pt": ["Lisbon"],
    "gh": ["Accra"],
    "london": ["London"],
    "lisbon": ["Lisbon"],
    "accra": ["Accra"],
    "watford": ["Watford"],
}


def _to_float(raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return float("nan")


def rate(characteristic: Optional[str], value: float) -> str:
    """Bucket a measurement into excellent/good/fair/poor."""
    if not characteristic or value is None or np.isnan(value):
        return "fair"
    char = characteristic.lower()

    if char.split(",")[0].strip() == "ph":
        if 6.5 <= value <= 8.5:
            return "excellent"
        if 6.0 <= value <= 9.0:
            return "good"
        if 5.5 <= value <= 9.5:
            return "fair"
        return "poor"

    if "dissolved oxygen" in char:
        if value >= 8.0:
            return "excellent"
        if value >= 6.0:
            return "good"
        if value >= 4.0:
            return "fair"
        return "poor"

    if "temperature" in char:
        if 10 <= value <= 20:
            return "excellent"
        if 5 <= value <= 25:
            return "good"
        if 0 <= value <= 30:
            return "fair"
        return "poor"

    if "turbidity" in char:
        if value <= 5:
            return "excellent"
        if value <= 15:
            return "good"
        if value <= 30:
            return "fair"
        return "poor"

    if "nitrate" in char:
        if value <= 1:
            return "excellent"
        if value <= 5:
            return "good"
        if value <= 10:
            return "fair"
        return "poor"

    return "good"


def rating_info(rating: str) -> Dict[str, str]:
    info = RATING_INFO.get(rating, {"description": "Water quality data", "color": "#2563eb"})
    return {"rating": rating, **info}


def mock_frame(limit: int = 50, characteristic: Optional[str] = None, region: Optional[str] = None) -> pd.DataFrame:
    """Demo rows narrowed the way a live query would be: by region, then characteristic substring."""
    rows = list(_MOCK_ROWS)
    places = _MOCK_REGIONS.get((region or "").lower(), [])
    if places:
        rows = [r for r in rows if any(p in r["location"] for p in places)]
    if characteristic:
        rows = [r for r in rows if characteristic.lower() in r["characteristic"].lower()]
    df = pd.DataFrame(rows[:limit], columns=[c for c in COLUMNS if c != "rating"])
    df["rating"] = [rate(c, v) for c, v in zip(df["characteristic"], df["value"])]
    df = df[COLUMNS]
    df.attrs["source"] = "mock"
    return df


def statistics(df: pd.DataFrame) -> Optional[Dict[str, float]]:
    """Summary of the positive numeric values in `value`, or None if there are none."""
    if df is None or df.empty or "value" not in df.columns:
        return None
    values = pd.to_numeric(df["value"], errors="coerce").dropna()
    values = values[values > 0]
    if values.empty:
        return None
    ordered = np.sort(values.to_numpy())
    return {
        "count": int(len(ordered)),
        "mean": round(float(ordered.mean()), 3),
        "median": round(float(ordered[len(ordered) // 2]), 3),
        "min": float(ordered[0]),
        "max": float(ordered[-1]),
        "std": round(float(ordered.std()), 3),  # population std
    }


class WaterQualityClient:
    """
    Read-only client for the US Water Quality Portal Result search.

    Public attributes:
      • last_error
      • last_url
    """

    def __init__(
        self,
        base_url: str = "https://www.waterqualitydata.us/data/Result/search",
        timeout: float = 10.0,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.last_error: Optional[str] = None
        self.last_url: Optional[str] = None

    @staticmethod
    def build_params(limit: int = 50, **filters: Any) -> Dict[str, str]:
        params = {"mimeType": "json", "zip": "no", "samplecount": str(limit or 50)}
        for name, value in filters.items():
            if name not in _FILTERS:
                raise ValueError(f"Unknown water quality filter {name!r}")
            if value not in (None, ""):
                params[_FILTERS[name]] = str(value)
        return params

    @staticmethod
    def _transform(rows: List[Dict[str, Any]]) -> pd.DataFrame:
        out = []
        for i, item in enumerate(rows):
            measure = item.get("ResultMeasure") or {}
            raw_value = item.get("ResultMeasureValue") or measure.get("MeasureValue")
            value = _to_float(raw_value)
            characteristic = item.get("CharacteristicName") or "Unknown"
            site = item.get("MonitoringLocationName") or "Unknown Site"
            out.append({
                "id": item.get("ActivityIdentifier") or f"api-{i}",
                "date": item.get("ActivityStartDate") or dt.date.today().isoformat(),
                "site": site,
                "characteristic": characteristic,
                "value": value,
                "unit": measure.get("MeasureUnitCode") or "units",
                "location": f"{site}, {item.get('StateCode') or 'Unknown'}",
                "source": item.get("OrganizationFormalName") or "Water Quality Portal",
                "rating": rate(item.get("CharacteristicName"), value),
            })
        return pd.DataFrame(out, columns=COLUMNS)

    def fetch(self, limit: int = 50, region: Optional[str] = None, **filters: Any) -> pd.DataFrame:
        """
        Query the portal; on any failure return the mock frame, filtered by
        `region` and the characteristic filter.

        df.attrs["source"] is "live" or "mock".
        """
        self.last_error = None
        params = self.build_params(limit=limit, **filters)
        self.last_url = self.base_url

        try:
            resp = requests.get(
                self.base_url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            self.last_url = resp.url
            resp.raise_for_status()
            data = resp.json()
        except Exception as e:
            self.last_error = f"Exception calling Water Quality Portal: {e}"
            log.warning("Error fetching water quality data, using mock data: %s", e)
            return mock_frame(limit, filters.get("characteristic"), region)

        if not isinstance(data, list) or not data:
            self.last_error = "No water quality records returned for this selection."
            log.info("No water quality data from API, using mock data")
            return mock_frame(limit, filters.get("characteristic"), region)

        df = self._transform(data[:limit])
        df.attrs["source"] = "live"
        return df

    def recent(self, state_code: str, characteristic: str, days_back: int = 30) -> pd.DataFrame:
        end = dt.date.today()
        start = end - dt.timedelta(days=days_back)
        return self.fetch(
            limit=100,
            statecode=state_code,
            characteristic=characteristic,
            start_date=start.strftime("%m-%d-%Y"),
            end_date=end.strftime("%m-%d-%Y"),
            sample_media="Water",
            min_results=1,
        )

    def by_location(
        self,
        lat: float,
        lon: float,
        radius_miles: float = 25,
        characteristic: str = "pH",
        days_back: int = 30,
    ) -> pd.DataFrame:
        end = dt.date.today()
        start = end - dt.timedelta(days=days_back)
        return self.fetch(
            limit=100,
            lat=lat,
            lon=lon,
            within=radius_miles,
            characteristic=characteristic,
            start_date=start.strftime("%m-%d-%Y"),
            end_date=end.strftime("%m-%d-%Y"),
            sample_media="Water",
            min_results=1,
        )
