# data_connectors.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from models import LocationData
from resources import mock_businesses

log = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
PLACES_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

# outward-code letters, e.g. "SW" in SW1A, "M" in M1
_AREA = re.compile(r"^([A-Z]{1,2})\d")
LONDON_AREAS = {"SW", "SE", "NW", "EC", "WC", "E", "W", "N"}
_US_WEST = re.compile(r"^9[0-9]{4}$")


def mock_location(postcode: str) -> LocationData:
    """Best-guess location from postcode shape when no geocoder is available."""
    pc = postcode.strip().upper()
    m = _AREA.match(pc)
    area = m.group(1) if m else ""
    if area in LONDON_AREAS:
        return LocationData(
            postcode=pc, city="London", country="United Kingdom", lat=51.5074, lng=-0.1278,
            region_code=pc[:2], sustainability_score=75,
            sustainability_factors=["Excellent public transport", "Green spaces", "Cycling infrastructure"],
        )
    if area == "M":
        return LocationData(
            postcode=pc, city="Manchester", country="United Kingdom", lat=53.4808, lng=-2.2426,
            region_code="M", sustainability_score=68,
            sustainability_factors=["Good public transport", "Recycling programs", "Green initiatives"],
        )
    if _US_WEST.match(pc):
        return LocationData(
            postcode=pc, city="Los Angeles", country="United States", lat=34.0522, lng=-118.2437,
            region_code=pc[:2], sustainability_score=60,
            sustainability_factors=["EV charging stations", "Solar programs", "Water conservation"],
        )
    return LocationData(
        postcode=pc, city="Unknown City", country="Unknown Country", lat=51.5074, lng=-0.1278,
        region_code=pc[:2] or "XX", sustainability_score=65,
        sustainability_factors=["Basic infrastructure", "Waste management", "Local initiatives"],
    )


def _component(components: List[Dict[str, Any]], *types: str) -> Optional[str]:
    for comp in components:
        if any(t in comp.get("types", []) for t in types):
            return comp.get("long_name")
    return None


class DataConnectors:
    """External location data. Google Maps when keyed, postcode heuristics otherwise."""

    def __init__(self, google_maps_api_key: str | None = None, store=None, timeout: float = 10.0):
        self.api_key = google_maps_api_key
        self.store = store
        self.timeout = timeout
        self.last_error: str | None = None

    def available(self) -> bool:
        return bool(self.api_key)

    def _cache(self, location: LocationData) -> None:
        if self.store is None:
            return
        try:
            self.store.cache_location(location)
        except Exception as e:
            log.warning("Could not cache location: %s", e)

    def geocode(self, postcode: str) -> LocationData:
        self.last_error = None
        pc = postcode.strip().upper()

        if self.store is not None:
            try:
                cached = self.store.get_location(pc)
            except Exception as e:
                log.warning("Location cache lookup failed: %s", e)
                cached = None
            if cached is not None:
                return cached

        if self.available():
            try:
                resp = requests.get(GEOCODE_URL, params={"address": pc, "key": self.api_key}, timeout=self.timeout)
                resp.raise_for_status()
                data = resp.json()
                if data.get("status") == "OK" and data.get("results"):
                    result = data["results"][0]
                    comps = result.get("address_components", [])
                    loc = result["geometry"]["location"]
                    fallback = mock_location(pc)
                    location = LocationData(
                        postcode=pc,
                        city=_component(comps, "locality", "postal_town") or "Unknown",
                        country=_component(comps, "country") or "Unknown",
                        lat=float(loc["lat"]),
                        lng=float(loc["lng"]),
                        region_code=pc[:2],
                        sustainability_score=fallback.sustainability_score,
                        sustainability_factors=["Green spaces", "Public transport", "Recycling facilities"],
                    )
                    self._cache(location)
                    return location
                self.last_error = f"Geocoding returned status {data.get('status')!r}"
            except Exception as e:
                self.last_error = f"Exception calling Google Geocoding: {e}"
                log.error("Error fetching location: %s", e)

        location = mock_location(pc)
        self._cache(location)
        return location

    @staticmethod
    def air_quality(location: LocationData) -> Dict[str, Any]:
        # TODO: swap for a real AQI feed keyed on coordinates.
        aqi = max(1, round(150 - location.sustainability_score * 1.2))
        if aqi <= 50:
            level = "Good"
        elif aqi <= 100:
            level = "Moderate"
        else:
            level = "Unhealthy"
        return {
            "aqi": aqi,
            "level": level,
            "pollutants": {
                "pm25": round(aqi * 0.3, 1),
                "pm10": round(aqi * 0.6, 1),
                "o3": round(aqi * 1.1, 1),
                "no2": round(aqi * 0.5, 1),
            },
            "recommendations": [
                "Consider walking or cycling for short trips",
                "Use public transport when possible",
                "Avoid outdoor exercise during peak hours",
            ],
        }

    def local_businesses(self, location: LocationData, query: str = "") -> List[Dict[str, Any]]:
        self.last_error = None
        if not self.available():
            return mock_businesses(location.lat, location.lng)

        params = {
            "location": f"{location.lat},{location.lng}",
            "radius": 5000,
            "keyword": f"sustainable organic {query}".strip(),
            "key": self.api_key,
        }
        try:
            resp = requests.get(PLACES_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            results = resp.json().get("results") or []
        except Exception as e:
            self.last_error = f"Exception calling Google Places: {e}"
            log.error("Error fetching local businesses: %s", e)
            return mock_businesses(location.lat, location.lng)

        if not results:
            return mock_businesses(location.lat, location.lng)

        out = []
        for place in results[:6]:
            geo = place.get("geometry", {}).get("location", {})
            out.append({
                "id": place.get("place_id"),
                "name": place.get("name"),
                "category": (place.get("types") or ["business"])[0],
                "distance": None,
                "sustainability": "Eco-friendly practices",
                "savings": None,
                "lat": geo.get("lat", location.lat),
                "lng": geo.get("lng", location.lng),
                "address": place.get("vicinity", ""),
            })
        return out
