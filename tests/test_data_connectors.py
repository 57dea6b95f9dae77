from __future__ import annotations

import pytest

import data_connectors
from data_connectors import DataConnectors, mock_location
from store import MemoryStore


@pytest.mark.parametrize(
    "postcode, city",
    [("SW1A 1AA", "London"), ("ec1a 1bb", "London"), ("M1 1AE", "Manchester"), ("90210", "Los Angeles"), ("10001", "Unknown City"),
     ("EH1 1YZ", "Unknown City"), ("NE1 4ST", "Unknown City"), ("ML1 1AA", "Unknown City"), ("W1A 0AX", "London")],
)
def test_mock_location_from_postcode_shape(postcode, city):
    assert mock_location(postcode).city == city


def test_geocode_without_key_uses_mock_and_caches():
    mem = MemoryStore()
    dc = DataConnectors(store=mem)
    loc = dc.geocode(" sw1a 1aa ")
    assert loc.city == "London"
    assert loc.postcode == "SW1A 1AA"
    assert mem.get_location("SW1A 1AA") == loc


def test_geocode_prefers_cache(monkeypatch):
    mem = MemoryStore()
    cached = mock_location("M1 1AE")
    mem.cache_location(cached)

    def boom(*a, **kw):
        raise AssertionError("should not hit the network")

    monkeypatch.setattr(data_connectors.requests, "get", boom)
    assert DataConnectors("key", store=mem).geocode("M1 1AE") == cached


class _Resp:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


def test_geocode_with_google(monkeypatch):
    payload = {
        "status": "OK",
        "results": [{
            "address_components": [
                {"long_name": "Leeds", "types": ["postal_town"]},
                {"long_name": "United Kingdom", "types": ["country", "political"]},
            ],
            "geometry": {"location": {"lat": 53.8, "lng": -1.55}},
        }],
    }
    monkeypatch.setattr(data_connectors.requests, "get", lambda *a, **kw: _Resp(payload))
    loc = DataConnectors("key").geocode("LS1 1UR")
    assert (loc.city, loc.country) == ("Leeds", "United Kingdom")
    assert loc.coordinates == (53.8, -1.55)
    assert loc.region_code == "LS"


def test_geocode_failure_falls_back(monkeypatch):
    monkeypatch.setattr(data_connectors.requests, "get", lambda *a, **kw: _Resp({"status": "ZERO_RESULTS"}))
    dc = DataConnectors("key")
    assert dc.geocode("M1 1AE").city == "Manchester"
    assert "ZERO_RESULTS" in dc.last_error


def test_air_quality_tracks_sustainability_score():
    good = DataConnectors.air_quality(mock_location("SW1A 1AA"))
    worse = DataConnectors.air_quality(mock_location("90210"))
    assert good["aqi"] == 60
    assert good["level"] == "Moderate"
    assert worse["aqi"] > good["aqi"]
    assert set(good["pollutants"]) == {"pm25", "pm10", "o3", "no2"}


def test_local_businesses(monkeypatch):
    loc = mock_location("SW1A 1AA")
    assert len(DataConnectors().local_businesses(loc)) == 3

    places = {"results": [
        {"place_id": f"p{i}", "name": f"Shop {i}", "types": ["store"], "vicinity": "High St",
         "geometry": {"location": {"lat": 51.5, "lng": -0.1}}}
        for i in range(10)
    ]}
    monkeypatch.setattr(data_connectors.requests, "get", lambda *a, **kw: _Resp(places))
    out = DataConnectors("key").local_businesses(loc, "food")
    assert len(out) == 6
    assert out[0]["name"] == "Shop 0"
    assert out[0]["category"] == "store"
