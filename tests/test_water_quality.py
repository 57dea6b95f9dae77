from __future__ import annotations

import math

import pandas as pd
import pytest

import water_quality
from water_quality import WaterQualityClient, mock_frame, rate, statistics


@pytest.mark.parametrize(
    "characteristic, value, rating",
    [
        ("pH", 7.2, "excellent"),
        ("pH", 6.2, "good"),
        ("pH", 5.6, "fair"),
        ("pH", 4.0, "poor"),
        ("Dissolved oxygen (DO)", 8.5, "excellent"),
        ("Dissolved oxygen (DO)", 3.0, "poor"),
        ("Temperature, water", 15.2, "excellent"),
        ("Temperature, water", 31, "poor"),
        ("Turbidity", 12.3, "good"),
        ("Nitrate", 2.8, "good"),
        ("Nitrate", 11, "poor"),
        ("Lead", 0.01, "good"),
        ("Phosphorus", 0.1, "good"),
        (None, 1.0, "fair"),
        ("pH", math.nan, "fair"),
    ],
)
def test_rate(characteristic, value, rating):
    assert rate(characteristic, value) == rating


def test_statistics_ignores_non_positive_values():
    df = pd.DataFrame({"value": [3.0, -1.0, 0.0, 1.0, 2.0, 4.0, None]})
    stats = statistics(df)
    assert stats["count"] == 4
    assert stats["mean"] == 2.5
    assert stats["median"] == 3.0  # upper middle for even counts
    assert (stats["min"], stats["max"]) == (1.0, 4.0)
    assert stats["std"] == round(math.sqrt(1.25), 3)


def test_statistics_empty():
    assert statistics(pd.DataFrame({"value": [0, -2]})) is None
    assert statistics(pd.DataFrame()) is None


def test_build_params_maps_filter_names():
    params = WaterQualityClient.build_params(limit=10, statecode="US:06", characteristic="pH", lon=-118.2, site_id=None)
    assert params == {
        "mimeType": "json",
        "zip": "no",
        "samplecount": "10",
        "statecode": "US:06",
        "characteristicName": "pH",
        "long": "-118.2",
    }


def test_build_params_rejects_unknown_filter():
    with pytest.raises(ValueError, match="colour"):
        WaterQualityClient.build_params(colour="blue")


def test_mock_frame_is_rated():
    df = water_quality.mock_frame()
    assert list(df.columns) == water_quality.COLUMNS
    assert df.attrs["source"] == "mock"
    assert df.loc[0, "rating"] == "excellent"


class _Resp:
    url = "https://example.test/search?x=1"

    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


def test_fetch_transforms_portal_rows(monkeypatch):
    rows = [{
        "ActivityIdentifier": "A-1",
        "ActivityStartDate": "2024-05-01",
        "MonitoringLocationName": "Sacramento River",
        "CharacteristicName": "pH",
        "ResultMeasureValue": "7.9",
        "ResultMeasure": {"MeasureUnitCode": "std units"},
        "StateCode": "06",
        "OrganizationFormalName": "USGS",
    }, {
        "CharacteristicName": "Turbidity",
        "ResultMeasureValue": "n/a",
    }]
    monkeypatch.setattr(water_quality.requests, "get", lambda *a, **kw: _Resp(rows))
    client = WaterQualityClient()
    df = client.fetch(characteristic="pH")
    assert df.attrs["source"] == "live"
    assert client.last_url == _Resp.url
    first = df.iloc[0]
    assert (first["id"], first["value"], first["rating"], first["unit"]) == ("A-1", 7.9, "excellent", "std units")
    assert first["location"] == "Sacramento River, 06"
    assert df.iloc[1]["id"] == "api-1"
    assert math.isnan(df.iloc[1]["value"])
    assert df.iloc[1]["rating"] == "fair"


@pytest.mark.parametrize("behaviour", ["raise", "empty"])
def test_fetch_falls_back_to_mock(monkeypatch, behaviour):
    def fake_get(*a, **kw):
        if behaviour == "raise":
            raise water_quality.requests.ConnectionError("offline")
        return _Resp([])

    monkeypatch.setattr(water_quality.requests, "get", fake_get)
    client = WaterQualityClient()
    df = client.fetch(limit=3)
    assert df.attrs["source"] == "mock"
    assert len(df) == 3
    assert client.last_error


def test_fallback_keeps_the_requested_characteristic(monkeypatch):
    def offline(*a, **kw):
        raise water_quality.requests.ConnectionError("offline")

    monkeypatch.setattr(water_quality.requests, "get", offline)
    df = WaterQualityClient().fetch(characteristic="Nitrate")
    assert df.attrs["source"] == "mock"
    assert set(df["characteristic"]) == {"Nitrate"}


@pytest.mark.parametrize(
    "kwargs, locations",
    [
        ({"region": "UK"}, {"London, UK", "Watford, UK"}),
        ({"region": "lisbon"}, {"Lisbon, Portugal"}),
        ({"region": "UK", "characteristic": "oxygen"}, {"London, UK"}),
        ({"region": "Mars"}, {"London, UK", "Lisbon, Portugal", "Accra, Ghana", "Watford, UK"}),
    ],
)
def test_mock_frame_filters(kwargs, locations):
    assert set(mock_frame(**kwargs)["location"]) == locations


def test_mock_frame_with_no_match_is_empty_but_shaped():
    df = mock_frame(characteristic="Mercury")
    assert df.empty
    assert list(df.columns) == list(water_quality.COLUMNS)
    assert statistics(df) is None


def test_recent_sends_date_window(monkeypatch):
    seen = {}

    def fake_get(url, params, headers, timeout):
        seen.update(params)
        return _Resp([])

    monkeypatch.setattr(water_quality.requests, "get", fake_get)
    WaterQualityClient().recent("US:06", "pH", days_back=7)
    assert seen["statecode"] == "US:06"
    assert seen["sampleMedia"] == "Water"
    assert seen["minresults"] == "1"
    month, day, year = seen["startDateHi"].split("-")
    assert len(year) == 4 and len(month) == 2


def test_by_location_sends_coordinates(monkeypatch):
    seen = {}

    def fake_get(url, params, headers, timeout):
        seen.update(params)
        return _Resp([])

    monkeypatch.setattr(water_quality.requests, "get", fake_get)
    WaterQualityClient().by_location(34.05, -118.24, radius_miles=10)
    assert (seen["lat"], seen["long"], seen["within"]) == ("34.05", "-118.24", "10")
    assert seen["characteristicName"] == "pH"
