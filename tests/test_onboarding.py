from __future__ import annotations

import pytest

from carbon import calculate
from models import OnboardingData, OnboardingValidationError
from onboarding import STEPS, OnboardingFlow

ANSWERS = [
    "Sam",
    "SW1A 1AA",
    "house",
    {"rooms": 3, "people": 2},
    ("car", "petrol"),
    "grid",
    2000,
    ["save money", "reduce carbon footprint", "save money"],
]


def _run(flow, answers):
    done = False
    for answer in answers:
        done = flow.submit(answer)
    return done


def test_full_flow_builds_profile(petrol_household):
    flow = OnboardingFlow()
    assert _run(flow, ANSWERS) is True
    assert flow.is_complete
    assert flow.progress == 1.0
    profile = flow.complete()
    assert isinstance(profile, OnboardingData)
    assert profile == petrol_household


def test_steps_are_in_order():
    assert [key for key, _, _ in STEPS] == [
        "name", "location", "home_type", "rooms_people", "transport", "energy_source", "monthly_spend", "goals",
    ]


def test_complete_before_finishing_raises():
    flow = OnboardingFlow()
    _run(flow, ANSWERS[:3])
    with pytest.raises(OnboardingValidationError, match="rooms_people"):
        flow.complete()


@pytest.mark.parametrize(
    "step, value",
    [
        (0, "   "),
        (2, "castle"),
        (3, {"rooms": 0, "people": 2}),
        (3, {"rooms": 2.5, "people": 2}),
        (3, {"rooms": True, "people": 2}),
        (6, True),
        (3, {"rooms": 3, "people": 21}),
        (3, [3, 2]),
        (4, "car"),
        (4, ("car", "steam")),
        (4, "hoverboard"),
        (5, "coal"),
        (6, 499),
        (6, 10_001),
        (7, []),
        (7, ["become a hermit"]),
    ],
)
def test_invalid_answers_are_rejected(step, value):
    flow = OnboardingFlow()
    _run(flow, ANSWERS[:step])
    with pytest.raises(OnboardingValidationError):
        flow.submit(value)
    assert flow.current_step == step


def test_non_car_transport_drops_car_type():
    flow = OnboardingFlow()
    _run(flow, ANSWERS[:4])
    flow.submit(("bike", "petrol"))
    assert flow.values["transport"] == {"transport": "bike", "car_type": None}


def test_numeric_strings_are_accepted():
    flow = OnboardingFlow()
    _run(flow, ANSWERS[:3])
    flow.submit({"rooms": "4", "people": "1"})
    assert flow.values["rooms_people"] == {"rooms": 4, "people": 1}


def test_back_and_edit_keeps_other_answers():
    flow = OnboardingFlow()
    _run(flow, ANSWERS)
    flow.go_to(0)
    assert not flow.is_complete
    assert flow.initial_value() == "Sam"
    flow.submit("Alex")
    assert flow.current_step == 1
    assert flow.values["location"] == "SW1A 1AA"

    flow.back()
    flow.back()
    assert flow.current_step == 0


def test_reset_clears_everything():
    flow = OnboardingFlow()
    _run(flow, ANSWERS)
    flow.reset()
    assert flow.current_step == 0
    assert flow.values == {}
    assert not flow.is_complete


def test_from_dict_maps_client_keys():
    data = OnboardingData.from_dict({
        "name": " Jo ",
        "postcode": "M1 1AE",
        "homeType": "apartment",
        "roomsAndPeople": {"rooms": 2, "people": 1},
        "transport": ["bike", "public"],
        "energySource": "mixed",
        "monthlySpend": 800,
        "goals": ["walk more"],
    })
    assert data.name == "Jo"
    assert data.postcode == "M1 1AE"
    assert (data.rooms, data.people) == (2, 1)
    assert data.transport == "bike"
    assert data.energy_source == "mixed"
    assert data.car_type is None
    assert data.to_dict()["goals"] == ["walk more"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        (
            {"name": "Jo", "postcode": "M1 1AE"},
            {"home_type": "apartment", "rooms": 1, "people": 1, "transport": "mixed",
             "energy_source": "grid", "monthly_spend": 500, "goals": (), "car_type": None},
        ),
        (
            {"name": "Jo", "postcode": "M1 1AE", "rooms": None, "people": None, "monthlySpend": None},
            {"rooms": 1, "people": 1, "monthly_spend": 500},
        ),
        (
            {"name": "Jo", "postcode": "M1 1AE", "rooms": None, "roomsAndPeople": {"rooms": 4, "people": 3}},
            {"rooms": 4, "people": 3},
        ),
        (
            {"name": "Jo", "postcode": "M1 1AE", "transport": ["car", "public"]},
            {"transport": "public", "car_type": None},
        ),
        (
            {"name": "Jo", "postcode": "M1 1AE", "transport": "car", "carType": None},
            {"transport": "mixed", "car_type": None},
        ),
        (
            {"name": "Jo", "postcode": "M1 1AE", "transport": ["car"], "carType": "diesel"},
            {"transport": "car", "car_type": "diesel"},
        ),
        (
            {"name": "Jo", "postcode": "M1 1AE", "transport": "walk", "carType": "petrol"},
            {"transport": "walk", "car_type": None},
        ),
    ],
)
def test_from_dict_fills_gaps_with_calculable_defaults(raw, expected):
    data = OnboardingData.from_dict(raw)
    for field, value in expected.items():
        assert getattr(data, field) == value
    assert calculate(data).total > 0
