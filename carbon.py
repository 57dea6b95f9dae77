# carbon.py
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from models import (
    AnimalEquivalent,
    CarbonFootprint,
    Comparisons,
    ConfigurationError,
    LocationData,
    OnboardingData,
    Savings,
    TransportMode,
)

# All emissions are tonnes CO2 per year.

ROOM_FACTOR = 0.8
SPEND_FACTOR_T_PER_GBP = 0.0004  # £1 ≈ 0.4 kg CO2
NATIONAL_AVERAGE_T = 12.7  # UK
WORLD_AVERAGE_T = 4.8

HOME_TYPE_MULTIPLIER: Dict[str, float] = {
    "house": 1.2,
    "apartment": 0.8,
    "shared": 0.6,
    "student": 0.6,  # student halls are shared accommodation
}

ENERGY_MULTIPLIER: Dict[str, float] = {
    "grid": 2.1,
    "renewable": 0.8,
    "mixed": 1.4,
}

CAR_EMISSIONS: Dict[str, float] = {
    "petrol": 2.3,
    "diesel": 2.7,
    "hybrid": 1.4,
    "electric": 0.6,
}

TRANSPORT_EMISSIONS: Dict[str, float] = {
    "public": 0.8,
    "mixed": 1.2,
    "walk": 0.2,
    "bike": 0.2,
}

GRADE_BREAKPOINTS: List[Tuple[float, str]] = [
    (6.0, "A"),
    (8.0, "B"),
    (12.0, "C"),
    (16.0, "D"),
]

COUNTRY_AVERAGE_T: Dict[str, float] = {
    "United Kingdom": 12.7,
    "United States": 14.9,
}

CITY_FACTOR: Dict[str, float] = {
    "London": 0.85,
    "Manchester": 0.95,
}

# (animal, emoji, tonnes); heaviest first
ANIMALS: List[Tuple[str, str, float]] = [
    ("elephant", "🐘", 6.0),
    ("hippo", "🦛", 1.5),
    ("polar bear", "🐻‍❄️", 0.45),
    ("penguin", "🐧", 0.03),
]

# goal -> (share of total footprint or fixed tonnes, share of annual spend or fixed £)
GOAL_SAVINGS: Dict[str, Tuple[str, float, str, float]] = {
    "use less energy": ("share", 0.15, "share", 0.10),
    "walk more": ("fixed", 0.5, "fixed", 600),
    "cycle more": ("fixed", 0.5, "fixed", 600),
    "use public transport": ("fixed", 0.8, "fixed", 1200),
    "reduce waste": ("share", 0.10, "share", 0.05),
    "buy local": ("share", 0.08, "fixed", 0),
    "repair instead of buy": ("share", 0.12, "share", 0.15),
}

# Per-action savings for dashboard cards: kg CO2 and £ per occurrence.
ACTION_SAVINGS: Dict[str, Dict[str, float]] = {
    "public_transport": {"carbon": 2.3, "money": 5.50},
    "meatless_meal": {"carbon": 0.8, "money": 3.20},
    "device_sleep": {"carbon": 0.3, "money": 0.85},
    "second_hand": {"carbon": 1.2, "money": 8.00},
    "train_travel": {"carbon": 45, "money": 0},
    "water_saving": {"carbon": 0.1, "money": 2.10},
    "eco_pet_food": {"carbon": 0.4, "money": -1.50},
    "walking": {"carbon": 0.5, "money": 2.00},
    "meal_planning": {"carbon": 1.1, "money": 4.50},
    "streaming_quality": {"carbon": 0.2, "money": 0.30},
    "plant_tree": {"carbon": 22, "money": 0},
    "default": {"carbon": 0.5, "money": 1.00},
}


def _lookup(table: Dict[str, float], key: Optional[str], what: str) -> float:
    try:
        return table[key]  # type: ignore[index]
    except KeyError:
        accepted = ", ".join(sorted(table))
        raise ConfigurationError(f"Unknown {what} {key!r}; expected one of: {accepted}") from None


def home_emissions(data: OnboardingData) -> float:
    home = _lookup(HOME_TYPE_MULTIPLIER, data.home_type, "home type")
    energy = _lookup(ENERGY_MULTIPLIER, data.energy_source, "energy source")
    return data.rooms * ROOM_FACTOR * home * energy


def transport_emissions(data: OnboardingData) -> float:
    if data.transport == TransportMode.CAR.value:
        if not data.car_type:
            raise ConfigurationError("Transport 'car' needs a car type")
        return _lookup(CAR_EMISSIONS, data.car_type, "car type")
    return _lookup(TRANSPORT_EMISSIONS, data.transport, "transport mode")


def spending_emissions(data: OnboardingData) -> float:
    return data.monthly_spend * 12 * SPEND_FACTOR_T_PER_GBP


def grade_for(total: float) -> str:
    for limit, grade in GRADE_BREAKPOINTS:
        if total < limit:
            return grade
    return "E"


def calculate(data: OnboardingData) -> CarbonFootprint:
    """Annual footprint from an onboarding profile.

    Raises ConfigurationError when a profile value has no multiplier.
    """
    home = home_emissions(data)
    transport = transport_emissions(data)
    spending = spending_emissions(data)
    total = home + transport + spending

    return CarbonFootprint(
        total=total,
        breakdown={"home": home, "transport": transport, "spending": spending},
        grade=grade_for(total),
        comparison={
            "national": NATIONAL_AVERAGE_T,
            "reduction": max(0.0, NATIONAL_AVERAGE_T - total),
        },
    )


def animal_equivalent(total: float) -> AnimalEquivalent:
    for animal, emoji, weight in ANIMALS:
        if total >= weight:
            return AnimalEquivalent(animal, emoji, max(1, round(total / weight)))
    animal, emoji, weight = ANIMALS[-1]
    return AnimalEquivalent(animal, emoji, 1)


def comparisons_for(total: float, location: Optional[LocationData] = None) -> Comparisons:
    country = COUNTRY_AVERAGE_T.get(location.country, WORLD_AVERAGE_T) if location else NATIONAL_AVERAGE_T
    region = country * (CITY_FACTOR.get(location.city, 1.0) if location else 1.0)
    return Comparisons(
        world_average=WORLD_AVERAGE_T,
        country_average=country,
        region_average=region,
        animal_equivalent=animal_equivalent(total),
    )


def savings_potential(data: OnboardingData, total: float) -> Savings:
    annual_spend = data.monthly_spend * 12
    carbon = 0.0
    money = 0.0
    actions: List[str] = []

    for goal in data.goals:
        rule = GOAL_SAVINGS.get(goal)
        if rule is None:
            continue
        c_kind, c_val, m_kind, m_val = rule
        carbon += total * c_val if c_kind == "share" else c_val
        money += annual_spend * m_val if m_kind == "share" else m_val
        actions.append(goal)

    return Savings(
        potential=round(min(carbon, total), 2),
        monthly_money=round(money / 12),
        actions=actions,
    )


def calculate_full(data: OnboardingData, location: Optional[LocationData] = None) -> CarbonFootprint:
    """calculate() plus dashboard comparisons and goal-based savings."""
    fp = calculate(data)
    fp.comparisons = comparisons_for(fp.total, location)
    fp.savings = savings_potential(data, fp.total)
    return fp


def savings_for_action(action: str) -> Dict[str, float]:
    return dict(ACTION_SAVINGS.get(action, ACTION_SAVINGS["default"]))
