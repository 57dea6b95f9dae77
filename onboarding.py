# onboarding.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from models import (
    CarType,
    EnergySource,
    HomeType,
    OnboardingData,
    OnboardingValidationError,
    TransportMode,
)

GOAL_CATALOG: List[str] = [
    "save money",
    "reduce carbon footprint",
    "improve health",
    "eat better",
    "use less energy",
    "walk more",
    "cycle more",
    "reduce waste",
    "buy local",
    "grow food",
    "repair instead of buy",
    "use public transport",
]

ROOMS_RANGE = (1, 20)
PEOPLE_RANGE = (1, 20)
SPEND_RANGE = (500, 10_000)


def _non_empty(label: str) -> Callable[[Any], str]:
    def check(value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise OnboardingValidationError(f"{label} is required")
        return text
    return check


def _choice(label: str, enum_cls) -> Callable[[Any], str]:
    allowed = [e.value for e in enum_cls]

    def check(value: Any) -> str:
        value = getattr(value, "value", value)
        if value not in allowed:
            raise OnboardingValidationError(f"{label} must be one of: {', '.join(allowed)}")
        return value
    return check


def _int_in(label: str, value: Any, bounds: Tuple[int, int]) -> int:
    lo, hi = bounds
    if isinstance(value, bool):
        raise OnboardingValidationError(f"{label} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise OnboardingValidationError(f"{label} must be a whole number") from None
    if number != value and not isinstance(value, str):
        # reject 2.5 rooms; accept "3"
        raise OnboardingValidationError(f"{label} must be a whole number")
    if not lo <= number <= hi:
        raise OnboardingValidationError(f"{label} must be between {lo} and {hi}")
    return number


def _rooms_people(value: Any) -> Dict[str, int]:
    if not isinstance(value, dict):
        raise OnboardingValidationError("rooms and people are required")
    return {
        "rooms": _int_in("rooms", value.get("rooms"), ROOMS_RANGE),
        "people": _int_in("people", value.get("people"), PEOPLE_RANGE),
    }


def _transport(value: Any) -> Dict[str, Optional[str]]:
    if isinstance(value, (tuple, list)):
        mode, car_type = (list(value) + [None])[:2]
    else:
        mode, car_type = value, None
    mode = _choice("transport", TransportMode)(mode)
    if mode == TransportMode.CAR.value:
        if not car_type:
            raise OnboardingValidationError("pick a car type for car transport")
        car_type = _choice("car type", CarType)(car_type)
    else:
        car_type = None
    return {"transport": mode, "car_type": car_type}


def _spend(value: Any) -> int:
    return _int_in("monthly spend", value, SPEND_RANGE)


def _goals(value: Any) -> Tuple[str, ...]:
    goals = tuple(dict.fromkeys(value or ()))
    if not goals:
        raise OnboardingValidationError("pick at least one goal")
    unknown = [g for g in goals if g not in GOAL_CATALOG]
    if unknown:
        raise OnboardingValidationError(f"unknown goals: {', '.join(unknown)}")
    return goals


# (key, question, validator)
STEPS: List[Tuple[str, str, Callable[[Any], Any]]] = [
    ("name", "what should we call you?", _non_empty("name")),
    ("location", "what's your postcode?", _non_empty("postcode")),
    ("home_type", "what type of home do you live in?", _choice("home type", HomeType)),
    ("rooms_people", "how many rooms and people?", _rooms_people),
    ("transport", "how do you usually get around?", _transport),
    ("energy_source", "where does your energy come from?", _choice("energy source", EnergySource)),
    ("monthly_spend", "roughly how much do you spend a month?", _spend),
    ("goals", "what are your goals?", _goals),
]


class OnboardingFlow:
    """Linear wizard producing one OnboardingData record."""

    def __init__(self):
        self.current_step = 0
        self.values: Dict[str, Any] = {}
        self.is_complete = False

    @property
    def step_key(self) -> str:
        return STEPS[self.current_step][0]

    @property
    def question(self) -> str:
        return STEPS[self.current_step][1]

    @property
    def progress(self) -> float:
        return len(self.values) / len(STEPS)

    def initial_value(self) -> Any:
        return self.values.get(self.step_key)

    def submit(self, value: Any) -> bool:
        """Validate and store the current step. Returns True when the flow finishes."""
        key, _, validate = STEPS[self.current_step]
        self.values[key] = validate(value)

        if self.current_step < len(STEPS) - 1:
            self.current_step += 1
            return False
        self.is_complete = len(self.values) == len(STEPS)
        return self.is_complete

    def back(self) -> None:
        if self.current_step > 0:
            self.current_step -= 1
            self.is_complete = False

    def go_to(self, index: int) -> None:
        if 0 <= index < len(STEPS):
            self.current_step = index
            self.is_complete = False

    def reset(self) -> None:
        self.current_step = 0
        self.values = {}
        self.is_complete = False

    def complete(self) -> OnboardingData:
        missing = [key for key, _, _ in STEPS if key not in self.values]
        if missing:
            raise OnboardingValidationError(f"onboarding incomplete: missing {', '.join(missing)}")
        v = self.values
        return OnboardingData(
            name=v["name"],
            location=v["location"],
            home_type=v["home_type"],
            rooms=v["rooms_people"]["rooms"],
            people=v["rooms_people"]["people"],
            transport=v["transport"]["transport"],
            car_type=v["transport"]["car_type"],
            energy_source=v["energy_source"],
            monthly_spend=v["monthly_spend"],
            goals=v["goals"],
        )
