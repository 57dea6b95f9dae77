# models.py
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when a profile value has no entry in a lookup table."""


class OnboardingValidationError(ValueError):
    """Raised when an onboarding step receives an empty or out-of-range value."""


class HomeType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    SHARED = "shared"
    STUDENT = "student"


class EnergySource(str, Enum):
    GRID = "grid"
    RENEWABLE = "renewable"
    MIXED = "mixed"


class TransportMode(str, Enum):
    CAR = "car"
    PUBLIC = "public"
    BIKE = "bike"
    WALK = "walk"
    MIXED = "mixed"


class CarType(str, Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    HYBRID = "hybrid"
    ELECTRIC = "electric"


class TipCategory(str, Enum):
    CARBON = "carbon"
    MONEY = "money"
    ENERGY = "energy"
    TRANSPORT = "transport"
    LOCAL = "local"
    PARTNERS = "partners"
    HEALTH = "health"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# Keys used by the web client; mapped onto our field names.
_CAMEL_KEYS = {
    "homeType": "home_type",
    "energySource": "energy_source",
    "carType": "car_type",
    "monthlySpend": "monthly_spend",
    "postcode": "location",
}


@dataclass(frozen=True)
class OnboardingData:
    name: str
    location: str
    home_type: str
    rooms: int
    people: int
    transport: str = TransportMode.MIXED.value
    energy_source: str = EnergySource.GRID.value
    monthly_spend: int = 500
    goals: Tuple[str, ...] = ()
    car_type: Optional[str] = None

    @property
    def postcode(self) -> str:
        return self.location

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["goals"] = list(self.goals)
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "OnboardingData":
        """
        Build from a stored or client-side record, filling defaults.

        Missing and null values both take the default. A `car` choice with
        no car type cannot be costed, so it is skipped in favour of the
        next transport choice (or the default).
        """
        data: Dict[str, Any] = {}
        for key, value in raw.items():
            data[_CAMEL_KEYS.get(key, key)] = value

        rooms_people = data.pop("roomsAndPeople", None) or {}
        car_type = _enum_value(data.get("car_type")) or None
        choices = data.get("transport") or ()
        if not isinstance(choices, (list, tuple)):
            choices = (choices,)
        choices = [_enum_value(c) for c in choices if c]
        if car_type is None:
            choices = [c for c in choices if c != TransportMode.CAR.value]
        # multi-select variant: first usable choice wins
        transport = choices[0] if choices else TransportMode.MIXED.value

        return cls(
            name=str(data.get("name") or "").strip(),
            location=str(data.get("location") or "").strip(),
            home_type=_enum_value(data.get("home_type") or HomeType.APARTMENT.value),
            rooms=int(data.get("rooms") or rooms_people.get("rooms") or 1),
            people=int(data.get("people") or rooms_people.get("people") or 1),
            transport=transport,
            energy_source=_enum_value(data.get("energy_source") or EnergySource.GRID.value),
            monthly_spend=int(data.get("monthly_spend") or 500),
            goals=tuple(data.get("goals") or ()),
            car_type=car_type if transport == TransportMode.CAR.value else None,
        )


@dataclass
class AnimalEquivalent:
    animal: str
    emoji: str
    count: int


@dataclass
class Comparisons:
    world_average: float
    country_average: float
    region_average: float
    animal_equivalent: AnimalEquivalent


@dataclass
class Savings:
    potential: float
    monthly_money: int
    actions: List[str] = field(default_factory=list)


@dataclass
class CarbonFootprint:
    total: float
    breakdown: Dict[str, float]
    grade: str
    comparison: Dict[str, float]
    comparisons: Optional[Comparisons] = None
    savings: Optional[Savings] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PersonalizedTip:
    id: str
    title: str
    content: str
    category: str
    priority: int
    action: str
    potential_saving: Dict[str, float]
    timeframe: str = "immediate"
    difficulty: str = Difficulty.EASY.value

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], tip_id: str) -> "PersonalizedTip":
        saving = raw.get("potentialSaving") or raw.get("potential_saving") or {}
        try:
            priority = int(raw.get("priority", 5))
        except (TypeError, ValueError):
            priority = 5
        difficulty = str(raw.get("difficulty", Difficulty.MEDIUM.value)).lower()
        if difficulty not in {d.value for d in Difficulty}:
            difficulty = Difficulty.MEDIUM.value
        return cls(
            id=tip_id,
            title=str(raw["title"]),
            content=str(raw.get("content", "")),
            category=str(raw.get("category", TipCategory.CARBON.value)),
            priority=max(1, min(10, priority)),
            action=str(raw.get("action", "")),
            potential_saving={
                "carbon": float(saving.get("carbon", 0) or 0),
                "money": float(saving.get("money", 0) or 0),
            },
            timeframe=str(raw.get("timeframe", "immediate")),
            difficulty=difficulty,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LocationData:
    postcode: str
    city: str
    country: str
    lat: float
    lng: float
    region_code: str
    sustainability_score: float = 65.0
    sustainability_factors: List[str] = field(default_factory=list)

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.lat, self.lng)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChatMessage:
    role: str
    content: str
    timestamp: str = field(default_factory=lambda: dt.datetime.now().isoformat())


@dataclass
class ZaiResponse:
    content: str
    conversation_id: Optional[str] = None
    error: Optional[str] = None
