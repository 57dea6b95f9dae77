# tips.py
from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional

from models import (
    CarbonFootprint,
    EnergySource,
    LocationData,
    OnboardingData,
    PersonalizedTip,
    TransportMode,
)

log = logging.getLogger(__name__)

MAX_TIPS = 6

SYSTEM_PROMPT = (
    "You are Zai, a sustainability AI assistant. Provide practical, personalized "
    "advice for reducing carbon footprint and saving money."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_prompt(
    data: OnboardingData,
    footprint: CarbonFootprint,
    location: Optional[LocationData] = None,
) -> str:
    where = f"{location.city}, {location.country}" if location else data.location
    transport = data.transport + (f" ({data.car_type})" if data.car_type else "")
    b = footprint.breakdown
    return f"""Generate personalized sustainability tips for a user with the following profile:

User Profile:
- Name: {data.name}
- Location: {where}
- Home: {data.home_type} with {data.rooms} rooms, {data.people} people
- Energy: {data.energy_source}
- Transport: {transport}
- Monthly spending: £{data.monthly_spend}
- Goals: {", ".join(data.goals)}

Carbon Footprint:
- Total: {footprint.total:.1f} tonnes CO2/year
- Home: {b["home"]:.1f} tonnes
- Transport: {b["transport"]:.1f} tonnes
- Spending: {b["spending"]:.1f} tonnes

Generate {MAX_TIPS} personalized tips that are:
1. Specific to their situation
2. Actionable and realistic
3. Include estimated carbon and money savings
4. Prioritized by impact

Return as JSON with this structure:
{{
  "tips": [
    {{
      "title": "Tip title",
      "content": "Detailed explanation and how-to",
      "category": "carbon|money|health|local",
      "priority": 1-10,
      "action": "Specific action to take",
      "potentialSaving": {{"carbon": 0.5, "money": 120}},
      "timeframe": "immediate|1-3 months|3-6 months",
      "difficulty": "easy|medium|hard"
    }}
  ]
}}"""


def parse_tips(content: str, stamp: Optional[int] = None) -> List[PersonalizedTip]:
    """
    Parse a model response into tips.

    Accepts {"tips": [...]} or a bare array, optionally inside a code fence.
    Raises ValueError (json.JSONDecodeError included) on anything else.
    """
    text = _FENCE.sub("", content.strip())
    result: Any = json.loads(text)
    raw_tips = result.get("tips") if isinstance(result, dict) else result
    if not isinstance(raw_tips, list):
        raise ValueError("expected a list of tips")

    stamp = stamp if stamp is not None else int(time.time() * 1000)
    tips: List[PersonalizedTip] = []
    for i, raw in enumerate(raw_tips[:MAX_TIPS]):
        if not isinstance(raw, dict):
            raise ValueError(f"tip {i} is not an object")
        try:
            tips.append(PersonalizedTip.from_dict(raw, tip_id=f"openai-tip-{stamp}-{i}"))
        except KeyError as e:
            raise ValueError(f"tip {i} missing {e}") from None
    return tips


def fallback_tips(data: OnboardingData, footprint: CarbonFootprint) -> List[PersonalizedTip]:
    tips: List[PersonalizedTip] = []

    if data.energy_source != EnergySource.RENEWABLE.value:
        tips.append(PersonalizedTip(
            id="energy-1",
            title="Reduce heating by 1°C",
            content=(
                f"Your {data.home_type} runs on {data.energy_source} energy. Lowering your thermostat "
                "by just 1 degree can reduce your heating bill by 10% and save significant CO₂."
            ),
            category="energy",
            priority=8,
            action="Adjust your thermostat settings",
            potential_saving={"carbon": 0.5, "money": 120},
            timeframe="immediate",
            difficulty="easy",
        ))

    if data.transport == TransportMode.CAR.value and data.car_type != "electric":
        tips.append(PersonalizedTip(
            id="transport-1",
            title="Try car-free days",
            content=(
                f"With your {data.car_type or 'current'} car, trying 2 car-free days per week using "
                "public transport or cycling could significantly reduce both costs and emissions."
            ),
            category="transport",
            priority=7,
            action="Plan 2 car-free days per week",
            potential_saving={"carbon": 1.2, "money": 200},
            timeframe="1-3 months",
            difficulty="medium",
        ))
    elif data.transport == TransportMode.CAR.value:
        tips.append(PersonalizedTip(
            id="transport-2",
            title="Charge off-peak",
            content="Charging your electric car overnight on an off-peak tariff cuts cost and grid carbon.",
            category="transport",
            priority=5,
            action="Set your charger to run overnight",
            potential_saving={"carbon": 0.1, "money": 150},
            timeframe="immediate",
            difficulty="easy",
        ))

    if footprint.total > 0 and footprint.breakdown["spending"] / footprint.total > 0.5:
        tips.append(PersonalizedTip(
            id="money-1",
            title="Buy second-hand first",
            content=(
                f"Spending makes up most of your {footprint.total:.1f}t footprint. Buying second-hand "
                "can cut costs by 60% while reducing your environmental impact."
            ),
            category="money",
            priority=7,
            action="Check second-hand options before buying new",
            potential_saving={"carbon": 0.6, "money": 300},
            timeframe="1-3 months",
            difficulty="easy",
        ))

    if "eat better" in data.goals or "reduce carbon footprint" in data.goals:
        tips.append(PersonalizedTip(
            id="food-1",
            title="Go meat-free 3 days a week",
            content="Swapping meat for lentils 3x a week saves 2,100l of water and cuts food carbon by 40%.",
            category="carbon",
            priority=6,
            action="Plan three plant-based dinners",
            potential_saving={"carbon": 0.4, "money": 160},
            timeframe="immediate",
            difficulty="medium",
        ))

    if "buy local" in data.goals:
        tips.append(PersonalizedTip(
            id="local-1",
            title="Shop at your local grocer",
            content="Seasonal produce from nearby growers travels less and often costs less in season.",
            category="local",
            priority=5,
            action="Find a farmers' market near you",
            potential_saving={"carbon": 0.2, "money": 80},
            timeframe="immediate",
            difficulty="easy",
        ))

    tips.append(PersonalizedTip(
        id="energy-2",
        title="Switch to LED bulbs",
        content=(
            f"For your {data.rooms}-room {data.home_type}, replacing all bulbs with LEDs "
            "can reduce lighting costs by 80%."
        ),
        category="energy",
        priority=6,
        action="Replace incandescent bulbs with LEDs",
        potential_saving={"carbon": 0.2, "money": 50},
        timeframe="immediate",
        difficulty="easy",
    ))

    return tips[:MAX_TIPS]


def rank(tips: List[PersonalizedTip]) -> List[PersonalizedTip]:
    """Highest priority first; ties keep insertion order."""
    return sorted(tips, key=lambda t: -t.priority)


class TipGenerator:
    """LLM-backed tips with a rule-table fallback. Never raises."""

    def __init__(self, llm=None, model: str = "gpt-4"):
        self.llm = llm
        self.model = model
        self.last_source: str = "fallback"

    def generate(
        self,
        data: OnboardingData,
        footprint: CarbonFootprint,
        location: Optional[LocationData] = None,
    ) -> List[PersonalizedTip]:
        self.last_source = "fallback"

        if self.llm is None or not self.llm.available():
            log.warning("OpenAI not configured, using fallback tips")
            return fallback_tips(data, footprint)

        try:
            messages: List[Dict[str, str]] = [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(data, footprint, location)},
            ]
            content = self.llm.complete(messages, model=self.model, temperature=0.7, max_tokens=2000)
            if content is None:
                log.error("Tip generation failed: %s", getattr(self.llm, "last_error", None))
                return fallback_tips(data, footprint)

            tips = parse_tips(content)
            if not tips:
                log.warning("Model returned no tips; using fallback")
                return fallback_tips(data, footprint)
        except Exception as e:
            log.error("Error generating personalized tips: %s", e)
            return fallback_tips(data, footprint)

        self.last_source = "openai"
        return tips
