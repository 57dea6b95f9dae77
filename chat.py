# chat.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Dict, List, Optional

from models import ChatMessage, OnboardingData, ZaiResponse

log = logging.getLogger(__name__)

HISTORY_TURNS = 8
APOLOGY = "sorry, i'm having a brief technical issue. please try asking again - i'm here to help with your sustainability journey!"

# First two characters of a UK postcode -> region label
REGIONS: Dict[str, str] = {
    "sw": "southwest london",
    "se": "southeast london",
    "nw": "northwest london",
    "ne": "northeast london",
    "w1": "west london",
    "ec": "central london",
    "wc": "central london",
    "e1": "east london",
    "n1": "north london",
    "m1": "manchester",
    "m2": "manchester",
    "b1": "birmingham",
    "b2": "birmingham",
    "ls": "leeds",
    "bs": "bristol",
    "l1": "liverpool",
    "l2": "liverpool",
    "g1": "glasgow",
    "g2": "glasgow",
    "eh": "edinburgh",
}


def region_from_postcode(postcode: str | None) -> str:
    if not postcode or not postcode.strip():
        return "the uk"
    area = postcode.strip().split(" ")[0][:2].lower()
    return REGIONS.get(area, "the uk")


def error_response(error_message: str | None) -> str:
    msg = (error_message or "").lower()
    if "api key" in msg or "unauthorized" in msg or "401" in msg:
        return (
            "i'm having trouble connecting right now. please check that your openai api key "
            "is set up correctly in your environment variables."
        )
    if "rate limit" in msg or "429" in msg:
        return "lots of people are chatting with me right now! please try again in a moment."
    return APOLOGY


class ZaiChat:
    """Forwards chat turns to the LLM with a templated coaching prompt."""

    def __init__(self, llm=None, model: str = "gpt-4o-mini"):
        self.llm = llm
        self.model = model

    def is_ready(self) -> bool:
        return self.llm is not None and self.llm.available()

    def connection_status(self) -> Dict[str, object]:
        ready = self.is_ready()
        return {
            "is_ready": ready,
            "mode": "live" if ready else "mock",
            "message": (
                "Connected to OpenAI-powered Zai assistant"
                if ready
                else "Running in demo mode - add OPENAI_API_KEY for AI features"
            ),
        }

    def create_system_prompt(self, data: OnboardingData) -> str:
        location = region_from_postcode(data.location)
        return f"""You are Zai, a friendly AI assistant for Zero Zero, helping users live more sustainably while maintaining the app's brutal design aesthetic.

Your personality:
- Warm, encouraging, and supportive (never judgmental)
- Use lowercase text to match the app's brutal design aesthetic
- Keep responses concise but meaningful (2-3 sentences max)
- Focus on actionable, personalized advice
- Celebrate progress and motivate continued action

User context:
- Name: {data.name}
- Location: {location}
- Transport: {data.transport or 'not specified'}
- Home: {data.home_type or 'not specified'}
- Monthly spend: £{data.monthly_spend or 'not specified'}

Your mission:
- Give personalized sustainability tips to save carbon + money
- Explain carbon footprint impacts in simple terms
- Motivate continued eco-friendly habits
- Help them save money through sustainable choices
- Include helpful links where relevant (UK-focused)

Topics to focus on:
- transport alternatives (based on their current mode)
- diet and food choices for carbon reduction
- home energy efficiency (based on their home type)
- money-saving sustainability tips (relevant to their spending)
- celebrating their achievements and progress

Always respond in lowercase and keep the brutal, minimal aesthetic. Be encouraging and uplifting about their sustainability journey.

If asked about something outside sustainability/lifestyle, gently redirect to zero zero topics."""

    def conversation_starter(self, data: OnboardingData) -> str:
        location = region_from_postcode(data.location)
        return (
            f"hi {data.name}!\n\n"
            "welcome to zero zero! i'm zai, your sustainability assistant.\n\n"
            f"based on your profile in {location}, i have some personalized tips that could help you "
            "save money and reduce your carbon footprint today.\n\n"
            "what would you like to chat about? your transport, home energy, diet choices, "
            "or maybe some quick wins to get started?"
        )

    def mock_response(self, message: str, data: OnboardingData) -> str:
        lower = message.lower()
        if "travel" in lower or "transport" in lower:
            return (
                "great question about transport! switching to public transport 2x per week could save you "
                "around 54kg co₂ annually. have you considered trying the bus for your regular journeys?"
            )
        if "food" in lower or "diet" in lower:
            return (
                "food choices make a huge impact! even reducing meat just 3 days per week can save 2,100l "
                "of water and cut your carbon footprint by 40%. fancy trying some plant-based recipes?"
            )
        if "energy" in lower or "home" in lower:
            return (
                "home energy is a great place to start! unplugging devices when not in use can save around "
                "£85 per year. your gaming setup alone could be costing you more than you think."
            )
        if "money" in lower or "save" in lower:
            return (
                "sustainability saves money too! buying second-hand can cut costs by 60% while reducing "
                "your environmental impact. what are you thinking of purchasing?"
            )
        return (
            f"that's an interesting question, {data.name}! i'm here to help you reduce your carbon footprint "
            "and save money. what aspects of sustainable living would you like to explore?"
        )

    def mock_tip(self, data: OnboardingData) -> str:
        location = region_from_postcode(data.location)
        if data.transport == "car":
            return (
                f"hey {data.name}! switching to public transport 2x this week in {location} could save you "
                "£15 and 12kg co₂. batch your errands into one trip to cut fuel costs by 30%."
            )
        if data.transport == "public":
            return (
                f"great choice on public transport {data.name}! walk or cycle for journeys under 2 miles to "
                "save £8 weekly. get a railcard for city travel - saves the average person £200 annually."
            )
        return (
            f"hello {data.name}! unplug devices when not in use - your {data.home_type or 'home'} could save "
            "£85 annually. try meat-free meals 3x this week to save money and reduce carbon by 40%."
        )

    def daily_tip(self, data: OnboardingData) -> str:
        if not self.is_ready():
            return self.mock_tip(data)

        location = region_from_postcode(data.location)
        prompt = (
            f"You're Zai, a climate-smart assistant helping {data.name} from {location}.\n"
            f"They mostly {data.transport or 'walk'}, live in a {data.home_type or 'flat'}, "
            f"and spend about £{data.monthly_spend} monthly.\n"
            "Give them 2 personalised, uplifting tips to save carbon + money this week. Include links where useful.\n"
            "Keep it lowercase, concise, and actionable. Focus on their specific situation."
        )
        content = self.llm.complete(
            [{"role": "system", "content": prompt}],
            model=self.model,
            temperature=0.7,
            max_tokens=200,
        )
        if content is None:
            log.error("Zai tip failed: %s", self.llm.last_error)
            return error_response(self.llm.last_error)
        return content.strip()

    def build_messages(
        self,
        message: str,
        data: OnboardingData,
        history: List[ChatMessage],
    ) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": self.create_system_prompt(data)}]
        for turn in history[-HISTORY_TURNS:]:
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({"role": "user", "content": message})
        return messages

    def send_message(
        self,
        message: str,
        data: OnboardingData,
        history: Optional[List[ChatMessage]] = None,
    ) -> ZaiResponse:
        history = history or []
        if not self.is_ready():
            return ZaiResponse(content=self.mock_response(message, data), conversation_id="mock-conversation")

        content = self.llm.complete(
            self.build_messages(message, data, history),
            model=self.model,
            temperature=0.7,
            max_tokens=200,
            presence_penalty=0.1,
            frequency_penalty=0.1,
        )
        if content is None:
            err = self.llm.last_error or "unknown error"
            log.error("OpenAI chat error: %s", err)
            return ZaiResponse(content=error_response(err), error=err)

        return ZaiResponse(content=content.strip(), conversation_id=f"conv_{int(time.time() * 1000)}")


class ChatSession:
    """
    Per-user chat state: uninitialized -> initializing -> idle <-> sending.

    Each send appends exactly one assistant message, the apology if the
    bridge blows up.
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    IDLE = "idle"
    SENDING = "sending"

    def __init__(self, bridge: ZaiChat, data: OnboardingData):
        self.bridge = bridge
        self.data = data
        self.state = self.UNINITIALIZED
        self.messages: List[ChatMessage] = []
        self.conversation_id: str = f"conv_{uuid.uuid4().hex[:12]}"

    @property
    def is_loading(self) -> bool:
        return self.state in (self.INITIALIZING, self.SENDING)

    def start(self) -> None:
        if self.state != self.UNINITIALIZED:
            return
        self.state = self.INITIALIZING
        try:
            self.messages.append(ChatMessage("assistant", self.bridge.conversation_starter(self.data)))
        finally:
            self.state = self.IDLE

    def send(self, text: str) -> Optional[ChatMessage]:
        text = (text or "").strip()
        if not text:
            return None
        if self.state == self.UNINITIALIZED:
            self.start()
        if self.state != self.IDLE:
            return None

        history = list(self.messages)
        self.messages.append(ChatMessage("user", text))
        self.state = self.SENDING
        try:
            resp = self.bridge.send_message(text, self.data, history)
            reply = ChatMessage("assistant", resp.content)
        except Exception as e:
            log.error("Chat send failed: %s", e)
            reply = ChatMessage("assistant", APOLOGY)
        finally:
            self.state = self.IDLE

        self.messages.append(reply)
        return reply

    def transcript(self) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content, "timestamp": m.timestamp} for m in self.messages]
