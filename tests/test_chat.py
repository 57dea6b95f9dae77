from __future__ import annotations

import pytest

import chat
from models import ChatMessage


@pytest.mark.parametrize(
    "postcode, region",
    [("SW1A 1AA", "southwest london"), ("m1 1ae", "manchester"), ("EH1 1YZ", "edinburgh"), ("ZZ9 9ZZ", "the uk"), ("", "the uk"), (None, "the uk")],
)
def test_region_from_postcode(postcode, region):
    assert chat.region_from_postcode(postcode) == region


@pytest.mark.parametrize(
    "error, needle",
    [("401 Unauthorized", "api key"), ("Invalid API key", "api key"), ("429 Too Many Requests", "try again in a moment"), ("timeout", "technical issue")],
)
def test_error_response(error, needle):
    assert needle in chat.error_response(error)


def test_mock_mode_without_llm(petrol_household):
    zai = chat.ZaiChat()
    assert not zai.is_ready()
    assert zai.connection_status()["mode"] == "mock"

    resp = zai.send_message("how do I cut my transport emissions?", petrol_household)
    assert resp.conversation_id == "mock-conversation"
    assert "public transport" in resp.content
    assert "Sam" in zai.send_message("what is love?", petrol_household).content


def test_mock_tip_follows_transport(petrol_household, light_walker):
    zai = chat.ZaiChat()
    assert "public transport" in zai.mock_tip(petrol_household)
    assert "unplug" in zai.daily_tip(light_walker)


def test_system_prompt_carries_user_context(petrol_household):
    prompt = chat.ZaiChat().create_system_prompt(petrol_household)
    assert "Name: Sam" in prompt
    assert "southwest london" in prompt
    assert "£2000" in prompt


def test_history_trimmed_to_last_turns(fake_llm, petrol_household):
    history = [ChatMessage("user" if i % 2 else "assistant", f"turn {i}") for i in range(20)]
    messages = chat.ZaiChat(fake_llm()).build_messages("latest", petrol_household, history)
    assert messages[0]["role"] == "system"
    assert len(messages) == 1 + chat.HISTORY_TURNS + 1
    assert messages[1]["content"] == "turn 12"
    assert messages[-1] == {"role": "user", "content": "latest"}


def test_live_send_passes_penalties(fake_llm, petrol_household):
    llm = fake_llm(["  try the bus!  "])
    resp = chat.ZaiChat(llm, model="gpt-4o-mini").send_message("hi", petrol_household)
    assert resp.content == "try the bus!"
    assert resp.conversation_id.startswith("conv_")
    assert resp.error is None
    assert llm.calls[0]["presence_penalty"] == 0.1
    assert llm.calls[0]["frequency_penalty"] == 0.1


def test_live_send_failure_maps_error(fake_llm, petrol_household):
    llm = fake_llm([None], error="Rate limit exceeded (429)")
    resp = chat.ZaiChat(llm).send_message("hi", petrol_household)
    assert resp.error == "Rate limit exceeded (429)"
    assert "try again in a moment" in resp.content


class _Broken:
    def conversation_starter(self, data):
        return "hello"

    def send_message(self, message, data, history):
        raise RuntimeError("network down")


def test_session_failure_appends_one_apology(petrol_household):
    session = chat.ChatSession(_Broken(), petrol_household)
    session.start()
    reply = session.send("help me")
    assert reply.content == chat.APOLOGY
    assert [m.role for m in session.messages] == ["assistant", "user", "assistant"]
    assert not session.is_loading
    assert session.state == chat.ChatSession.IDLE


def test_session_autostarts_and_ignores_blank(petrol_household):
    session = chat.ChatSession(chat.ZaiChat(), petrol_household)
    assert session.send("   ") is None
    assert session.state == chat.ChatSession.UNINITIALIZED

    session.send("tell me about food")
    assert [m.role for m in session.messages] == ["assistant", "user", "assistant"]
    assert session.messages[0].content.startswith("hi Sam!")
    assert "plant-based" in session.messages[-1].content


def test_session_start_is_idempotent(petrol_household):
    session = chat.ChatSession(chat.ZaiChat(), petrol_household)
    session.start()
    session.start()
    assert len(session.messages) == 1


def test_session_keeps_its_conversation_id(fake_llm, petrol_household):
    session = chat.ChatSession(chat.ZaiChat(fake_llm(["one", "two"])), petrol_household)
    conv_id = session.conversation_id
    session.send("a")
    session.send("b")
    assert session.conversation_id == conv_id
    transcript = session.transcript()
    assert [t["content"] for t in transcript[1:]] == ["a", "one", "b", "two"]
    assert all("timestamp" in t for t in transcript)
