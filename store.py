# store.py
from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Any, Dict, List, Optional

import requests

from models import LocationData

log = logging.getLogger(__name__)


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


DEMO_TIPS: List[Dict[str, Any]] = [
    {"card_category": "travel", "tip_text": "using the bus 2x/week instead of driving could save 54kg co₂ annually", "effectiveness_score": 8.5},
    {"card_category": "food", "tip_text": "switching to lentils 3x/week saves 2,100l water and reduces carbon by 40%", "effectiveness_score": 9.2},
    {"card_category": "devices", "tip_text": "your gaming setup adds ~700kg co₂/year, unplug when not in use", "effectiveness_score": 7.8},
    {"card_category": "shopping", "tip_text": "buying second-hand can cut your fashion impact by 60%", "effectiveness_score": 8.9},
    {"card_category": "water", "tip_text": "a low-flow showerhead saves 9l/min without reducing pressure", "effectiveness_score": 8.1},
]

INTERACTION_ACTIONS = {"accept", "reject", "input_submitted", "expanded", "link_clicked"}

_REWARD_DEFAULTS = {
    "total_points": 0,
    "carbon_saved_kg": 0.0,
    "money_saved_pounds": 0.0,
    "actions_completed": 0,
    "streak_days": 0,
}


class MemoryStore:
    """In-process stand-in used whenever Supabase is not configured."""

    mode = "mock"

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "user_profiles": [],
            "card_interactions": [],
            "user_rewards": [],
            "zai_tips": [],
            "zai_conversations": [],
            "locations": [],
        }
        for i, tip in enumerate(DEMO_TIPS, start=1):
            self.tables["zai_tips"].append({"id": str(i), "created_at": _now(), **tip})

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        record = {"id": row.get("id") or uuid.uuid4().hex, "created_at": _now(), **row}
        self.tables[table].append(record)
        return record

    def _select(self, table: str, **eq: Any) -> List[Dict[str, Any]]:
        return [r for r in self.tables[table] if all(r.get(k) == v for k, v in eq.items())]

    # ---- profiles ----
    def create_user_profile(self, profile: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = dict(profile)
        row.setdefault("email", f"{row.get('name', 'user')}@temp.com")
        row["updated_at"] = _now()
        return self._insert("user_profiles", row)

    def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._select("user_profiles", id=user_id)
        return rows[0] if rows else None

    # ---- card interactions ----
    def log_card_interaction(self, interaction: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if interaction.get("action_taken") not in INTERACTION_ACTIONS:
            log.warning("Unknown card action %r", interaction.get("action_taken"))
            return None
        return self._insert("card_interactions", dict(interaction))

    def get_card_interactions(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        rows = self._select("card_interactions", user_id=user_id)
        return list(reversed(rows))[:limit]

    # ---- rewards ----
    def get_rewards(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._select("user_rewards", user_id=user_id)
        return rows[0] if rows else None

    def update_rewards(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        current = self.get_rewards(user_id)
        if current is None:
            current = self._insert("user_rewards", {"user_id": user_id, **_REWARD_DEFAULTS})
        current.update(updates)
        current["updated_at"] = _now()
        return current

    def add_points(self, user_id: str, points: int, carbon_saved: float = 0.0, money_saved: float = 0.0) -> Optional[Dict[str, Any]]:
        current = self.get_rewards(user_id) or {}
        return self.update_rewards(user_id, _accumulate(current, points, carbon_saved, money_saved))

    # ---- tips ----
    def get_tips_for_category(self, category: str, limit: int = 5) -> List[Dict[str, Any]]:
        return self._select("zai_tips", card_category=category)[:limit]

    def create_tip(self, tip: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._insert("zai_tips", dict(tip))

    # ---- conversations ----
    def save_conversation(self, user_id: str, conversation_id: str, messages: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        for row in self._select("zai_conversations", id=conversation_id):
            row["messages"] = messages
            row["updated_at"] = _now()
            return row
        return self._insert("zai_conversations", {"id": conversation_id, "user_id": user_id, "messages": messages})

    # ---- location cache ----
    def get_location(self, postcode: str) -> Optional[LocationData]:
        rows = self._select("locations", postcode=postcode.upper())
        return _location_from_row(rows[0]) if rows else None

    def cache_location(self, location: LocationData) -> None:
        self._insert("locations", location.to_dict())

    def status(self) -> Dict[str, str]:
        return {"status": "mock", "message": "Running in mock data mode"}


class SupabaseStore:
    """
    Supabase persistence over the PostgREST API (/rest/v1/<table>).

    Errors are logged and surface as None / [] so the UI keeps going.
    """

    mode = "live"

    def __init__(self, url: str, anon_key: str, timeout: float = 10.0):
        self.base = f"{url.rstrip('/')}/rest/v1"
        self.anon_key = anon_key
        self.timeout = timeout
        self.last_error: str | None = None

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.anon_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def _request(self, method: str, table: str, params: Optional[Dict[str, Any]] = None,
                 body: Any = None, prefer: Optional[str] = None) -> Optional[Any]:
        self.last_error = None
        url = f"{self.base}/{table}"
        headers = self._headers(Prefer=prefer) if prefer else self._headers()
        try:
            resp = requests.request(method, url, params=params, json=body, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json() if resp.content else []
        except Exception as e:
            self.last_error = f"Supabase {method} {table} failed: {e}"
            log.error("Supabase %s %s error: %s", method, table, e)
            return None

    def _insert(self, table: str, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self._request("POST", table, body=[row], prefer="return=representation")
        return rows[0] if rows else None

    def _select(self, table: str, limit: Optional[int] = None, order: Optional[str] = None,
                **eq: Any) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": "*"}
        params.update({k: f"eq.{v}" for k, v in eq.items()})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", table, params=params) or []

    def _update(self, table: str, row: Dict[str, Any], **eq: Any) -> Optional[Dict[str, Any]]:
        params = {k: f"eq.{v}" for k, v in eq.items()}
        rows = self._request("PATCH", table, params=params, body=row, prefer="return=representation")
        return rows[0] if rows else None

    def create_user_profile(self, profile: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._insert("user_profiles", profile)

    def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._select("user_profiles", limit=1, id=user_id)
        return rows[0] if rows else None

    def log_card_interaction(self, interaction: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if interaction.get("action_taken") not in INTERACTION_ACTIONS:
            log.warning("Unknown card action %r", interaction.get("action_taken"))
            return None
        return self._insert("card_interactions", interaction)

    def get_card_interactions(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        return self._select("card_interactions", limit=limit, order="created_at.desc", user_id=user_id)

    def get_rewards(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._select("user_rewards", limit=1, user_id=user_id)
        return rows[0] if rows else None

    def update_rewards(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = dict(updates, updated_at=_now())
        if self.get_rewards(user_id) is None:
            return self._insert("user_rewards", {"user_id": user_id, **_REWARD_DEFAULTS, **row})
        return self._update("user_rewards", row, user_id=user_id)

    def add_points(self, user_id: str, points: int, carbon_saved: float = 0.0, money_saved: float = 0.0) -> Optional[Dict[str, Any]]:
        current = self.get_rewards(user_id) or {}
        return self.update_rewards(user_id, _accumulate(current, points, carbon_saved, money_saved))

    def get_tips_for_category(self, category: str, limit: int = 5) -> List[Dict[str, Any]]:
        return self._select("zai_tips", limit=limit, order="effectiveness_score.desc", card_category=category)

    def create_tip(self, tip: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._insert("zai_tips", tip)

    def save_conversation(self, user_id: str, conversation_id: str, messages: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        row = {"id": conversation_id, "user_id": user_id, "messages": messages, "updated_at": _now()}
        rows = self._request("POST", "zai_conversations", body=[row],
                             prefer="resolution=merge-duplicates,return=representation")
        return rows[0] if rows else None

    def get_location(self, postcode: str) -> Optional[LocationData]:
        rows = self._select("locations", limit=1, postcode=postcode.upper())
        return _location_from_row(rows[0]) if rows else None

    def cache_location(self, location: LocationData) -> None:
        self._insert("locations", location.to_dict())

    def status(self) -> Dict[str, str]:
        rows = self._request("GET", "zai_tips", params={"select": "id", "limit": 1})
        if rows is None:
            return {"status": "error", "message": self.last_error or "unknown error"}
        return {"status": "ok", "message": "Connected to Supabase"}


def _accumulate(current: Dict[str, Any], points: int, carbon_saved: float, money_saved: float) -> Dict[str, Any]:
    return {
        "total_points": (current.get("total_points") or 0) + points,
        "carbon_saved_kg": (current.get("carbon_saved_kg") or 0) + carbon_saved,
        "money_saved_pounds": (current.get("money_saved_pounds") or 0) + money_saved,
        "actions_completed": (current.get("actions_completed") or 0) + 1,
    }


def _location_from_row(row: Dict[str, Any]) -> LocationData:
    fields = LocationData.__dataclass_fields__
    return LocationData(**{k: v for k, v in row.items() if k in fields})


def make_store(settings):
    if settings.supabase_configured:
        return SupabaseStore(settings.supabase_url, settings.supabase_anon_key, settings.request_timeout)
    log.info("Supabase: running in mock data mode")
    return MemoryStore()
