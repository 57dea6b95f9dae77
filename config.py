# config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

import streamlit as st

log = logging.getLogger(__name__)


def _secret(*names: str, default: Optional[str] = None) -> Optional[str]:
    """
    Resolve a setting: Streamlit secrets first, then the environment.

    Several names may be given; the web build used VITE_-prefixed keys,
    so both spellings are accepted.
    """
    for name in names:
        try:
            value = st.secrets.get(name, None)
        except Exception:
            # no secrets.toml is fine; fall through to env
            value = None
        if value:
            return str(value)
    for name in names:
        value = os.getenv(name)
        if value and value != "undefined":
            return value
    return default


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    tips_model: str = "gpt-4"
    chat_model: str = "gpt-4o-mini"
    google_maps_api_key: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    water_api_url: str = "https://www.waterqualitydata.us/data/Result/search"
    request_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key.startswith("sk-")

    @property
    def google_maps_configured(self) -> bool:
        return bool(self.google_maps_api_key)

    @property
    def supabase_configured(self) -> bool:
        url = self.supabase_url or ""
        key = self.supabase_anon_key or ""
        return (
            url.startswith("https://")
            and len(key) > 20
            and "mock" not in url
            and "mock" not in key
        )

    def status(self) -> Dict[str, str]:
        return {
            "openai": "live" if self.openai_configured else "mock",
            "google_maps": "live" if self.google_maps_configured else "mock",
            "supabase": "live" if self.supabase_configured else "mock",
            "water_quality": "live",
        }


def load_settings() -> Settings:
    defaults = Settings()
    timeout = _secret("REQUEST_TIMEOUT")
    try:
        request_timeout = float(timeout) if timeout else defaults.request_timeout
    except ValueError:
        log.warning("REQUEST_TIMEOUT=%r is not a number; using %s", timeout, defaults.request_timeout)
        request_timeout = defaults.request_timeout

    settings = Settings(
        openai_api_key=_secret("OPENAI_API_KEY", "VITE_OPENAI_API_KEY"),
        openai_base_url=_secret("OPENAI_BASE_URL", default=defaults.openai_base_url),
        tips_model=_secret("ZAI_TIPS_MODEL", default=defaults.tips_model),
        chat_model=_secret("ZAI_CHAT_MODEL", default=defaults.chat_model),
        google_maps_api_key=_secret("GOOGLE_MAPS_API_KEY", "VITE_GOOGLE_MAPS_API_KEY"),
        supabase_url=_secret("SUPABASE_URL", "VITE_SUPABASE_URL"),
        supabase_anon_key=_secret("SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
        water_api_url=_secret("WATER_API_URL", "VITE_WATER_API_URL", default=defaults.water_api_url),
        request_timeout=request_timeout,
        log_level=(_secret("LOG_LEVEL", default=defaults.log_level) or "INFO").upper(),
    )

    for service, mode in settings.status().items():
        if mode == "mock":
            log.info("%s not configured; running in mock mode", service)
    return settings
