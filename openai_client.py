# openai_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

log = logging.getLogger(__name__)


class OpenAIClient:
    """
    Minimal helper for an OpenAI-compatible chat completions endpoint.

    Docs: https://platform.openai.com/docs/api-reference/chat/create

    Request:  {model, messages[], temperature, max_tokens, ...}
    Response: {choices[0].message.content}
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.last_error: str | None = None

    def available(self) -> bool:
        return bool(self.api_key) and self.api_key.startswith("sk-")

    @property
    def endpoint(self) -> str:
        if self.base_url.endswith("/v1"):
            return f"{self.base_url}/chat/completions"
        return f"{self.base_url}/v1/chat/completions"

    def complete(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 200,
        **extra: Any,
    ) -> str | None:
        """
        Returns the first choice's message content, else None.

        On failure `last_error` holds a readable reason; callers decide
        the fallback.
        """
        self.last_error = None

        if not self.available():
            self.last_error = "No OPENAI_API_KEY found in secrets or environment."
            return None

        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        payload.update(extra)
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)

            if resp.status_code == 401:
                self.last_error = "OpenAI returned 401 Unauthorized: check the API key."
                log.error("OpenAI 401 error for model %s", model)
                return None
            if resp.status_code == 429:
                self.last_error = "OpenAI returned 429: rate limit reached."
                log.warning("OpenAI rate limit for model %s", model)
                return None

            resp.raise_for_status()
            data = resp.json()
        except Exception as e:
            self.last_error = f"Exception calling OpenAI: {e}"
            log.error("OpenAI error: %s", e)
            return None

        content: Optional[str] = None
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not content:
            self.last_error = "OpenAI response missing 'choices[0].message.content'."
            return None

        return content
