from __future__ import annotations

import logging
import random
import time
from email.utils import parsedate_to_datetime
from typing import Any, Protocol

import requests

from ..config import Settings
from ..errors import CollaboratorError

logger = logging.getLogger(__name__)

LLM_MAX_ATTEMPTS = 3
LLM_BACKOFF_BASE_SECONDS = 2.0
LLM_BACKOFF_JITTER_SECONDS = 1.0
LLM_BACKOFF_MAX_SECONDS = 30.0


class NarrativeClient(Protocol):
    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return free text, or raise CollaboratorError."""
        ...


def _retry_after_seconds(headers: dict[str, Any] | Any) -> float:
    raw = str((headers or {}).get("Retry-After", "")).strip()
    if not raw:
        return 0.0
    try:
        return max(0.0, float(raw))
    except ValueError:
        pass
    try:
        dt = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return 0.0
    if dt is None:
        return 0.0
    return max(0.0, dt.timestamp() - time.time())


def _backoff(attempt: int) -> float:
    return min(
        LLM_BACKOFF_MAX_SECONDS,
        (LLM_BACKOFF_BASE_SECONDS * (2**attempt)) + random.uniform(0, LLM_BACKOFF_JITTER_SECONDS),
    )


class OpenAINarrativeClient:
    """Chat-completions client used for the optional executive insight narrative."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o-mini",
        api_url: str = "https://api.openai.com/v1/chat/completions",
        timeout_seconds: int = 30,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        max_attempts: int = LLM_MAX_ATTEMPTS,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_attempts = max(1, max_attempts)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAINarrativeClient | None":
        if not settings.narrative_enabled:
            return None
        return cls(
            settings.openai_api_key,
            model=settings.openai_narrative_model,
            api_url=settings.openai_api_url,
            timeout_seconds=settings.narrative_timeout_seconds,
            max_tokens=settings.narrative_max_tokens,
            temperature=settings.narrative_temperature,
        )

    def _post_with_backoff(self, payload: dict[str, Any]) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        for attempt in range(self.max_attempts):
            is_last = attempt >= self.max_attempts - 1
            try:
                res = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout_seconds)
            except requests.RequestException as exc:
                if is_last:
                    raise CollaboratorError(f"narrative request failed: {exc}") from exc
                wait_seconds = _backoff(attempt)
                logger.warning(
                    "Narrative LLM transport error attempt=%s/%s wait=%.2fs err=%s",
                    attempt + 1,
                    self.max_attempts,
                    wait_seconds,
                    exc,
                )
                time.sleep(wait_seconds)
                continue

            retriable = res.status_code == 429 or res.status_code >= 500
            if res.status_code < 400 or not retriable or is_last:
                return res
            wait_seconds = max(_retry_after_seconds(res.headers), _backoff(attempt))
            logger.warning(
                "Narrative LLM transient failure status=%s attempt=%s/%s wait=%.2fs",
                res.status_code,
                attempt + 1,
                self.max_attempts,
                wait_seconds,
            )
            time.sleep(wait_seconds)
        raise CollaboratorError("narrative request exhausted retries")

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        res = self._post_with_backoff(payload)
        if res.status_code >= 400:
            raise CollaboratorError(f"narrative request failed: status={res.status_code} body={res.text[:400]}")
        try:
            body = res.json()
            content = body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise CollaboratorError("narrative response had no message content") from exc
        text = str(content or "").strip()
        if not text:
            raise CollaboratorError("narrative response was empty")
        return text
