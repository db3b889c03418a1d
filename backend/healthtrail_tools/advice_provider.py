from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_OPENROUTER_API_BASE = "https://openrouter.ai/api/v1"
_OPENAI_API_BASE = "https://api.openai.com/v1"


class ProviderError(Exception):
    pass


@dataclass(frozen=True)
class ProviderConfig:
    provider: str
    base_url: str
    api_key: str
    model: str
    timeout_seconds: float = 25.0
    site_url: str = ""
    app_name: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


def provider_config_from_env() -> ProviderConfig:
    provider_preference = (os.getenv("HEALTHTRAIL_ADVICE_PROVIDER") or "openrouter").strip().lower()
    timeout_seconds = float(os.getenv("HEALTHTRAIL_ADVICE_TIMEOUT_SECONDS", "25"))
    if provider_preference == "openai":
        return ProviderConfig(
            provider="openai",
            base_url=os.getenv("OPENAI_API_BASE_URL", _OPENAI_API_BASE).rstrip("/"),
            api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
            model=(os.getenv("HEALTHTRAIL_OPENAI_MODEL") or "gpt-3.5-turbo").strip(),
            timeout_seconds=timeout_seconds,
        )
    return ProviderConfig(
        provider="openrouter",
        base_url=os.getenv("OPENROUTER_BASE_URL", _OPENROUTER_API_BASE).rstrip("/"),
        api_key=(os.getenv("OPENROUTER_API_KEY") or "").strip(),
        model=(os.getenv("OPENROUTER_MODEL") or "openai/gpt-3.5-turbo").strip(),
        timeout_seconds=timeout_seconds,
        site_url=(os.getenv("OPENROUTER_SITE_URL") or "").strip(),
        app_name=(os.getenv("OPENROUTER_APP_NAME") or "HealthTrail").strip(),
    )


def build_prompt(symptom_text: str) -> str:
    return (
        "You are a medical assistant helping people understand their symptoms. "
        f"A user reports the following symptoms: {symptom_text}.\n\n"
        "Your task is to:\n"
        "1. Explain possible conditions in simple layman-friendly language.\n"
        "2. Suggest basic home remedies or OTC medications if applicable.\n"
        "3. Mention any red flags that require immediate doctor attention.\n"
        "4. If serious, suggest seeking a doctor's opinion with reasoning."
    )


def _provider_error_message(response: httpx.Response) -> str:
    message = response.text.strip()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def _coerce_completion_text(response_json: Any) -> str:
    if not isinstance(response_json, dict):
        return ""
    choices = response_json.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                text_value = item.get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
        return "\n".join(parts)
    return ""


class AdviceProvider:
    """Single-attempt chat-completion client that turns a symptom description into advice text."""

    def __init__(self, config: ProviderConfig, *, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        if self.config.provider == "openrouter":
            if self.config.site_url:
                headers["HTTP-Referer"] = self.config.site_url
            if self.config.app_name:
                headers["X-Title"] = self.config.app_name
        return headers

    def _payload(self, symptom_text: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [{"role": "user", "content": build_prompt(symptom_text)}],
        }

    async def _post(self, client: httpx.AsyncClient, symptom_text: str) -> httpx.Response:
        return await client.post(
            f"{self.config.base_url}/chat/completions",
            headers=self._headers(),
            json=self._payload(symptom_text),
        )

    async def get_advice(self, symptom_text: str) -> str:
        if not self.config.configured:
            raise ProviderError(f"{self.config.provider} API key is not configured.")
        try:
            if self._client is not None:
                response = await self._post(self._client, symptom_text)
            else:
                timeout = httpx.Timeout(self.config.timeout_seconds, connect=8.0)
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await self._post(client, symptom_text)
        except httpx.TimeoutException as exc:
            raise ProviderError("Advice provider timed out.") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Advice provider request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ProviderError(_provider_error_message(response))
        try:
            completion_payload = response.json()
        except ValueError as exc:
            raise ProviderError("Advice provider returned a non-JSON body.") from exc

        text = _coerce_completion_text(completion_payload).strip()
        if text:
            logger.info("advice provider used (%s)", self.config.provider)
            return text
        logger.info("advice provider empty response (%s); returning raw payload", self.config.provider)
        return json.dumps(completion_payload, indent=2, ensure_ascii=False)
