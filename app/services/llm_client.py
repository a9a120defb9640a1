"""
Language-model client for the two supported providers.

Gemini is called through its ``generateContent`` REST endpoint, Groq through
its OpenAI-compatible chat completions endpoint. Both go over httpx.

Provider selection comes in two flavours on purpose:

- ``select_provider_by_prefix`` (batch uploads): "gemini-pro" -> Gemini,
  "groq-..." -> Groq, anything else -> None and no reply is produced.
- ``select_provider_exact`` (voice uploads): only "gemini" or "groq";
  anything else is rejected.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from app.core.config import Settings
from app.core.errors import (
    CollaboratorTimeout,
    ProviderError,
    ProviderNotConfigured,
    UnknownProviderError,
)

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10

GEMINI_DEFAULT_MODEL = "gemini-1.5-flash"
GROQ_DEFAULT_MODEL = "llama3-8b-8192"


class Provider(str, Enum):
    GEMINI = "gemini"
    GROQ = "groq"


@dataclass(frozen=True)
class PromptProfile:
    gemini_template: str
    system_prompt: str
    max_tokens: int
    fallback: str
    temperature: float = 0.7
    # Gemini gets sampling limits only where the profile asks for them
    gemini_generation_config: bool = False


DOCUMENT_PROFILE = PromptProfile(
    gemini_template=(
        "You are a helpful assistant. Given the following extracted text, "
        'help the user understand or summarize it:\n\n"{text}"'
    ),
    system_prompt="You are a helpful assistant analyzing extracted document text.",
    max_tokens=800,
    fallback="Sorry, no reply generated.",
)

VOICE_PROFILE = PromptProfile(
    gemini_template=(
        "You are a helpful AI assistant. The user sent this voice message:\n\n"
        'User\'s message: "{text}"\n\n'
        "Respond as if you are having a natural conversation."
    ),
    system_prompt="You are a helpful AI assistant. Respond naturally to the user message.",
    max_tokens=1000,
    fallback="Sorry, I could not generate a response.",
    gemini_generation_config=True,
)


def should_ask(text: Optional[str]) -> bool:
    return bool(text) and len(text) > MIN_TEXT_LENGTH


def select_provider_by_prefix(selector: Optional[str]) -> Optional[Provider]:
    selector = (selector or "").lower()
    for provider in Provider:
        if selector.startswith(provider.value):
            return provider
    return None


def select_provider_exact(selector: Optional[str]) -> Provider:
    try:
        return Provider((selector or "").lower())
    except ValueError:
        raise UnknownProviderError(selector or "")


def resolve_model(provider: Provider, selector: Optional[str]) -> str:
    """Map a selector string to the provider's model name.

    A bare provider name means the provider default. Gemini model names
    already start with "gemini" and are used as given; for Groq the
    "groq-"/"groq/" prefix is stripped off.
    """
    selector = (selector or "").strip()
    if not selector or selector.lower() == provider.value:
        return GEMINI_DEFAULT_MODEL if provider is Provider.GEMINI else GROQ_DEFAULT_MODEL
    if provider is Provider.GROQ:
        remainder = selector[len(provider.value):].lstrip("-/:")
        return remainder or GROQ_DEFAULT_MODEL
    return selector


class LanguageModelClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    async def ask(
        self,
        text: str,
        provider: Provider,
        profile: PromptProfile = DOCUMENT_PROFILE,
        model: Optional[str] = None,
    ) -> str:
        if provider is Provider.GEMINI:
            logger.info("Using Gemini API for AI response...")
            return await self._ask_gemini(text, profile, model or GEMINI_DEFAULT_MODEL)
        logger.info("Using Groq API for AI response...")
        return await self._ask_groq(text, profile, model or GROQ_DEFAULT_MODEL)

    async def _post(self, target: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.settings.llm_timeout, transport=self._transport) as client:
                return await client.post(url, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"Timeout calling {target}")
            raise CollaboratorTimeout(target, self.settings.llm_timeout)
        except httpx.HTTPError as e:
            raise ProviderError(f"{target} request failed: {e}") from e

    async def _ask_gemini(self, text: str, profile: PromptProfile, model: str) -> str:
        if not self.settings.gemini_api_key:
            raise ProviderNotConfigured("GEMINI_API_KEY is not set in environment variables")

        url = f"{self.settings.gemini_api_url.rstrip('/')}/models/{model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": profile.gemini_template.format(text=text)}]}],
        }
        if profile.gemini_generation_config:
            body["generationConfig"] = {
                "temperature": profile.temperature,
                "maxOutputTokens": profile.max_tokens,
            }
        resp = await self._post(
            "Gemini API",
            url,
            json=body,
            headers={"x-goog-api-key": self.settings.gemini_api_key},
        )
        if resp.is_error:
            raise ProviderError(f"Gemini API error: {resp.status_code} - {resp.text}")

        data = resp.json()
        candidates = data.get("candidates") or []
        parts = (candidates[0].get("content") or {}).get("parts", []) if candidates else []
        reply = "".join(part.get("text", "") for part in parts)
        return reply or profile.fallback

    async def _ask_groq(self, text: str, profile: PromptProfile, model: str) -> str:
        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": profile.system_prompt},
                {"role": "user", "content": text},
            ],
            "temperature": profile.temperature,
            "max_tokens": profile.max_tokens,
        }
        resp = await self._post(
            "Groq API",
            self.settings.groq_api_url,
            json=body,
            headers={"Authorization": f"Bearer {self.settings.groq_api_key or ''}"},
        )
        if resp.is_error:
            raise ProviderError(f"Groq API error: {resp.status_code} - {resp.text}")

        choices = resp.json().get("choices") or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        return content or profile.fallback
