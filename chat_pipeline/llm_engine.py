"""
llm_engine.py
=============
Chat-completion backend over any OpenAI-compatible endpoint.

Provider presets:
  • mistral : https://api.mistral.ai/v1   (key: MISTRAL_AI_API_KEY, model: mistral-small-latest)
  • ollama  : http://localhost:11434/v1   (no key, model: mistral-small3.2:latest)
  • openai  : SDK default endpoint        (key: OPENAI_API_KEY, model: gpt-4o-mini)

Completions are streamed and the content deltas joined.  The SDK's own retry
loop is disabled: a failed call surfaces once as BackendError and the caller
decides whether to try again.  httpx transport errors raised while the stream
is being read are reported the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import httpx  # type: ignore
from openai import OpenAI, OpenAIError  # type: ignore

from chat_pipeline.config import Settings, _clean_env
from chat_pipeline.errors import BackendError, EmptyResponseError
from chat_pipeline.messages import Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderPreset:
    base_url: str
    api_key_env: str
    model: str


PROVIDERS = {
    "mistral": ProviderPreset("https://api.mistral.ai/v1", "MISTRAL_AI_API_KEY", "mistral-small-latest"),
    "ollama":  ProviderPreset("http://localhost:11434/v1", "", "mistral-small3.2:latest"),
    "openai":  ProviderPreset("", "OPENAI_API_KEY", "gpt-4o-mini"),
}

# The SDK refuses an empty key even for servers that ignore it.
_KEYLESS_PLACEHOLDER = "ollama"


def _is_auth_error(exc: Exception) -> bool:
    status_code = getattr(exc, "status_code", None)
    if status_code in (401, 403):
        return True

    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) in (401, 403):
        return True

    text = str(exc).lower()
    return "403" in text or "401" in text or "forbidden" in text or "unauthor" in text


class ChatBackend:
    """Send role-tagged messages, get one text completion back."""

    def __init__(
        self,
        provider: str = "mistral",
        model: str = "",
        base_url: str = "",
        api_key: str = "",
        timeout: float = 120.0,
        client: Optional[Any] = None,
    ):
        self.provider = (provider or "mistral").lower()
        preset = PROVIDERS.get(self.provider)
        if preset is None:
            raise ValueError(f"Unsupported LLM provider: {provider!r} (expected one of {sorted(PROVIDERS)})")

        self.model = model or preset.model
        self.base_url = base_url or preset.base_url

        if client is not None:
            self._client = client
            return

        if not api_key and preset.api_key_env:
            api_key = _clean_env(preset.api_key_env, "")
            if not api_key:
                raise BackendError(f"{self.provider} API key must be set ({preset.api_key_env})!")

        self._client = OpenAI(
            base_url    = self.base_url or None,
            api_key     = api_key or _KEYLESS_PLACEHOLDER,
            timeout     = timeout,
            max_retries = 0,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatBackend":
        return cls(
            provider = settings.llm_provider,
            model    = settings.llm_model,
            base_url = settings.llm_base_url,
            api_key  = settings.llm_api_key,
            timeout  = settings.llm_timeout,
        )

    def complete(self, messages: Iterable[Message], model: Optional[str] = None) -> str:
        """
        Return the completion text for ``messages``.

        Raises
        ------
        BackendError        : transport, auth, rate-limit or timeout failure
        EmptyResponseError  : the backend produced no content
        """
        model = model or self.model
        payload = [message.to_dict() for message in messages]

        output_parts: List[str] = []
        try:
            completion = self._client.chat.completions.create(
                model    = model,
                messages = payload,
                stream   = True,
            )
            for chunk in completion:
                if not getattr(chunk, "choices", None):
                    continue
                delta = chunk.choices[0].delta
                if delta is None:
                    continue
                content = getattr(delta, "content", None)
                if content:
                    output_parts.append(str(content))
        except (OpenAIError, httpx.HTTPError) as exc:
            if _is_auth_error(exc):
                logger.error("%s authorization failed for model %s.", self.provider, model)
            raise BackendError(f"{self.provider} chat completion failed ({model}): {exc}") from exc

        output_text = "".join(output_parts).strip()
        if not output_text:
            raise EmptyResponseError(f"{self.provider} model {model} returned an empty response.")

        logger.debug("%s model %s answered %d characters.", self.provider, model, len(output_text))
        return output_text

    def call(self, system_text: str, user_text: str) -> str:
        """One-shot system + user exchange."""
        return self.complete([Message.system(system_text), Message.user(user_text)])
