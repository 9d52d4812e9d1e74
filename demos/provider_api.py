"""
provider_api.py
===============
Call a provider's chat-completion endpoint directly, without the pipeline:
the request body is assembled by hand and the first choice is read back.

  python -m demos.provider_api --provider mistral   # needs MISTRAL_AI_API_KEY
  python -m demos.provider_api --provider ollama    # local server on :11434
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, List, Optional

import httpx  # type: ignore
from openai import OpenAI, OpenAIError  # type: ignore

from chat_pipeline.config import _clean_env, configure_logging, load_settings
from chat_pipeline.errors import BackendError, EmptyResponseError
from chat_pipeline.llm_engine import PROVIDERS

from demos.chat_model import SYSTEM_TEXT, USER_TEXT

logger = logging.getLogger(__name__)


def create_client(provider: str, timeout: float = 120.0) -> OpenAI:
    preset = PROVIDERS[provider]
    api_key = _clean_env(preset.api_key_env, "") if preset.api_key_env else "ollama"
    if not api_key:
        raise BackendError(f"{provider} API key must be set ({preset.api_key_env})!")
    return OpenAI(base_url=preset.base_url or None, api_key=api_key, timeout=timeout, max_retries=0)


def ask_actual_pope(client: Any, model: str) -> str:
    try:
        completion = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_TEXT},
                {"role": "user", "content": USER_TEXT},
            ],
        )
    except (OpenAIError, httpx.HTTPError) as exc:
        raise BackendError(f"Chat completion request failed: {exc}") from exc

    choices = getattr(completion, "choices", None) or []
    content = choices[0].message.content if choices else None
    if not content or not content.strip():
        raise EmptyResponseError(f"Model {model} returned no choice content.")
    return content.strip()


def main(argv: Optional[List[str]] = None, client: Optional[Any] = None) -> int:
    parser = argparse.ArgumentParser(description="Direct provider chat-completion call")
    parser.add_argument("--provider", choices=["mistral", "ollama"], default="mistral")
    parser.add_argument("--model", help="Model identifier (defaults to the provider preset)")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)
    model = args.model or PROVIDERS[args.provider].model

    try:
        client = client or create_client(args.provider, settings.llm_timeout)
        answer = ask_actual_pope(client, model)
    except (BackendError, EmptyResponseError) as exc:
        logger.error("%s API call failed: %s", args.provider, exc, exc_info=True)
        return 1

    logger.info("The actual pope is '%s'.", answer)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
