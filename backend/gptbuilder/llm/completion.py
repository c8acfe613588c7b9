"""Chat completion via LiteLLM, routed to OpenRouter."""

import logging
from typing import Any

import litellm

from gptbuilder.config import settings
from gptbuilder.errors import InternalError
from gptbuilder.llm.prompts import build_system_prompt

logger = logging.getLogger(__name__)

OPENROUTER_PREFIX = "openrouter/"


def build_messages(
    messages: list[dict[str, Any]],
    instructions: str | None = None,
    context: str | None = None,
) -> list[dict[str, Any]]:
    """Prepend the system turn to the client's conversation."""
    system_turn = {"role": "system", "content": build_system_prompt(instructions, context)}
    return [system_turn, *messages]


def _litellm_model(model: str) -> str:
    return model if model.startswith(OPENROUTER_PREFIX) else f"{OPENROUTER_PREFIX}{model}"


def _to_dict(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response
    if hasattr(response, "model_dump"):
        return response.model_dump()
    return dict(response)


async def complete_chat(
    messages: list[dict[str, Any]],
    instructions: str | None = None,
    context: str | None = None,
    model: str | None = None,
    referer: str | None = None,
) -> dict[str, Any]:
    """Run one non-streaming completion and return ``{message, model, usage}``.

    Raises:
        InternalError: if the response has no ``choices[0].message``.
        litellm exceptions propagate for upstream (non-2xx) failures.
    """
    model = model or settings.default_completion_model
    payload = build_messages(messages, instructions, context)

    logger.info("Requesting completion from %s (%d turns)", model, len(payload))
    response = await litellm.acompletion(
        model=_litellm_model(model),
        messages=payload,
        api_key=settings.openrouter_api_key,
        max_tokens=settings.completion_max_tokens,
        temperature=settings.completion_temperature,
        stream=False,
        extra_headers={
            "HTTP-Referer": referer or settings.frontend_url,
            "X-Title": settings.completion_app_title,
        },
    )

    data = _to_dict(response)
    choices = data.get("choices") or []
    message = choices[0].get("message") if choices and isinstance(choices[0], dict) else None
    if not message:
        raise InternalError("Invalid response structure from completion API")

    return {
        "message": message.get("content"),
        "model": data.get("model") or model,
        "usage": data.get("usage") or {},
    }
