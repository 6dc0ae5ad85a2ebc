"""LLM client — JSON completions for venue enrichment, OpenAI first with Anthropic as backup."""

import json
import logging

from openai import AsyncOpenAI
import anthropic

from tripsmith.config import settings

logger = logging.getLogger(__name__)

OPENAI_MODEL = "gpt-4o-mini"
ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"


def parse_json_object(raw: str) -> dict:
    """Decode a model reply into a dict, tolerating a surrounding markdown fence."""
    text = raw.strip()
    if text.startswith("```"):
        text = "\n".join(l for l in text.split("\n") if not l.strip().startswith("```"))
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("LLM response is not a JSON object")
    return parsed


class LLMClient:
    """Returns a parsed JSON object from whichever provider answers first."""

    def __init__(self):
        self._openai = AsyncOpenAI(api_key=settings.openai_api_key) if settings.openai_api_key else None
        self._anthropic = (
            anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key) if settings.anthropic_api_key else None
        )

    async def complete_json(self, system: str, user: str, *, max_tokens: int = 2000) -> dict:
        """Raises RuntimeError when no provider is configured or every one fails,
        ValueError when the reply is not a JSON object."""
        if self._openai is None and self._anthropic is None:
            raise RuntimeError("No LLM provider configured")

        failures = []
        if self._openai is not None:
            try:
                return parse_json_object(await self._ask_openai(system, user, max_tokens))
            except Exception as e:
                failures.append(f"OpenAI: {e}")
                logger.warning(f"OpenAI enrichment call failed: {e}")

        if self._anthropic is not None:
            try:
                return parse_json_object(await self._ask_anthropic(system, user, max_tokens))
            except Exception as e:
                failures.append(f"Anthropic: {e}")
                logger.warning(f"Anthropic enrichment call failed: {e}")

        raise RuntimeError(f"All LLM providers failed: {'; '.join(failures)}")

    async def _ask_openai(self, system: str, user: str, max_tokens: int) -> str:
        response = await self._openai.chat.completions.create(
            model=OPENAI_MODEL,
            max_tokens=max_tokens,
            temperature=0.3,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        return response.choices[0].message.content or ""

    async def _ask_anthropic(self, system: str, user: str, max_tokens: int) -> str:
        response = await self._anthropic.messages.create(
            model=ANTHROPIC_MODEL,
            max_tokens=max_tokens,
            temperature=0.3,
            system=system + "\nRespond with a single JSON object only.",
            messages=[{"role": "user", "content": user}],
        )
        return response.content[0].text


llm_client = LLMClient()
