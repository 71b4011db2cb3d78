from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional, Type, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, TypeAdapter

from hospital_bot.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LLMError(RuntimeError):
    pass


def _json_to_python(payload: str | dict) -> Any:
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return {"text": payload}
    return payload


def _validate_with_schema(schema: Type[T], payload: str | dict) -> T:
    adapter = TypeAdapter(schema)
    data = _json_to_python(payload)
    return adapter.validate_python(data)


class LLMAdapter:
    """
    Thin JSON-mode wrapper over any OpenAI-compatible chat endpoint
    (OpenAI, Groq, ...). Every answer is validated against a pydantic schema.
    """

    def __init__(self, settings: Settings = default_settings, client: Optional[AsyncOpenAI] = None):
        self.model = settings.openai_model
        self._openai = client
        if self._openai is None and settings.openai_api_key:
            self._openai = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                timeout=settings.request_timeout_seconds,
            )

    @property
    def available(self) -> bool:
        return self._openai is not None

    async def ask_dict(self, system: str, user: str) -> Dict[str, Any]:
        """Asks for JSON and returns a plain dict (no schema)."""
        if self._openai is None:
            raise LLMError("LLM client not configured (OPENAI_API_KEY missing)")
        r = await self._openai.chat.completions.create(
            model=self.model,
            temperature=0.3,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user + "\n\nAnswer with a single valid JSON object only."},
            ],
        )
        content = r.choices[0].message.content or "{}"
        return _json_to_python(content) or {}

    async def ask_json(self, system: str, user: str, schema: Type[T]) -> T:
        data = await self.ask_dict(system, user)
        return _validate_with_schema(schema, data)
