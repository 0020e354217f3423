"""Short encouragement for the day's reading, written by a language model."""

from __future__ import annotations

import logging
from threading import Lock

from openai import OpenAI, OpenAIError

from marathon_app.constants.reflection_constants import (
    DEFAULT_REFLECTION_MODEL,
    EMPTY_REPLY_REFLECTION,
    FALLBACK_REFLECTION,
    REFLECTION_MAX_TOKENS,
)

logger = logging.getLogger(__name__)


def build_reflection_prompt(reading_title: str) -> str:
    return (
        "Write a very short spiritual reflection (two sentences only) that "
        "encourages participants in a Bible reading marathon about the "
        f"following reading: {reading_title}. Keep the tone simple, warm and motivating."
    )


class DailyReflectionService:
    """Generates one reflection per reading title.

    Without a client every call returns ``FALLBACK_REFLECTION``; a failed
    request does the same, so the dashboard never fails on this text.
    Successful replies are cached per title.
    """

    def __init__(self, client: OpenAI | None = None, model: str = DEFAULT_REFLECTION_MODEL) -> None:
        self._client = client
        self._model = model
        self._cache: dict[str, str] = {}
        self._lock = Lock()

    @classmethod
    def from_api_key(
        cls,
        api_key: str | None,
        model: str = DEFAULT_REFLECTION_MODEL,
    ) -> "DailyReflectionService":
        if not api_key:
            logger.info("No language model key configured; reflections use the fallback text")
            return cls(client=None, model=model)
        return cls(client=OpenAI(api_key=api_key), model=model)

    @property
    def is_enabled(self) -> bool:
        return self._client is not None

    def reflect(self, reading_title: str) -> str:
        if self._client is None:
            return FALLBACK_REFLECTION
        with self._lock:
            cached = self._cache.get(reading_title)
        if cached is not None:
            return cached

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": build_reflection_prompt(reading_title)}],
                max_tokens=REFLECTION_MAX_TOKENS,
            )
        except OpenAIError as exc:
            logger.warning("Reflection request for '%s' failed: %s", reading_title, exc)
            return FALLBACK_REFLECTION

        content = response.choices[0].message.content if response.choices else None
        text = (content or "").strip()
        if not text:
            return EMPTY_REPLY_REFLECTION
        with self._lock:
            self._cache[reading_title] = text
        return text
