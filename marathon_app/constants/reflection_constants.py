"""Defaults for the daily reflection shown beside today's reading."""

DEFAULT_REFLECTION_MODEL: str = "gpt-4o-mini"
REFLECTION_MAX_TOKENS: int = 120
FALLBACK_REFLECTION: str = "The word of God is living and active. Keep going with today's reading!"
EMPTY_REPLY_REFLECTION: str = "Keep reading with energy today!"
