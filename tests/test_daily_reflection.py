"""
Tests for the daily reflection service.
"""

from types import SimpleNamespace

from openai import OpenAIError

from marathon_app.constants.reflection_constants import EMPTY_REPLY_REFLECTION, FALLBACK_REFLECTION
from marathon_app.core.services.daily_reflection import DailyReflectionService, build_reflection_prompt


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestFallback:
    def test_without_key(self):
        service = DailyReflectionService.from_api_key(None)
        assert service.is_enabled is False
        assert service.reflect("Genesis 1-3") == FALLBACK_REFLECTION

    def test_blank_key(self):
        assert DailyReflectionService.from_api_key("").is_enabled is False

    def test_request_failure(self):
        completions = _FakeCompletions(error=OpenAIError("quota exceeded"))
        service = DailyReflectionService(client=_client(completions))

        assert service.reflect("Genesis 1-3") == FALLBACK_REFLECTION
        assert len(completions.calls) == 1

    def test_empty_reply(self):
        service = DailyReflectionService(client=_client(_FakeCompletions(content="  ")))
        assert service.reflect("Genesis 1-3") == EMPTY_REPLY_REFLECTION


class TestGeneration:
    def test_reply_is_returned_and_cached(self):
        completions = _FakeCompletions(content=" Begin at the beginning. Keep reading. ")
        service = DailyReflectionService(client=_client(completions), model="test-model")

        first = service.reflect("Genesis 1-3")
        second = service.reflect("Genesis 1-3")

        assert first == second == "Begin at the beginning. Keep reading."
        assert len(completions.calls) == 1
        assert completions.calls[0]["model"] == "test-model"
        assert "Genesis 1-3" in completions.calls[0]["messages"][0]["content"]

    def test_failures_are_not_cached(self):
        completions = _FakeCompletions(error=OpenAIError("timeout"))
        service = DailyReflectionService(client=_client(completions))
        service.reflect("Genesis 1-3")

        completions.error = None
        completions.content = "Light came first."

        assert service.reflect("Genesis 1-3") == "Light came first."

    def test_key_enables_client(self):
        assert DailyReflectionService.from_api_key("sk-test").is_enabled is True

    def test_prompt_names_reading(self):
        assert "Exodus 3" in build_reflection_prompt("Exodus 3")
