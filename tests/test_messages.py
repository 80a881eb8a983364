"""
kinnikureward/tests/test_messages.py

Tests for motivational message generation.
"""

import pytest
from unittest.mock import Mock

from kinnikureward.config import DEFAULT_CATALOG
from kinnikureward.errors import TextGenerationError
from kinnikureward.messages import (
    FALLBACK_MESSAGES,
    FixedTextGenerator,
    GeminiTextGenerator,
    GeneratedMessage,
    MessageGenerator,
    TextGenerator,
    build_prompt,
    normalize_language,
    summarize_workouts,
)
from kinnikureward.rewards import WorkoutEntry, calculate_reward


def scored(*pairs):
    """Scored workouts for (type, reps) pairs."""
    entries = [WorkoutEntry(t, r) for t, r in pairs]
    return calculate_reward(entries, DEFAULT_CATALOG).workouts


class FailingTextGenerator(TextGenerator):
    """Raises on every call."""

    def __init__(self, exc: Exception):
        self.exc = exc
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        raise self.exc


class FakeGeminiModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text: str = "Crush it!"):
        self.text = text
        self.calls = []

    def generate_content(self, prompt, request_options=None):
        self.calls.append((prompt, request_options))
        return Mock(text=self.text)


# ============================================================================
# PROMPTS
# ============================================================================

class TestPrompts:
    """Test workout summaries and prompts."""

    def test_summary_english(self):
        summary = summarize_workouts(scored(("squats", 50), ("pushups", 20)), "en")
        assert summary == "Squats for 50 reps, Push-ups for 20 reps"

    def test_summary_japanese(self):
        summary = summarize_workouts(scored(("squats", 50), ("pushups", 20)), "ja")
        assert summary == "スクワットを50回、腕立て伏せを20回"

    def test_normalize_language(self):
        assert normalize_language("en") == "en"
        assert normalize_language("ja") == "ja"
        assert normalize_language("fr") == "ja"
        assert normalize_language(None) == "ja"

    def test_english_prompt_requires_english(self):
        prompt = build_prompt(scored(("squats", 50)), "en")
        assert "Squats for 50 reps" in prompt
        assert "ONLY in English" in prompt

    def test_japanese_prompt(self):
        prompt = build_prompt(scored(("crunches", 30)), "ja")
        assert "腹筋を30回" in prompt
        assert "日本語のみ" in prompt


# ============================================================================
# MESSAGE GENERATOR
# ============================================================================

class TestMessageGenerator:
    """Test message generation and fallback."""

    async def test_generated_text_returned(self):
        text_generator = FixedTextGenerator("  限界を超えろ！  ")
        generator = MessageGenerator(text_generator)

        message = await generator.generate(scored(("squats", 50)), "ja")

        assert message == GeneratedMessage("限界を超えろ！", fallback=False)
        assert text_generator.calls == 1
        assert "スクワットを50回" in text_generator.last_prompt

    async def test_fallback_on_error_japanese(self):
        generator = MessageGenerator(FailingTextGenerator(RuntimeError("quota exceeded")))

        message = await generator.generate(scored(("squats", 50)), "ja")

        assert message.text == FALLBACK_MESSAGES["ja"]
        assert message.fallback

    async def test_fallback_on_error_english(self):
        generator = MessageGenerator(FailingTextGenerator(TimeoutError()))

        message = await generator.generate(scored(("squats", 50)), "en")

        assert message.text == "Great workout! Nice fight!"
        assert message.fallback

    async def test_unknown_language_falls_back_to_japanese(self):
        generator = MessageGenerator(FailingTextGenerator(RuntimeError("down")))

        message = await generator.generate(scored(("squats", 50)), "de")

        assert message.text == FALLBACK_MESSAGES["ja"]

    async def test_blank_reply_uses_fallback(self):
        generator = MessageGenerator(FixedTextGenerator("   "))

        message = await generator.generate(scored(("pushups", 10)), "en")

        assert message == GeneratedMessage(FALLBACK_MESSAGES["en"], fallback=True)

    async def test_never_empty(self):
        for text_generator in (FixedTextGenerator(""), FailingTextGenerator(ValueError())):
            generator = MessageGenerator(text_generator)
            for lang in ("ja", "en", None):
                message = await generator.generate(scored(("squats", 1)), lang)
                assert message.text
                assert message.fallback


# ============================================================================
# GEMINI BACKEND
# ============================================================================

class TestGeminiTextGenerator:
    """Test the Gemini backend with an injected model."""

    async def test_generate(self):
        model = FakeGeminiModel("  Crush it!  ")
        generator = GeminiTextGenerator("key", timeout=12.5, model=model)

        text = await generator.generate("prompt")

        assert text == "Crush it!"
        assert model.calls == [("prompt", {"timeout": 12.5})]

    async def test_empty_response_raises(self):
        generator = GeminiTextGenerator("key", model=FakeGeminiModel(""))

        with pytest.raises(TextGenerationError):
            await generator.generate("prompt")

    async def test_model_error_becomes_fallback(self):
        model = Mock()
        model.generate_content.side_effect = RuntimeError("503 Service Unavailable")
        generator = MessageGenerator(GeminiTextGenerator("key", model=model))

        message = await generator.generate(scored(("squats", 50)), "en")

        assert message.text == FALLBACK_MESSAGES["en"]
        assert message.fallback
        model.generate_content.assert_called_once()


class TestFixedTextGenerator:
    """Test the offline backend."""

    async def test_keeps_only_latest_prompt(self):
        generator = FixedTextGenerator("Go!")

        for i in range(50):
            assert await generator.generate(f"prompt {i}") == "Go!"

        assert generator.calls == 50
        assert generator.last_prompt == "prompt 49"
