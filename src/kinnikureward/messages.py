"""
kinnikureward/messages.py

Motivational message generation.

A MessageGenerator turns the scored workouts into a one-line congratulation
in Japanese or English. The actual text comes from a TextGenerator:
- GeminiTextGenerator calls Google Gemini
- FixedTextGenerator always returns the same string (tests, offline runs)

Any failure of the text generator is logged and replaced by a fixed,
localized fallback, so message generation never fails a reward request.

Usage:
    generator = MessageGenerator(GeminiTextGenerator(api_key), DEFAULT_CATALOG)
    message = await generator.generate(result.workouts, lang="en")
    message.text        # congratulation, or the fallback
    message.fallback    # True when the fallback was used
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import google.generativeai as genai
import trio

from .config import (
    DEFAULT_CATALOG,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GEMINI_TIMEOUT,
    LANG_EN,
    LANG_JA,
    ExerciseCatalog,
)
from .errors import TextGenerationError
from .rewards import ScoredWorkout

logger = logging.getLogger("kinnikureward.messages")


FALLBACK_MESSAGES = {
    LANG_JA: "素晴らしいトレーニングでした！ナイスファイト！",
    LANG_EN: "Great workout! Nice fight!",
}

PROMPT_TEMPLATES = {
    LANG_JA: (
        "あなたは、超熱血なフィットネストレーナーです。まるで鬼軍曹のように、"
        "しかし愛情を込めて、ユーザーを限界まで追い込むのがあなたのスタイルです。"
        "ユーザーが今、素晴らしいトレーニングセッションを終えました。"
        "内容は「{summary}」です。この総合的な努力を称え、ユーザーの魂に火をつけるような、"
        "最高に熱く、パワフルで、モチベーションが爆上がりする一言（100文字以内）を"
        "日本語のみで生成してください。"
    ),
    LANG_EN: (
        "You are a super passionate fitness trainer. Like a drill sergeant, but with love, "
        "your style is to push users to their limits. The user has just completed a great "
        "training session. The content is \"{summary}\". Praise this overall effort and "
        "generate a super hot, powerful, and motivating one-liner (within 100 characters) "
        "that ignites the user's soul. Your response MUST be ONLY in English."
    ),
}


def normalize_language(lang: Any) -> str:
    """Only English is selectable; everything else means Japanese."""
    return LANG_EN if lang == LANG_EN else LANG_JA


def summarize_workouts(
    workouts: Sequence[ScoredWorkout],
    lang: str,
    catalog: ExerciseCatalog = DEFAULT_CATALOG,
) -> str:
    """
    Render the workouts as a short sentence fragment.

    en: "Squats for 50 reps, Push-ups for 20 reps"
    ja: "スクワットを50回、腕立て伏せを20回"
    """
    lang = normalize_language(lang)
    names = [(catalog.get(w.type) or w.profile).display_name(lang) for w in workouts]
    if lang == LANG_EN:
        return ", ".join(f"{name} for {w.reps} reps" for name, w in zip(names, workouts))
    return "、".join(f"{name}を{w.reps}回" for name, w in zip(names, workouts))


def build_prompt(
    workouts: Sequence[ScoredWorkout],
    lang: str,
    catalog: ExerciseCatalog = DEFAULT_CATALOG,
) -> str:
    lang = normalize_language(lang)
    return PROMPT_TEMPLATES[lang].format(summary=summarize_workouts(workouts, lang, catalog))


# ============================================================================
# TEXT GENERATORS
# ============================================================================

class TextGenerator(ABC):
    """
    Abstract single-prompt text generation backend.
    """

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Produce text for a prompt.

        Raises:
            Exception: Any failure; callers decide how to recover
        """
        pass


class GeminiTextGenerator(TextGenerator):
    """
    Google Gemini backed generator.

    google-generativeai's synchronous client runs in a worker thread so the
    trio event loop keeps serving other requests.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_GEMINI_MODEL,
        timeout: float = DEFAULT_GEMINI_TIMEOUT,
        model: Optional[Any] = None,
    ):
        """
        Args:
            api_key: Gemini API key
            model_name: Gemini model to use
            timeout: Per-request timeout in seconds
            model: Pre-built model object (anything with generate_content)
        """
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
        self.model_name = model_name
        self.timeout = timeout
        self._model = model

    def _generate_sync(self, prompt: str) -> str:
        response = self._model.generate_content(
            prompt,
            request_options={"timeout": self.timeout},
        )
        text = response.text
        if not text or not text.strip():
            raise TextGenerationError("Gemini returned an empty response")
        return text.strip()

    async def generate(self, prompt: str) -> str:
        return await trio.to_thread.run_sync(self._generate_sync, prompt)


class FixedTextGenerator(TextGenerator):
    """Returns the same text for every prompt. Remembers only the latest prompt."""

    def __init__(self, text: str):
        self.text = text
        self.calls = 0
        self.last_prompt: Optional[str] = None

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        self.last_prompt = prompt
        return self.text


# ============================================================================
# MESSAGE GENERATOR
# ============================================================================

@dataclass(frozen=True)
class GeneratedMessage:
    """Message text and whether it is the localized fallback."""
    text: str
    fallback: bool = False


class MessageGenerator:
    """
    Builds the congratulation attached to the reward transaction.

    Single attempt against the text generator; no retry.
    """

    def __init__(
        self,
        text_generator: TextGenerator,
        catalog: ExerciseCatalog = DEFAULT_CATALOG,
    ):
        self.text_generator = text_generator
        self.catalog = catalog

    def fallback(self, lang: str) -> str:
        return FALLBACK_MESSAGES[normalize_language(lang)]

    async def generate(
        self,
        workouts: Sequence[ScoredWorkout],
        lang: str = LANG_JA,
    ) -> GeneratedMessage:
        """
        Generate a message for the given workouts.

        Args:
            workouts: Valid workouts in submission order
            lang: "ja" or "en"

        Returns:
            GeneratedMessage with the generated text, or the localized
            fallback (fallback=True) on any failure
        """
        lang = normalize_language(lang)
        prompt = build_prompt(workouts, lang, self.catalog)

        try:
            text = await self.text_generator.generate(prompt)
        except Exception as e:
            logger.warning(f"Error generating message, using fallback: {type(e).__name__}: {e}")
            return GeneratedMessage(self.fallback(lang), fallback=True)

        if not isinstance(text, str) or not text.strip():
            logger.warning("Text generator returned nothing, using fallback")
            return GeneratedMessage(self.fallback(lang), fallback=True)

        return GeneratedMessage(text.strip())
