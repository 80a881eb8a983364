"""
kinnikureward/config.py

Configuration constants and data classes for kinnikureward.
"""

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .errors import ConfigurationError

VERSION = "1.0.0"


# ============================================================================
# LEDGER CONSTANTS
# ============================================================================

# Symbol REST gateway used for network properties, balances and announces
DEFAULT_NODE_URL = "https://xymtokyo.harvest-node.net:3001"

# Seconds between the Unix epoch and the network epoch
EPOCH_ADJUSTMENT = 1615853188

# KINNIKU-TOKEN mosaic id
REWARD_MOSAIC_ID = 0x44FD959F9F2ECF4D

# Fee is FEE_MULTIPLIER x serialized transaction size (micro-units)
FEE_MULTIPLIER = 100

# Unconfirmed transactions expire after this many hours
DEADLINE_HOURS = 2


# ============================================================================
# SERVICE DEFAULTS
# ============================================================================

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_TIMEOUT = 30.0  # seconds

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_HTTP_TIMEOUT = 30.0  # seconds

LANG_JA = "ja"
LANG_EN = "en"
SUPPORTED_LANGUAGES = (LANG_JA, LANG_EN)


# ============================================================================
# EXERCISE CATALOG
# ============================================================================

@dataclass(frozen=True)
class ExerciseProfile:
    """Reward parameters for one kind of exercise."""
    key: str
    name_ja: str
    name_en: str
    token_multiplier: float
    calories_per_rep: float

    def display_name(self, lang: str = LANG_JA) -> str:
        """Localized name; anything other than English falls back to Japanese."""
        return self.name_en if lang == LANG_EN else self.name_ja


class ExerciseCatalog:
    """
    Read-only lookup of exercise kinds.

    Passed explicitly to the reward calculator and the message generator so
    tests can swap in alternate catalogs.

    Usage:
        catalog = ExerciseCatalog([
            ExerciseProfile("squats", "スクワット", "Squats", 1.5, 0.8),
        ])
        profile = catalog.get("squats")
    """

    def __init__(self, profiles: Iterable[ExerciseProfile]):
        table: Dict[str, ExerciseProfile] = {}
        for profile in profiles:
            if profile.key in table:
                raise ValueError(f"Duplicate exercise key: {profile.key}")
            table[profile.key] = profile
        self._profiles = MappingProxyType(table)

    def get(self, key: object) -> Optional[ExerciseProfile]:
        if not isinstance(key, str):
            return None
        return self._profiles.get(key)

    def keys(self) -> List[str]:
        return list(self._profiles.keys())

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None

    def __iter__(self) -> Iterator[ExerciseProfile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)


DEFAULT_CATALOG = ExerciseCatalog([
    ExerciseProfile("crunches", "腹筋", "Crunches", 1.0, 0.4),
    ExerciseProfile("pushups", "腕立て伏せ", "Push-ups", 1.2, 0.6),
    ExerciseProfile("squats", "スクワット", "Squats", 1.5, 0.8),
    ExerciseProfile("back_extensions", "背筋", "Back Extensions", 1.2, 0.5),
    ExerciseProfile("general_workout", "筋トレ全般", "General Workout", 1.0, 0.5),
])


# ============================================================================
# RUNTIME SETTINGS
# ============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Process settings, read once at startup.

    The Gemini API key is mandatory. The signing key may be absent; the
    reward route then answers with a configuration error per request.
    """
    gemini_api_key: str
    private_key: Optional[str] = None
    node_url: str = DEFAULT_NODE_URL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_timeout: float = DEFAULT_GEMINI_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def has_signing_key(self) -> bool:
        return bool(self.private_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings instance

        Raises:
            ConfigurationError: GEMINI_API_KEY missing or a value is malformed
        """
        env = os.environ if environ is None else environ

        api_key = env.get("GEMINI_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set in environment variables.")

        return cls(
            gemini_api_key=api_key,
            private_key=env.get("PRIVATE_KEY", "").strip() or None,
            node_url=env.get("SYMBOL_NODE_URL", DEFAULT_NODE_URL).rstrip("/"),
            gemini_model=env.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            gemini_timeout=_parse_number(env, "GEMINI_TIMEOUT", DEFAULT_GEMINI_TIMEOUT, float),
            host=env.get("KINNIKU_HOST", DEFAULT_HOST),
            port=_parse_number(env, "KINNIKU_PORT", DEFAULT_PORT, int),
            http_timeout=_parse_number(env, "KINNIKU_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float),
        )


def _parse_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
