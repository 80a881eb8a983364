"""
kinnikureward - Workout rewards paid in KINNIKU-TOKEN on the Symbol ledger

Built on:
- trio for the HTTP server and async flow
- httpx for the Symbol REST gateway
- cryptography (Ed25519) for transaction signing
- google-generativeai for the motivational message

Usage:
    from kinnikureward import Settings, RewardAPI
    import trio

    settings = Settings.from_env()
    api = RewardAPI.from_settings(settings)
    trio.run(api.start)

Reward calculation only:
    from kinnikureward import DEFAULT_CATALOG, WorkoutEntry, calculate_reward

    result = calculate_reward([WorkoutEntry("squats", 50)], DEFAULT_CATALOG)
    result.total_token_amount   # 75
"""

from .config import (
    VERSION,
    DEFAULT_CATALOG,
    ExerciseCatalog,
    ExerciseProfile,
    Settings,
)
from .errors import (
    KinnikuError,
    ClientInputError,
    InvalidWorkoutError,
    InvalidAddressError,
    ServerConfigError,
    ConfigurationError,
    ExternalServiceError,
    LedgerError,
    TextGenerationError,
)
from .rewards import WorkoutEntry, ScoredWorkout, RewardResult, calculate_reward
from .messages import (
    GeneratedMessage,
    MessageGenerator,
    TextGenerator,
    GeminiTextGenerator,
    FixedTextGenerator,
)
from .levels import LevelInfo, compute_level
from .metrics import MetricsCollector
from .api import RewardAPI

__version__ = VERSION
__all__ = [
    # Config
    "DEFAULT_CATALOG",
    "ExerciseCatalog",
    "ExerciseProfile",
    "Settings",
    # Errors
    "KinnikuError",
    "ClientInputError",
    "InvalidWorkoutError",
    "InvalidAddressError",
    "ServerConfigError",
    "ConfigurationError",
    "ExternalServiceError",
    "LedgerError",
    "TextGenerationError",
    # Rewards
    "WorkoutEntry",
    "ScoredWorkout",
    "RewardResult",
    "calculate_reward",
    # Messages
    "GeneratedMessage",
    "MessageGenerator",
    "TextGenerator",
    "GeminiTextGenerator",
    "FixedTextGenerator",
    # Levels
    "LevelInfo",
    "compute_level",
    # Server
    "MetricsCollector",
    "RewardAPI",
]
