"""Configuration settings for the workout plan API."""
import os
from dataclasses import dataclass
from typing import Literal


EnvironmentType = Literal["development", "staging", "production"]

# Workout identifiers the plan generator may choose from, in display order.
DEFAULT_WORKOUT_CATALOG = (
    "pushups",
    "situps",
    "squats",
    "lunges",
    "burpees",
    "jumpingJacks",
    "mountainClimbers",
    "plankSeconds",
    "crunches",
    "highKnees",
)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


class Settings:
    """Application settings."""

    # Environment
    ENVIRONMENT: EnvironmentType = "development"

    # Backend base URL used by the client side
    API_BASE_URL: str = "http://localhost:8000"

    # OpenAI completion parameters
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_MAX_TOKENS: int = 50
    OPENAI_TEMPERATURE: float = 0.5
    OPENAI_TOP_P: float = 0.85
    OPENAI_FREQUENCY_PENALTY: float = 0.1
    OPENAI_PRESENCE_PENALTY: float = 0.2

    # Upstream providers
    PROVIDER_TIMEOUT: float = 30.0
    ZENQUOTES_URL: str = "https://zenquotes.io/api/random"
    UNSPLASH_API_URL: str = "https://api.unsplash.com"

    # Plan bounds
    MIN_WORKOUTS: int = 3
    MAX_WORKOUTS: int = 6
    MIN_REPS_PER_WORKOUT: int = 5
    MAX_REPS_PER_WORKOUT: int = 30
    MIN_INTENSITY: int = 1
    MAX_INTENSITY: int = 10
    DEFAULT_INTENSITY: int = 5
    WORKOUT_CATALOG: tuple = DEFAULT_WORKOUT_CATALOG

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"

        self.API_BASE_URL = os.getenv("API_BASE_URL", self.API_BASE_URL)

        # OpenAI
        self.OPENAI_MODEL = os.getenv("OPENAI_MODEL", self.OPENAI_MODEL)
        self.OPENAI_MAX_TOKENS = _env_int("OPENAI_MAX_TOKENS", self.OPENAI_MAX_TOKENS)
        self.OPENAI_TEMPERATURE = _env_float("OPENAI_TEMPERATURE", self.OPENAI_TEMPERATURE)
        self.OPENAI_TOP_P = _env_float("OPENAI_TOP_P", self.OPENAI_TOP_P)
        self.OPENAI_FREQUENCY_PENALTY = _env_float(
            "OPENAI_FREQUENCY_PENALTY", self.OPENAI_FREQUENCY_PENALTY
        )
        self.OPENAI_PRESENCE_PENALTY = _env_float(
            "OPENAI_PRESENCE_PENALTY", self.OPENAI_PRESENCE_PENALTY
        )

        # Providers
        self.PROVIDER_TIMEOUT = _env_float("PROVIDER_TIMEOUT", self.PROVIDER_TIMEOUT)
        self.ZENQUOTES_URL = os.getenv("ZENQUOTES_URL", self.ZENQUOTES_URL)
        self.UNSPLASH_API_URL = os.getenv("UNSPLASH_API_URL", self.UNSPLASH_API_URL)

        # Plan bounds
        self.MIN_WORKOUTS = _env_int("MIN_WORKOUTS", self.MIN_WORKOUTS)
        self.MAX_WORKOUTS = _env_int("MAX_WORKOUTS", self.MAX_WORKOUTS)
        self.MIN_REPS_PER_WORKOUT = _env_int("MIN_REPS_PER_WORKOUT", self.MIN_REPS_PER_WORKOUT)
        self.MAX_REPS_PER_WORKOUT = _env_int("MAX_REPS_PER_WORKOUT", self.MAX_REPS_PER_WORKOUT)
        self.MIN_INTENSITY = _env_int("MIN_INTENSITY", self.MIN_INTENSITY)
        self.MAX_INTENSITY = _env_int("MAX_INTENSITY", self.MAX_INTENSITY)
        self.DEFAULT_INTENSITY = _env_int("DEFAULT_INTENSITY", self.DEFAULT_INTENSITY)

        catalog = os.getenv("WORKOUT_CATALOG", "")
        names = tuple(name.strip() for name in catalog.split(",") if name.strip())
        self.WORKOUT_CATALOG = names or DEFAULT_WORKOUT_CATALOG


@dataclass(frozen=True)
class PlanConfig:
    """Static plan constants shared by the client normalizer and the backend."""

    workout_catalog: tuple = DEFAULT_WORKOUT_CATALOG
    min_workouts: int = 3
    max_workouts: int = 6
    min_reps_per_workout: int = 5
    max_reps_per_workout: int = 30
    min_intensity: int = 1
    max_intensity: int = 10
    default_intensity: int = 5

    @classmethod
    def from_settings(cls, source: "Settings") -> "PlanConfig":
        return cls(
            workout_catalog=tuple(source.WORKOUT_CATALOG),
            min_workouts=source.MIN_WORKOUTS,
            max_workouts=source.MAX_WORKOUTS,
            min_reps_per_workout=source.MIN_REPS_PER_WORKOUT,
            max_reps_per_workout=source.MAX_REPS_PER_WORKOUT,
            min_intensity=source.MIN_INTENSITY,
            max_intensity=source.MAX_INTENSITY,
            default_intensity=source.DEFAULT_INTENSITY,
        )


settings = Settings()
