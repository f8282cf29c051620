"""
Test fixtures for workout-plan-api.

Provides fakes for upstream providers (OpenAI, ZenQuotes, Unsplash) and an
httpx mock transport for the retrying client, so tests run fast, offline and
deterministically.
"""

import sys
from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

# Repo root: .../workout-plan-api
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make src/ importable so tests can do `import workout_plan_api...`
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from workout_plan_api.api.routes import (
    get_image_service,
    get_plan_service,
    get_quote_service,
)
from workout_plan_api.config import PlanConfig
from workout_plan_api.credentials import CredentialStore
from workout_plan_api.main import app


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_credential_store():
    """Each test starts with an empty process-wide credential cache."""
    CredentialStore.reset()
    yield
    CredentialStore.reset()


# ---------------------------------------------------------------------------
# Plan configuration / sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def plan_config() -> PlanConfig:
    """Small, fixed catalog so ordering assertions stay readable."""
    return PlanConfig(
        workout_catalog=("pushups", "situps", "squats", "lunges", "burpees"),
        min_workouts=2,
        max_workouts=4,
        min_reps_per_workout=5,
        max_reps_per_workout=25,
        min_intensity=1,
        max_intensity=10,
        default_intensity=5,
    )


@pytest.fixture
def sample_demographics() -> Dict[str, Any]:
    """Demographic input as the app collects it."""
    return {
        "dateOfBirth": "2000-06-15",
        "sex": "female",
        "height": 168,
        "weight": 61.5,
        "fitnessLevel": "beginner",
        "goal": "build strength",
        "bodyFocus": "core",
        "intensity": 7,
        "excludeWorkouts": ["burpees"],
    }


@pytest.fixture
def sample_plan_payload() -> Dict[str, Any]:
    """A resolved /plan body as the client sends it."""
    return {
        "age": 24,
        "sex": "female",
        "height": 168,
        "weight": 61.5,
        "fitnessLevel": "beginner",
        "goal": "build strength",
        "bodyFocus": "core",
        "intensity": 7,
        "minWorkouts": 2,
        "maxWorkouts": 4,
        "allowedWorkouts": ["pushups", "situps", "squats"],
        "minRepsPerWorkout": 5,
        "maxRepsPerWorkout": 25,
        "minIntensity": 1,
        "maxIntensity": 10,
        "timestamp": "2024-06-16T09:00:00.000Z",
        "app_version": "1.0.0",
    }


# ---------------------------------------------------------------------------
# Backend test client
# ---------------------------------------------------------------------------


@pytest.fixture
def override_services():
    """
    Install service overrides on the app for one test.

    Usage:
        override_services(plan=svc, quote=svc, image=svc)
    """

    def _override(plan=None, quote=None, image=None):
        if plan is not None:
            app.dependency_overrides[get_plan_service] = lambda: plan
        if quote is not None:
            app.dependency_overrides[get_quote_service] = lambda: quote
        if image is not None:
            app.dependency_overrides[get_image_service] = lambda: image

    yield _override
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    """Per-test FastAPI TestClient."""
    return TestClient(app)
