"""
Demographic input normalization.

Turns the loosely-typed mapping collected by the app into a fully resolved
PlanRequest: derives ``age`` from the birth date, resolves the allowed
workouts from the catalog and fills every bound from PlanConfig.
"""
import logging
import math
from datetime import date
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from workout_plan_api.config import PlanConfig
from workout_plan_api.models import ErrorReport, ErrorType, PlanRequest


logger = logging.getLogger(__name__)

FALLBACK_AGE = 25

REQUIRED_STRING_FIELDS = ("sex", "fitnessLevel", "goal", "bodyFocus")
REQUIRED_NUMBER_FIELDS = ("height", "weight")


class PlanValidationError(ValueError):
    """Raised when demographic input is missing a required field."""

    def __init__(self, report: ErrorReport):
        super().__init__(report.error)
        self.report = report


def calculate_age(date_of_birth: Any, today: Optional[date] = None) -> int:
    """
    Whole years between ``date_of_birth`` (ISO ``YYYY-MM-DD``) and ``today``.

    Never raises: an unparseable or missing date yields FALLBACK_AGE.
    """
    today = today or date.today()
    try:
        birth = date.fromisoformat(str(date_of_birth).strip()[:10])
    except (TypeError, ValueError) as e:
        logger.warning(f"Error calculating age from dateOfBirth: {date_of_birth!r} - {e}")
        return FALLBACK_AGE

    age = today.year - birth.year
    # Birthday hasn't happened yet this year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def _from_sequence(value: Sequence[Any]) -> Iterable[Any]:
    return (item for item in value if item is not None)


def _from_mapping(value: Mapping[Any, Any]) -> Iterable[Any]:
    return (key for key in value.keys() if key is not None)


def _from_string(value: str) -> Iterable[Any]:
    return [value]


# One conversion rule per JSON shape
_EXCLUSION_RULES: Tuple[Tuple[type, Callable[[Any], Iterable[Any]]], ...] = (
    (str, _from_string),
    (dict, _from_mapping),
    (list, _from_sequence),
    (tuple, _from_sequence),
)


def parse_excluded_workouts(value: Any) -> List[str]:
    """
    Normalize an arbitrary ``excludeWorkouts`` value into an ordered list.

    Accepts a list (nulls dropped), a mapping (keys used), a single string
    or None. Items are stringified and trimmed; empties and duplicates are
    dropped, first occurrence wins. Any other shape is treated as empty.
    """
    if value is None:
        return []

    for shape, rule in _EXCLUSION_RULES:
        if isinstance(value, shape):
            items = rule(value)
            break
    else:
        logger.warning(
            f"Unexpected excludeWorkouts type: {type(value).__name__}, treating as empty"
        )
        return []

    seen = set()
    result: List[str] = []
    for item in items:
        name = str(item).strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def resolve_allowed_workouts(catalog: Sequence[str], excluded: Iterable[str]) -> List[str]:
    """Catalog minus ``excluded``, keeping catalog order."""
    excluded_set = set(excluded)
    return [name for name in catalog if name not in excluded_set]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_required(demographics: Mapping[str, Any]) -> List[str]:
    problems: List[str] = []
    for name in REQUIRED_STRING_FIELDS:
        value = demographics.get(name)
        if value is None:
            problems.append(f"{name} is required")
        elif not isinstance(value, str):
            problems.append(f"{name} must be a string")
    for name in REQUIRED_NUMBER_FIELDS:
        value = demographics.get(name)
        if value is None:
            problems.append(f"{name} is required")
        elif not _is_number(value):
            problems.append(f"{name} must be a number")
    return problems


def normalize(
    demographics: Mapping[str, Any],
    plan_config: PlanConfig,
    today: Optional[date] = None,
) -> PlanRequest:
    """
    Build a validated PlanRequest from raw demographic input.

    Raises:
        PlanValidationError: a structurally required field is absent or has
            the wrong type. The carried report has ``error_type=validation``.
    """
    problems = _validate_required(demographics)
    if problems:
        report = ErrorReport(
            error="Invalid demographic data",
            error_type=ErrorType.VALIDATION,
            details=problems,
        )
        logger.warning(f"Demographic validation failed: {problems}")
        raise PlanValidationError(report)

    age = calculate_age(demographics.get("dateOfBirth"), today=today)

    intensity = demographics.get("intensity")
    if not _is_number(intensity) or not math.isfinite(intensity):
        intensity = plan_config.default_intensity

    excluded = parse_excluded_workouts(demographics.get("excludeWorkouts"))
    allowed = resolve_allowed_workouts(plan_config.workout_catalog, excluded)

    logger.info(
        f"Normalized demographics: age={age}, intensity={intensity}, "
        f"excluded={excluded}, allowed={len(allowed)}/{len(plan_config.workout_catalog)}"
    )

    return PlanRequest(
        age=age,
        sex=demographics["sex"],
        height=demographics["height"],
        weight=demographics["weight"],
        fitnessLevel=demographics["fitnessLevel"],
        goal=demographics["goal"],
        bodyFocus=demographics["bodyFocus"],
        intensity=int(round(intensity)),
        minWorkouts=plan_config.min_workouts,
        maxWorkouts=plan_config.max_workouts,
        allowedWorkouts=allowed,
        minRepsPerWorkout=plan_config.min_reps_per_workout,
        maxRepsPerWorkout=plan_config.max_reps_per_workout,
        minIntensity=plan_config.min_intensity,
        maxIntensity=plan_config.max_intensity,
    )
