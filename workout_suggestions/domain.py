"""Plain data types shared by the analysis, generation and persistence layers."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

MIN_INTENSITY = 1
MAX_INTENSITY = 10
MIN_DURATION = 5  # minutes
MAX_DURATION = 120  # minutes


class Category(Enum):
    """Workout categories known to the suggestion engine."""

    CROSSFIT = "CrossFit"
    STRENGTH = "Strength"
    HIIT = "HIIT"
    CARDIO = "Cardio"
    POWERLIFTING = "Powerlifting"

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Return the category for a stored value, or None when unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for category in cls:
            if category.value.lower() == value.strip().lower():
                return category
        return None


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class WorkoutRequest:
    """The (category, duration, intensity) triple a workout is generated from."""
    category: Category
    duration: int
    intensity: int

    def __post_init__(self):
        if not MIN_DURATION <= self.duration <= MAX_DURATION:
            raise ValueError(f"duration {self.duration} outside [{MIN_DURATION}, {MAX_DURATION}]")
        if not MIN_INTENSITY <= self.intensity <= MAX_INTENSITY:
            raise ValueError(f"intensity {self.intensity} outside [{MIN_INTENSITY}, {MAX_INTENSITY}]")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "duration": self.duration,
            "intensity": self.intensity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutRequest":
        category = Category.parse(data.get("category"))
        if category is None:
            raise ValueError(f"Unknown workout category: {data.get('category')!r}")
        return cls(
            category=category,
            duration=int(data["duration"]),
            intensity=int(data["intensity"]),
        )


@dataclass
class WorkoutRecord:
    """A completed or generated workout belonging to a user."""
    id: int
    user_id: str
    category: Optional[Category]
    duration: Optional[int]
    intensity: Optional[int]
    created_at: datetime
    title: Optional[str] = None
    feedback: Optional[Dict[str, Any]] = None

    @property
    def feedback_hrv(self) -> Optional[float]:
        return _feedback_value(self.feedback, "hrv")

    @property
    def feedback_resting_hr(self) -> Optional[float]:
        return _feedback_value(self.feedback, "restingHR")

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view used in suggestion rationales."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value if self.category else None,
            "duration": self.duration,
            "intensity": self.intensity,
            "createdAt": self.created_at.isoformat(),
        }


def _feedback_value(feedback: Optional[Dict[str, Any]], key: str) -> Optional[float]:
    if not isinstance(feedback, dict):
        return None
    value = feedback.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _first_number(metrics: Dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = metrics.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return float(value)
    return None


@dataclass
class BiometricReport:
    """Daily biometric report produced by health ingestion.

    Every metric is optional; a missing value skips the rules that need it.
    """
    date: date
    sleep_score: Optional[float] = None  # 0-100
    stress: Optional[float] = None  # 0-10
    hrv: Optional[float] = None  # ms
    resting_hr: Optional[float] = None  # bpm
    performance_potential: Optional[float] = None  # 0-100
    vitality: Optional[float] = None  # 0-100
    energy_balance: Optional[float] = None  # 0-100
    circadian: Optional[float] = None  # 0-100
    uv_index: Optional[float] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_metrics(cls, report_date: date, metrics: Optional[Dict[str, Any]]) -> "BiometricReport":
        """Build a report from the raw metrics bag stored by ingestion."""
        metrics = metrics if isinstance(metrics, dict) else {}
        environment = metrics.get("environment") or {}
        weather = environment.get("weather") if isinstance(environment, dict) else None
        uv_index = _first_number(weather, "uvIndex") if isinstance(weather, dict) else None
        if uv_index is None:
            uv_index = _first_number(metrics, "uvIndex", "uv_index")

        return cls(
            date=report_date,
            sleep_score=_first_number(metrics, "sleepScore", "sleep_score"),
            stress=_first_number(metrics, "stress"),
            hrv=_first_number(metrics, "hrv"),
            resting_hr=_first_number(metrics, "restingHR", "resting_hr"),
            performance_potential=_first_number(
                metrics, "performancePotentialScore", "performance_potential"
            ),
            vitality=_first_number(metrics, "vitalityScore", "vitality_score"),
            energy_balance=_first_number(metrics, "energyBalanceScore", "energy_balance"),
            circadian=_first_number(metrics, "circadianScore", "circadian_alignment"),
            uv_index=uv_index,
            metrics=metrics,
        )

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view used in suggestion rationales."""
        return {
            "hrv": self.hrv,
            "sleepScore": self.sleep_score,
            "restingHR": self.resting_hr,
            "stress": self.stress,
            "performancePotential": self.performance_potential,
            "vitality": self.vitality,
            "energyBalance": self.energy_balance,
            "circadian": self.circadian,
            "uvMax": self.uv_index,
        }


@dataclass
class SuggestionRecord:
    """Stored suggestion, one per user per calendar day."""
    id: int
    user_id: str
    date: date
    request: Dict[str, Any]
    rationale: Dict[str, Any]
    workout_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date.isoformat(),
            "request": self.request,
            "rationale": self.rationale,
            "workoutId": self.workout_id,
        }


@dataclass
class GeneratedWorkout:
    """Structured workout returned by generation, with provenance."""
    title: str
    duration: int
    intensity: int
    blocks: List[Dict[str, Any]]
    generator_version: str
    fallback_used: bool
    seed: str
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def provenance(self) -> Dict[str, Any]:
        return {
            "generatorVersion": self.generator_version,
            "fallbackUsed": self.fallback_used,
            "seed": self.seed,
        }

    @classmethod
    def from_result(cls, result: Dict[str, Any], seed: str, request: WorkoutRequest) -> "GeneratedWorkout":
        """Wrap an orchestrator result, falling back to the request for missing fields."""
        meta = result.get("meta") or {}
        blocks = result.get("blocks")
        if blocks is None:
            blocks = result.get("sets") or []
        return cls(
            title=result.get("name") or result.get("title") or f"{request.category.value} Workout",
            duration=int(result.get("duration") or request.duration),
            intensity=int(result.get("intensity") or request.intensity),
            blocks=list(blocks),
            generator_version=meta.get("usedVersion", ""),
            fallback_used=bool(meta.get("fallback", False)),
            seed=seed,
            raw=result,
        )
