"""Daily suggestion composition.

Combines history windows, the fatigue score and category balancing into a
workout request (category, duration, intensity) with a structured rationale:
the rule lines applied, component scores, and a snapshot of the inputs.
"""

import logging
import math
import random
import re
import numpy as np
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from ..config import config
from ..domain import (
    BiometricReport,
    Category,
    MAX_DURATION,
    MAX_INTENSITY,
    MIN_DURATION,
    MIN_INTENSITY,
    WorkoutRecord,
    WorkoutRequest,
    clamp,
)
from ..errors import InvalidIdentity
from .balance import CategoryBalancer
from .fatigue import FatigueScorer
from .history import HistoryAggregator, HistoryStore, HistoryWindows, as_reference_date, category_counts

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

# (fatigue lower bound, intensity band), checked top-down
INTENSITY_BANDS: List[Tuple[float, Tuple[int, int]]] = [
    (0.8, (3, 5)),
    (0.6, (4, 6)),
    (0.3, (5, 7)),
    (0.0, (6, 8)),
]

HIGH_FATIGUE = 0.7
LOW_FATIGUE = 0.3
POOR_SLEEP = 60


class BiometricStore(Protocol):
    def latest_report(self, user_id: str) -> Optional[BiometricReport]:
        ...


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def validate_user_id(user_id: str) -> str:
    """Raise InvalidIdentity unless user_id is a hyphenated UUID."""
    if not isinstance(user_id, str) or not UUID_PATTERN.match(user_id):
        raise InvalidIdentity(user_id)
    return user_id


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def median_duration(workouts: List[WorkoutRecord], default: float) -> float:
    durations = [w.duration for w in workouts if w.duration]
    if not durations:
        return default
    return float(np.median(durations))


def average_intensity(workouts: List[WorkoutRecord], default: float) -> float:
    intensities = [w.intensity for w in workouts if w.intensity]
    if not intensities:
        return default
    return float(np.mean(intensities))


def has_repeated_intensity(workouts: List[WorkoutRecord], intensity: int) -> bool:
    """True when each of the two most recent workouts used this intensity."""
    recent = [w.intensity for w in workouts[:2]]
    return len(recent) == 2 and all(value == intensity for value in recent)


@dataclass
class Rationale:
    """Human-auditable explanation accompanying a suggestion."""
    rules_applied: List[str] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)
    sources: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rulesApplied": list(self.rules_applied),
            "scores": dict(self.scores),
            "sources": dict(self.sources),
        }


@dataclass
class Suggestion:
    """A computed daily suggestion."""
    date: str
    request: WorkoutRequest
    rationale: Rationale
    custom_suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "request": self.request.to_dict(),
            "rationale": self.rationale.to_dict(),
            "customSuggestions": list(self.custom_suggestions),
        }


# Enrichment rules only add rationale lines and custom suggestions; they never
# change the request.
EnrichmentRule = Callable[[BiometricReport, Dict[Category, int]], Tuple[List[str], List[str]]]


def low_readiness_rule(report: BiometricReport, weekly_counts: Dict[Category, int]) -> Tuple[List[str], List[str]]:
    potential = report.performance_potential
    if potential is None or potential >= config.LOW_PERFORMANCE_THRESHOLD:
        return [], []
    return (
        [f"Low performance potential ({potential:g}) → recommending Zone 2 cardio + mobility work"],
        [
            "Focus on Zone 2 heart rate training (conversational pace)",
            "Include 10-15 minutes of mobility/stretching work",
        ],
    )


def energy_balance_rule(report: BiometricReport, weekly_counts: Dict[Category, int]) -> Tuple[List[str], List[str]]:
    potential, energy = report.performance_potential, report.energy_balance
    if potential is None or energy is None:
        return [], []
    if potential <= config.HIGH_PERFORMANCE_THRESHOLD or energy >= config.LOW_ENERGY_BALANCE_THRESHOLD:
        return [], []
    target = CategoryBalancer.underrepresented(weekly_counts)
    return (
        [
            f"High performance ({potential:g}) but low energy balance ({energy:g}) "
            f"→ underrepresented zone: {target.value}"
        ],
        [
            "Your body is ready for intensity, but energy balance suggests targeting "
            f"underrepresented training zones such as {target.value}"
        ],
    )


def circadian_rule(report: BiometricReport, weekly_counts: Dict[Category, int]) -> Tuple[List[str], List[str]]:
    circadian, uv = report.circadian, report.uv_index
    if circadian is None or uv is None:
        return [], []
    if uv < config.MIN_DAYLIGHT_UV_INDEX or circadian >= config.LOW_CIRCADIAN_THRESHOLD:
        return [], []
    return (
        [f"UV index {uv:g} ≥ {config.MIN_DAYLIGHT_UV_INDEX:g} and circadian score {circadian:g} < "
         f"{config.LOW_CIRCADIAN_THRESHOLD:g} → recommending morning daylight exposure"],
        ["Add a 10-20 minute daylight walk within 90 minutes of waking to improve circadian rhythm"],
    )


DEFAULT_ENRICHMENT_RULES: List[EnrichmentRule] = [low_readiness_rule, energy_balance_rule, circadian_rule]


class SuggestionComposer:
    """Compute the daily workout suggestion for a user."""

    def __init__(
        self,
        history_store: HistoryStore,
        biometric_store: BiometricStore,
        rng: Optional[RandomSource] = None,
        fatigue_scorer: Optional[FatigueScorer] = None,
        balancer: Optional[CategoryBalancer] = None,
        enrichment_rules: Optional[List[EnrichmentRule]] = None,
        default_duration: float = None,
        default_intensity: float = None,
    ):
        self.aggregator = HistoryAggregator(history_store)
        self.biometric_store = biometric_store
        self.rng = rng or random.Random()
        self.fatigue_scorer = fatigue_scorer or FatigueScorer()
        self.balancer = balancer or CategoryBalancer()
        self.enrichment_rules = DEFAULT_ENRICHMENT_RULES if enrichment_rules is None else enrichment_rules
        self.default_duration = default_duration or config.DEFAULT_DURATION
        self.default_intensity = default_intensity or config.DEFAULT_INTENSITY

    def compute_suggestion(self, user_id: str, today: Union[date, datetime, None] = None) -> Suggestion:
        """Validate the user, fetch inputs and compose today's suggestion."""
        validate_user_id(user_id)
        ref_date = as_reference_date(today)
        windows = self.aggregator.aggregate(user_id, ref_date)
        report = self.biometric_store.latest_report(user_id)
        suggestion = self.compose(windows, report)
        logger.info(
            f"Suggestion for {user_id} on {suggestion.date}: {suggestion.request.category.value}, "
            f"{suggestion.request.duration}min, intensity {suggestion.request.intensity}"
        )
        return suggestion

    def compose(self, windows: HistoryWindows, report: Optional[BiometricReport]) -> Suggestion:
        """Compose a suggestion from already-fetched inputs."""
        rules: List[str] = []
        weekly_counts = category_counts(windows.last7)
        monthly_counts = category_counts(windows.last28)

        fatigue = self.fatigue_scorer.score(report, windows.last14)
        rules.extend(fatigue.rules_applied)

        last_workout = windows.last_workout
        decision = self.balancer.choose(
            last_workout.category if last_workout else None,
            weekly_counts,
            windows.reference_date,
            has_history=not windows.is_empty,
        )
        category = decision.category
        rules.append(decision.reason)

        duration = self._duration(windows, fatigue.score, report, rules)
        intensity = self._intensity(windows, fatigue.score, rules)

        custom_suggestions: List[str] = []
        if report is not None:
            for rule in self.enrichment_rules:
                lines, extras = rule(report, weekly_counts)
                rules.extend(lines)
                custom_suggestions.extend(extras)

        week_total = len(windows.last7)
        month_total = len(windows.last28)
        scores = {
            "recency": 1.0 if windows.last1 else 0.0,
            "weeklyBalance": max(0.0, 1 - weekly_counts[category] / max(1, week_total)),
            "monthlyBalance": max(0.0, 1 - monthly_counts[category] / max(1, month_total)),
            "fatigue": fatigue.score,
            "novelty": 1.0 if weekly_counts[category] == 0 else max(0.0, 1 - weekly_counts[category] / 7),
        }
        sources = {
            "lastWorkout": last_workout.snapshot() if last_workout else None,
            "weeklyCounts": {c.value: n for c, n in weekly_counts.items()},
            "monthlyCounts": {c.value: n for c, n in monthly_counts.items()},
            "health": report.snapshot() if report else None,
            "baselines": fatigue.baselines(),
        }

        return Suggestion(
            date=windows.reference_date.isoformat(),
            request=WorkoutRequest(category=category, duration=duration, intensity=intensity),
            rationale=Rationale(rules_applied=rules, scores=scores, sources=sources),
            custom_suggestions=custom_suggestions,
        )

    def _duration(self, windows: HistoryWindows, fatigue: float,
                  report: Optional[BiometricReport], rules: List[str]) -> int:
        duration = median_duration(windows.last14, self.default_duration)

        if fatigue >= HIGH_FATIGUE:
            duration = max(config.DURATION_FLOOR, duration * 0.75)
            rules.append(f"High fatigue ({fatigue:.2f}) → shorten duration 25%")
        elif fatigue <= LOW_FATIGUE:
            duration = min(config.DURATION_CAP, duration * 1.2)
            rules.append(f"Low fatigue ({fatigue:.2f}) → extend duration 20%")

        # Stacks with the fatigue adjustment above
        if report is not None and report.sleep_score is not None and report.sleep_score < POOR_SLEEP:
            duration = max(config.DURATION_FLOOR, duration * 0.75)
            rules.append(f"Poor sleep ({report.sleep_score:g}) → shorten duration 25%")

        return int(clamp(round_half_up(duration), MIN_DURATION, MAX_DURATION))

    def _intensity(self, windows: HistoryWindows, fatigue: float, rules: List[str]) -> int:
        intensity = round_half_up(average_intensity(windows.last7, self.default_intensity))
        intensity = int(clamp(intensity, MIN_INTENSITY, MAX_INTENSITY))

        for lower_bound, (band_min, band_max) in INTENSITY_BANDS:
            if fatigue >= lower_bound:
                intensity = int(clamp(intensity, band_min, band_max))
                if lower_bound >= 0.6:
                    rules.append(f"High fatigue ({fatigue:.2f}), clamping intensity to {band_min}-{band_max} range")
                elif lower_bound == 0.0:
                    rules.append(f"Low fatigue ({fatigue:.2f}), allowing higher intensity {band_min}-{band_max} range")
                break

        if has_repeated_intensity(windows.last7, intensity):
            step = -1 if self.rng.random() < 0.5 else 1
            nudged = int(clamp(intensity + step, MIN_INTENSITY, MAX_INTENSITY))
            rules.append(f"Avoiding repeated intensity {intensity} for 3 days, adjusting to {nudged}")
            intensity = nudged

        return intensity

    def debug_inputs(self, user_id: str, today: Union[date, datetime, None] = None) -> Dict[str, Any]:
        """Raw inputs the suggestion would be computed from."""
        validate_user_id(user_id)
        windows = self.aggregator.aggregate(user_id, today)
        report = self.biometric_store.latest_report(user_id)
        last = windows.last_workout
        return {
            "userId": user_id,
            "date": windows.reference_date.isoformat(),
            "windows": windows.summary(),
            "recentWorkout": last.snapshot() if last else None,
            "hasHealthData": report is not None,
            "health": report.snapshot() if report else None,
            "healthMetricsKeys": sorted(report.metrics.keys()) if report else [],
        }
