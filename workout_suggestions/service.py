"""Suggestion service: daily suggestions and the workouts generated from them."""

import hashlib
import json
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from .analysis.history import as_reference_date
from .analysis.suggestion import Suggestion, SuggestionComposer, validate_user_id
from .config import config
from .domain import BiometricReport, Category, GeneratedWorkout, SuggestionRecord, WorkoutRecord, WorkoutRequest
from .errors import InsufficientContext
from .generation.orchestrator import GeneratorOrchestrator
from .generation.seed import hash_user_id, seed_for
from .limits import SeedCache, SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

ARCHETYPES = {
    Category.STRENGTH: "strength",
    Category.POWERLIFTING: "strength",
    Category.HIIT: "conditioning",
    Category.CARDIO: "conditioning",
    Category.CROSSFIT: "conditioning",
}


class SuggestionStore(Protocol):
    def get_suggestion(self, user_id: str, suggestion_date: date) -> Optional[SuggestionRecord]:
        ...

    def upsert_suggestion(self, user_id: str, suggestion_date: date, request: Dict[str, Any],
                          rationale: Dict[str, Any], reset_workout: bool = False) -> SuggestionRecord:
        ...

    def link_workout(self, suggestion_id: int, workout_id: int) -> None:
        ...

    def save_workout(self, user_id: str, request: WorkoutRequest, workout: GeneratedWorkout) -> WorkoutRecord:
        ...


@dataclass
class NoSuggestion:
    """Distinguishable empty result: nothing to generate from."""
    reason: str


@dataclass
class GenerationOutcome:
    """A generated workout and the suggestion it is linked to."""
    suggestion: SuggestionRecord
    workout: GeneratedWorkout
    workout_id: Optional[int]
    cached: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestion": self.suggestion.to_dict(),
            "workoutId": self.workout_id,
            "workout": {
                "title": self.workout.title,
                "duration": self.workout.duration,
                "intensity": self.workout.intensity,
                "blocks": self.workout.blocks,
                "meta": self.workout.provenance,
            },
            "cached": self.cached,
        }


def health_modifiers(report: Optional[BiometricReport]) -> Optional[Dict[str, float]]:
    if report is None:
        return None
    modifiers = {
        "vitality": report.vitality,
        "performancePotential": report.performance_potential,
        "circadian": report.circadian,
        "energyBalance": report.energy_balance,
        "sleepScore": report.sleep_score,
    }
    return {key: value for key, value in modifiers.items() if value is not None} or None


def build_generator_inputs(request: Dict[str, Any], equipment: Optional[List[str]] = None) -> Dict[str, Any]:
    """Map a stored suggestion request to generator inputs.

    Raises InsufficientContext when the request has no usable category or
    duration.
    """
    category = Category.parse(request.get("category"))
    duration = request.get("duration")
    if category is None or not duration:
        raise InsufficientContext("Suggestion request is missing a category or duration")

    return {
        "archetype": ARCHETYPES.get(category, "mixed"),
        "minutes": int(duration),
        "targetIntensity": int(request.get("intensity") or config.DEFAULT_INTENSITY),
        "equipment": list(equipment or config.get_default_equipment()),
        "constraints": [],
    }


def inputs_digest(inputs: Dict[str, Any], modifiers: Optional[Dict[str, float]] = None) -> str:
    """Stable short digest of everything a generator sees besides the seed token."""
    payload = json.dumps({"inputs": inputs, "healthModifiers": modifiers}, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode()).hexdigest()[:16]


def rationale_payload(suggestion: Suggestion) -> Dict[str, Any]:
    payload = suggestion.rationale.to_dict()
    payload["customSuggestions"] = list(suggestion.custom_suggestions)
    return payload


class SuggestionService:
    """Own the per-user, per-day suggestion lifecycle.

    One suggestion exists per user per day. It is created on first request,
    replaced (and unlinked) on regenerate, and linked to a workout once one is
    generated from it.
    """

    def __init__(
        self,
        composer: SuggestionComposer,
        orchestrator: GeneratorOrchestrator,
        store: SuggestionStore,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        seed_cache: Optional[SeedCache] = None,
        equipment: Optional[List[str]] = None,
    ):
        self.composer = composer
        self.orchestrator = orchestrator
        self.store = store
        self.rate_limiter = rate_limiter if rate_limiter is not None else SlidingWindowRateLimiter()
        self.seed_cache = seed_cache if seed_cache is not None else SeedCache()
        self.equipment = equipment

    def get_or_create_today(self, user_id: str, today: Union[date, datetime, None] = None) -> SuggestionRecord:
        """Return today's suggestion, computing and storing it on first request."""
        validate_user_id(user_id)
        ref_date = as_reference_date(today)

        existing = self.store.get_suggestion(user_id, ref_date)
        if existing is not None:
            return existing

        suggestion = self.composer.compute_suggestion(user_id, ref_date)
        record = self.store.upsert_suggestion(
            user_id, ref_date, suggestion.request.to_dict(), rationale_payload(suggestion)
        )
        logger.info(f"Stored suggestion {record.id} for {user_id} on {ref_date}")
        return record

    def regenerate(self, user_id: str, today: Union[date, datetime, None] = None) -> SuggestionRecord:
        """Recompute today's suggestion in place and clear its workout link."""
        validate_user_id(user_id)
        ref_date = as_reference_date(today)

        suggestion = self.composer.compute_suggestion(user_id, ref_date)
        record = self.store.upsert_suggestion(
            user_id, ref_date, suggestion.request.to_dict(), rationale_payload(suggestion), reset_workout=True
        )
        logger.info(f"Regenerated suggestion {record.id} for {user_id} on {ref_date}")
        return record

    def generate_from_suggestion(
        self,
        user_id: str,
        today: Union[date, datetime, None] = None,
        regenerate: bool = False,
        nonce: int = 0,
    ) -> Union[GenerationOutcome, NoSuggestion]:
        """Generate a workout from today's suggestion and link it.

        Returns NoSuggestion when there is no suggestion to work from.
        GenerationFailure from the orchestrator propagates to the caller.
        """
        validate_user_id(user_id)
        ref_date = as_reference_date(today)
        self.rate_limiter.check(user_id)

        record = self.regenerate(user_id, ref_date) if regenerate else self.store.get_suggestion(user_id, ref_date)
        if record is None:
            return NoSuggestion("No suggestion for today yet")

        try:
            inputs = build_generator_inputs(record.request, self.equipment)
        except InsufficientContext as e:
            logger.warning(f"Cannot generate for suggestion {record.id}: {e}")
            return NoSuggestion(str(e))

        request = WorkoutRequest.from_dict(record.request)
        token = seed_for(user_id, ref_date, focus=request.category.value, nonce=nonce)

        modifiers = health_modifiers(self.composer.biometric_store.latest_report(user_id))
        cache_key = f"{token}@{inputs_digest(inputs, modifiers)}"

        entry = self.seed_cache.get(cache_key)
        if entry is not None:
            workout, workout_id = entry
            if record.workout_id is not None and workout_id == record.workout_id:
                logger.debug(f"Seed cache hit for {token}")
                return GenerationOutcome(record, workout, workout_id, cached=True)
            # Same inputs, but the suggestion now points elsewhere: keep the body, relink
            logger.debug(f"Relinking cached workout body for {token}")
        else:
            seed = {
                "rngSeed": token,
                "inputs": inputs,
                "context": {
                    "dateISO": ref_date.isoformat(),
                    "userHash": hash_user_id(user_id),
                    "healthModifiers": modifiers,
                },
            }
            result = self.orchestrator.generate_with_fallback(seed, {"seed": token})
            workout = GeneratedWorkout.from_result(result, token, request)

        saved = self.store.save_workout(user_id, request, workout)
        self.store.link_workout(record.id, saved.id)
        self.seed_cache.put(cache_key, (workout, saved.id))
        logger.info(
            f"Generated workout {saved.id} for suggestion {record.id} "
            f"(version {workout.generator_version}, fallback={workout.fallback_used})"
        )
        return GenerationOutcome(replace(record, workout_id=saved.id), workout, saved.id)

    def start(self, user_id: str, today: Union[date, datetime, None] = None,
              nonce: int = 0) -> Union[GenerationOutcome, NoSuggestion]:
        """Get or create today's suggestion, then generate a workout from it."""
        self.get_or_create_today(user_id, today)
        return self.generate_from_suggestion(user_id, today, nonce=nonce)


def generate_daily_suggestions(service: SuggestionService, user_ids: Iterable[str],
                               today: Union[date, datetime, None] = None) -> Dict[str, int]:
    """Create the day's suggestion for each user, continuing past per-user failures."""
    ref_date = as_reference_date(today)
    counts = {"processed": 0, "created": 0, "skipped": 0, "errors": 0}

    for user_id in user_ids:
        counts["processed"] += 1
        try:
            if service.store.get_suggestion(user_id, ref_date) is not None:
                counts["skipped"] += 1
                continue
            service.get_or_create_today(user_id, ref_date)
            counts["created"] += 1
        except Exception as e:
            counts["errors"] += 1
            logger.error(f"Daily suggestion failed for {user_id}: {e}")

    logger.info(
        f"Daily suggestions for {ref_date}: processed={counts['processed']}, "
        f"created={counts['created']}, skipped={counts['skipped']}, errors={counts['errors']}"
    )
    return counts


def build_service(db=None, reporter=None) -> SuggestionService:
    """Wire a service over the SQL stores and the configured generators."""
    from .db import SqlBiometricStore, SqlHistoryStore, SqlSuggestionStore, get_db
    from .generation import DeterministicGenerator, HttpGenerationService, init_error_tracking

    db = db or get_db()
    composer = SuggestionComposer(SqlHistoryStore(db), SqlBiometricStore(db))
    orchestrator = GeneratorOrchestrator.from_config(
        HttpGenerationService(),
        DeterministicGenerator(),
        reporter=reporter or init_error_tracking(),
    )
    return SuggestionService(composer, orchestrator, SqlSuggestionStore(db))
