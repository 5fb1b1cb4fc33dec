"""SQLAlchemy-backed stores returning plain domain dataclasses."""

import json
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from ..domain import BiometricReport, Category, GeneratedWorkout, SuggestionRecord, WorkoutRecord, WorkoutRequest
from .database import Database
from .models import HealthReport, SuggestedWorkout, Workout

logger = logging.getLogger(__name__)


def _loads(value: Optional[str], default: Any = None) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        logger.warning(f"Could not decode stored JSON: {value[:80]!r}")
        return default


def _to_workout_record(row: Workout) -> WorkoutRecord:
    return WorkoutRecord(
        id=row.id,
        user_id=row.user_id,
        category=Category.parse(row.category),
        duration=row.duration,
        intensity=row.intensity,
        created_at=row.created_at,
        title=row.title,
        feedback=_loads(row.feedback),
    )


def _to_suggestion_record(row: SuggestedWorkout) -> SuggestionRecord:
    return SuggestionRecord(
        id=row.id,
        user_id=row.user_id,
        date=row.date,
        request=_loads(row.request, {}),
        rationale=_loads(row.rationale, {}),
        workout_id=row.workout_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlHistoryStore:
    """Workout history lookups."""

    def __init__(self, db: Database):
        self.db = db

    def list_workouts(self, user_id: str, since: date) -> List[WorkoutRecord]:
        """Workouts created on or after `since`, newest first."""
        start = datetime.combine(since, time.min)
        with self.db.get_session() as session:
            rows = (
                session.query(Workout)
                .filter(Workout.user_id == user_id, Workout.created_at >= start)
                .order_by(Workout.created_at.desc())
                .all()
            )
            return [_to_workout_record(row) for row in rows]

    def add_workout(self, user_id: str, category: str, duration: int, intensity: int,
                    created_at: Optional[datetime] = None, title: Optional[str] = None,
                    feedback: Optional[Dict[str, Any]] = None) -> WorkoutRecord:
        """Record a completed workout (used by ingestion and tests)."""
        with self.db.get_session() as session:
            row = Workout(
                user_id=user_id,
                title=title,
                category=category,
                duration=duration,
                intensity=intensity,
                feedback=json.dumps(feedback) if feedback is not None else None,
                created_at=created_at or datetime.utcnow(),
            )
            session.add(row)
            session.flush()
            return _to_workout_record(row)

    def attach_feedback(self, workout_id: int, feedback: Dict[str, Any]) -> WorkoutRecord:
        """Attach feedback to a workout; the only mutation a workout allows."""
        with self.db.get_session() as session:
            row = session.get(Workout, workout_id)
            if row is None:
                raise LookupError(f"Workout {workout_id} not found")
            row.feedback = json.dumps(feedback)
            session.flush()
            return _to_workout_record(row)


class SqlBiometricStore:
    """Daily biometric reports."""

    def __init__(self, db: Database):
        self.db = db

    def latest_report(self, user_id: str) -> Optional[BiometricReport]:
        with self.db.get_session() as session:
            row = (
                session.query(HealthReport)
                .filter(HealthReport.user_id == user_id)
                .order_by(HealthReport.date.desc())
                .first()
            )
            if row is None:
                return None
            return BiometricReport.from_metrics(row.date, _loads(row.metrics, {}))

    def add_report(self, user_id: str, report_date: date, metrics: Dict[str, Any]) -> BiometricReport:
        """Insert or replace the report for (user, date)."""
        with self.db.get_session() as session:
            row = session.query(HealthReport).filter_by(user_id=user_id, date=report_date).first()
            if row is None:
                row = HealthReport(user_id=user_id, date=report_date)
                session.add(row)
            row.metrics = json.dumps(metrics)
        return BiometricReport.from_metrics(report_date, metrics)


class SqlSuggestionStore:
    """Daily suggestions and the workouts generated from them."""

    def __init__(self, db: Database):
        self.db = db

    def get_suggestion(self, user_id: str, suggestion_date: date) -> Optional[SuggestionRecord]:
        with self.db.get_session() as session:
            row = session.query(SuggestedWorkout).filter_by(user_id=user_id, date=suggestion_date).first()
            return _to_suggestion_record(row) if row else None

    def upsert_suggestion(self, user_id: str, suggestion_date: date, request: Dict[str, Any],
                          rationale: Dict[str, Any], reset_workout: bool = False) -> SuggestionRecord:
        """Insert or update the suggestion for (user, date).

        The (user_id, date) unique constraint decides concurrent inserts: the
        loser catches IntegrityError and updates the winner's row instead.
        The workout link is only cleared when reset_workout is set.
        """
        try:
            return self._write_suggestion(user_id, suggestion_date, request, rationale, reset_workout)
        except IntegrityError:
            logger.info(f"Concurrent suggestion insert for {user_id} on {suggestion_date}, updating existing row")
            return self._write_suggestion(user_id, suggestion_date, request, rationale, reset_workout)

    def _write_suggestion(self, user_id: str, suggestion_date: date, request: Dict[str, Any],
                          rationale: Dict[str, Any], reset_workout: bool) -> SuggestionRecord:
        with self.db.get_session() as session:
            row = session.query(SuggestedWorkout).filter_by(user_id=user_id, date=suggestion_date).first()
            if row is None:
                row = SuggestedWorkout(user_id=user_id, date=suggestion_date)
                session.add(row)
            row.request = json.dumps(request)
            row.rationale = json.dumps(rationale)
            if reset_workout:
                row.workout_id = None
            session.flush()
            session.refresh(row)
            return _to_suggestion_record(row)

    def link_workout(self, suggestion_id: int, workout_id: int) -> None:
        with self.db.get_session() as session:
            row = session.get(SuggestedWorkout, suggestion_id)
            if row is None:
                raise LookupError(f"Suggestion {suggestion_id} not found")
            row.workout_id = workout_id
        logger.info(f"Linked workout {workout_id} to suggestion {suggestion_id}")

    def save_workout(self, user_id: str, request: WorkoutRequest, workout: GeneratedWorkout) -> WorkoutRecord:
        """Persist a generated workout with its provenance."""
        with self.db.get_session() as session:
            row = Workout(
                user_id=user_id,
                title=workout.title,
                category=request.category.value,
                duration=workout.duration,
                intensity=workout.intensity,
                blocks=json.dumps(workout.blocks),
                generator_version=workout.generator_version,
                fallback_used=workout.fallback_used,
                seed=workout.seed,
                created_at=datetime.utcnow(),
            )
            session.add(row)
            session.flush()
            return _to_workout_record(row)

