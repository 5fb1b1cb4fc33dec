"""Shared fixtures and fakes."""

from datetime import datetime, timedelta

import pytest

from workout_suggestions.db import Database
from workout_suggestions.domain import Category, WorkoutRecord

USER_ID = "123e4567-e89b-12d3-a456-426614174000"
OTHER_USER_ID = "9b2f6f1e-3c1d-4a0b-8e7f-0a1b2c3d4e5f"


def make_workout(workout_id, days_ago, reference, category="Strength", duration=30,
                 intensity=6, feedback=None, user_id=USER_ID):
    """WorkoutRecord created `days_ago` days before `reference` (at noon)."""
    created = datetime.combine(reference, datetime.min.time()) + timedelta(hours=12) - timedelta(days=days_ago)
    return WorkoutRecord(
        id=workout_id,
        user_id=user_id,
        category=Category.parse(category),
        duration=duration,
        intensity=intensity,
        created_at=created,
        feedback=feedback,
    )


class FakeHistoryStore:
    """Returns canned workouts and records every fetch."""

    def __init__(self, workouts=None):
        self.workouts = list(workouts or [])
        self.calls = []

    def list_workouts(self, user_id, since):
        self.calls.append((user_id, since))
        return list(self.workouts)


class FakeBiometricStore:
    def __init__(self, report=None):
        self.report = report
        self.calls = 0

    def latest_report(self, user_id):
        self.calls += 1
        return self.report


class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class RecordingReporter:
    def __init__(self):
        self.captured = []

    def capture(self, exception, tags):
        self.captured.append((exception, dict(tags)))


@pytest.fixture
def db():
    """In-memory SQLite database with all tables created."""
    database = Database("sqlite://")
    database.create_tables()
    yield database
    database.close()
