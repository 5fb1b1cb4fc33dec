"""Database module for workout suggestions."""

from .database import Database, get_db, close_db
from .models import Workout, HealthReport, SuggestedWorkout
from .stores import SqlHistoryStore, SqlBiometricStore, SqlSuggestionStore

__all__ = [
    "Database",
    "get_db",
    "close_db",
    "Workout",
    "HealthReport",
    "SuggestedWorkout",
    "SqlHistoryStore",
    "SqlBiometricStore",
    "SqlSuggestionStore",
]
