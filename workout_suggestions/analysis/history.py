"""Trailing-window bucketing of a user's workout history."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Protocol, Union

from ..domain import Category, WorkoutRecord

logger = logging.getLogger(__name__)

WINDOW_DAYS = (1, 7, 14, 28)


class HistoryStore(Protocol):
    def list_workouts(self, user_id: str, since: date) -> List[WorkoutRecord]:
        ...


@dataclass
class HistoryWindows:
    """Workouts in the trailing 1/7/14/28 day windows, newest first."""
    reference_date: date
    last1: List[WorkoutRecord] = field(default_factory=list)
    last7: List[WorkoutRecord] = field(default_factory=list)
    last14: List[WorkoutRecord] = field(default_factory=list)
    last28: List[WorkoutRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.last28

    @property
    def last_workout(self) -> Optional[WorkoutRecord]:
        return self.last28[0] if self.last28 else None

    def summary(self) -> Dict[str, int]:
        return {
            "last1": len(self.last1),
            "last7": len(self.last7),
            "last14": len(self.last14),
            "last28": len(self.last28),
        }


def category_counts(workouts: List[WorkoutRecord]) -> Dict[Category, int]:
    """Count workouts per category; every category is present, unknown ones are ignored."""
    counts = {category: 0 for category in Category}
    for workout in workouts:
        if workout.category is not None:
            counts[workout.category] += 1
    return counts


def as_reference_date(reference: Union[date, datetime, None]) -> date:
    if reference is None:
        return datetime.utcnow().date()
    if isinstance(reference, datetime):
        return reference.date()
    return reference


class HistoryAggregator:
    """Bucket a user's workouts into trailing windows from a single 28-day fetch."""

    def __init__(self, store: HistoryStore):
        self.store = store

    def aggregate(self, user_id: str, reference: Union[date, datetime, None] = None) -> HistoryWindows:
        """Fetch the last 28 days once and filter it into every window.

        A workout belongs to the N-day window when its calendar date lies in
        [reference - N days, reference]. Workouts dated after the reference
        date are dropped.
        """
        ref_date = as_reference_date(reference)
        since = ref_date - timedelta(days=max(WINDOW_DAYS))

        fetched = self.store.list_workouts(user_id, since)
        in_range = [w for w in fetched if since <= w.created_at.date() <= ref_date]
        in_range.sort(key=lambda w: w.created_at, reverse=True)

        if len(in_range) != len(fetched):
            logger.debug(f"Dropped {len(fetched) - len(in_range)} workouts outside the 28-day window")

        return HistoryWindows(
            reference_date=ref_date,
            last1=self._within(in_range, ref_date, 1),
            last7=self._within(in_range, ref_date, 7),
            last14=self._within(in_range, ref_date, 14),
            last28=in_range,
        )

    @staticmethod
    def _within(workouts: List[WorkoutRecord], ref_date: date, days: int) -> List[WorkoutRecord]:
        cutoff = ref_date - timedelta(days=days)
        return [w for w in workouts if w.created_at.date() >= cutoff]
