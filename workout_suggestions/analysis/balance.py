"""Category balancing: pick a workout category that complements recent load."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..domain import Category

logger = logging.getLogger(__name__)

# Fixed ordering used for every tie-break
CATEGORY_ORDER: List[Category] = [
    Category.CROSSFIT,
    Category.STRENGTH,
    Category.HIIT,
    Category.CARDIO,
    Category.POWERLIFTING,
]

LEG_HEAVY: List[Category] = [Category.POWERLIFTING, Category.STRENGTH]
SKILL: List[Category] = [Category.HIIT]
ENGINE: List[Category] = [Category.CARDIO]

SKILL_ENGINE: List[Category] = SKILL + ENGINE
STRENGTH_SKILL: List[Category] = LEG_HEAVY + SKILL

# Empty history alternates between these by day-of-month parity
EVEN_DAY_CATEGORY = Category.CARDIO
ODD_DAY_CATEGORY = Category.HIIT


@dataclass
class BalanceDecision:
    """Chosen category and the rule line explaining it."""
    category: Category
    reason: str


def least_used(candidates: Sequence[Category], counts: Dict[Category, int]) -> Category:
    """Return the candidate with the lowest count; the first in candidate order wins ties."""
    lowest = min(counts.get(c, 0) for c in candidates)
    for candidate in candidates:
        if counts.get(candidate, 0) <= lowest:
            return candidate
    return candidates[0]


class CategoryBalancer:
    """Propose a category that avoids back-to-back overuse of a movement pattern."""

    def choose(
        self,
        last_category: Optional[Category],
        weekly_counts: Dict[Category, int],
        reference_date: date,
        has_history: bool = True,
    ) -> BalanceDecision:
        """Choose today's category.

        Args:
            last_category: Category of the most recent workout, if known
            weekly_counts: Workouts per category over the trailing 7 days
            reference_date: Day the suggestion is for (parity fallback)
            has_history: False when the user has no workouts in 28 days

        Returns:
            BalanceDecision with the category and rationale line
        """
        if not has_history:
            category = EVEN_DAY_CATEGORY if reference_date.day % 2 == 0 else ODD_DAY_CATEGORY
            return BalanceDecision(
                category,
                f"No workout history, alternating between {EVEN_DAY_CATEGORY.value} and "
                f"{ODD_DAY_CATEGORY.value} based on date parity",
            )

        if last_category in LEG_HEAVY:
            category = least_used(SKILL_ENGINE, weekly_counts)
        elif last_category in ENGINE:
            category = least_used(STRENGTH_SKILL, weekly_counts)
        else:
            category = least_used(CATEGORY_ORDER, weekly_counts)

        if last_category is not None:
            reason = f"Last workout was {last_category.value}, suggesting {category.value} for balance"
        else:
            reason = f"Suggesting {category.value} based on weekly activity balance"

        logger.debug(f"Balanced category {category.value} (last={last_category})")
        return BalanceDecision(category, reason)

    @staticmethod
    def underrepresented(weekly_counts: Dict[Category, int]) -> Category:
        """Least-represented category of the week across all categories."""
        return least_used(CATEGORY_ORDER, weekly_counts)
