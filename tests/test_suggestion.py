"""Tests for daily suggestion composition."""

from datetime import date

import pytest

from workout_suggestions.analysis.fatigue import FatigueScorer
from workout_suggestions.analysis.suggestion import (
    SuggestionComposer,
    round_half_up,
    validate_user_id,
)
from workout_suggestions.domain import BiometricReport, Category
from workout_suggestions.errors import InvalidIdentity

from conftest import USER_ID, FakeBiometricStore, FakeHistoryStore, FixedRandom, make_workout

TODAY = date(2024, 3, 14)


def report(**metrics):
    return BiometricReport.from_metrics(TODAY, metrics)


def composer(workouts=None, health=None, rng=None, **kwargs):
    return SuggestionComposer(
        FakeHistoryStore(workouts),
        FakeBiometricStore(health),
        rng=rng or FixedRandom(0.0),
        **kwargs,
    )


class TestIdentity:
    """Test user id validation."""

    def test_valid_uuid(self):
        assert validate_user_id(USER_ID) == USER_ID
        assert validate_user_id(USER_ID.upper()) == USER_ID.upper()

    @pytest.mark.parametrize("user_id", ["", "not-a-uuid", "123e4567e89b12d3a456426614174000", None])
    def test_invalid_ids(self, user_id):
        with pytest.raises(InvalidIdentity):
            validate_user_id(user_id)

    def test_invalid_id_never_reaches_stores(self):
        history, biometrics = FakeHistoryStore(), FakeBiometricStore()
        suggester = SuggestionComposer(history, biometrics)

        with pytest.raises(InvalidIdentity):
            suggester.compute_suggestion("bad-id", TODAY)

        assert history.calls == []
        assert biometrics.calls == 0


class TestDuration:
    """Test the duration derivation."""

    def test_default_without_history(self):
        suggestion = composer().compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.duration == 30

    def test_median_of_last_14_days(self):
        workouts = [make_workout(i, i, TODAY, duration=d) for i, d in enumerate([20, 45, 40])]

        suggestion = composer(workouts).compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.duration == 40

    def test_high_fatigue_shortens_by_quarter(self):
        """Fatigue 0.75 scales the 14-day median by 0.75."""
        workouts = [make_workout(i, i, TODAY, duration=40) for i in range(3)]

        suggestion = composer(workouts, report(sleepScore=70, stress=8)).compute_suggestion(USER_ID, TODAY)

        assert suggestion.rationale.scores["fatigue"] == pytest.approx(0.75)
        assert suggestion.request.duration == 30

    def test_high_fatigue_floors_at_15(self):
        workouts = [make_workout(i, i, TODAY, duration=16) for i in range(3)]

        suggestion = composer(workouts, report(sleepScore=70, stress=8)).compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.duration == 15

    def test_low_fatigue_extends_and_caps_at_60(self):
        scorer = FatigueScorer(base=0.3)
        short = [make_workout(i, i, TODAY, duration=40) for i in range(3)]
        long = [make_workout(i, i, TODAY, duration=55) for i in range(3)]

        assert composer(short, fatigue_scorer=scorer).compute_suggestion(USER_ID, TODAY).request.duration == 48
        assert composer(long, fatigue_scorer=scorer).compute_suggestion(USER_ID, TODAY).request.duration == 60

    def test_fatigue_and_sleep_reductions_stack(self):
        """Poor sleep shortens again on top of the high-fatigue reduction."""
        workouts = [make_workout(i, i, TODAY, duration=40) for i in range(3)]

        suggestion = composer(workouts, report(sleepScore=50, stress=8)).compute_suggestion(USER_ID, TODAY)

        # 40 * 0.75 * 0.75 = 22.5, rounded half up
        assert suggestion.request.duration == 23
        rules = suggestion.rationale.rules_applied
        assert any(rule.startswith("High fatigue") and "duration" in rule for rule in rules)
        assert any(rule.startswith("Poor sleep") and "duration" in rule for rule in rules)


class TestIntensity:
    """Test intensity banding and the repetition guard."""

    def test_default_intensity(self):
        assert composer().compute_suggestion(USER_ID, TODAY).request.intensity == 5

    def test_high_fatigue_band(self):
        workouts = [make_workout(i, i, TODAY, intensity=9) for i in range(1, 4)]

        suggestion = composer(workouts, report(sleepScore=50, stress=8)).compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.intensity == 5

    def test_moderate_fatigue_band_raises_low_average(self):
        workouts = [make_workout(1, 1, TODAY, intensity=2), make_workout(2, 3, TODAY, intensity=3)]

        suggestion = composer(workouts).compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.intensity == 5

    @pytest.mark.parametrize("draw,expected", [(0.2, 5), (0.8, 7)])
    def test_repetition_guard(self, draw, expected):
        """Two workouts in a row at 6 move today's 6 by exactly one."""
        workouts = [make_workout(1, 1, TODAY, intensity=6), make_workout(2, 2, TODAY, intensity=6)]

        suggestion = composer(workouts, rng=FixedRandom(draw)).compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.intensity == expected
        assert any("Avoiding repeated intensity 6" in rule for rule in suggestion.rationale.rules_applied)

    def test_no_guard_when_recent_intensities_differ(self):
        workouts = [make_workout(1, 1, TODAY, intensity=6), make_workout(2, 2, TODAY, intensity=7),
                    make_workout(3, 3, TODAY, intensity=5)]

        suggestion = composer(workouts).compute_suggestion(USER_ID, TODAY)

        assert suggestion.request.intensity == 6
        assert not any("Avoiding" in rule for rule in suggestion.rationale.rules_applied)


class TestComposition:
    """Test the composed suggestion and its rationale."""

    def test_empty_history_uses_parity_category(self):
        even = composer().compute_suggestion(USER_ID, date(2024, 3, 2))
        odd = composer().compute_suggestion(USER_ID, date(2024, 3, 3))

        assert even.request.category == Category.CARDIO
        assert odd.request.category == Category.HIIT

    def test_output_shape(self):
        workouts = [make_workout(1, 1, TODAY, "Strength")]

        result = composer(workouts, report(sleepScore=80)).compute_suggestion(USER_ID, TODAY).to_dict()

        assert result["date"] == "2024-03-14"
        assert set(result["request"]) == {"category", "duration", "intensity"}
        assert set(result["rationale"]) == {"rulesApplied", "scores", "sources"}
        assert set(result["rationale"]["scores"]) == {"recency", "weeklyBalance", "monthlyBalance", "fatigue", "novelty"}
        assert result["rationale"]["sources"]["lastWorkout"]["category"] == "Strength"
        assert result["rationale"]["sources"]["health"]["sleepScore"] == 80
        assert result["customSuggestions"] == []

    def test_scores_are_bounded(self):
        workouts = [make_workout(i, i % 7, TODAY, "Cardio") for i in range(10)]

        scores = composer(workouts).compute_suggestion(USER_ID, TODAY).rationale.scores

        assert all(0.0 <= value <= 1.0 for value in scores.values())

    def test_enrichment_does_not_change_request(self):
        """Enrichment rules only add rationale lines and custom suggestions."""
        workouts = [make_workout(1, 1, TODAY, "Strength")]

        plain = composer(workouts).compute_suggestion(USER_ID, TODAY)
        enriched = composer(workouts, report(performancePotentialScore=40)).compute_suggestion(USER_ID, TODAY)

        assert enriched.request == plain.request
        assert any("Zone 2" in extra for extra in enriched.custom_suggestions)
        assert any(rule.startswith("Low performance potential") for rule in enriched.rationale.rules_applied)

    def test_energy_balance_rule_names_underrepresented_category(self):
        workouts = [make_workout(1, 1, TODAY, "CrossFit")]

        suggestion = composer(
            workouts, report(performancePotentialScore=80, energyBalanceScore=40)
        ).compute_suggestion(USER_ID, TODAY)

        assert any("underrepresented zone: Strength" in rule for rule in suggestion.rationale.rules_applied)

    def test_circadian_rule_needs_uv(self):
        bright = report(circadianScore=60, environment={"weather": {"uvIndex": 5}})
        dark = report(circadianScore=60, environment={"weather": {"uvIndex": 1}})

        assert any("daylight" in s for s in composer(health=bright).compute_suggestion(USER_ID, TODAY).custom_suggestions)
        assert composer(health=dark).compute_suggestion(USER_ID, TODAY).custom_suggestions == []

    def test_debug_inputs(self):
        workouts = [make_workout(1, 0, TODAY), make_workout(2, 10, TODAY)]

        inputs = composer(workouts, report(sleepScore=70)).debug_inputs(USER_ID, TODAY)

        assert inputs["windows"] == {"last1": 1, "last7": 1, "last14": 2, "last28": 2}
        assert inputs["hasHealthData"] is True
        assert inputs["healthMetricsKeys"] == ["sleepScore"]


def test_round_half_up():
    assert round_half_up(22.5) == 23
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
