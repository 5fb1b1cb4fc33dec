"""Tests for fatigue scoring."""

from datetime import date

import pytest

from workout_suggestions.analysis.fatigue import FatigueScorer, SignalBaseline
from workout_suggestions.domain import BiometricReport

from conftest import make_workout

TODAY = date(2024, 3, 15)


def report(**metrics):
    return BiometricReport.from_metrics(TODAY, metrics)


def feedback_workouts(key, values):
    return [make_workout(i, i, TODAY, feedback={key: value}) for i, value in enumerate(values)]


class TestFatigueScorer:
    """Test the additive fatigue rules."""

    def setup_method(self):
        """Set up test fixtures."""
        self.scorer = FatigueScorer()

    def test_no_report_returns_baseline(self):
        """A user without biometric data always scores 0.5."""
        assessment = self.scorer.score(None, [])

        assert assessment.score == 0.5
        assert assessment.rules_applied == []

    def test_poor_sleep_and_high_stress(self):
        """sleepScore=50 and stress=8 without baselines gives 0.85."""
        assessment = self.scorer.score(report(sleepScore=50, stress=8), [])

        assert assessment.score == pytest.approx(0.85)
        assert len(assessment.rules_applied) == 2
        assert assessment.rules_applied[0].startswith("Poor sleep")

    @pytest.mark.parametrize("sleep,expected", [(59, 0.65), (60, 0.55), (84, 0.55), (85, 0.4), (95, 0.4)])
    def test_sleep_bands(self, sleep, expected):
        """Sleep below 60 adds 0.15, 85+ removes 0.10, the middle band adds 0.05."""
        assert self.scorer.score(report(sleepScore=sleep), []).score == pytest.approx(expected)

    @pytest.mark.parametrize("stress,expected", [(9, 0.7), (7, 0.7), (4, 0.6), (3, 0.45), (0, 0.45)])
    def test_stress_bands(self, stress, expected):
        assert self.scorer.score(report(stress=stress), []).score == pytest.approx(expected)

    def test_low_hrv_against_baseline(self):
        """HRV below mean - 1 SD of the 14-day feedback adds 0.25."""
        workouts = feedback_workouts("hrv", [60, 62, 58])

        assessment = self.scorer.score(report(hrv=50), workouts)

        assert assessment.score == pytest.approx(0.75)
        assert assessment.hrv_baseline.samples == 3
        assert "Low HRV" in assessment.rules_applied[0]

    def test_hrv_within_baseline_no_change(self):
        workouts = feedback_workouts("hrv", [60, 62, 58])

        assert self.scorer.score(report(hrv=60), workouts).score == 0.5

    def test_baseline_needs_three_samples(self):
        """Two feedback samples are not enough for a baseline."""
        workouts = feedback_workouts("hrv", [60, 62])

        assessment = self.scorer.score(report(hrv=20), workouts)

        assert assessment.score == 0.5
        assert assessment.hrv_baseline is None

    def test_elevated_resting_hr(self):
        """Resting HR above mean + 1 SD adds 0.15."""
        workouts = feedback_workouts("restingHR", [50, 52, 54])

        assessment = self.scorer.score(report(restingHR=60), workouts)

        assert assessment.score == pytest.approx(0.65)
        assert assessment.resting_hr_baseline.mean == pytest.approx(52)

    def test_rule_order(self):
        """Rules are logged in sleep, resting HR, HRV, stress order."""
        workouts = feedback_workouts("hrv", [60, 62, 58]) + [
            make_workout(10 + i, i, TODAY, feedback={"restingHR": value}) for i, value in enumerate([50, 52, 54])
        ]

        assessment = self.scorer.score(report(sleepScore=70, stress=5, hrv=40, restingHR=70), workouts)

        prefixes = [line.split(" ")[0] for line in assessment.rules_applied]
        assert prefixes == ["Moderate", "Elevated", "Low", "Moderate"]

    def test_score_clamped_to_upper_bound(self):
        """Every penalty together still caps at 1.0."""
        workouts = feedback_workouts("hrv", [60, 62, 58]) + [
            make_workout(10 + i, i, TODAY, feedback={"restingHR": value}) for i, value in enumerate([50, 52, 54])
        ]

        assessment = self.scorer.score(report(sleepScore=40, stress=9, hrv=40, restingHR=70), workouts)

        assert assessment.score == 1.0

    def test_score_clamped_to_lower_bound(self):
        assessment = FatigueScorer(base=0.0).score(report(sleepScore=95, stress=1), [])

        assert assessment.score == 0.0

    @pytest.mark.parametrize("sleep", [None, 0, 59, 70, 85, 100])
    @pytest.mark.parametrize("stress", [None, 0, 4, 7, 10])
    def test_score_always_in_unit_interval(self, sleep, stress):
        metrics = {k: v for k, v in {"sleepScore": sleep, "stress": stress}.items() if v is not None}

        score = self.scorer.score(report(**metrics), []).score

        assert 0.0 <= score <= 1.0


class TestSignalBaseline:
    def test_thresholds(self):
        baseline = SignalBaseline.from_samples([10.0, 20.0, 30.0])

        assert baseline.mean == pytest.approx(20.0)
        assert baseline.lower_threshold < baseline.mean < baseline.upper_threshold

    def test_too_few_samples(self):
        assert SignalBaseline.from_samples([1.0]) is None
