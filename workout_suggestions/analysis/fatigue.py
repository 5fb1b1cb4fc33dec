"""
Fatigue scoring from the latest biometric report and 14-day feedback baselines.

The score starts at a neutral 0.5 and moves with four independent signals:

- Sleep score: poor sleep (< 60) adds 0.15, excellent sleep (>= 85) removes
  0.10, anything in between adds 0.05.
- Resting heart rate above its personal baseline (mean + 1 SD) adds 0.15.
- Heart-rate variability below its personal baseline (mean - 1 SD) adds 0.25.
- Stress: high (>= 7) adds 0.20, moderate (>= 4) adds 0.10, low removes 0.05.

Baselines come from the HRV and resting-HR samples attached as feedback to
the last 14 days of workouts and need at least three samples. The result is
clamped to [0, 1]; higher means more recovery-constrained.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..domain import BiometricReport, WorkoutRecord, clamp

logger = logging.getLogger(__name__)

BASE_FATIGUE = 0.5
MIN_BASELINE_SAMPLES = 3


@dataclass
class SignalBaseline:
    """Personal baseline of one biometric signal."""
    mean: float
    std_deviation: float
    samples: int

    @property
    def lower_threshold(self) -> float:
        return self.mean - self.std_deviation

    @property
    def upper_threshold(self) -> float:
        return self.mean + self.std_deviation

    @classmethod
    def from_samples(cls, values: List[float]) -> Optional["SignalBaseline"]:
        if len(values) < MIN_BASELINE_SAMPLES:
            return None
        return cls(
            mean=float(np.mean(values)),
            std_deviation=float(np.std(values)),
            samples=len(values),
        )


@dataclass
class FatigueAssessment:
    """Fatigue score with the rationale lines that produced it."""
    score: float
    rules_applied: List[str] = field(default_factory=list)
    hrv_baseline: Optional[SignalBaseline] = None
    resting_hr_baseline: Optional[SignalBaseline] = None

    def baselines(self) -> Dict[str, Optional[Dict[str, float]]]:
        return {
            "hrv": self.hrv_baseline.__dict__ if self.hrv_baseline else None,
            "restingHR": self.resting_hr_baseline.__dict__ if self.resting_hr_baseline else None,
        }


class FatigueScorer:
    """Compute a bounded fatigue score from biometrics."""

    def __init__(self, base: float = BASE_FATIGUE):
        self.base = base

    def score(self, report: Optional[BiometricReport], last14: List[WorkoutRecord]) -> FatigueAssessment:
        """Score today's fatigue.

        Args:
            report: Latest biometric report, or None when the user has none
            last14: Workouts from the trailing 14 days (feedback baselines)

        Returns:
            FatigueAssessment with the clamped score and applied rules
        """
        assessment = FatigueAssessment(score=self.base)
        if report is None:
            return assessment

        hrv_samples = [w.feedback_hrv for w in last14 if w.feedback_hrv]
        rhr_samples = [w.feedback_resting_hr for w in last14 if w.feedback_resting_hr]
        assessment.hrv_baseline = SignalBaseline.from_samples(hrv_samples)
        assessment.resting_hr_baseline = SignalBaseline.from_samples(rhr_samples)

        fatigue = self.base
        fatigue += self._sleep_adjustment(report, assessment.rules_applied)
        fatigue += self._resting_hr_adjustment(report, assessment.resting_hr_baseline, assessment.rules_applied)
        fatigue += self._hrv_adjustment(report, assessment.hrv_baseline, assessment.rules_applied)
        fatigue += self._stress_adjustment(report, assessment.rules_applied)

        # Rounded so band thresholds (0.3/0.6/0.7/0.8) compare against exact sums
        assessment.score = clamp(round(fatigue, 4), 0.0, 1.0)
        logger.debug(f"Fatigue {assessment.score:.2f} from {len(assessment.rules_applied)} signals")
        return assessment

    @staticmethod
    def _sleep_adjustment(report: BiometricReport, rules: List[str]) -> float:
        sleep = report.sleep_score
        if sleep is None:
            return 0.0
        if sleep < 60:
            rules.append(f"Poor sleep ({sleep:g}%) → increase fatigue by 0.15")
            return 0.15
        if sleep >= 85:
            rules.append(f"Excellent sleep ({sleep:g}%) → reduce fatigue by 0.10")
            return -0.10
        rules.append(f"Moderate sleep ({sleep:g}%) → slight fatigue increase")
        return 0.05

    @staticmethod
    def _resting_hr_adjustment(report: BiometricReport, baseline: Optional[SignalBaseline],
                               rules: List[str]) -> float:
        if not report.resting_hr or baseline is None:
            return 0.0
        if report.resting_hr > baseline.upper_threshold:
            rules.append(
                f"Elevated resting HR ({report.resting_hr:g} vs baseline {round(baseline.mean)}) → increase fatigue"
            )
            return 0.15
        return 0.0

    @staticmethod
    def _hrv_adjustment(report: BiometricReport, baseline: Optional[SignalBaseline],
                        rules: List[str]) -> float:
        if not report.hrv or baseline is None:
            return 0.0
        if report.hrv < baseline.lower_threshold:
            rules.append(f"Low HRV ({report.hrv:g} vs baseline {round(baseline.mean)}) → increase fatigue by 0.25")
            return 0.25
        return 0.0

    @staticmethod
    def _stress_adjustment(report: BiometricReport, rules: List[str]) -> float:
        stress = report.stress
        if stress is None:
            return 0.0
        if stress >= 7:
            rules.append(f"High stress ({stress:g}/10) → increase fatigue by 0.20")
            return 0.20
        if stress >= 4:
            rules.append(f"Moderate stress ({stress:g}/10) → slight fatigue increase")
            return 0.10
        rules.append(f"Low stress ({stress:g}/10) → reduce fatigue by 0.05")
        return -0.05
