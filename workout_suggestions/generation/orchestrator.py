"""Workout generation with an ordered primary → fallback strategy list."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..config import config
from ..errors import GenerationFailure
from .reporting import ErrorReporter, LoggingErrorReporter

logger = logging.getLogger(__name__)

SeedAdapter = Callable[[Any, str], Any]
Invoke = Callable[[Any, Dict[str, Any]], Dict[str, Any]]


def pass_through(seed: Any, version: str) -> Any:
    """Primary strategies receive the seed exactly as given."""
    return seed


def legacy_envelope(seed: Any, version: str) -> Dict[str, Any]:
    """Shape a seed for legacy generators: an {"inputs": ...} envelope tagged with the version."""
    if isinstance(seed, dict) and "inputs" in seed:
        shaped = dict(seed)
    else:
        shaped = {"inputs": seed}
    shaped["generatorVersion"] = version
    return shaped


@dataclass
class GenerationStrategy:
    """One generator version and how to call it."""
    version: str
    invoke: Invoke
    adapt: SeedAdapter = pass_through


class GeneratorOrchestrator:
    """Try strategies in order until one succeeds.

    The first strategy is the primary. Any exception it raises (including a
    timeout) hands off to the next strategy when fallback is allowed; when it
    is not, the original exception propagates unchanged. Strategies are never
    retried.
    """

    def __init__(
        self,
        strategies: List[GenerationStrategy],
        allow_fallback: Optional[bool] = None,
        reporter: Optional[ErrorReporter] = None,
        timeout: Optional[float] = None,
    ):
        if not strategies:
            raise ValueError("At least one generation strategy is required")
        self.strategies = list(strategies)
        self.allow_fallback = config.GENERATOR_ALLOW_FALLBACK if allow_fallback is None else allow_fallback
        self.reporter = reporter or LoggingErrorReporter()
        self.timeout = timeout or config.GENERATOR_TIMEOUT_SECONDS

    @classmethod
    def from_config(cls, primary: Invoke, legacy: Invoke, reporter: Optional[ErrorReporter] = None,
                    allow_fallback: Optional[bool] = None) -> "GeneratorOrchestrator":
        """Primary/legacy pair using the configured versions."""
        return cls(
            [
                GenerationStrategy(config.GENERATOR_VERSION_DEFAULT, primary),
                GenerationStrategy(config.GENERATOR_FALLBACK, legacy, legacy_envelope),
            ],
            allow_fallback=allow_fallback,
            reporter=reporter,
        )

    @property
    def primary_version(self) -> str:
        return self.strategies[0].version

    def generate_with_fallback(self, seed: Any, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Generate a workout, annotating the result with meta.usedVersion and meta.fallback."""
        options = dict(options or {})
        options.setdefault("timeout", self.timeout)
        errors: Dict[str, BaseException] = {}

        for index, strategy in enumerate(self.strategies):
            try:
                result = strategy.invoke(strategy.adapt(seed, strategy.version), options)
                if not isinstance(result, dict):
                    raise TypeError(f"Generator {strategy.version} returned {type(result).__name__}, expected dict")
            except Exception as e:
                errors[strategy.version] = e
                if not self.allow_fallback:
                    raise

                next_strategy = self.strategies[index + 1] if index + 1 < len(self.strategies) else None
                if next_strategy is None:
                    break

                logger.warning(
                    f"Generator {strategy.version} failed ({type(e).__name__}: {e}); "
                    f"falling back to {next_strategy.version}"
                )
                try:
                    self.reporter.capture(e, {
                        "gen": strategy.version,
                        "attempted": strategy.version,
                        "fallback": next_strategy.version,
                    })
                except Exception as report_error:
                    logger.error(f"Error reporter failed: {report_error}")
                continue

            return self._annotate(result, strategy.version, fallback=index > 0)

        logger.error(f"All generators failed: {', '.join(errors)}")
        last_error = list(errors.values())[-1] if errors else None
        raise GenerationFailure("Workout generation failed for every generator version", errors) from last_error

    @staticmethod
    def _annotate(result: Dict[str, Any], version: str, fallback: bool) -> Dict[str, Any]:
        annotated = dict(result)
        meta = dict(annotated.get("meta") or {})
        meta["usedVersion"] = version
        meta["fallback"] = fallback
        annotated["meta"] = meta
        return annotated
