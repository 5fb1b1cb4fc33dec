"""Generation module: seeding, fallback orchestration and strategies."""

from .seed import SeedParts, derive_seed, hash_user_id, seed_for
from .orchestrator import GenerationStrategy, GeneratorOrchestrator, legacy_envelope
from .reporting import ErrorReporter, LoggingErrorReporter, SentryErrorReporter, init_error_tracking
from .http_client import HttpGenerationService
from .deterministic import DeterministicGenerator

__all__ = [
    "SeedParts",
    "derive_seed",
    "hash_user_id",
    "seed_for",
    "GenerationStrategy",
    "GeneratorOrchestrator",
    "legacy_envelope",
    "ErrorReporter",
    "LoggingErrorReporter",
    "SentryErrorReporter",
    "init_error_tracking",
    "HttpGenerationService",
    "DeterministicGenerator",
]
