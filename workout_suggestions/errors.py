"""Exceptions raised by the suggestion and generation core."""

from typing import Dict, Optional


class SuggestionError(Exception):
    """Base class for errors raised by this package."""


class InvalidIdentity(SuggestionError, ValueError):
    """User id failed format validation."""

    def __init__(self, user_id: str):
        super().__init__("Invalid userId format: must be a valid UUID")
        self.user_id = user_id


class InsufficientContext(SuggestionError):
    """Not enough context to derive generator inputs or a seed."""


class GenerationFailure(SuggestionError):
    """Every permitted generation strategy failed."""

    def __init__(self, message: str, errors: Optional[Dict[str, BaseException]] = None):
        super().__init__(message)
        self.errors = errors or {}


class RateLimitExceeded(SuggestionError):
    """Too many generation attempts inside the rate-limit window."""

    def __init__(self, key: str, retry_after: float):
        super().__init__(f"Rate limit exceeded for {key}; retry in {retry_after:.0f}s")
        self.key = key
        self.retry_after = retry_after
