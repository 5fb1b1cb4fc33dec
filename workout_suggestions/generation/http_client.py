"""Client for the remote structured-workout generator."""

import logging
from typing import Any, Dict, Optional

import requests

from ..config import config

logger = logging.getLogger(__name__)


class HttpGenerationService:
    """Call a remote generator over HTTP.

    Any transport error, timeout or non-2xx response raises, which the
    orchestrator treats as a generation failure.
    """

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or config.GENERATOR_URL).rstrip("/")
        self.session = session or requests.Session()

    def __call__(self, seed: Any, options: Dict[str, Any]) -> Dict[str, Any]:
        return self.generate(seed, options)

    def generate(self, seed: Any, options: Dict[str, Any]) -> Dict[str, Any]:
        """POST the seed and options to {base_url}/generate."""
        options = dict(options)
        timeout = options.pop("timeout", config.GENERATOR_TIMEOUT_SECONDS)

        response = self.session.post(
            f"{self.base_url}/generate",
            json={"seed": seed, "options": options},
            timeout=timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected generator response: {type(payload).__name__}")
        if isinstance(payload.get("workout"), dict):
            payload = payload["workout"]

        logger.debug(f"Remote generator returned {len(payload.get('blocks') or [])} blocks")
        return payload
