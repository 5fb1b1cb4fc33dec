"""Tests for the remote generator client and error reporters."""

import logging

import pytest
import requests

from workout_suggestions.generation.http_client import HttpGenerationService
from workout_suggestions.generation.reporting import LoggingErrorReporter


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        return self.response


class TestHttpGenerationService:
    """Test the primary generator client."""

    def test_posts_seed_with_timeout(self):
        session = FakeSession(FakeResponse({"name": "Remote", "blocks": [{"key": "main"}]}))
        client = HttpGenerationService("http://generator:8787/", session=session)

        result = client({"inputs": {"minutes": 30}}, {"timeout": 3, "seed": "abc"})

        url, body, timeout = session.posts[0]
        assert url == "http://generator:8787/generate"
        assert body == {"seed": {"inputs": {"minutes": 30}}, "options": {"seed": "abc"}}
        assert timeout == 3
        assert result["name"] == "Remote"

    def test_unwraps_workout_key(self):
        session = FakeSession(FakeResponse({"workout": {"name": "Wrapped"}, "ok": True}))

        result = HttpGenerationService("http://generator", session=session).generate({}, {})

        assert result == {"name": "Wrapped"}

    def test_http_error_raises(self):
        session = FakeSession(FakeResponse({}, status=502))

        with pytest.raises(requests.HTTPError):
            HttpGenerationService("http://generator", session=session).generate({}, {})

    def test_non_object_response_raises(self):
        session = FakeSession(FakeResponse(["not", "an", "object"]))

        with pytest.raises(ValueError):
            HttpGenerationService("http://generator", session=session).generate({}, {})


def test_logging_reporter(caplog):
    with caplog.at_level(logging.WARNING, logger="workout_suggestions.generation.reporting"):
        LoggingErrorReporter().capture(RuntimeError("boom"), {"gen": "v0.3.0", "fallback": "v0.2.5"})

    assert "RuntimeError: boom" in caplog.text
    assert "fallback=v0.2.5" in caplog.text
