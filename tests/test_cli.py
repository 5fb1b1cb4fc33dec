"""Tests for the command-line interface."""

from datetime import date

from click.testing import CliRunner

from workout_suggestions import service as service_module
from workout_suggestions.analysis.suggestion import SuggestionComposer
from workout_suggestions.cli import cli
from workout_suggestions.db import SqlBiometricStore, SqlHistoryStore, SqlSuggestionStore
from workout_suggestions.generation import DeterministicGenerator, GenerationStrategy, GeneratorOrchestrator
from workout_suggestions.generation.seed import seed_for

from conftest import USER_ID, RecordingReporter


class TestCli:
    """Test commands against an in-memory database."""

    def setup_method(self):
        self.runner = CliRunner()

    def use_database(self, monkeypatch, db):
        orchestrator = GeneratorOrchestrator([GenerationStrategy("v0.2.5", DeterministicGenerator())],
                                             allow_fallback=True, reporter=RecordingReporter())
        service = service_module.SuggestionService(
            SuggestionComposer(SqlHistoryStore(db), SqlBiometricStore(db)),
            orchestrator,
            SqlSuggestionStore(db),
        )
        monkeypatch.setattr(service_module, "build_service", lambda *args, **kwargs: service)
        return service

    def test_seed(self):
        result = self.runner.invoke(cli, ["seed", USER_ID, "--date", "2024-03-15", "--focus", "HIIT", "--nonce", "2"])

        assert result.exit_code == 0
        assert seed_for(USER_ID, "2024-03-15", "HIIT", 2) in result.output

    def test_seed_rejects_separator_in_focus(self):
        result = self.runner.invoke(cli, ["seed", USER_ID, "--date", "2024-03-15", "--focus", "HIIT:1"])

        assert result.exit_code == 2
        assert "--focus" in result.output

    def test_today(self, monkeypatch, db):
        self.use_database(monkeypatch, db)

        result = self.runner.invoke(cli, ["today", USER_ID, "--date", "2024-03-15"])

        assert result.exit_code == 0
        assert "HIIT" in result.output

    def test_today_invalid_user(self, monkeypatch, db):
        self.use_database(monkeypatch, db)

        result = self.runner.invoke(cli, ["today", "nope", "--date", "2024-03-15"])

        assert result.exit_code == 2

    def test_generate_without_suggestion(self, monkeypatch, db):
        self.use_database(monkeypatch, db)

        result = self.runner.invoke(cli, ["generate", USER_ID, "--date", "2024-03-15"])

        assert result.exit_code == 0
        assert "No suggestion available" in result.output

    def test_generate_start(self, monkeypatch, db):
        service = self.use_database(monkeypatch, db)

        result = self.runner.invoke(cli, ["generate", USER_ID, "--date", "2024-03-15", "--start"])

        assert result.exit_code == 0
        assert "Generated Workout" in result.output
        assert service.store.get_suggestion(USER_ID, date(2024, 3, 15)).workout_id is not None

    def test_bad_date(self):
        result = self.runner.invoke(cli, ["seed", USER_ID, "--date", "15/03/2024"])

        assert result.exit_code != 0
