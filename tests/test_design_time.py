# =============================================================================
# tests/test_design_time.py - Design-Time Factory Tests
# =============================================================================
# AppDbContextFactory rebuilds configuration from the working directory and
# returns a context without any running host.
# =============================================================================

import json
from unittest.mock import MagicMock

import pytest
from sqlalchemy.engine import Engine

from app.exceptions import ConnectionStringNotFoundError, SettingsFileNotFoundError
from lib.database import AppDbContext
from lib.design_time import AppDbContextFactory, close_db_context, main

CONNECTION_STRING = "Host=db;Database=app;Username=app;Password=secret"


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Working directory holding appsettings.json."""
    _write(tmp_path / "appsettings.json", {"ConnectionStrings": {"AppDbContext": CONNECTION_STRING}})
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestCreateDbContext:
    """Context creation for migration tooling."""

    def test_returns_bound_context(self, workdir):
        with AppDbContextFactory().create_db_context([]) as db:
            assert isinstance(db, AppDbContext)
            assert db.connection_string == CONNECTION_STRING
            assert db.get_bind().url.database == "app"

    def test_arguments_ignored(self, workdir):
        with AppDbContextFactory().create_db_context(["--verbose", "migrate"]) as db:
            assert db.connection_string == CONNECTION_STRING

    def test_development_overlay_applies_by_default(self, workdir):
        _write(workdir / "appsettings.development.json", {
            "ConnectionStrings": {"AppDbContext": "Host=devdb;Database=dev"},
        })

        with AppDbContextFactory().create_db_context([]) as db:
            assert db.connection_string == "Host=devdb;Database=dev"

    def test_environment_selects_overlay(self, workdir, monkeypatch):
        _write(workdir / "appsettings.staging.json", {
            "ConnectionStrings": {"AppDbContext": "Host=stagingdb;Database=app"},
        })
        monkeypatch.setenv("ENVIRONMENT", "staging")

        with AppDbContextFactory().create_db_context([]) as db:
            assert db.connection_string == "Host=stagingdb;Database=app"

    def test_environment_variable_wins(self, workdir, monkeypatch):
        _write(workdir / "appsettings.development.json", {
            "ConnectionStrings": {"AppDbContext": "Host=devdb;Database=dev"},
        })
        monkeypatch.setenv("ConnectionStrings__AppDbContext", "postgresql://env:pw@envdb/app")

        with AppDbContextFactory().create_db_context([]) as db:
            assert db.connection_string == "postgresql://env:pw@envdb/app"

    def test_explicit_base_path(self, tmp_path):
        _write(tmp_path / "appsettings.json", {"ConnectionStrings": {"AppDbContext": CONNECTION_STRING}})

        with AppDbContextFactory(base_path=tmp_path).create_db_context() as db:
            assert db.connection_string == CONNECTION_STRING


class TestClose:
    """Design-time contexts own their engine."""

    def test_close_disposes_engine(self, workdir, monkeypatch):
        dispose = MagicMock()
        monkeypatch.setattr(Engine, "dispose", dispose)
        db = AppDbContextFactory().create_db_context([])

        close_db_context(db)

        dispose.assert_called_once()

    def test_command_line_disposes_engine(self, workdir, monkeypatch, capsys):
        dispose = MagicMock()
        monkeypatch.setattr(Engine, "dispose", dispose)

        assert main([]) == 0

        dispose.assert_called_once()


class TestFailures:
    """Missing configuration fails fast."""

    def test_missing_settings_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(SettingsFileNotFoundError):
            AppDbContextFactory().create_db_context([])

    def test_missing_connection_string(self, tmp_path, monkeypatch):
        _write(tmp_path / "appsettings.json", {"ConnectionStrings": {}})
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConnectionStringNotFoundError, match="'AppDbContext' not found"):
            AppDbContextFactory().create_db_context([])


class TestCommandLine:
    """python -m lib.design_time"""

    def test_prints_masked_url(self, workdir, capsys):
        assert main([]) == 0

        out = capsys.readouterr().out
        assert "postgresql+psycopg2://app:***@db/app" in out
        assert "secret" not in out
