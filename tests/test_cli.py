"""CLI tests through click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from logshift import __version__, driver
from logshift.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def in_project(go_project, monkeypatch):
    monkeypatch.chdir(go_project)
    return go_project


class TestRewriteCommand:
    def test_inplace(self, runner, in_project):
        result = runner.invoke(cli, ["rewrite", "--inplace", "."])

        assert result.exit_code == 0, result.output
        text = (in_project / "handler" / "handler.go").read_text()
        assert 'logger.Info().Str("id", id).Int("n", n).Msg("handled")' in text
        assert result.stdout == ""

    def test_default_prints_source(self, runner, in_project):
        before = (in_project / "handler" / "handler.go").read_text()

        result = runner.invoke(cli, ["rewrite", "./..."])

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("package handler\n")
        assert '"github.com/rs/zerolog"' in result.stdout
        assert (in_project / "handler" / "handler.go").read_text() == before

    def test_diff(self, runner, in_project):
        result = runner.invoke(cli, ["rewrite", "--diff", "handler"])

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("--- a/handler/handler.go")

    def test_no_go_files(self, runner, tmp_path, monkeypatch):
        empty = tmp_path / "empty"
        empty.mkdir()
        monkeypatch.chdir(empty)

        result = runner.invoke(cli, ["rewrite", "."])

        assert result.exit_code == 3

    def test_failed_file_sets_exit_code(self, runner, in_project):
        (in_project / "handler" / "broken.go").write_text("package handler\n\nfunc (\n")

        result = runner.invoke(cli, ["rewrite", "--inplace", "."])

        assert result.exit_code == 1
        assert "logger.Info()" in (in_project / "handler" / "handler.go").read_text()

    def test_missing_config_file(self, runner, in_project):
        result = runner.invoke(cli, ["rewrite", "--config", "absent.json", "."])

        assert result.exit_code != 0
        assert "absent.json" in result.output
        assert "ConfigError" in result.output
        assert (in_project / ".logshift" / "error.log").exists()


class TestScanCommand:
    def test_json(self, runner, in_project):
        result = runner.invoke(cli, ["scan", "--json", "."])

        assert result.exit_code == 0, result.output
        sites = json.loads(result.stdout)
        assert len(sites) == 1
        assert sites[0]["file"] == "handler/handler.go"
        assert sites[0]["level"] == "Info"
        assert sites[0]["kinds"] == ["String", "Int"]

    def test_table(self, runner, in_project):
        result = runner.invoke(cli, ["scan", "."])

        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert "Handle" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_gofmt_timeout_from_environment(runner, in_project, monkeypatch):
    seen = []

    def fake_gofmt(text, timeout):
        seen.append(timeout)
        return text

    monkeypatch.setattr(driver, "format_with_gofmt", fake_gofmt)
    monkeypatch.setenv("LOGSHIFT_DRIVER_GOFMT_TIMEOUT", "7")

    result = runner.invoke(cli, ["rewrite", "--gofmt", "--dry-run", "."])

    assert result.exit_code == 0, result.output
    assert seen == [7]
