"""
Tests for the command-line interface.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from qa_framework.cli import create_main_parser, main


@pytest.fixture(autouse=True)
def sandbox_env(tmp_path, monkeypatch):
    """Point every configured directory into tmp_path."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "TEST_ENV", "NODE_ENV", "STAGING_URL", "BASE_URL", "WORKERS", "CI",
        "SLACK_WEBHOOK_URL", "SMTP_HOST", "NOTIFY_EMAIL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RESULTS_DIR", str(tmp_path / "test-results"))
    monkeypatch.setenv("TEST_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))
    return tmp_path


class TestParser:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "qa-framework" in capsys.readouterr().out

    def test_generate_data_arguments(self):
        args = create_main_parser().parse_args(
            ["generate-data", "order", "-n", "3", "-o", "orders.csv", "--format", "csv"]
        )

        assert args.kind == "order"
        assert args.count == 3
        assert args.output == "orders.csv"
        assert args.format == "csv"

    def test_unknown_kind_rejected(self):
        with pytest.raises(SystemExit):
            main(["generate-data", "invoice"])


class TestConfigCommand:

    def test_json_output(self, capsys):
        assert main(["--env", "staging", "config", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["environment"] == "staging"
        assert data["base_url"] == "https://staging.example.com"

    def test_validate(self, capsys):
        assert main(["config", "--validate"]) == 0
        assert "Configuration is valid" in capsys.readouterr().out

    def test_invalid_environment_variable(self, monkeypatch, capsys):
        monkeypatch.setenv("WORKERS", "lots")

        assert main(["config"]) == 1
        assert "WORKERS" in capsys.readouterr().out


class TestGenerateDataCommand:

    def test_prints_records(self, capsys):
        assert main(["generate-data", "user", "--count", "2", "--seed", "7"]) == 0

        users = json.loads(capsys.readouterr().out)
        assert len(users) == 2
        assert "@" in users[0]["email"]

    def test_seed_is_reproducible(self, capsys):
        main(["generate-data", "product", "--seed", "42"])
        first = capsys.readouterr().out
        main(["generate-data", "product", "--seed", "42"])

        assert capsys.readouterr().out == first

    def test_writes_file(self, sandbox_env):
        assert main(["generate-data", "order", "-n", "4", "-o", "orders.json"]) == 0

        orders = json.loads((sandbox_env / "data" / "orders.json").read_text())
        assert len(orders) == 4

    def test_data_dir_override(self, sandbox_env):
        target = sandbox_env / "elsewhere"

        assert main(["generate-data", "user", "-o", "u.csv", "--format", "csv", "--data-dir", str(target)]) == 0
        assert (target / "u.csv").exists()

    def test_invalid_count(self, capsys):
        assert main(["generate-data", "user", "--count", "0"]) == 1


class TestReportCommand:

    def test_without_results(self, sandbox_env, capsys):
        assert main(["report"]) == 0

        assert "No runner results" in capsys.readouterr().out
        assert (sandbox_env / "test-results" / "test-summary.json").exists()

    def test_with_results(self, sandbox_env, capsys):
        results_dir = sandbox_env / "test-results"
        results_dir.mkdir()
        (results_dir / "junit.xml").write_text(
            '<testsuite><testcase classname="c" name="test_a" time="1"/>'
            '<testcase classname="c" name="test_b"><failure message="boom"/></testcase>'
            "</testsuite>",
            encoding="utf-8",
        )

        assert main(["report"]) == 0
        assert "2 tests: 1 passed, 1 failed" in capsys.readouterr().out


class TestNotifyCommand:

    def test_without_summary(self, capsys):
        assert main(["notify"]) == 1
        assert "run 'qa-framework report' first" in capsys.readouterr().out

    def test_without_channels(self, capsys):
        main(["report"])

        assert main(["notify"]) == 1
        assert "No notification channel" in capsys.readouterr().out

    def test_delivered(self, monkeypatch, capsys):
        monkeypatch.setenv("SLACK_WEBHOOK_URL", "http://hooks.example.com/x")
        main(["report"])

        with patch("qa_framework.cli.Notifier") as notifier_class:
            notifier_class.return_value.notify = AsyncMock(return_value={"slack": True})
            assert main(["notify"]) == 0

        assert "✅ slack" in capsys.readouterr().out
