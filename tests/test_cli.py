"""Tests for the leadqual command-line interface."""

import json

import pytest
from click.testing import CliRunner

from lead_qualifier.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def leads_file(temp_dir, strong_lead):
    path = temp_dir / "leads.json"
    path.write_text(json.dumps([
        strong_lead,
        {"id": "warm", "email": "warm@example.com"},
        {"id": "dnc", "do_not_contact": True},
    ]))
    return path


class TestScoreCommand:
    def test_table_output(self, runner, leads_file, config_path):
        result = runner.invoke(cli, ["score", str(leads_file), "--config", str(config_path)])
        assert result.exit_code == 0
        assert "Scored Leads (3)" in result.output
        assert "warm" in result.output

    def test_json_output(self, runner, leads_file, config_path):
        result = runner.invoke(cli, ["score", str(leads_file), "--json", "--config", str(config_path)])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        stages = {item["record"]["lead_id"]: item["stage"] for item in payload}
        assert stages["warm"] == "qualified"
        assert stages["dnc"] == "new"

    def test_missing_file(self, runner):
        result = runner.invoke(cli, ["score", "does-not-exist.json"])
        assert result.exit_code != 0


class TestExplainCommand:
    def test_explain(self, runner, leads_file, config_path):
        result = runner.invoke(cli, ["explain", str(leads_file), "dnc", "--config", str(config_path)])
        assert result.exit_code == 0
        assert "do_not_contact" in result.output
        assert "Conversion probability" in result.output
        assert "Lead #dnc" in result.output

    def test_explain_titles_with_name(self, runner, leads_file, config_path):
        result = runner.invoke(cli, ["explain", str(leads_file), "lead-strong", "--config", str(config_path)])
        assert result.exit_code == 0
        assert "Dana Whitfield" in result.output

    def test_unknown_lead(self, runner, leads_file, config_path):
        result = runner.invoke(cli, ["explain", str(leads_file), "nobody", "--config", str(config_path)])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestBenchmarksCommand:
    def test_benchmarks(self, runner, leads_file, config_path):
        result = runner.invoke(cli, ["benchmarks", str(leads_file), "--config", str(config_path)])
        assert result.exit_code == 0
        assert "Benchmarks" in result.output
        assert "Stage Funnel" in result.output


class TestConfigCommands:
    def test_show_defaults(self, runner, config_path):
        result = runner.invoke(cli, ["config", "show", "--config", str(config_path)])
        assert result.exit_code == 0
        assert "behavioral" in result.output
        assert "Qualification Stages" in result.output

    def test_set_weights(self, runner, config_path):
        result = runner.invoke(cli, [
            "config", "set-weights", "--demographic", "0.3", "--behavioral", "0.3",
            "--config", str(config_path),
        ])
        assert result.exit_code == 0
        stored = json.loads(config_path.read_text())
        assert stored["weights"]["demographic"] == 0.3
        assert stored["version"] == 1

    def test_set_weights_rejected(self, runner, config_path):
        result = runner.invoke(cli, [
            "config", "set-weights", "--demographic", "0.9", "--config", str(config_path),
        ])
        assert result.exit_code == 1
        assert "Rejected" in result.output
        assert not config_path.exists()

    def test_add_rule(self, runner, config_path):
        result = runner.invoke(cli, [
            "config", "add-rule", "source", "type", "trade-show", "9", "--config", str(config_path),
        ])
        assert result.exit_code == 0
        stored = json.loads(config_path.read_text())
        assert stored["custom_rules"][0]["value"] == "trade-show"

        shown = runner.invoke(cli, ["config", "show", "--config", str(config_path)])
        assert "Custom Rules" in shown.output

    def test_add_rule_bad_category(self, runner, config_path):
        result = runner.invoke(cli, [
            "config", "add-rule", "loyalty", "tier", "gold", "5", "--config", str(config_path),
        ])
        assert result.exit_code != 0
