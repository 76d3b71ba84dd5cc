"""
Tests for the click CLI.
"""

import json
import os
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from scia.cli import main
from scia.llm import GenerationResponse, ModelInfo, NoProvidersAvailable


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    for name in list(os.environ):
        if name.startswith("SCIA_"):
            monkeypatch.delenv(name)
    with patch("scia.settings.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml"):
        yield


@pytest.fixture
def runner():
    return CliRunner()


def write_analysis(tmp_path, **overrides):
    data = {
        "framework": "flask",
        "language": "python",
        "dependencies": ["flask", "gunicorn"],
        "port": 5000,
        "start_command": "gunicorn app:app",
        "has_dockerfile": False,
        "has_docker_compose": False,
    }
    data.update(overrides)
    path = tmp_path / "analysis.json"
    path.write_text(json.dumps(data))
    return str(path)


def fake_manager(*texts):
    manager = Mock()
    manager.generate.side_effect = [GenerationResponse(text=t, model="test") for t in texts]
    manager.names = ["ollama"]
    return manager


class TestDecideCommand:
    """Test strategy decisions from the command line."""

    def test_rule_decision(self, runner, tmp_path):
        analysis = write_analysis(tmp_path, has_docker_compose=True)
        result = runner.invoke(main, ["decide", "deploy my app", "--analysis", analysis, "--no-llm"])
        assert result.exit_code == 0, result.output
        assert "Strategy: kubernetes" in result.output
        assert "multi_service_compose" in result.output

    def test_json_output(self, runner, tmp_path):
        analysis = write_analysis(tmp_path, framework="spring", language="java")
        result = runner.invoke(main, ["decide", "deploy", "--analysis", analysis, "--no-llm", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["strategy"] == "vm"
        assert data["tier"] == "heuristic"
        assert isinstance(data["suggestions"], list)

    def test_user_strategy_wins(self, runner, tmp_path):
        analysis = write_analysis(tmp_path, has_docker_compose=True)
        result = runner.invoke(main, ["decide", "deploy on lambda", "--analysis", analysis, "--no-llm", "--json"])
        data = json.loads(result.output)
        assert data["strategy"] == "serverless"
        assert data["tier"] == "user"
        assert any("docker-compose" in w for w in data["warnings"])

    def test_forced_strategy_skips_rules(self, runner, tmp_path):
        analysis = write_analysis(tmp_path, has_docker_compose=True)
        result = runner.invoke(main, ["decide", "deploy", "--analysis", analysis, "--strategy", "vm",
                                      "--no-llm", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["strategy"] == "vm"
        assert data["tier"] == "user"

    def test_forced_strategy_rejects_unknown(self, runner, tmp_path):
        analysis = write_analysis(tmp_path)
        result = runner.invoke(main, ["decide", "deploy", "--analysis", analysis, "--strategy", "mainframe",
                                      "--no-llm"])
        assert result.exit_code == 2

    def test_yaml_analysis(self, runner, tmp_path):

        path = tmp_path / "analysis.yaml"
        path.write_text("framework: django\nlanguage: python\ndependencies: [django]\nport: 8000\n")
        result = runner.invoke(main, ["decide", "deploy", "--analysis", str(path), "--no-llm", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["instance_type"] == "t3.small"

    def test_llm_decision(self, runner, tmp_path):
        analysis = write_analysis(tmp_path, framework="spring", language="java")
        manager = fake_manager("{}", "STRATEGY: kubernetes\nREASON: many services")
        with patch("scia.cli.ProviderManager.from_config", return_value=manager):
            result = runner.invoke(main, ["decide", "deploy", "--analysis", analysis, "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["tier"] == "llm"
        assert data["reason"] == "many services"

    def test_no_providers(self, runner, tmp_path):
        analysis = write_analysis(tmp_path)
        with patch("scia.cli.ProviderManager.from_config", side_effect=NoProvidersAvailable()):
            result = runner.invoke(main, ["decide", "deploy", "--analysis", analysis])
        assert result.exit_code == 1
        assert "❌" in result.output
        assert "--no-llm" in result.output

    def test_bad_rules_file(self, runner, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("rules: nope\n")
        analysis = write_analysis(tmp_path)
        result = runner.invoke(main, ["--rules", str(rules), "decide", "deploy", "--analysis", analysis, "--no-llm"])
        assert result.exit_code == 1
        assert "Failed to load rules" in result.output

    def test_invalid_settings_exit_2(self, runner, tmp_path):
        config = tmp_path / "scia.yaml"
        config.write_text("llm:\n  provider: watson\n")
        analysis = write_analysis(tmp_path)
        result = runner.invoke(main, ["--config", str(config), "decide", "deploy", "--analysis", analysis])
        assert result.exit_code == 2
        assert "watson" in result.output


class TestParseCommand:
    """Test configuration extraction from the command line."""

    def test_offline(self, runner):
        result = runner.invoke(main, ["parse", "EKS with 3 nodes in us-east-1", "--no-llm", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["config"]["strategy"] == "kubernetes"
        assert data["config"]["eks_desired_nodes"] == 3
        assert data["config"]["region"] == "us-east-1"

    def test_nothing_found(self, runner):
        result = runner.invoke(main, ["parse", "please deploy", "--no-llm"])
        assert result.exit_code == 0
        assert "No deployment parameters found" in result.output

    def test_with_llm(self, runner):
        manager = fake_manager('{"lambda_memory": 1024}')
        with patch("scia.cli.ProviderManager.from_config", return_value=manager):
            result = runner.invoke(main, ["parse", "lambda with 1GB"])
        assert result.exit_code == 0, result.output
        assert "lambda_memory: 1024" in result.output


class TestPlanCommand:
    """Test the full planning flow."""

    def test_auto_confirm(self, runner, tmp_path):
        analysis = write_analysis(tmp_path)
        result = runner.invoke(main, ["plan", "deploy with 50 GB volume", "--analysis", analysis,
                                      "--repo", "https://github.com/org/my_shop.git", "--no-llm", "--yes"])
        assert result.exit_code == 0, result.output
        assert "my-shop" in result.output
        assert "Volume Size: 50 GB" in result.output
        assert "Plan confirmed: vm in eu-west-3" in result.output

    def test_forced_strategy(self, runner, tmp_path):
        analysis = write_analysis(tmp_path)
        result = runner.invoke(main, ["plan", "deploy", "--analysis", analysis, "--strategy", "serverless",
                                      "--no-llm", "--yes"])
        assert result.exit_code == 0, result.output
        assert "Lambda Function" in result.output
        assert "Plan confirmed: serverless" in result.output

    def test_reject(self, runner, tmp_path):

        analysis = write_analysis(tmp_path)
        result = runner.invoke(main, ["plan", "deploy", "--analysis", analysis, "--no-llm"], input="n\n")
        assert result.exit_code == 1
        assert "cancelled" in result.output

    def test_modify_then_confirm(self, runner, tmp_path):
        analysis = write_analysis(tmp_path)
        manager = fake_manager("{}", '{"ec2_instance_type": "t3.large"}')
        with patch("scia.cli.ProviderManager.from_config", return_value=manager):
            result = runner.invoke(main, ["plan", "deploy", "--analysis", analysis],
                                   input="use t3.large\ny\n")
        assert result.exit_code == 0, result.output
        assert "Plan updated" in result.output
        assert "Instance Type: t3.large" in result.output


class TestInfoCommands:
    """Test rules and models listings."""

    def test_rules(self, runner):
        result = runner.invoke(main, ["rules"])
        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if "->" in line]
        assert "multi_service_compose" in lines[0]

    def test_rules_json(self, runner):
        result = runner.invoke(main, ["rules", "--json"])
        data = json.loads(result.output)
        assert data["rules"][0]["priority"] == 100

    def test_models(self, runner):
        manager = fake_manager()
        manager.list_all_models.return_value = [ModelInfo(name="qwen2.5-coder:7b", provider="ollama",
                                                          size="7b", type="code")]
        with patch("scia.cli.ProviderManager.from_config", return_value=manager):
            result = runner.invoke(main, ["models"])
        assert result.exit_code == 0, result.output
        assert "ollama: qwen2.5-coder:7b [7b, code]" in result.output
