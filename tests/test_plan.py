"""
Tests for plan building and the confirm/modify loop.
"""

from unittest.mock import Mock

import pytest

from scia.analysis import Analysis, Strategy
from scia.llm import GenerationCancelled, GenerationResponse, ProviderError
from scia.log import null_logger
from scia.nlp import default_plan_config
from scia.plan import PlanState, build_deployment_plan, confirm_or_modify, extract_app_name, render_plan


ANALYSIS = Analysis(framework="flask", language="python", dependencies=("flask",), port=5000,
                    start_command="gunicorn app:app")


def plan_for(strategy):
    config = default_plan_config(strategy)
    return build_deployment_plan(strategy, config.region, "shop", ANALYSIS, config), config


def scripted(*answers):
    """Prompt stand-in returning ``answers`` in order."""
    return Mock(side_effect=list(answers))


def llm_manager(*texts, error=None):
    manager = Mock()
    if error is not None:
        manager.generate.side_effect = error
    else:
        manager.generate.side_effect = [GenerationResponse(text=t, model="test") for t in texts]
    return manager


class TestExtractAppName:
    """Test application naming."""

    def test_git_url(self):
        assert extract_app_name("https://github.com/org/my_app.git") == "my-app"

    def test_trailing_slash(self):
        assert extract_app_name("https://github.com/org/shop/") == "shop"

    def test_fallback(self):
        assert extract_app_name("") == "scia-app"
        assert extract_app_name(None) == "scia-app"
        assert extract_app_name("shop") == "scia-app"


class TestBuildDeploymentPlan:
    """Test per-strategy resource tables."""

    def test_vm_resources(self):
        plan, _ = plan_for(Strategy.VM)
        types = [r.type for r in plan.resources]
        assert types == ["VPC", "Security Group", "Auto Scaling Group", "EC2 Instance"]
        instance = plan.resources[-1]
        assert instance.parameters["Instance Type"] == "t3.micro"
        assert instance.parameters["Volume Size"] == "30 GB"
        assert plan.resources[1].parameters["Ingress Ports"] == "22 (SSH), 5000 (App)"

    def test_serverless_resources(self):
        plan, _ = plan_for(Strategy.SERVERLESS)
        function = plan.resources[1]
        assert function.type == "Lambda Function"
        assert function.parameters["Runtime"] == "python3.12"
        assert function.parameters["Memory"] == "512 MB"
        assert function.parameters["Reserved Concurrency"] == "Unreserved"

    def test_kubernetes_resources(self):
        plan, _ = plan_for(Strategy.KUBERNETES)
        assert len(plan.resources) == 5
        nodes = plan.resources[2]
        assert nodes.parameters["Desired Nodes"] == "2"
        assert nodes.parameters["Instance Type"] == "t3.medium"
        assert plan.resources[3].parameters["Container Image"] == "python:3.12-slim"

    def test_render(self):
        plan, _ = plan_for(Strategy.KUBERNETES)
        text = render_plan(plan)
        assert "Strategy:    kubernetes" in text
        assert "EKS Cluster *: shop-eks" in text
        assert "EKS clusters incur charges" in text

    def test_to_dict(self):
        plan, _ = plan_for(Strategy.VM)
        data = plan.to_dict()
        assert data["strategy"] == "vm"
        assert data["resources"][0]["type"] == "VPC"


class TestConfirmOrModify:
    """Test the confirmation state machine."""

    def test_auto_approve(self):
        plan, config = plan_for(Strategy.VM)
        prompt = scripted()
        result = confirm_or_modify(plan, ANALYSIS, config, auto_approve=True, prompt=prompt, echo=Mock())
        assert result.state == PlanState.CONFIRMED
        prompt.assert_not_called()

    def test_yes(self):
        plan, config = plan_for(Strategy.VM)
        result = confirm_or_modify(plan, ANALYSIS, config, prompt=scripted("y"), echo=Mock())
        assert result.confirmed
        assert result.plan is plan

    def test_no(self):
        plan, config = plan_for(Strategy.VM)
        result = confirm_or_modify(plan, ANALYSIS, config, prompt=scripted("NO"), echo=Mock())
        assert result.state == PlanState.REJECTED
        assert not result.confirmed

    def test_blank_input_reprompts(self):
        plan, config = plan_for(Strategy.VM)
        prompt = scripted("", "   ", "yes")
        result = confirm_or_modify(plan, ANALYSIS, config, prompt=prompt, echo=Mock())
        assert result.confirmed
        assert prompt.call_count == 3

    def test_modification_rebuilds_plan(self):
        plan, config = plan_for(Strategy.VM)
        manager = llm_manager('{"volume_size": 50, "ec2_instance_type": "t3.large"}')

        result = confirm_or_modify(plan, ANALYSIS, config, manager=manager,
                                   prompt=scripted("use t3.large with 50GB", "yes"),
                                   echo=Mock(), logger=null_logger())

        assert result.confirmed
        assert result.config.ec2_volume_size == 50
        assert result.config.ec2_instance_type == "t3.large"
        assert result.config.region == config.region
        assert result.plan.resources[-1].parameters["Instance Type"] == "t3.large"

    def test_strategy_change(self):
        plan, config = plan_for(Strategy.VM)
        manager = llm_manager('{"strategy": "kubernetes", "eks_desired_nodes": 4}')

        result = confirm_or_modify(plan, ANALYSIS, config, manager=manager,
                                   prompt=scripted("switch to eks with 4 nodes", "y"), echo=Mock())

        assert result.plan.strategy == Strategy.KUBERNETES
        assert result.plan.resources[2].parameters["Desired Nodes"] == "4"

    def test_failed_modification_reprompts(self):
        plan, config = plan_for(Strategy.VM)
        echo = Mock()
        manager = llm_manager(error=ProviderError("ollama", "down"))

        result = confirm_or_modify(plan, ANALYSIS, config, manager=manager,
                                   prompt=scripted("bigger please", "n"), echo=echo, logger=null_logger())

        assert result.state == PlanState.REJECTED
        assert result.config == config
        messages = [c.args[0] for c in echo.call_args_list if c.args]
        assert any("Could not understand modification" in m for m in messages)

    def test_without_manager_modification_is_reported(self):
        plan, config = plan_for(Strategy.VM)
        echo = Mock()
        result = confirm_or_modify(plan, ANALYSIS, config, prompt=scripted("more memory", "y"), echo=echo)
        assert result.confirmed
        messages = [c.args[0] for c in echo.call_args_list if c.args]
        assert any("Could not understand modification" in m for m in messages)

    def test_cancellation_propagates(self):
        plan, config = plan_for(Strategy.VM)
        with pytest.raises(GenerationCancelled):
            confirm_or_modify(plan, ANALYSIS, config, manager=llm_manager(error=GenerationCancelled()),
                              prompt=scripted("bigger"), echo=Mock())
