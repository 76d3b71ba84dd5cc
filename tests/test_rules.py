"""
Tests for the declarative rule engine.
"""

import pytest

from scia.analysis import Analysis, Strategy
from scia.rules import (
    DeploymentRule,
    DeploymentRules,
    RuleConditions,
    RulesError,
    evaluate_rules,
    load_rules,
    matches_conditions,
    sort_rules,
)
from scia.rules.engine import parse_rules


def make_analysis(**kw):
    base = dict(
        framework="flask",
        language="python",
        dependencies=("flask", "gunicorn"),
        port=5000,
        start_command="gunicorn app:app",
        has_dockerfile=False,
        has_docker_compose=False,
    )
    base.update(kw)
    return Analysis(**base)


def rule(name, priority, recommendation=Strategy.VM, **conditions):
    return DeploymentRule(
        name=name,
        priority=priority,
        recommendation=recommendation,
        reason=f"{name} reason",
        conditions=RuleConditions(**conditions),
    )


class TestSortRules:
    """Test priority ordering."""

    def test_descending_priority(self):
        rules = [rule("low", 10), rule("high", 100), rule("mid", 50)]
        assert [r.name for r in sort_rules(rules)] == ["high", "mid", "low"]

    def test_idempotent(self):
        rules = [rule("a", 5), rule("b", 70), rule("c", 70), rule("d", 1)]
        once = sort_rules(rules)
        assert sort_rules(once) == once

    def test_ties_keep_declaration_order(self):
        rules = [rule("first", 70), rule("second", 70)]
        assert [r.name for r in sort_rules(rules)] == ["first", "second"]


class TestMatchesConditions:
    """Test individual condition semantics."""

    def test_empty_conditions_always_match(self):
        assert matches_conditions(RuleConditions(), make_analysis())
        assert matches_conditions(RuleConditions(), Analysis())

    def test_is_empty(self):
        assert RuleConditions().is_empty()
        assert RuleConditions(framework=()).is_empty()
        assert not RuleConditions(language="go").is_empty()
        assert not RuleConditions(has_dockerfile=False).is_empty()

    def test_framework_is_case_insensitive(self):
        conditions = RuleConditions(framework=("Flask", "django"))
        assert matches_conditions(conditions, make_analysis(framework="flask"))
        assert not matches_conditions(conditions, make_analysis(framework="express"))

    def test_dependency_bounds_inclusive(self):
        conditions = RuleConditions(min_dependencies=2, max_dependencies=3)
        assert matches_conditions(conditions, make_analysis(dependencies=("a", "b")))
        assert matches_conditions(conditions, make_analysis(dependencies=("a", "b", "c")))
        assert not matches_conditions(conditions, make_analysis(dependencies=("a",)))
        assert not matches_conditions(conditions, make_analysis(dependencies=("a", "b", "c", "d")))

    def test_flags_none_means_dont_care(self):
        conditions = RuleConditions(has_dockerfile=None)
        assert matches_conditions(conditions, make_analysis(has_dockerfile=True))
        assert matches_conditions(conditions, make_analysis(has_dockerfile=False))

    def test_flag_must_equal(self):
        conditions = RuleConditions(has_docker_compose=True)
        assert matches_conditions(conditions, make_analysis(has_docker_compose=True))
        assert not matches_conditions(conditions, make_analysis(has_docker_compose=False))

    def test_language(self):
        conditions = RuleConditions(language="Python")
        assert matches_conditions(conditions, make_analysis(language="python"))
        assert not matches_conditions(conditions, make_analysis(language="javascript"))


class TestEvaluateRules:
    """Test first-match evaluation."""

    def test_none_rules_never_match(self):
        match, matched = evaluate_rules(None, make_analysis())
        assert match is None
        assert matched is False

    def test_higher_priority_wins(self):
        rules = DeploymentRules(version="1", rules=[
            rule("p50", 50, Strategy.VM),
            rule("p100", 100, Strategy.KUBERNETES),
        ])
        match, matched = evaluate_rules(rules, make_analysis())
        assert matched
        assert match.rule_name == "p100"
        assert match.strategy == Strategy.KUBERNETES
        assert match.reason == "p100 reason"

    def test_catch_all_matches_everything(self):
        rules = DeploymentRules(version="1", rules=[rule("catch_all", 0, Strategy.VM)])
        for analysis in (Analysis(), make_analysis(has_docker_compose=True), make_analysis(framework="rails")):
            match, matched = evaluate_rules(rules, analysis)
            assert matched
            assert match.rule_name == "catch_all"

    def test_no_match(self):
        rules = DeploymentRules(version="1", rules=[rule("rails", 70, framework=("rails",))])
        match, matched = evaluate_rules(rules, make_analysis())
        assert (match, matched) == (None, False)

    def test_instance_type_carried(self):
        r = DeploymentRule(name="django", priority=70, recommendation=Strategy.VM,
                           conditions=RuleConditions(framework=("django",)), instance_type="t3.small")
        match, _ = evaluate_rules(DeploymentRules(version="1", rules=[r]), make_analysis(framework="django"))
        assert match.instance_type == "t3.small"
        assert match.to_dict()["instance_type"] == "t3.small"


class TestDefaultRules:
    """Test the packaged rule set."""

    def test_loads_sorted(self):
        rules = load_rules()
        priorities = [r.priority for r in rules.rules]
        assert priorities == sorted(priorities, reverse=True)
        assert rules.rules[0].name == "multi_service_compose"

    def test_compose_goes_to_kubernetes(self):
        match, matched = evaluate_rules(load_rules(), make_analysis(has_docker_compose=True))
        assert matched
        assert match.strategy == Strategy.KUBERNETES

    def test_minimal_fastapi_goes_serverless(self):
        analysis = make_analysis(framework="fastapi", dependencies=("fastapi", "uvicorn"))
        match, matched = evaluate_rules(load_rules(), analysis)
        assert matched
        assert match.rule_name == "minimal_stateless_api"
        assert match.strategy == Strategy.SERVERLESS

    def test_unmatched_analysis_falls_through(self):
        analysis = make_analysis(framework="spring", language="java")
        assert evaluate_rules(load_rules(), analysis) == (None, False)

    def test_extra_maps(self):
        rules = load_rules()
        assert rules.instance_types["t3.micro"].vcpu == 2
        assert "flask" in rules.optimizations


class TestLoadRules:
    """Test rule file loading and validation."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(RulesError):
            load_rules(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [unclosed")
        with pytest.raises(RulesError):
            load_rules(path)

    def test_user_catch_all(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "version: '2'\n"
            "rules:\n"
            "  - name: default_vm\n"
            "    priority: 0\n"
            "    recommendation: vm\n"
            "    reason: Default\n"
            "  - name: compose\n"
            "    priority: 100\n"
            "    conditions:\n"
            "      has_docker_compose: true\n"
            "    recommendation: k8s\n"
        )
        rules = load_rules(path)
        assert rules.version == "2"
        assert [r.name for r in rules.rules] == ["compose", "default_vm"]
        assert rules.rules[0].recommendation == Strategy.KUBERNETES

        match, matched = evaluate_rules(rules, Analysis())
        assert matched and match.rule_name == "default_vm"

    def test_unknown_recommendation(self):
        with pytest.raises(RulesError, match="unknown recommendation"):
            parse_rules({"rules": [{"name": "x", "recommendation": "mainframe"}]})

    def test_rules_must_be_list(self):
        with pytest.raises(RulesError):
            parse_rules({"rules": {"name": "x"}})

    def test_non_boolean_flag(self):
        with pytest.raises(RulesError):
            parse_rules({"rules": [{"name": "x", "recommendation": "vm",
                                    "conditions": {"has_dockerfile": "maybe"}}]})
