"""
Rule engine: the fast, zero-inference tier of strategy resolution.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from scia.analysis import Analysis, Strategy
from .schema import (
    DeploymentRule,
    DeploymentRules,
    FrameworkOptimization,
    InstanceTypeInfo,
    RuleConditions,
    RuleMatch,
)

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).with_name("default_rules.yaml")


class RulesError(ValueError):
    """Raised when a rule file cannot be read or is malformed."""


def load_rules(config_path: Union[str, Path, None] = None) -> DeploymentRules:
    """
    Load deployment rules from a YAML file.

    Args:
        config_path: Path to the rule file; the packaged defaults when omitted

    Returns:
        DeploymentRules sorted by descending priority

    Raises:
        RulesError: If the file is missing or malformed
    """
    path = Path(config_path) if config_path else DEFAULT_RULES_PATH
    try:
        text = path.read_text()
    except OSError as e:
        raise RulesError(f"failed to read rules file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RulesError(f"failed to parse rules YAML {path}: {e}") from e

    rules = parse_rules(data, source=str(path))
    logger.debug(f"Loaded {len(rules.rules)} rules (version {rules.version}) from {path}")
    return rules


def parse_rules(data: Any, source: str = "<rules>") -> DeploymentRules:
    """Build DeploymentRules from an already-decoded document."""
    if not isinstance(data, dict):
        raise RulesError(f"{source}: expected a mapping at top level")

    raw_rules = data.get("rules")
    if not isinstance(raw_rules, list):
        raise RulesError(f"{source}: 'rules' must be a list")

    rules = [_parse_rule(raw, i, source) for i, raw in enumerate(raw_rules)]

    return DeploymentRules(
        version=str(data.get("version", "")),
        rules=sort_rules(rules),
        instance_types=_parse_instance_types(data.get("instance_types") or {}, source),
        optimizations=_parse_optimizations(data.get("optimizations") or {}, source),
    )


def sort_rules(rules: Iterable[DeploymentRule]) -> List[DeploymentRule]:
    """Sort rules by priority, highest first; ties keep declaration order."""
    return sorted(rules, key=lambda rule: -rule.priority)


def evaluate_rules(rules: Optional[DeploymentRules], analysis: Analysis) -> Tuple[Optional[RuleMatch], bool]:
    """
    Evaluate rules against an analysis.

    Args:
        rules: Rule set (may be None)
        analysis: Application analysis

    Returns:
        Tuple of (match, matched); match is None when nothing applies
    """
    if rules is None:
        return None, False

    for rule in sort_rules(rules.rules):
        if matches_conditions(rule.conditions, analysis):
            kind = "catch-all rule" if rule.conditions.is_empty() else "Rule"
            logger.debug(f"{kind} '{rule.name}' (priority {rule.priority}) matched")
            return RuleMatch(
                strategy=rule.recommendation,
                reason=rule.reason,
                rule_name=rule.name,
                instance_type=rule.instance_type,
            ), True

    return None, False


def matches_conditions(conditions: RuleConditions, analysis: Analysis) -> bool:
    """Check if every specified condition holds for the analysis."""
    if conditions.is_empty():
        return True
    return (
        _matches_framework(conditions, analysis)
        and _matches_language(conditions, analysis)
        and _matches_dependencies(conditions, analysis)
        and _matches_flag(conditions.has_dockerfile, analysis.has_dockerfile)
        and _matches_flag(conditions.has_docker_compose, analysis.has_docker_compose)
    )


def _matches_framework(conditions: RuleConditions, analysis: Analysis) -> bool:
    if not conditions.framework:
        return True
    framework = analysis.framework.lower()
    return any(fw.lower() == framework for fw in conditions.framework)


def _matches_language(conditions: RuleConditions, analysis: Analysis) -> bool:
    if not conditions.language:
        return True
    return conditions.language.lower() == analysis.language.lower()


def _matches_dependencies(conditions: RuleConditions, analysis: Analysis) -> bool:
    count = analysis.dependency_count
    if conditions.min_dependencies is not None and count < conditions.min_dependencies:
        return False
    if conditions.max_dependencies is not None and count > conditions.max_dependencies:
        return False
    return True


def _matches_flag(expected: Optional[bool], actual: bool) -> bool:
    return expected is None or expected == actual


def _parse_rule(raw: Any, index: int, source: str) -> DeploymentRule:
    if not isinstance(raw, dict):
        raise RulesError(f"{source}: rule #{index} must be a mapping")

    name = raw.get("name")
    if not name:
        raise RulesError(f"{source}: rule #{index} has no name")

    try:
        priority = int(raw.get("priority", 0))
    except (TypeError, ValueError):
        raise RulesError(f"{source}: rule '{name}' has a non-integer priority") from None

    recommendation = Strategy.parse(raw.get("recommendation"))
    if recommendation is None:
        raise RulesError(
            f"{source}: rule '{name}' has unknown recommendation {raw.get('recommendation')!r}"
        )

    return DeploymentRule(
        name=str(name),
        priority=priority,
        recommendation=recommendation,
        reason=str(raw.get("reason") or ""),
        description=str(raw.get("description") or ""),
        conditions=_parse_conditions(raw.get("conditions") or {}, str(name), source),
        instance_type=raw.get("instance_type") or None,
    )


def _parse_conditions(raw: Any, name: str, source: str) -> RuleConditions:
    if not isinstance(raw, dict):
        raise RulesError(f"{source}: conditions of rule '{name}' must be a mapping")

    framework = raw.get("framework") or ()
    if isinstance(framework, str):
        framework = (framework,)

    try:
        return RuleConditions(
            framework=tuple(str(fw) for fw in framework),
            language=raw.get("language") or None,
            min_dependencies=_optional_int(raw.get("min_dependencies")),
            max_dependencies=_optional_int(raw.get("max_dependencies")),
            has_dockerfile=_optional_bool(raw.get("has_dockerfile")),
            has_docker_compose=_optional_bool(raw.get("has_docker_compose")),
        )
    except (TypeError, ValueError) as e:
        raise RulesError(f"{source}: invalid conditions in rule '{name}': {e}") from e


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValueError(f"expected true/false, got {value!r}")
    return value


def _parse_instance_types(raw: Dict[str, Any], source: str) -> Dict[str, InstanceTypeInfo]:
    result = {}
    for name, info in raw.items():
        try:
            result[str(name)] = InstanceTypeInfo(
                vcpu=int(info.get("vcpu", 0)),
                memory_gb=float(info.get("memory_gb", 0)),
                cost_per_hour=float(info.get("cost_per_hour", 0.0)),
                use_cases=tuple(info.get("use_cases") or ()),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise RulesError(f"{source}: invalid instance type '{name}': {e}") from e
    return result


def _parse_optimizations(raw: Dict[str, Any], source: str) -> Dict[str, FrameworkOptimization]:
    result = {}
    for framework, info in raw.items():
        try:
            result[str(framework)] = FrameworkOptimization(
                production_server=str(info.get("production_server") or ""),
                workers=str(info.get("workers") or ""),
                recommended_ports=tuple(int(p) for p in info.get("recommended_ports") or ()),
                additional_packages=tuple(info.get("additional_packages") or ()),
                notes=tuple(info.get("notes") or ()),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise RulesError(f"{source}: invalid optimization entry '{framework}': {e}") from e
    return result
