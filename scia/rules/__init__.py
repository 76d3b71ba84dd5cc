"""
Declarative deployment rules and the rule engine.
"""

from .schema import DeploymentRule, DeploymentRules, RuleConditions, RuleMatch
from .engine import RulesError, evaluate_rules, load_rules, matches_conditions, sort_rules

__all__ = [
    "DeploymentRule",
    "DeploymentRules",
    "RuleConditions",
    "RuleMatch",
    "RulesError",
    "evaluate_rules",
    "load_rules",
    "matches_conditions",
    "sort_rules",
]
