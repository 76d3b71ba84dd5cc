"""
Dataclasses for declarative deployment rules.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from scia.analysis import Strategy


@dataclass(frozen=True)
class RuleConditions:
    """Conditions a rule requires; an omitted field always holds."""
    framework: Tuple[str, ...] = ()
    language: Optional[str] = None
    min_dependencies: Optional[int] = None
    max_dependencies: Optional[int] = None
    has_dockerfile: Optional[bool] = None        # None = don't care
    has_docker_compose: Optional[bool] = None    # None = don't care

    def is_empty(self) -> bool:
        return (
            not self.framework
            and self.language is None
            and self.min_dependencies is None
            and self.max_dependencies is None
            and self.has_dockerfile is None
            and self.has_docker_compose is None
        )


@dataclass(frozen=True)
class DeploymentRule:
    """A single condition -> recommendation rule."""
    name: str
    priority: int
    recommendation: Strategy
    reason: str = ""
    description: str = ""
    conditions: RuleConditions = field(default_factory=RuleConditions)
    instance_type: Optional[str] = None


@dataclass(frozen=True)
class InstanceTypeInfo:
    """EC2 instance type details used for sizing hints."""
    vcpu: int
    memory_gb: float
    cost_per_hour: float = 0.0
    use_cases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FrameworkOptimization:
    """Framework-specific production hints."""
    production_server: str = ""
    workers: str = ""
    recommended_ports: Tuple[int, ...] = ()
    additional_packages: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()


@dataclass
class DeploymentRules:
    """A versioned rule set, kept sorted by descending priority."""
    version: str
    rules: List[DeploymentRule] = field(default_factory=list)
    instance_types: Dict[str, InstanceTypeInfo] = field(default_factory=dict)
    optimizations: Dict[str, FrameworkOptimization] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleMatch:
    """Outcome of a successful rule evaluation."""
    strategy: Strategy
    reason: str
    rule_name: str
    instance_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "reason": self.reason,
            "rule_name": self.rule_name,
            "instance_type": self.instance_type,
        }
