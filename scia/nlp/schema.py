"""
Deployment sizing bag extracted from natural language.

Every field is optional: None means "not mentioned", which is distinct from
any concrete value and never overwrites an existing value on merge.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from scia.analysis import Strategy

DEFAULT_REGION = "eu-west-3"

# Attribute name -> JSON key used in prompts and model answers
JSON_KEYS = {
    "strategy": "strategy",
    "region": "region",
    "ec2_instance_type": "ec2_instance_type",
    "ec2_volume_size": "volume_size",
    "eks_node_type": "eks_node_type",
    "eks_min_nodes": "eks_min_nodes",
    "eks_max_nodes": "eks_max_nodes",
    "eks_desired_nodes": "eks_desired_nodes",
    "eks_node_volume_size": "eks_node_volume_size",
    "lambda_memory": "lambda_memory",
    "lambda_timeout": "lambda_timeout",
    "lambda_reserved_concurrency": "lambda_reserved_concurrency",
}

INT_FIELDS = (
    "ec2_volume_size",
    "eks_min_nodes",
    "eks_max_nodes",
    "eks_desired_nodes",
    "eks_node_volume_size",
    "lambda_memory",
    "lambda_timeout",
    "lambda_reserved_concurrency",
)

STR_FIELDS = ("region", "ec2_instance_type", "eks_node_type")


@dataclass(frozen=True)
class DeploymentConfig:
    """Strategy override, region and per-strategy sizing; all optional."""
    strategy: Optional[Strategy] = None
    region: Optional[str] = None

    # VM
    ec2_instance_type: Optional[str] = None
    ec2_volume_size: Optional[int] = None            # GB

    # Kubernetes
    eks_node_type: Optional[str] = None
    eks_min_nodes: Optional[int] = None
    eks_max_nodes: Optional[int] = None
    eks_desired_nodes: Optional[int] = None
    eks_node_volume_size: Optional[int] = None       # GB

    # Serverless
    lambda_memory: Optional[int] = None              # MB
    lambda_timeout: Optional[int] = None             # seconds
    lambda_reserved_concurrency: Optional[int] = None

    # Prompt text left after extraction, for downstream strategy resolution
    cleaned_prompt: str = ""

    def is_empty(self) -> bool:
        """True when no sizing field, strategy or region is set."""
        return all(getattr(self, name) is None for name in JSON_KEYS)

    def set_fields(self) -> Dict[str, Any]:
        """Attribute name -> value for every set field."""
        return {name: getattr(self, name) for name in JSON_KEYS if getattr(self, name) is not None}

    def to_dict(self) -> Dict[str, Any]:
        """JSON-shaped dict of the set fields (``ec2_volume_size`` is ``volume_size``)."""
        data = {}
        for name, value in self.set_fields().items():
            data[JSON_KEYS[name]] = value.value if isinstance(value, Strategy) else value
        return data


def is_unset(value: Any) -> bool:
    """None, empty strings and non-positive numbers carry no information."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value <= 0
    return False


def apply_config(current: DeploymentConfig, delta: Optional[DeploymentConfig]) -> DeploymentConfig:
    """
    Merge ``delta`` onto ``current``, field by field.

    Only fields set in ``delta`` are copied; unset delta fields never clear
    existing values. ``cleaned_prompt`` stays the current one.

    Args:
        current: Long-lived plan configuration
        delta: Freshly parsed configuration (may be None)

    Returns:
        A new DeploymentConfig; neither argument is modified
    """
    if delta is None:
        return current

    changes = {}
    for f in fields(DeploymentConfig):
        if f.name not in JSON_KEYS:
            continue
        value = getattr(delta, f.name)
        if not is_unset(value):
            changes[f.name] = value
    return replace(current, **changes)


def default_plan_config(strategy: Optional[Strategy] = None, region: str = DEFAULT_REGION) -> DeploymentConfig:
    """Sizing defaults for a fresh plan."""
    return DeploymentConfig(
        strategy=strategy,
        region=region,
        ec2_instance_type="t3.micro",
        ec2_volume_size=30,
        eks_node_type="t3.medium",
        eks_min_nodes=1,
        eks_max_nodes=3,
        eks_desired_nodes=2,
        eks_node_volume_size=30,
        lambda_memory=512,
        lambda_timeout=30,
    )
