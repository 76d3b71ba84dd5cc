"""
Natural-language deployment configuration: extraction, modification and merge.
"""

from .schema import DeploymentConfig, apply_config, default_plan_config
from .extract import describe_plan, extract_json, modify_plan, parse_config_from_prompt, parse_config_json
from .rules import parse_prompt

__all__ = [
    "DeploymentConfig",
    "apply_config",
    "default_plan_config",
    "describe_plan",
    "extract_json",
    "modify_plan",
    "parse_config_from_prompt",
    "parse_config_json",
    "parse_prompt",
]
