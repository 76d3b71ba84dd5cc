"""
Deployment plan building and the interactive confirmation loop.
"""

from .builder import DeploymentPlan, ResourceConfig, build_deployment_plan, extract_app_name, render_plan
from .confirm import ConfirmationResult, PlanState, confirm_or_modify

__all__ = [
    "DeploymentPlan",
    "ResourceConfig",
    "build_deployment_plan",
    "extract_app_name",
    "render_plan",
    "ConfirmationResult",
    "PlanState",
    "confirm_or_modify",
]
