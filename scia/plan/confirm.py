"""
Interactive confirm/modify loop over a deployment plan.

PRESENTED -> CONFIRMED | REJECTED | MODIFIED -> PRESENTED
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import click

from scia.analysis import Analysis
from scia.llm import GenerationCancelled, LLMError, RequestContext
from scia.nlp.extract import modify_plan
from scia.nlp.schema import DeploymentConfig, apply_config
from .builder import DeploymentPlan, build_deployment_plan, render_plan

logger = logging.getLogger(__name__)

YES_ANSWERS = ("yes", "y")
NO_ANSWERS = ("no", "n")


class PlanState(str, Enum):
    PRESENTED = "presented"
    MODIFIED = "modified"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"

    @property
    def terminal(self) -> bool:
        return self in (PlanState.CONFIRMED, PlanState.REJECTED)


@dataclass
class ConfirmationResult:
    """Terminal state reached, with the final configuration and plan."""
    state: PlanState
    config: DeploymentConfig
    plan: DeploymentPlan

    @property
    def confirmed(self) -> bool:
        return self.state == PlanState.CONFIRMED


def confirm_or_modify(
    plan: DeploymentPlan,
    analysis: Analysis,
    config: DeploymentConfig,
    manager=None,
    auto_approve: bool = False,
    prompt: Callable[..., str] = click.prompt,
    echo: Callable[..., None] = click.echo,
    ctx: Optional[RequestContext] = None,
    logger: Optional[logging.Logger] = None,
) -> ConfirmationResult:
    """
    Present the plan until the user confirms or rejects it.

    Any other answer is treated as a natural-language modification request:
    the changed fields are merged into ``config`` and the plan is rebuilt.

    Args:
        plan: Plan to present
        analysis: Application analysis (for rebuilding the plan)
        config: Current plan configuration
        manager: ProviderManager used to understand modifications
        auto_approve: Confirm without asking
        prompt: Input function (``click.prompt`` signature)
        echo: Output function (``click.echo`` signature)
        ctx: Request context for modification calls
        logger: Optional logger

    Returns:
        ConfirmationResult in a terminal state
    """
    log = logger or logging.getLogger(__name__)
    echo(render_plan(plan))

    if auto_approve:
        echo("✅ Auto-confirmed with --yes flag")
        return ConfirmationResult(PlanState.CONFIRMED, config, plan)

    state = PlanState.PRESENTED
    while not state.terminal:
        echo("")
        echo("You can:")
        echo("  • Type 'yes' or 'y' to proceed with deployment")
        echo("  • Type 'no' or 'n' to cancel")
        echo("  • Describe changes in natural language (e.g., 'use t3.large instance', 'change to 5 nodes')")

        answer = prompt("Your choice", default="", show_default=False).strip()
        if not answer:
            continue

        lowered = answer.lower()
        if lowered in YES_ANSWERS:
            echo("✅ Deployment confirmed")
            state = PlanState.CONFIRMED
            continue
        if lowered in NO_ANSWERS:
            state = PlanState.REJECTED
            continue

        state = PlanState.MODIFIED
        echo(f"Processing modification request: {answer}")
        try:
            delta = modify_plan(manager, config, answer, ctx=ctx, logger=log)
        except GenerationCancelled:
            raise
        except LLMError as e:
            log.debug(f"Modification failed: {e}")
            echo(f"⚠️  Could not understand modification: {e}")
            echo("Please try rephrasing or use specific values")
            state = PlanState.PRESENTED
            continue

        config = apply_config(config, delta)
        plan = build_deployment_plan(
            config.strategy or plan.strategy,
            config.region or plan.region,
            plan.app_name,
            analysis,
            config,
        )
        echo("✅ Plan updated based on your request")
        echo(render_plan(plan))
        state = PlanState.PRESENTED

    log.info(f"Plan {state.value}")
    return ConfirmationResult(state, config, plan)
