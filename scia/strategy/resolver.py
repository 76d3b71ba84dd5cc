"""
Three-tier deployment strategy resolution.

An explicit user choice wins, then the rule engine, then the language model,
and finally the deterministic heuristic, which always produces an answer.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from scia.analysis import Analysis, Strategy
from scia.llm import GenerationCancelled, GenerationRequest, LLMError, RequestContext
from scia.log import redact_sensitive_info
from scia.nlp.schema import DeploymentConfig
from scia.rules import DeploymentRules, evaluate_rules
from .heuristics import fallback_strategy, suggest_instance_type
from .knowledge import build_strategy_prompt
from .parse import parse_strategy_response

logger = logging.getLogger(__name__)

STRATEGY_TEMPERATURE = 0.7
STRATEGY_MAX_TOKENS = 200


class Tier(str, Enum):
    """Resolution stage that produced a decision."""
    USER = "user"
    RULES = "rules"
    LLM = "llm"
    HEURISTIC = "heuristic"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StrategyDecision:
    """Resolved strategy with the reason and the tier that decided it."""
    strategy: Strategy
    reason: str
    tier: Tier
    rule_name: Optional[str] = None
    instance_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "reason": self.reason,
            "tier": self.tier.value,
            "rule_name": self.rule_name,
            "instance_type": self.instance_type,
        }


class StrategyResolver:
    """Resolve a deployment strategy for an analysed application."""

    def __init__(
        self,
        rules: Optional[DeploymentRules] = None,
        manager=None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            rules: Rule set for the first tier (None skips it)
            manager: ProviderManager for the LLM tier (None skips it)
            logger: Optional logger
        """
        self.rules = rules
        self.manager = manager
        self.logger = logger or logging.getLogger(__name__)

    def resolve(
        self,
        user_prompt: str,
        analysis: Analysis,
        parsed_config: Optional[DeploymentConfig] = None,
        ctx: Optional[RequestContext] = None,
    ) -> StrategyDecision:
        """
        Resolve the strategy; never fails except on cancellation.

        Raises:
            GenerationCancelled: If ctx was cancelled during the LLM tier
        """
        if parsed_config is not None and parsed_config.strategy is not None:
            strategy = parsed_config.strategy
            self.logger.info(f"Using strategy requested by user: {strategy}")
            return self._decision(strategy, "Explicitly requested by user", Tier.USER, analysis,
                                  instance_type=parsed_config.ec2_instance_type)

        match, matched = evaluate_rules(self.rules, analysis)
        if matched:
            self.logger.info(f"Rule '{match.rule_name}' selected {match.strategy}")
            return self._decision(match.strategy, match.reason, Tier.RULES, analysis,
                                  rule_name=match.rule_name, instance_type=match.instance_type)

        if self.manager is not None:
            decision = self._resolve_with_llm(user_prompt, analysis, ctx or RequestContext.background())
            if decision is not None:
                return decision
            reason = "Fallback heuristic (LLM response unclear or unavailable)"
        else:
            reason = "Heuristic (no LLM provider configured)"

        strategy = fallback_strategy(analysis)
        self.logger.info(f"Heuristic selected {strategy}")
        return self._decision(strategy, reason, Tier.HEURISTIC, analysis)

    def _resolve_with_llm(self, user_prompt: str, analysis: Analysis,
                          ctx: RequestContext) -> Optional[StrategyDecision]:
        request = GenerationRequest(
            prompt=build_strategy_prompt(user_prompt, analysis),
            temperature=STRATEGY_TEMPERATURE,
            max_tokens=STRATEGY_MAX_TOKENS,
        )
        try:
            response = self.manager.generate(ctx, request)
        except GenerationCancelled:
            raise
        except LLMError as e:
            self.logger.warning(f"LLM strategy inference failed, using heuristic: {e}")
            return None

        self.logger.debug(f"LLM strategy response: {redact_sensitive_info(response.text)}")
        parsed = parse_strategy_response(response.text)
        if not parsed.matched:
            self.logger.warning("LLM response did not name a strategy, using heuristic")
            return None

        self.logger.info(f"LLM selected {parsed.strategy} ({parsed.method} parse)")
        return self._decision(parsed.strategy, parsed.reason or "Recommended by language model",
                              Tier.LLM, analysis)

    def _decision(self, strategy: Strategy, reason: str, tier: Tier, analysis: Analysis,
                  rule_name: Optional[str] = None, instance_type: Optional[str] = None) -> StrategyDecision:
        if instance_type is None and strategy == Strategy.VM:
            instance_type = suggest_instance_type(analysis)
        return StrategyDecision(
            strategy=strategy,
            reason=reason,
            tier=tier,
            rule_name=rule_name,
            instance_type=instance_type,
        )
