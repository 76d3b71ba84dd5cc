"""
Deployment strategy decision: knowledge, parsing, heuristics and resolution.
"""

from .heuristics import (
    fallback_strategy,
    is_stateless,
    suggest_instance_type,
    suggest_optimizations,
    validate_deployment_requirements,
)
from .knowledge import build_strategy_prompt, estimate_memory
from .parse import ParsedStrategy, parse_strategy_response
from .resolver import StrategyDecision, StrategyResolver, Tier

__all__ = [
    "fallback_strategy",
    "is_stateless",
    "suggest_instance_type",
    "suggest_optimizations",
    "validate_deployment_requirements",
    "build_strategy_prompt",
    "estimate_memory",
    "ParsedStrategy",
    "parse_strategy_response",
    "StrategyDecision",
    "StrategyResolver",
    "Tier",
]
