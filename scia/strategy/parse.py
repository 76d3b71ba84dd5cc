"""
Turn free-form model output into a (strategy, reason) decision.

Parse strategies are tried in order; the first one that yields a strategy
wins. When none does, the resolver falls back to the deterministic heuristic.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from scia.analysis import Strategy

STRATEGY_TAG_RE = re.compile(r'STRATEGY:\s*(vm|kubernetes|serverless)', re.IGNORECASE)
REASON_TAG_RE = re.compile(r'REASON:\s*(.+)', re.IGNORECASE)

# Scanned in this order; the first family with a hit wins.
KEYWORD_FAMILIES: List[Tuple[Strategy, Tuple[str, ...]]] = [
    (Strategy.KUBERNETES, ("kubernetes", "k8s")),
    (Strategy.SERVERLESS, ("serverless", "lambda")),
    (Strategy.VM, ("vm", "ec2")),
]


@dataclass(frozen=True)
class ParsedStrategy:
    """Strategy extracted from a model response, with how it was found."""
    strategy: Optional[Strategy]
    reason: str = ""
    method: str = ""

    @property
    def matched(self) -> bool:
        return self.strategy is not None


def parse_structured_tags(response: str) -> Optional[Strategy]:
    """``STRATEGY: <vm|kubernetes|serverless>``"""
    match = STRATEGY_TAG_RE.search(response)
    if match:
        return Strategy(match.group(1).lower())
    return None


def scan_keywords(response: str) -> Optional[Strategy]:
    """Case-insensitive whole-word scan for strategy vocabulary; plurals count."""
    lowered = response.lower()
    for strategy, keywords in KEYWORD_FAMILIES:
        for keyword in keywords:
            if re.search(rf'\b{re.escape(keyword)}s?\b', lowered):
                return strategy
    return None


PARSE_STRATEGIES: List[Tuple[str, Callable[[str], Optional[Strategy]]]] = [
    ("structured", parse_structured_tags),
    ("keyword", scan_keywords),
]


def extract_reason(response: str) -> str:
    match = REASON_TAG_RE.search(response)
    return match.group(1).strip() if match else ""


def parse_strategy_response(response: str) -> ParsedStrategy:
    """
    Parse a model response.

    Args:
        response: Raw generated text

    Returns:
        ParsedStrategy; ``strategy`` is None when no parse strategy matched
    """
    text = (response or "").strip()
    reason = extract_reason(text)

    for method, parse in PARSE_STRATEGIES:
        strategy = parse(text)
        if strategy is not None:
            return ParsedStrategy(strategy=strategy, reason=reason, method=method)

    return ParsedStrategy(strategy=None, reason=reason)
