"""
Deterministic regex/phrase rules for offline configuration extraction.
"""

import re
from dataclasses import replace
from typing import List, Optional, Tuple

from scia.analysis import Strategy
from .schema import DeploymentConfig

INSTANCE_FAMILIES = r'(?:t2|t3|t4g|m5|m6i|c5|c6i|r5|r6i)'
INSTANCE_SIZES = r'(?:micro|nano|small|medium|large|xlarge|2xlarge|4xlarge|8xlarge|16xlarge)'
INSTANCE_TYPE_RE = re.compile(rf'\b{INSTANCE_FAMILIES}\.{INSTANCE_SIZES}\b')
REGION_RE = re.compile(
    r'\b(?:us|eu|ap|sa|ca|me|af)-(?:east|west|south|north|central|northeast|southeast)-[1-9]\b'
)

MIN_CLEANED_LENGTH = 5


def parse_prompt(prompt: str) -> DeploymentConfig:
    """Extract a DeploymentConfig from ``prompt`` without a language model."""
    config, _ = extract_with_hits(prompt)
    return config


def extract_with_hits(prompt: str) -> Tuple[DeploymentConfig, List[str]]:
    """
    Extract deployment configuration using deterministic rules.

    Args:
        prompt: Raw request text

    Returns:
        Tuple of (config, hits) where hits are the rules that fired
    """
    text = prompt.lower()
    hits: List[str] = []

    instance_type = _extract_instance_type(text, hits)
    min_nodes, max_nodes, desired_nodes = _extract_node_counts(text, hits)
    volume_size = _extract_volume_size(text, hits)

    config = DeploymentConfig(
        strategy=_extract_strategy(text, hits),
        region=_extract_region(text, hits),
        ec2_instance_type=instance_type,
        ec2_volume_size=volume_size,
        eks_node_type=instance_type,
        eks_min_nodes=min_nodes,
        eks_max_nodes=max_nodes,
        eks_desired_nodes=desired_nodes,
        eks_node_volume_size=volume_size,
        lambda_memory=_extract_lambda_memory(text, hits),
        lambda_timeout=_extract_timeout(text, hits),
        lambda_reserved_concurrency=_extract_concurrency(text, hits),
    )
    return _with_cleaned_prompt(config, prompt), hits


def _extract_strategy(text: str, hits: List[str]) -> Optional[Strategy]:
    patterns = [
        (r'\b(?:eks|kubernetes|k8s)\b', Strategy.KUBERNETES),
        (r'\b(?:lambda|serverless|function)\b', Strategy.SERVERLESS),
        (r'\b(?:ec2|vm|virtual machine|instance)\b', Strategy.VM),
    ]
    for pattern, strategy in patterns:
        if re.search(pattern, text):
            hits.append(f"strategy:{strategy.value}")
            return strategy
    return None


def _extract_region(text: str, hits: List[str]) -> Optional[str]:
    match = REGION_RE.search(text)
    if match:
        hits.append(f"region:{match.group(0)}")
        return match.group(0)
    return None


def _extract_instance_type(text: str, hits: List[str]) -> Optional[str]:
    match = INSTANCE_TYPE_RE.search(text)
    if match:
        hits.append(f"instance_type:{match.group(0)}")
        return match.group(0)
    return None


def _extract_node_counts(text: str, hits: List[str]) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """"3 nodes", "between 2 and 5 nodes", "min 1 max 3"."""
    match = re.search(r'\bbetween\s+(\d+)\s+and\s+(\d+)\s+(?:nodes?|instances?)\b', text)
    if match:
        low, high = int(match.group(1)), int(match.group(2))
        hits.append("nodes:range")
        return low, high, (low + high) // 2

    match = re.search(r'\b(\d+)\s+(?:nodes?|instances?)\b', text)
    if match:
        count = int(match.group(1))
        hits.append("nodes:count")
        return count, count, count

    min_match = re.search(r'\bmin(?:imum)?\s+(\d+)\b', text)
    max_match = re.search(r'\bmax(?:imum)?\s+(\d+)\b', text)
    low = int(min_match.group(1)) if min_match else 0
    high = int(max_match.group(1)) if max_match else 0

    if low > 0 and high > 0:
        hits.append("nodes:min_max")
        return low, high, (low + high) // 2
    if low > 0:
        hits.append("nodes:min")
        return low, low, low
    if high > 0:
        hits.append("nodes:max")
        return high, high, high
    return None, None, None


def _extract_lambda_memory(text: str, hits: List[str]) -> Optional[int]:
    """Memory in MB: "512MB", "1 GB memory"; GB figures naming a volume/disk are skipped."""
    match = re.search(r'\b(\d+)\s*(?:mb|megabytes?)\b', text)
    if match:
        hits.append("memory:mb")
        return int(match.group(1))

    for match in re.finditer(r'\b(\d+)\s*(?:gb|gigabytes?)\b(?!\s+(?:volume|disk|storage))', text):
        hits.append("memory:gb")
        return int(match.group(1)) * 1024
    return None


def _extract_volume_size(text: str, hits: List[str]) -> Optional[int]:
    match = re.search(r'\b(\d+)\s*gb\s+(?:volume|disk|storage)\b', text)
    if match:
        hits.append("volume:gb")
        return int(match.group(1))
    return None


def _extract_timeout(text: str, hits: List[str]) -> Optional[int]:
    """Timeout in seconds: "30 seconds", "timeout 60s", "2 minutes"."""
    match = re.search(r'\b(?:timeout\s+)?(\d+)\s*(?:seconds?|secs?|s)\b', text)
    if match:
        hits.append("timeout:seconds")
        return int(match.group(1))

    match = re.search(r'\b(?:timeout\s+)?(\d+)\s*(?:minutes?|mins?|m)\b', text)
    if match:
        hits.append("timeout:minutes")
        return int(match.group(1)) * 60
    return None


def _extract_concurrency(text: str, hits: List[str]) -> Optional[int]:
    match = re.search(r'\b(?:reserved\s+)?concurrency\s+(?:of\s+)?(\d+)\b', text)
    if match:
        hits.append("concurrency")
        return int(match.group(1))
    return None


def _with_cleaned_prompt(config: DeploymentConfig, prompt: str) -> DeploymentConfig:
    """Strip recognized configuration phrases; keep the original if too little is left."""
    cleaned = prompt
    substitutions = [
        r'\b(?:on\s+)?(?:eks|kubernetes|k8s|lambda|serverless|ec2|vm|virtual machine)\b',
        r'\b(?:in\s+)?(?:region\s+)?' + REGION_RE.pattern,
        r'\b(?:using\s+)?(?:instance\s+)?(?:type\s+)?' + INSTANCE_TYPE_RE.pattern,
        r'\bbetween\s+\d+\s+and\s+\d+\s+(?:nodes?|instances?)\b',
        r'\b\d+\s+(?:nodes?|instances?)\b',
        r'\bmin(?:imum)?\s+\d+\b',
        r'\bmax(?:imum)?\s+\d+\b',
        r'\b\d+\s*(?:mb|gb)(?:\s+(?:volume|disk|storage|memory))?\b',
        r'\b(?:timeout\s+)?\d+\s*(?:seconds?|secs?|minutes?|mins?|s|m)\b',
        r'\b(?:reserved\s+)?concurrency\s+(?:of\s+)?\d+\b',
    ]
    for pattern in substitutions:
        cleaned = re.sub(pattern, "", cleaned, flags=re.IGNORECASE)

    cleaned = re.sub(r'\s+', " ", cleaned).strip()
    if len(cleaned) < MIN_CLEANED_LENGTH:
        cleaned = prompt

    return replace(config, cleaned_prompt=cleaned)
