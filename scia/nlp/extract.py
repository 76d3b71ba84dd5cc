"""
Language-model extraction of deployment configuration.

``parse_config_from_prompt`` seeds a plan from the initial request and never
fails the caller's flow; ``modify_plan`` derives only the changed fields from
a modification request against the current plan.
"""

import json
import logging
import re
from dataclasses import replace
from typing import Any, Dict, Optional

from scia.analysis import Strategy
from scia.llm import GenerationCancelled, GenerationRequest, LLMError, NoProvidersAvailable, RequestContext
from scia.log import redact_sensitive_info
from .prompts import build_extraction_prompt, build_modification_prompt
from .schema import INT_FIELDS, JSON_KEYS, STR_FIELDS, DeploymentConfig

logger = logging.getLogger(__name__)

MAX_RESPONSE_SIZE = 10 * 1024  # bytes
EXTRACTION_TEMPERATURE = 0.1
EXTRACTION_MAX_TOKENS = 300


def extract_json(text: str) -> str:
    """
    Take the first balanced ``{...}`` object embedded in ``text``.

    Each ``{`` is tried in turn; anything after the decoded object is ignored.
    Returns ``"{}"`` when no position decodes to a JSON object.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            _, end = decoder.raw_decode(text, start)
        except ValueError:
            start = text.find("{", start + 1)
            continue
        return text[start:end]
    return "{}"


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        match = re.match(r'\s*(\d+)', value)
        return int(match.group(1)) if match else None
    return None


def _coerce_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def config_from_mapping(data: Dict[str, Any]) -> DeploymentConfig:
    """Build a DeploymentConfig from decoded JSON; fields of the wrong type are left unset."""
    values: Dict[str, Any] = {}
    for name, key in JSON_KEYS.items():
        if key not in data:
            continue
        raw = data[key]
        if name == "strategy":
            value = Strategy.parse(raw) if isinstance(raw, str) else None
        elif name in INT_FIELDS:
            value = _coerce_int(raw)
        elif name in STR_FIELDS:
            value = _coerce_str(raw)
        else:
            value = None
        if value is not None:
            values[name] = value
    return DeploymentConfig(**values)


def parse_config_json(text: str) -> DeploymentConfig:
    """Leniently decode a model answer; malformed input yields an all-unset config."""
    try:
        data = json.loads(extract_json(text))
    except ValueError:
        return DeploymentConfig()
    if not isinstance(data, dict):
        return DeploymentConfig()
    return config_from_mapping(data)


def truncate_response(text: str, limit: int = MAX_RESPONSE_SIZE) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    return encoded[:limit].decode("utf-8", errors="ignore")


def _generate(manager, ctx: RequestContext, prompt: str) -> str:
    request = GenerationRequest(
        prompt=prompt,
        temperature=EXTRACTION_TEMPERATURE,
        max_tokens=EXTRACTION_MAX_TOKENS,
    )
    return manager.generate(ctx, request).text


def parse_config_from_prompt(
    manager,
    user_prompt: str,
    ctx: Optional[RequestContext] = None,
    logger: Optional[logging.Logger] = None,
) -> DeploymentConfig:
    """
    Extract deployment configuration from a natural language request.

    Args:
        manager: ProviderManager (or anything with ``generate(ctx, request)``); may be None
        user_prompt: The user's deployment request
        ctx: Request context; a background context when omitted
        logger: Optional logger

    Returns:
        DeploymentConfig with ``cleaned_prompt`` set to the request. Any failure
        yields an all-unset config rather than an error.

    Raises:
        GenerationCancelled: If ctx was cancelled
    """
    log = logger or logging.getLogger(__name__)
    fallback = DeploymentConfig(cleaned_prompt=user_prompt)
    if manager is None:
        return fallback

    ctx = ctx or RequestContext.background()
    try:
        text = _generate(manager, ctx, build_extraction_prompt(user_prompt))
    except GenerationCancelled:
        raise
    except LLMError as e:
        log.warning(f"Config extraction unavailable, continuing without it: {e}")
        return fallback

    if len(text.encode("utf-8")) > MAX_RESPONSE_SIZE:
        log.warning(f"LLM response exceeds max size ({MAX_RESPONSE_SIZE} bytes), truncating")
        text = truncate_response(text)

    log.debug(f"LLM config response: {redact_sensitive_info(text)}")

    config = parse_config_json(text)
    if config.is_empty():
        log.debug("No configuration parameters extracted from prompt")
    else:
        log.info(f"Extracted config: {config.to_dict()}")

    return replace(config, cleaned_prompt=user_prompt)


def describe_plan(config: DeploymentConfig) -> str:
    """Human-readable sizing summary for the plan's strategy."""
    parts = []
    if config.strategy == Strategy.VM:
        if config.ec2_instance_type:
            parts.append(f"EC2 Instance: {config.ec2_instance_type}")
        if config.ec2_volume_size:
            parts.append(f"Volume: {config.ec2_volume_size}GB")

    elif config.strategy == Strategy.KUBERNETES:
        if config.eks_node_type:
            parts.append(f"Node Type: {config.eks_node_type}")
        parts.append(f"Nodes: {config.eks_desired_nodes or 0} "
                     f"(min: {config.eks_min_nodes or 0}, max: {config.eks_max_nodes or 0})")
        if config.eks_node_volume_size:
            parts.append(f"Node Volume: {config.eks_node_volume_size}GB")

    elif config.strategy == Strategy.SERVERLESS:
        if config.lambda_memory:
            parts.append(f"Memory: {config.lambda_memory}MB")
        if config.lambda_timeout:
            parts.append(f"Timeout: {config.lambda_timeout}s")
        if config.lambda_reserved_concurrency:
            parts.append(f"Reserved Concurrency: {config.lambda_reserved_concurrency}")

    return ", ".join(parts)


def modify_plan(
    manager,
    current: DeploymentConfig,
    user_request: str,
    ctx: Optional[RequestContext] = None,
    logger: Optional[logging.Logger] = None,
) -> DeploymentConfig:
    """
    Derive the fields a modification request changes.

    Args:
        manager: ProviderManager (or anything with ``generate(ctx, request)``)
        current: Current plan configuration
        user_request: Free-text modification request
        ctx: Request context; a background context when omitted
        logger: Optional logger

    Returns:
        Delta DeploymentConfig holding only the changed fields; empty when the
        answer carried no usable JSON

    Raises:
        NoProvidersAvailable: If no manager is configured
        LLMError: If generation fails
    """
    log = logger or logging.getLogger(__name__)
    if manager is None:
        raise NoProvidersAvailable("LLM provider not available for plan modification")

    prompt = build_modification_prompt(
        strategy=current.strategy.value if current.strategy else "",
        region=current.region or "",
        plan_description=describe_plan(current),
        user_request=user_request,
    )
    text = _generate(manager, ctx or RequestContext.background(), prompt)
    text = truncate_response(text)
    log.debug(f"LLM modification response: {redact_sensitive_info(text)}")

    delta = parse_config_json(text)
    log.info(f"Extracted modification: {delta.to_dict()}")
    return delta
