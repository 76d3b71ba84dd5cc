"""
ProviderKind -> factory registry.

Each factory builds one provider from a ProviderConfig. Adding a backend is
a new module plus one ``@register_provider`` function.
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional

from .anthropic_provider import AnthropicProvider
from .base import GenerationProvider, ProviderKind
from .gemini import GeminiProvider
from .huggingface import HuggingFaceProvider
from .local import LocalProvider
from .ollama import OllamaProvider
from .openai_provider import OpenAIProvider

if TYPE_CHECKING:
    from .manager import ProviderConfig

ProviderFactory = Callable[["ProviderConfig", Optional[logging.Logger]], GenerationProvider]

_FACTORIES: Dict[ProviderKind, ProviderFactory] = {}


def register_provider(kind: ProviderKind) -> Callable[[ProviderFactory], ProviderFactory]:
    """Decorator registering a factory for ``kind``; a later registration replaces an earlier one."""
    def decorator(factory: ProviderFactory) -> ProviderFactory:
        _FACTORIES[kind] = factory
        return factory
    return decorator


def get_factory(kind: ProviderKind) -> ProviderFactory:
    try:
        return _FACTORIES[kind]
    except KeyError:
        raise ValueError(f"no provider registered for {kind}") from None


def registered_kinds():
    return list(_FACTORIES)


def create_provider(kind: ProviderKind, config: "ProviderConfig",
                    logger: Optional[logging.Logger] = None) -> GenerationProvider:
    """
    Build the provider for ``kind``.

    Raises:
        ProviderError: If the backend cannot be constructed (missing key, bad URL, ...)
        ValueError: If nothing is registered for ``kind``
    """
    return get_factory(kind)(config, logger)


@register_provider(ProviderKind.OLLAMA)
def _ollama(config, logger):
    return OllamaProvider(
        base_url=config.ollama_url,
        default_model=config.ollama_model,
        timeout_s=max(config.timeout_s, 120.0),
        logger=logger,
    )


@register_provider(ProviderKind.GEMINI)
def _gemini(config, logger):
    return GeminiProvider(
        api_key=config.gemini_api_key,
        default_model=config.gemini_model,
        timeout_s=config.timeout_s,
        logger=logger,
    )


@register_provider(ProviderKind.OPENAI)
def _openai(config, logger):
    return OpenAIProvider(
        api_key=config.openai_api_key,
        default_model=config.openai_model,
        base_url=config.openai_base_url or None,
        timeout_s=config.timeout_s,
        logger=logger,
    )


@register_provider(ProviderKind.ANTHROPIC)
def _anthropic(config, logger):
    return AnthropicProvider(
        api_key=config.anthropic_api_key,
        default_model=config.anthropic_model,
        timeout_s=config.timeout_s,
        logger=logger,
    )


@register_provider(ProviderKind.HUGGINGFACE)
def _huggingface(config, logger):
    return HuggingFaceProvider(
        api_token=config.hf_token,
        default_model=config.hf_model,
        endpoint=config.hf_endpoint,
        timeout_s=config.timeout_s,
        logger=logger,
    )


@register_provider(ProviderKind.LOCAL)
def _local(config, logger):
    return LocalProvider(
        model_path=config.local_model_path,
        server_url=config.local_server_url,
        timeout_s=max(config.timeout_s, 120.0),
        logger=logger,
    )
