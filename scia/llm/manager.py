"""
Ordered, sequential fallback over generation providers.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .base import GenerationProvider, GenerationRequest, GenerationResponse, ModelInfo, ProviderKind
from .context import RequestContext
from .errors import GenerationCancelled, LLMError, NoProvidersAvailable, ProviderError
from .registry import create_provider

AVAILABILITY_TIMEOUT_S = 5.0


@dataclass
class ProviderConfig:
    """Selects the active backend family and carries per-backend credentials and defaults."""
    kind: ProviderKind = ProviderKind.OLLAMA
    fallbacks: List[ProviderKind] = field(default_factory=list)

    ollama_url: str = ""
    ollama_model: str = ""

    gemini_api_key: str = ""
    gemini_model: str = ""

    openai_api_key: str = ""
    openai_model: str = ""
    openai_base_url: str = ""

    anthropic_api_key: str = ""
    anthropic_model: str = ""

    hf_token: str = ""
    hf_endpoint: str = ""
    hf_model: str = ""

    local_model_path: str = ""
    local_server_url: str = ""

    timeout_s: float = 60.0
    verbose: bool = False

    def ordered_kinds(self) -> List[ProviderKind]:
        """Primary kind first, then fallbacks, without duplicates."""
        kinds = []
        for kind in [self.kind, *self.fallbacks]:
            if kind not in kinds:
                kinds.append(kind)
        return kinds


class ProviderManager:
    """
    Tries providers strictly in order; the first successful generation wins.

    Unreachable providers stay in the list and are skipped at call time.
    """

    def __init__(self, providers: Sequence[GenerationProvider], logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.providers: List[GenerationProvider] = list(providers)
        if not self.providers:
            raise NoProvidersAvailable()

    @classmethod
    def from_config(cls, config: ProviderConfig, logger: Optional[logging.Logger] = None) -> "ProviderManager":
        """
        Instantiate every configured backend.

        Raises:
            NoProvidersAvailable: If not a single provider could be constructed
        """
        log = logger or logging.getLogger(__name__)
        providers = []
        for kind in config.ordered_kinds():
            try:
                providers.append(create_provider(kind, config, logger))
            except (ProviderError, ValueError) as e:
                log.warning(f"Skipping {kind} provider: {e}")

        if not providers:
            raise NoProvidersAvailable(
                f"no LLM providers available (tried: {', '.join(k.value for k in config.ordered_kinds())})"
            )
        return cls(providers, logger=logger)

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.providers]

    def _probe(self, provider: GenerationProvider, ctx: RequestContext) -> bool:
        return provider.is_available(ctx.with_timeout(AVAILABILITY_TIMEOUT_S))

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        """
        Generate with the first available provider that succeeds.

        Args:
            ctx: Caller context; cancelling it aborts the remaining chain
            request: Provider-agnostic request

        Returns:
            The first successful GenerationResponse

        Raises:
            GenerationCancelled: If ctx is cancelled before or between attempts
            LLMError: The last provider error, or NoProvidersAvailable if none was reachable
        """
        last_error: Optional[LLMError] = None

        for provider in self.providers:
            ctx.check("manager")

            if not self._probe(provider, ctx):
                self.logger.debug(f"Provider {provider.name} not available, trying next...")
                continue

            if ctx.cancelled:
                raise GenerationCancelled()

            try:
                response = provider.generate(ctx, request)
            except GenerationCancelled:
                raise
            except LLMError as e:
                last_error = e
                self.logger.debug(f"Provider {provider.name} failed: {e}, trying next...")
                continue

            self.logger.debug(f"Provider {provider.name} answered with model {response.model}")
            return response

        if last_error is None:
            last_error = NoProvidersAvailable()
        raise last_error

    def get_best_provider(self, ctx: RequestContext) -> Optional[GenerationProvider]:
        """The first available provider, or None."""
        for provider in self.providers:
            if ctx.done():
                return None
            if self._probe(provider, ctx):
                return provider
        return None

    def list_all_models(self, ctx: RequestContext) -> List[ModelInfo]:
        """Models from every available provider; failing providers are skipped."""
        models: List[ModelInfo] = []
        for provider in self.providers:
            if ctx.done() or not self._probe(provider, ctx):
                continue
            try:
                models.extend(provider.list_models(ctx))
            except LLMError as e:
                self.logger.debug(f"Provider {provider.name} could not list models: {e}")
        return models

    def __repr__(self) -> str:
        return f"ProviderManager(providers={self.names})"
