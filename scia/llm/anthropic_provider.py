"""
Anthropic provider (anthropic SDK, messages API).
"""

import logging
from typing import Any, List, Optional

from .base import GenerationProvider, GenerationRequest, GenerationResponse, ModelInfo, ProviderKind
from .context import RequestContext
from .errors import InvalidResponse, ProviderError

DEFAULT_ANTHROPIC_MODEL = "claude-3-haiku-20240307"
AVAILABILITY_TIMEOUT_S = 5.0


class AnthropicProvider(GenerationProvider):
    """Provider backed by the Anthropic messages API."""

    kind = ProviderKind.ANTHROPIC

    def __init__(
        self,
        api_key: str,
        default_model: str = "",
        timeout_s: float = 60.0,
        client: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(default_model or DEFAULT_ANTHROPIC_MODEL, logger)
        if not api_key:
            raise ProviderError(self.name, "anthropic API key is required")
        self.timeout_s = timeout_s

        if client is None:
            try:
                import anthropic
            except ImportError as e:
                raise ProviderError(self.name, "anthropic is not installed", e) from e
            client = anthropic.Anthropic(api_key=api_key)
        self.client = client

    def is_available(self, ctx: RequestContext) -> bool:
        if ctx.done():
            return False
        try:
            self.client.models.list(limit=1, timeout=ctx.timeout(AVAILABILITY_TIMEOUT_S))
        except Exception as e:
            self.logger.debug(f"Anthropic availability check failed: {e}")
            return False
        return True

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        ctx.check(self.name)
        model = self.model_for(request)

        kwargs = {
            "model": model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
            "timeout": ctx.timeout(self.timeout_s),
        }
        if request.system:
            kwargs["system"] = request.system
        if request.top_p > 0:
            kwargs["top_p"] = request.top_p
        if request.top_k > 0:
            kwargs["top_k"] = request.top_k
        kwargs.update(request.options)

        try:
            response = self.client.messages.create(**kwargs)
        except Exception as e:
            raise ProviderError(self.name, f"generation failed: {e}", e) from e

        text = "".join(
            block.text for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text:
            raise InvalidResponse(self.name, "no text content in response")

        usage = getattr(response, "usage", None)
        input_tokens = int(getattr(usage, "input_tokens", 0) or 0)
        output_tokens = int(getattr(usage, "output_tokens", 0) or 0)
        return GenerationResponse(
            text=text,
            model=getattr(response, "model", None) or model,
            tokens_prompt=input_tokens,
            tokens_total=input_tokens + output_tokens,
        )

    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        try:
            page = self.client.models.list(timeout=ctx.timeout(AVAILABILITY_TIMEOUT_S))
        except Exception as e:
            raise ProviderError(self.name, f"failed to list models: {e}", e) from e
        return [
            ModelInfo(name=m.id, provider=self.name, type="general", is_local=False, is_downloaded=True)
            for m in getattr(page, "data", [])
        ]
