"""
OpenAI provider (openai SDK, chat completions).
"""

import logging
from typing import Any, List, Optional

from .base import GenerationProvider, GenerationRequest, GenerationResponse, ModelInfo, ProviderKind
from .context import RequestContext
from .errors import GenerationTimeout, InvalidResponse, ProviderError

DEFAULT_OPENAI_MODEL = "gpt-4o"
AVAILABILITY_TIMEOUT_S = 5.0

OPENAI_MODELS = [
    ("gpt-4o", "code"),
    ("gpt-4o-mini", "general"),
    ("gpt-4", "general"),
]


class OpenAIProvider(GenerationProvider):
    """Provider backed by the OpenAI API."""

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        api_key: str,
        default_model: str = "",
        timeout_s: float = 60.0,
        base_url: Optional[str] = None,
        client: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(default_model or DEFAULT_OPENAI_MODEL, logger)
        if not api_key:
            raise ProviderError(self.name, "openai API key is required")
        self.timeout_s = timeout_s

        if client is None:
            try:
                import openai
            except ImportError as e:
                raise ProviderError(self.name, "openai is not installed", e) from e
            client = openai.OpenAI(api_key=api_key, base_url=base_url or None)
        self.client = client

    def is_available(self, ctx: RequestContext) -> bool:
        """Retrieving the default model doubles as a health check."""
        if ctx.done():
            return False
        try:
            self.client.models.retrieve(self.default_model, timeout=ctx.timeout(AVAILABILITY_TIMEOUT_S))
        except Exception as e:
            self.logger.debug(f"OpenAI availability check failed: {e}")
            return False
        return True

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        ctx.check(self.name)
        model = self.model_for(request)

        messages = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": request.prompt})

        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "timeout": ctx.timeout(self.timeout_s),
        }
        if request.top_p > 0:
            kwargs["top_p"] = request.top_p
        kwargs.update(request.options)

        try:
            response = self.client.chat.completions.create(**kwargs)
        except Exception as e:
            if "timeout" in type(e).__name__.lower():
                raise GenerationTimeout(self.name, f"request timed out: {e}", e) from e
            raise ProviderError(self.name, f"generation failed: {e}", e) from e

        if not response.choices:
            raise InvalidResponse(self.name, "no choices in response")
        content = response.choices[0].message.content
        if not content:
            raise InvalidResponse(self.name, "empty completion")

        usage = getattr(response, "usage", None)
        return GenerationResponse(
            text=content,
            model=getattr(response, "model", None) or model,
            tokens_prompt=int(getattr(usage, "prompt_tokens", 0) or 0),
            tokens_total=int(getattr(usage, "total_tokens", 0) or 0),
        )

    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        return [
            ModelInfo(name=name, provider=self.name, size="unknown", type=model_type,
                      is_local=False, is_downloaded=True)
            for name, model_type in OPENAI_MODELS
        ]
