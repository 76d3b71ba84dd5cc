"""
Google Gemini provider (google-generativeai SDK).
"""

import logging
from typing import Any, List, Optional

from .base import GenerationProvider, GenerationRequest, GenerationResponse, ModelInfo, ProviderKind
from .context import RequestContext
from .errors import InvalidResponse, ProviderError

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
AVAILABILITY_TIMEOUT_S = 10.0

GEMINI_MODELS = [
    ("gemini-2.0-flash", "general"),
    ("gemini-2.0-pro-exp", "code"),
    ("gemini-2.5-pro", "code"),
]


class GeminiProvider(GenerationProvider):
    """Provider backed by the Gemini developer API."""

    kind = ProviderKind.GEMINI

    def __init__(
        self,
        api_key: str,
        default_model: str = "",
        timeout_s: float = 60.0,
        client: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(default_model or DEFAULT_GEMINI_MODEL, logger)
        if not api_key:
            raise ProviderError(self.name, "gemini API key is required")
        self.timeout_s = timeout_s

        if client is None:
            try:
                import google.generativeai as genai
            except ImportError as e:
                raise ProviderError(self.name, "google-generativeai is not installed", e) from e
            genai.configure(api_key=api_key)
            client = genai
        self._genai = client

    def is_available(self, ctx: RequestContext) -> bool:
        if ctx.done():
            return False
        try:
            models = self._genai.list_models(
                page_size=1,
                request_options={"timeout": ctx.timeout(AVAILABILITY_TIMEOUT_S)},
            )
            next(iter(models), None)
        except Exception as e:
            self.logger.debug(f"Gemini availability check failed: {e}")
            return False
        self.logger.debug("Gemini API is available")
        return True

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        ctx.check(self.name)
        model_name = self.model_for(request)

        prompt = request.prompt
        if request.system:
            prompt = f"{request.system}\n\n{request.prompt}"

        config_kwargs = {}
        if request.temperature > 0:
            config_kwargs["temperature"] = request.temperature
        if request.max_tokens > 0:
            config_kwargs["max_output_tokens"] = request.max_tokens
        if request.top_p > 0:
            config_kwargs["top_p"] = request.top_p
        if request.top_k > 0:
            config_kwargs["top_k"] = request.top_k
        config_kwargs.update(request.options)

        self.logger.debug(f"Gemini: generating with model {model_name} "
                          f"(temp={request.temperature:.2f}, max_tokens={request.max_tokens})")
        try:
            model = self._genai.GenerativeModel(model_name)
            response = model.generate_content(
                prompt,
                generation_config=self._genai.types.GenerationConfig(**config_kwargs),
                request_options={"timeout": ctx.timeout(self.timeout_s)},
            )
            text = response.text
        except Exception as e:
            raise ProviderError(self.name, f"generation failed: {e}", e) from e

        if not text:
            raise InvalidResponse(self.name, "gemini returned empty response")

        self.logger.debug(f"Gemini: generated {len(text)} characters")

        usage = getattr(response, "usage_metadata", None)
        return GenerationResponse(
            text=text,
            model=model_name,
            tokens_prompt=int(getattr(usage, "prompt_token_count", 0) or 0),
            tokens_total=int(getattr(usage, "total_token_count", 0) or 0),
        )

    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        return [
            ModelInfo(name=name, provider=self.name, size="unknown", type=model_type,
                      is_local=False, is_downloaded=True)
            for name, model_type in GEMINI_MODELS
        ]
