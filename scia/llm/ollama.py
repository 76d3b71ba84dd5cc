"""
Ollama provider (local model server REST API).
"""

import logging
from typing import List, Optional

import requests

from .base import (
    GenerationProvider,
    GenerationRequest,
    GenerationResponse,
    ModelInfo,
    ProviderKind,
    extract_model_size,
    extract_model_type,
)
from .context import RequestContext
from .errors import InvalidResponse, ProviderError
from .http import probe, request_json

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen2.5-coder:7b"
AVAILABILITY_TIMEOUT_S = 5.0


class OllamaProvider(GenerationProvider):
    """Provider backed by an Ollama server."""

    kind = ProviderKind.OLLAMA

    def __init__(
        self,
        base_url: str = "",
        default_model: str = "",
        timeout_s: float = 120.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(default_model or DEFAULT_OLLAMA_MODEL, logger)
        base_url = (base_url or DEFAULT_OLLAMA_URL).rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ProviderError(self.name, f"invalid Ollama URL: {base_url}")
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def is_available(self, ctx: RequestContext) -> bool:
        """Listing models doubles as a health check."""
        return probe(self.session, f"{self.base_url}/api/tags", ctx, AVAILABILITY_TIMEOUT_S)

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        model = self.model_for(request)

        options = {
            "temperature": request.temperature,
            "num_predict": request.max_tokens,
        }
        if request.top_p > 0:
            options["top_p"] = request.top_p
        if request.top_k > 0:
            options["top_k"] = request.top_k
        options.update(request.options)

        payload = {
            "model": model,
            "prompt": request.prompt,
            "stream": False,
            "options": options,
        }
        if request.system:
            payload["system"] = request.system

        self.logger.debug(f"Ollama: generating with model {model} (temp={request.temperature:.2f}, "
                          f"max_tokens={request.max_tokens})")
        result = request_json(
            self.session, "POST", f"{self.base_url}/api/generate",
            provider=self.name, ctx=ctx, timeout_s=self.timeout_s, payload=payload,
        )

        if not isinstance(result, dict) or "response" not in result:
            raise InvalidResponse(self.name, "response has no 'response' field")

        prompt_tokens = int(result.get("prompt_eval_count") or 0)
        eval_tokens = int(result.get("eval_count") or 0)
        return GenerationResponse(
            text=str(result["response"]),
            model=str(result.get("model") or model),
            tokens_prompt=prompt_tokens,
            tokens_total=prompt_tokens + eval_tokens,
        )

    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        result = request_json(
            self.session, "GET", f"{self.base_url}/api/tags",
            provider=self.name, ctx=ctx, timeout_s=AVAILABILITY_TIMEOUT_S * 2,
        )

        models = []
        for entry in (result or {}).get("models", []):
            name = entry.get("name") or entry.get("model")
            if not name:
                continue
            models.append(ModelInfo(
                name=name,
                provider=self.name,
                size=extract_model_size(name),
                type=extract_model_type(name),
                is_local=True,
                is_downloaded=True,
            ))
        return models
