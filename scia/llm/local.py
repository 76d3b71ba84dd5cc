"""
Local GGUF models served by a llama.cpp-compatible HTTP server.
"""

import logging
import os
from typing import List, Optional

import requests

from .base import (
    GenerationProvider,
    GenerationRequest,
    GenerationResponse,
    ModelInfo,
    ProviderKind,
    extract_model_type,
    extract_size_from_filename,
)
from .context import RequestContext
from .errors import InvalidResponse, LLMError, ProviderError
from .http import probe, request_json

DEFAULT_LOCAL_URL = "http://localhost:8080"
AVAILABILITY_TIMEOUT_S = 5.0


class LocalProvider(GenerationProvider):
    """Provider for a llama.cpp server (llama-server, text-generation-webui, ...)."""

    kind = ProviderKind.LOCAL

    def __init__(
        self,
        model_path: str = "",
        server_url: str = "",
        timeout_s: float = 120.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if model_path and not os.path.exists(model_path):
            raise ProviderError(ProviderKind.LOCAL.value, f"model file not found: {model_path}")
        super().__init__(os.path.basename(model_path) if model_path else "local-model", logger)
        self.model_path = model_path
        self.server_url = (server_url or DEFAULT_LOCAL_URL).rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def is_available(self, ctx: RequestContext) -> bool:
        return probe(self.session, f"{self.server_url}/health", ctx, AVAILABILITY_TIMEOUT_S)

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        payload = {
            "prompt": request.prompt,
            "temperature": request.temperature,
            "n_predict": request.max_tokens,
        }
        if request.top_p > 0:
            payload["top_p"] = request.top_p
        if request.top_k > 0:
            payload["top_k"] = request.top_k
        if request.system:
            payload["system_prompt"] = request.system
        payload.update(request.options)

        result = request_json(
            self.session, "POST", f"{self.server_url}/completion",
            provider=self.name, ctx=ctx, timeout_s=self.timeout_s, payload=payload,
        )
        if not isinstance(result, dict):
            raise InvalidResponse(self.name, "unexpected completion payload")

        text = result.get("content")
        if not isinstance(text, str):
            text = result.get("text")
        if not isinstance(text, str):
            raise InvalidResponse(self.name, "completion has no 'content' or 'text' field")

        prompt_tokens = int(result.get("tokens_evaluated") or 0)
        return GenerationResponse(
            text=text,
            model=self.default_model,
            tokens_prompt=prompt_tokens,
            tokens_total=prompt_tokens + int(result.get("tokens_predicted") or 0),
        )

    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        """The configured model file plus whatever the server reports; server errors are tolerated."""
        models = []
        if self.model_path:
            models.append(self._model_info(os.path.basename(self.model_path)))

        try:
            result = request_json(
                self.session, "GET", f"{self.server_url}/v1/models",
                provider=self.name, ctx=ctx, timeout_s=AVAILABILITY_TIMEOUT_S,
            )
        except LLMError as e:
            self.logger.debug(f"Local server model listing unavailable: {e}")
            return models

        for entry in (result or {}).get("data", []) if isinstance(result, dict) else []:
            model_id = entry.get("id") if isinstance(entry, dict) else None
            if model_id:
                models.append(self._model_info(model_id))
        return models

    def _model_info(self, name: str) -> ModelInfo:
        return ModelInfo(
            name=name,
            provider=self.name,
            size=extract_size_from_filename(name),
            type=extract_model_type(name),
            is_local=True,
            is_downloaded=True,
        )
