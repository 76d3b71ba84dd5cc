"""
Hugging Face hosted inference provider.
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
from .errors import InvalidResponse
from .http import probe, request_json

DEFAULT_HF_ENDPOINT = "https://api-inference.huggingface.co/models"
DEFAULT_HF_MODEL = "mistralai/Mistral-7B-Instruct-v0.2"
AVAILABILITY_TIMEOUT_S = 5.0

POPULAR_MODELS = [
    "mistralai/Mistral-7B-Instruct-v0.2",
    "meta-llama/Llama-2-7b-chat-hf",
    "codellama/CodeLlama-7b-Instruct-hf",
    "bigcode/starcoder",
]


class HuggingFaceProvider(GenerationProvider):
    """Provider backed by the Hugging Face inference REST endpoint."""

    kind = ProviderKind.HUGGINGFACE

    def __init__(
        self,
        api_token: str = "",
        default_model: str = "",
        endpoint: str = "",
        timeout_s: float = 60.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(default_model or DEFAULT_HF_MODEL, logger)
        self.api_token = api_token
        self.endpoint = (endpoint or DEFAULT_HF_ENDPOINT).rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def _headers(self):
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def is_available(self, ctx: RequestContext) -> bool:
        if not self.api_token:
            return False
        return probe(self.session, f"{self.endpoint}/{self.default_model}", ctx,
                     AVAILABILITY_TIMEOUT_S, headers=self._headers())

    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        model = self.model_for(request)

        inputs = request.prompt
        if request.system:
            inputs = f"{request.system}\n\nUser: {request.prompt}"

        parameters = {
            "temperature": request.temperature,
            "max_new_tokens": request.max_tokens,
            "return_full_text": False,
        }
        if request.top_p > 0:
            parameters["top_p"] = request.top_p
        if request.top_k > 0:
            parameters["top_k"] = request.top_k
        parameters.update(request.options)

        result = request_json(
            self.session, "POST", f"{self.endpoint}/{model}",
            provider=self.name, ctx=ctx, timeout_s=self.timeout_s,
            headers=self._headers(),
            payload={"inputs": inputs, "parameters": parameters},
        )

        if isinstance(result, list) and result and isinstance(result[0], dict):
            text = result[0].get("generated_text", "")
        elif isinstance(result, dict) and "generated_text" in result:
            text = result["generated_text"]
        else:
            raise InvalidResponse(self.name, "empty response from HuggingFace")

        return GenerationResponse(text=str(text), model=model)

    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        return [
            ModelInfo(
                name=name,
                provider=self.name,
                size=extract_model_size(name),
                type=extract_model_type(name),
                is_local=False,
                is_downloaded=False,
            )
            for name in POPULAR_MODELS
        ]
