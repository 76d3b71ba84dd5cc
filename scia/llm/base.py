"""
Provider interface and provider-agnostic request/response types.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .context import RequestContext

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Backend families a ProviderConfig can select."""
    OLLAMA = "ollama"
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    HUGGINGFACE = "huggingface"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ProviderKind":
        """Parse a provider name; an empty value means the local default (ollama)."""
        if not value:
            return cls.OLLAMA
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"unknown LLM provider {value!r} (expected one of: {valid})") from None

    def __str__(self) -> str:
        return self.value


@dataclass
class GenerationRequest:
    """Provider-agnostic generation request."""
    prompt: str
    model: str = ""                 # empty = provider default
    system: str = ""
    temperature: float = 0.7
    max_tokens: int = 512
    top_p: float = 0.0              # 0 = backend default
    top_k: int = 0                  # 0 = backend default
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationResponse:
    """Provider-agnostic generation response."""
    text: str
    model: str
    tokens_prompt: int = 0
    tokens_total: int = 0


@dataclass
class ModelInfo:
    """Describes a model a provider can serve."""
    name: str
    provider: str
    size: str = "unknown"
    type: str = "general"
    tags: List[str] = field(default_factory=list)
    is_local: bool = False
    is_downloaded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "provider": self.provider,
            "size": self.size,
            "type": self.type,
            "tags": list(self.tags),
            "is_local": self.is_local,
            "is_downloaded": self.is_downloaded,
        }


class GenerationProvider(ABC):
    """Abstract base class for text generation backends."""

    kind: ProviderKind

    def __init__(self, default_model: str, logger: Optional[logging.Logger] = None):
        self.default_model = default_model
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    def generate(self, ctx: RequestContext, request: GenerationRequest) -> GenerationResponse:
        """
        Generate text for a request.

        Args:
            ctx: Request context bounding the call
            request: Provider-agnostic request

        Returns:
            GenerationResponse

        Raises:
            ProviderError: On any backend failure (native errors are wrapped)
        """

    @abstractmethod
    def list_models(self, ctx: RequestContext) -> List[ModelInfo]:
        """Return the models this provider can serve."""

    @abstractmethod
    def is_available(self, ctx: RequestContext) -> bool:
        """Check if the backend is reachable; never raises."""

    def model_for(self, request: GenerationRequest) -> str:
        return request.model or self.default_model

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.default_model!r})"


def extract_model_size(model_name: str) -> str:
    """Extract the tag after ':' as size (``qwen2.5-coder:7b`` -> ``7b``)."""
    if ":" in model_name:
        tag = model_name.rsplit(":", 1)[1]
        if tag:
            return tag
    match = re.search(r'(?<![\d.])(\d+(?:\.\d+)?)[bB](?![a-zA-Z])', model_name)
    if match:
        return f"{match.group(1)}b"
    return "unknown"


def extract_model_type(model_name: str) -> str:
    """Classify a model by name: code, instruct, chat or general."""
    name = model_name.lower()
    if "code" in name:
        return "code"
    if "instruct" in name:
        return "instruct"
    if "chat" in name:
        return "chat"
    return "general"


def extract_size_from_filename(filename: str) -> str:
    """
    Size plus quantization from a GGUF file name.

    ``mistral-7b-instruct-v0.2.Q4_K_M.gguf`` -> ``7b-Q4_K_M``
    """
    size = extract_model_size(filename)
    quant = re.search(r'\b(Q\d[A-Z0-9_]*)', filename)
    if quant:
        return f"{size}-{quant.group(1)}" if size != "unknown" else quant.group(1)
    return size
