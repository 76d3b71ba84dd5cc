"""
Language-model providers and the fallback manager.
"""

from .base import (
    GenerationProvider,
    GenerationRequest,
    GenerationResponse,
    ModelInfo,
    ProviderKind,
    extract_model_size,
    extract_model_type,
    extract_size_from_filename,
)
from .context import RequestContext
from .errors import (
    GenerationCancelled,
    GenerationTimeout,
    InvalidModel,
    InvalidResponse,
    LLMError,
    NoProvidersAvailable,
    ProviderError,
)
from .manager import ProviderConfig, ProviderManager
from .registry import create_provider, register_provider

__all__ = [
    "GenerationProvider",
    "GenerationRequest",
    "GenerationResponse",
    "ModelInfo",
    "ProviderKind",
    "RequestContext",
    "LLMError",
    "NoProvidersAvailable",
    "ProviderError",
    "InvalidModel",
    "GenerationTimeout",
    "GenerationCancelled",
    "InvalidResponse",
    "ProviderConfig",
    "ProviderManager",
    "create_provider",
    "register_provider",
    "extract_model_size",
    "extract_model_type",
    "extract_size_from_filename",
]
