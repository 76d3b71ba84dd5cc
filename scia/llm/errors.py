"""
Error taxonomy for LLM generation.
"""

from typing import Optional


class LLMError(Exception):
    """Base class for every generation failure."""


class NoProvidersAvailable(LLMError):
    """No provider could be instantiated, or none was reachable."""

    def __init__(self, message: str = "no LLM providers available"):
        super().__init__(message)


class ProviderError(LLMError):
    """A backend failed; wraps the native SDK/HTTP error."""

    def __init__(self, provider: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.cause = cause


class InvalidModel(ProviderError):
    """The requested model is not available on the backend."""


class GenerationTimeout(ProviderError):
    """The request exceeded its deadline."""


class InvalidResponse(ProviderError):
    """The backend answered with something that is not a usable completion."""


class GenerationCancelled(LLMError):
    """The caller cancelled the request context."""

    def __init__(self, message: str = "generation cancelled"):
        super().__init__(message)
