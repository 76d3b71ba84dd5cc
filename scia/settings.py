"""
Configuration loading: defaults, then ``~/.scia.yaml`` (or ``--config``), then environment.

Settings are a pydantic-settings model. Every leaf can be overridden by an
environment variable named after its path with ``__`` between levels, e.g.
``llm.ollama.url`` -> ``SCIA_LLM__OLLAMA__URL``. List values are given as
JSON (``SCIA_LLM__FALLBACKS='["ollama"]'``). Vendor key variables
(``OPENAI_API_KEY``, ...) fill API keys left empty.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, PrivateAttr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from scia.llm import ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".scia.yaml"
REGION_RE = re.compile(r'^[a-z]{2}(?:-[a-z]+)+-\d$')

VENDOR_KEY_VARS = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "huggingface": ("HUGGINGFACE_API_KEY", "HF_TOKEN"),
}


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or holds invalid values."""


class OllamaSettings(BaseModel):
    url: str = "http://localhost:11434"
    model: str = "qwen2.5-coder:7b"
    use_docker: bool = False


class GeminiSettings(BaseModel):
    api_key: str = ""
    model: str = "gemini-2.0-flash"


class OpenAISettings(BaseModel):
    api_key: str = ""
    model: str = "gpt-4o"
    base_url: str = ""


class AnthropicSettings(BaseModel):
    api_key: str = ""
    model: str = "claude-3-haiku-20240307"


class HuggingFaceSettings(BaseModel):
    api_key: str = ""
    model: str = "mistralai/Mistral-7B-Instruct-v0.2"
    endpoint: str = ""


class LocalSettings(BaseModel):
    model_path: str = ""
    server_url: str = "http://localhost:8080"


class LLMSettings(BaseModel):
    provider: str = "ollama"
    fallbacks: List[str] = Field(default_factory=list)
    timeout: float = 60.0
    ollama: OllamaSettings = Field(default_factory=OllamaSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    anthropic: AnthropicSettings = Field(default_factory=AnthropicSettings)
    huggingface: HuggingFaceSettings = Field(default_factory=HuggingFaceSettings)
    local: LocalSettings = Field(default_factory=LocalSettings)

    @field_validator("provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("fallbacks", mode="before")
    @classmethod
    def _split_fallbacks(cls, value: Any) -> Any:
        # YAML allows "fallbacks: ollama, gemini"
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class CloudSettings(BaseModel):
    provider: str = "aws"
    default_region: str = "eu-west-3"


class Settings(BaseSettings):
    """Resolved configuration for one invocation."""

    model_config = SettingsConfigDict(env_prefix="SCIA_", env_nested_delimiter="__", extra="ignore")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    cloud: CloudSettings = Field(default_factory=CloudSettings)

    _source: Optional[str] = PrivateAttr(default=None)

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings, dotenv_settings,
                                   file_secret_settings):
        # Environment beats the config file, which arrives as init kwargs.
        return env_settings, init_settings

    @property
    def source(self) -> Optional[str]:
        """Config file the settings were read from, if any."""
        return self._source

    def to_provider_config(self, verbose: bool = False) -> ProviderConfig:
        """
        Build the ProviderConfig for the configured provider family.

        Raises:
            ConfigError: If the provider or a fallback is unknown
        """
        try:
            kind = ProviderKind.parse(self.llm.provider)
            fallbacks = [ProviderKind.parse(name) for name in self.llm.fallbacks if name]
        except ValueError as e:
            raise ConfigError(str(e)) from e

        llm = self.llm
        return ProviderConfig(
            kind=kind,
            fallbacks=fallbacks,
            ollama_url=llm.ollama.url,
            ollama_model=llm.ollama.model,
            gemini_api_key=llm.gemini.api_key,
            gemini_model=llm.gemini.model,
            openai_api_key=llm.openai.api_key,
            openai_model=llm.openai.model,
            openai_base_url=llm.openai.base_url,
            anthropic_api_key=llm.anthropic.api_key,
            anthropic_model=llm.anthropic.model,
            hf_token=llm.huggingface.api_key,
            hf_endpoint=llm.huggingface.endpoint,
            hf_model=llm.huggingface.model,
            local_model_path=llm.local.model_path,
            local_server_url=llm.local.server_url,
            timeout_s=llm.timeout,
            verbose=verbose,
        )

    def active_model(self) -> str:
        """Model name of the primary provider."""
        section = getattr(self.llm, self.llm.provider, None)
        if section is None:
            return ""
        return getattr(section, "model", "") or getattr(section, "model_path", "")


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML configuration file.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    try:
        text = Path(path).read_text()
    except OSError as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def _fill_vendor_keys(settings: Settings) -> None:
    for section_name, names in VENDOR_KEY_VARS.items():
        section = getattr(settings.llm, section_name)
        if section.api_key:
            continue
        for name in names:
            if os.getenv(name):
                section.api_key = os.getenv(name)
                break


def load_settings(config_path: Union[str, Path, None] = None) -> Settings:
    """
    Load settings.

    Args:
        config_path: Explicit config file (must exist); ``~/.scia.yaml`` is used when present otherwise

    Returns:
        Settings

    Raises:
        ConfigError: If the file is unreadable or a value cannot be converted
    """
    path = Path(config_path) if config_path else None
    if path is None and DEFAULT_CONFIG_PATH.is_file():
        path = DEFAULT_CONFIG_PATH

    data = read_config_file(path) if path is not None else {}
    try:
        settings = Settings(**data)
    except (ValidationError, SettingsError) as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    if path is not None:
        settings._source = str(path)
        logger.debug(f"Loaded configuration from {path}")

    _fill_vendor_keys(settings)
    return settings


def validate_settings(settings: Settings) -> List[str]:
    """Return a list of configuration problems; empty when valid."""
    issues = []
    llm = settings.llm

    try:
        kind = ProviderKind.parse(llm.provider)
    except ValueError as e:
        issues.append(str(e))
        kind = None

    for name in llm.fallbacks:
        try:
            ProviderKind.parse(name)
        except ValueError as e:
            issues.append(f"fallback: {e}")

    if kind == ProviderKind.OLLAMA:
        if not llm.ollama.url.startswith(("http://", "https://")):
            issues.append(f"llm.ollama.url must be an http(s) URL, got {llm.ollama.url!r}")
        if not llm.ollama.model:
            issues.append("llm.ollama.model is required")
    elif kind == ProviderKind.GEMINI and not llm.gemini.api_key:
        issues.append("llm.gemini.api_key is required (or set GEMINI_API_KEY)")
    elif kind == ProviderKind.OPENAI and not llm.openai.api_key:
        issues.append("llm.openai.api_key is required (or set OPENAI_API_KEY)")
    elif kind == ProviderKind.ANTHROPIC and not llm.anthropic.api_key:
        issues.append("llm.anthropic.api_key is required (or set ANTHROPIC_API_KEY)")
    elif kind == ProviderKind.HUGGINGFACE and not llm.huggingface.model:
        issues.append("llm.huggingface.model is required")
    elif kind == ProviderKind.LOCAL:
        if not llm.local.server_url.startswith(("http://", "https://")):
            issues.append(f"llm.local.server_url must be an http(s) URL, got {llm.local.server_url!r}")
        if llm.local.model_path and not os.path.exists(llm.local.model_path):
            issues.append(f"llm.local.model_path does not exist: {llm.local.model_path}")

    if llm.timeout <= 0:
        issues.append("llm.timeout must be positive")

    if not REGION_RE.match(settings.cloud.default_region or ""):
        issues.append(f"cloud.default_region is not a valid region: {settings.cloud.default_region!r}")

    return issues
