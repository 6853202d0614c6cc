"""Model factory for the release-notes generation backend.

The backend is described by an explicit ``GenerationBackendConfig`` value that
is built once at startup (see ``Settings.to_backend_config``) and turned into a
pydantic-ai ``Model`` here. Nothing in this module reads ambient settings, so
the relay can be constructed around any substitute model in tests.

Usage:
    from services.ai.model_factory import create_generation_model

    model = create_generation_model(get_settings().to_backend_config())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, cast

from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.openai import OpenAIProvider


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)

ProviderName = Literal["openai", "azure_openai", "gemini"]

# OpenAI reasoning models that support reasoning_effort parameter
REASONING_MODELS = {
    "gpt-5-mini",
    "gpt-5-nano",
    "o1-mini",
    "o1",
    "o3-mini",
}


@dataclass(frozen=True, slots=True)
class GenerationBackendConfig:
    """Everything needed to reach the model-serving backend."""

    provider: ProviderName
    model_name: str
    api_key: str | None = None
    endpoint: str | None = None
    api_version: str | None = None

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        return (
            f"GenerationBackendConfig(provider={self.provider!r}, "
            f"model_name={self.model_name!r}, endpoint={self.endpoint!r})"
        )


def _normalize_azure_endpoint(endpoint: str) -> str:
    """Strip trailing slashes so Azure does not see `//openai/...` paths."""
    return endpoint.rstrip("/")


def _validate_credentials(config: GenerationBackendConfig) -> None:
    """Fail fast when the selected provider is missing required values."""
    if not config.api_key:
        raise ValueError(
            f"No API key configured for LLM provider '{config.provider}'."
        )
    if config.provider == "azure_openai" and (
        not config.endpoint or not config.api_version
    ):
        raise ValueError(
            "LLM_PROVIDER=azure_openai requires AZURE_OPENAI_ENDPOINT and "
            "AZURE_OPENAI_API_VERSION."
        )


def _openai_settings(model_name: str) -> dict[str, str] | None:
    if model_name in REASONING_MODELS:
        logger.info("Applying low reasoning effort for reasoning model: %s", model_name)
        return {"openai_reasoning_effort": "low"}
    return None


def _create_openai_model(
    config: GenerationBackendConfig,
    http_client: AsyncClient | None = None,
) -> Model:
    provider = OpenAIProvider(api_key=config.api_key, http_client=http_client)
    settings = _openai_settings(config.model_name)
    if settings:
        return OpenAIChatModel(
            config.model_name,
            provider=provider,
            settings=settings,  # type: ignore[arg-type]
        )
    return OpenAIChatModel(config.model_name, provider=provider)


def _create_azure_model(
    config: GenerationBackendConfig,
    http_client: AsyncClient | None = None,
) -> Model:
    from openai import AsyncAzureOpenAI

    azure_client = AsyncAzureOpenAI(
        azure_endpoint=_normalize_azure_endpoint(config.endpoint or ""),
        api_key=config.api_key,
        api_version=config.api_version,
        http_client=http_client,
    )
    provider = OpenAIProvider(openai_client=azure_client)
    settings = _openai_settings(config.model_name)
    if settings:
        return OpenAIChatModel(
            config.model_name,
            provider=provider,
            settings=settings,  # type: ignore[arg-type]
        )
    return OpenAIChatModel(config.model_name, provider=provider)


def _create_gemini_model(
    config: GenerationBackendConfig,
    http_client: AsyncClient | None = None,
) -> Model:
    provider = GoogleProvider(api_key=config.api_key, http_client=http_client)
    return cast(Model, GoogleModel(config.model_name, provider=provider))


def create_generation_model(
    config: GenerationBackendConfig,
    http_client: AsyncClient | None = None,
) -> Model:
    """Build the streaming text model for the configured provider.

    Args:
        config: Backend description built from settings at startup.
        http_client: Optional HTTP client shared with the provider SDK.

    Raises:
        ValueError: If the provider is missing credentials.
    """
    _validate_credentials(config)
    logger.info(
        "Using %s generation model: %s", config.provider, config.model_name
    )
    if config.provider == "azure_openai":
        return _create_azure_model(config, http_client)
    if config.provider == "gemini":
        return _create_gemini_model(config, http_client)
    return _create_openai_model(config, http_client)
