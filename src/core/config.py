"""Application settings and CORS configuration."""

import json
import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.ai.model_factory import GenerationBackendConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Release Notes Relay"
    ENVIRONMENT: str = "development"  # development | production | test

    # CORS
    # Accept list or CSV/JSON string from env; normalized to list[str] by validators
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    ALLOW_CREDENTIALS: bool = True

    # Generation backend
    # openai | azure_openai | gemini
    LLM_PROVIDER: str = "openai"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    AZURE_OPENAI_ENDPOINT: str | None = None
    AZURE_OPENAI_API_KEY: str | None = None
    AZURE_OPENAI_API_VERSION: str | None = None
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Client side: where the relay lives and where extracted notes are kept
    NOTES_API_URL: str = "http://localhost:8000"
    NOTES_CACHE_URL: str = "sqlite+aiosqlite:///./notes_cache.db"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        """Allow list, CSV string, or JSON array string for CORS origins."""
        if isinstance(v, list):
            return [str(i).strip() for i in v]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError as e:
                    raise ValueError(
                        "CORS_ORIGINS must be a CSV list or JSON array string"
                    ) from e
                if not isinstance(parsed, list):
                    raise ValueError("CORS_ORIGINS JSON must be a list")
                return [str(i).strip() for i in parsed]
            return [i.strip() for i in s.split(",") if i.strip()]
        raise ValueError("Invalid CORS_ORIGINS type; expected str or list[str]")

    @field_validator("LLM_PROVIDER", mode="before")
    @classmethod
    def normalize_provider(cls, v: object) -> str:
        provider = str(v).strip().lower()
        if provider not in {"openai", "azure_openai", "gemini"}:
            raise ValueError(
                "LLM_PROVIDER must be one of 'openai', 'azure_openai', 'gemini'"
            )
        return provider

    @model_validator(mode="after")
    def _validate_cors_credentials(self) -> "Settings":
        """Ensure wildcard origins are not used when credentials are allowed."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = self.assemble_cors_origins(self.CORS_ORIGINS)
        if self.ALLOW_CREDENTIALS and any(
            o.strip() == "*" for o in (self.CORS_ORIGINS or [])
        ):
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True but "
                "CORS_ORIGINS contains '*'. Use explicit origins when credentials "
                "are allowed."
            )
        return self

    def to_backend_config(self) -> GenerationBackendConfig:
        """Collapse the provider settings into the value handed to the relay."""
        if self.LLM_PROVIDER == "azure_openai":
            return GenerationBackendConfig(
                provider="azure_openai",
                model_name=self.OPENAI_MODEL,
                api_key=self.AZURE_OPENAI_API_KEY,
                endpoint=self.AZURE_OPENAI_ENDPOINT,
                api_version=self.AZURE_OPENAI_API_VERSION,
            )
        if self.LLM_PROVIDER == "gemini":
            return GenerationBackendConfig(
                provider="gemini",
                model_name=self.GEMINI_MODEL,
                api_key=self.GEMINI_API_KEY,
            )
        return GenerationBackendConfig(
            provider="openai",
            model_name=self.OPENAI_MODEL,
            api_key=self.OPENAI_API_KEY,
        )


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # pydantic-settings accepts the runtime-only `_env_file` kwarg; mypy's stub
    # doesn't, hence the scoped ignore.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
