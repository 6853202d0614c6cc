"""Generation model construction for the release-notes relay."""

from .model_factory import GenerationBackendConfig, create_generation_model


__all__ = [
    "GenerationBackendConfig",
    "create_generation_model",
]
