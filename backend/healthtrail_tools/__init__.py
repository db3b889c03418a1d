from .advice_provider import AdviceProvider, ProviderConfig, ProviderError, build_prompt, provider_config_from_env

__all__ = [
    "AdviceProvider",
    "ProviderConfig",
    "ProviderError",
    "build_prompt",
    "provider_config_from_env",
]
