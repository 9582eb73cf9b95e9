from typing import Optional

from config.models import GeminiConfig
from core.contracts.provider import AIProvider
import core.llm.providers  # noqa: F401  (registers the providers)
from core.registry import provider_registry
from utils.errors import ProviderError


def get_provider(config: GeminiConfig, name: Optional[str] = None) -> AIProvider:
    """
    Factory function to get a provider instance based on the config.

    Args:
        config: The external tool configuration.
        name: Overrides `config.provider` (e.g. "echo" for dry runs).

    Raises:
        ProviderError: If the provider is unknown or fails to be created.
    """
    provider_name = name or config.provider
    try:
        return provider_registry.create(provider_name, config=config)
    except KeyError:
        raise ProviderError(
            f"Unknown provider '{provider_name}'. Available providers: {provider_registry.names()}"
        )
    except Exception as e:
        raise ProviderError(f"Failed to create provider '{provider_name}': {e}") from e
