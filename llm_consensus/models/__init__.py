"""Provider adapters and catalog."""

from .anthropic_client import AnthropicAdapter
from .base import AdapterConfig, BaseProviderAdapter, RawCompletion, StructuredReply
from .catalog import DEFAULT_CATALOG, ProviderCatalog, load_provider_catalog
from .google_client import GoogleAdapter
from .openai_client import OpenAIAdapter

__all__ = [
    "AdapterConfig",
    "BaseProviderAdapter",
    "RawCompletion",
    "StructuredReply",
    "DEFAULT_CATALOG",
    "ProviderCatalog",
    "load_provider_catalog",
    "AnthropicAdapter",
    "GoogleAdapter",
    "OpenAIAdapter",
]
