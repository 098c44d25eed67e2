"""
LLM Providers - interchangeable chat backends

Supported:
- OpenAI (and any OpenAI-compatible endpoint via base_url)
- Groq (OpenAI-compatible, the default)
- Anthropic
- Ollama (local or remote)
"""

from typing import List

from ..errors import ConfigError
from .base import NO_RESPONSE, BaseProvider, Message
from .anthropic import AnthropicProvider
from .ollama import OllamaProvider
from .openai import GroqProvider, OpenAIProvider

DEFAULT_PROVIDER = "groq"

PROVIDERS = {
    "groq": GroqProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "ollama": OllamaProvider,
}


def get_provider(name: str, **kwargs) -> BaseProvider:
    """Get a provider instance by name."""
    if name not in PROVIDERS:
        raise ConfigError(f"Unknown provider: {name}", details=f"Available: {', '.join(PROVIDERS)}")
    return PROVIDERS[name](**kwargs)


def list_providers() -> List[str]:
    """List available provider names."""
    return list(PROVIDERS.keys())


__all__ = [
    "BaseProvider",
    "Message",
    "NO_RESPONSE",
    "DEFAULT_PROVIDER",
    "OpenAIProvider",
    "GroqProvider",
    "AnthropicProvider",
    "OllamaProvider",
    "get_provider",
    "list_providers",
]
