"""Base provider interface for LLM backends."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..core.models import Message
from ..errors import ProviderError

NO_RESPONSE = "No response from LLM"


class BaseProvider(ABC):
    """Abstract base class for LLM providers.

    Providers only turn a transcript into text. Tool calling is done by
    prompting, so no provider-native tool API is used.
    """

    name: str = "base"
    MODELS: List[str] = []
    DEFAULT_MODEL: Optional[str] = None

    def __init__(self, model: str = None, api_key: str = None, **kwargs):
        self.model = model or self.DEFAULT_MODEL
        self.api_key = api_key
        self.kwargs = kwargs
        self.temperature = kwargs.get("temperature", 0.7)

    @abstractmethod
    def chat(self, messages: List[Message], system: str = None) -> str:
        """
        Send a non-streaming chat request.

        Args:
            messages: Transcript, possibly including system messages
            system: Extra system prompt placed before the transcript

        Returns:
            Response text
        """
        pass

    def generate_response(self, messages: List[Message]) -> str:
        """Model call used by the session. Every failure becomes ProviderError."""
        if not self.is_configured():
            raise ProviderError(f"{self.name} is not configured", details=self.get_config_help(), provider=self.name)
        try:
            text = self.chat(messages)
        except ProviderError:
            raise
        except Exception as e:
            status = getattr(e, "status_code", None)
            label = f"{self.name} API error"
            if status is not None:
                label += f": {status}"
            raise ProviderError(label, details=str(e), provider=self.name, status_code=status) from e
        return text or NO_RESPONSE

    def list_models(self) -> List[str]:
        """List known models for this provider."""
        return list(self.MODELS)

    def is_configured(self) -> bool:
        """Check if provider is properly configured."""
        return True

    def get_config_help(self) -> str:
        """Get help text for configuring this provider."""
        return f"{self.name} provider"

    @staticmethod
    def to_wire(messages: List[Message], system: str = None) -> List[Dict[str, str]]:
        """OpenAI-style message list."""
        msg_list = []
        if system:
            msg_list.append({"role": "system", "content": system})
        msg_list.extend(m.to_dict() for m in messages)
        return msg_list
