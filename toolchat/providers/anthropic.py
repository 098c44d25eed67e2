"""Anthropic Claude provider."""

import os
from typing import Dict, List, Tuple

from .base import BaseProvider, Message


class AnthropicProvider(BaseProvider):
    """Anthropic Messages API provider."""

    name = "anthropic"

    MODELS = [
        "claude-sonnet-4-5",
        "claude-opus-4-1",
        "claude-3-5-haiku-latest",
    ]
    DEFAULT_MODEL = "claude-sonnet-4-5"
    MAX_TOKENS = 1024

    def __init__(self, model: str = None, api_key: str = None, **kwargs):
        super().__init__(model=model, api_key=api_key, **kwargs)

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY") or os.getenv("LLM_API_KEY")
        self.max_tokens = kwargs.get("max_tokens", self.MAX_TOKENS)

        if self.api_key:
            import anthropic
            client_kwargs = {"api_key": self.api_key}
            if kwargs.get("base_url"):
                client_kwargs["base_url"] = kwargs["base_url"]
            self.client = anthropic.Anthropic(**client_kwargs)
        else:
            self.client = None

    @staticmethod
    def split_system(messages: List[Message], system: str = None) -> Tuple[str, List[Dict[str, str]]]:
        """Anthropic takes the system prompt separately and needs alternating roles.

        Leading system messages become the system prompt. Later system
        messages (tool results) are sent as user turns, and consecutive
        turns with the same role are merged.
        """
        system_parts = [system] if system else []
        turns: List[Dict[str, str]] = []

        for m in messages:
            if m.role == "system" and not turns:
                system_parts.append(m.content)
                continue
            role = "assistant" if m.role == "assistant" else "user"
            content = f"[system] {m.content}" if m.role == "system" else m.content
            if turns and turns[-1]["role"] == role:
                turns[-1]["content"] += "\n\n" + content
            else:
                turns.append({"role": role, "content": content})

        return "\n\n".join(system_parts), turns

    def chat(self, messages: List[Message], system: str = None) -> str:
        """Send chat request to Claude."""
        if not self.client:
            raise ValueError("Anthropic API key not configured. Set ANTHROPIC_API_KEY")

        system_prompt, turns = self.split_system(messages, system)
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": turns,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        response = self.client.messages.create(**kwargs)
        texts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        return "".join(texts)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def get_config_help(self) -> str:
        return """Anthropic Claude

1. Get API key: https://console.anthropic.com/settings/keys
2. Set environment variable:
   export ANTHROPIC_API_KEY=sk-ant-...

Or add to ~/.toolchat/.env:
   ANTHROPIC_API_KEY=sk-ant-..."""
