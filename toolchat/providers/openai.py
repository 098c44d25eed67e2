"""OpenAI-compatible chat completions provider (OpenAI, Groq, any compatible endpoint)."""

import os
from typing import List

from .base import BaseProvider, Message


class OpenAIProvider(BaseProvider):
    """OpenAI chat completions API."""

    name = "openai"
    ENV_KEY = "OPENAI_API_KEY"
    BASE_URL = None

    MODELS = [
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4o",
        "gpt-4o-mini",
    ]
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, model: str = None, api_key: str = None, **kwargs):
        super().__init__(model=model, api_key=api_key, **kwargs)

        self.api_key = api_key or os.getenv(self.ENV_KEY) or os.getenv("LLM_API_KEY")
        self.base_url = kwargs.get("base_url") or self.BASE_URL

        if self.api_key:
            from openai import OpenAI
            self.client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        else:
            self.client = None

    def chat(self, messages: List[Message], system: str = None) -> str:
        """Send chat request."""
        if not self.client:
            raise ValueError(f"{self.name} API key not configured. Set {self.ENV_KEY} or LLM_API_KEY")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=self.to_wire(messages, system),
            temperature=self.temperature,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def list_models(self) -> List[str]:
        """List available models."""
        if not self.client:
            return self.MODELS

        try:
            response = self.client.models.list()
            models = [m.id for m in response.data]
            return sorted(models) if models else self.MODELS
        except Exception:
            return self.MODELS

    def is_configured(self) -> bool:
        """Check if API key is set."""
        return bool(self.api_key)

    def get_config_help(self) -> str:
        return f"""OpenAI

1. Get API key: https://platform.openai.com/api-keys
2. Set environment variable:
   export {self.ENV_KEY}=sk-...

Or add to ~/.toolchat/.env:
   {self.ENV_KEY}=sk-..."""


class GroqProvider(OpenAIProvider):
    """Groq's OpenAI-compatible endpoint."""

    name = "groq"
    ENV_KEY = "GROQ_API_KEY"
    BASE_URL = "https://api.groq.com/openai/v1"

    MODELS = [
        "llama-3.3-70b-versatile",
        "llama-3.1-8b-instant",
        "openai/gpt-oss-120b",
    ]
    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def get_config_help(self) -> str:
        return f"""Groq

1. Get API key: https://console.groq.com/keys
2. Set environment variable:
   export {self.ENV_KEY}=gsk_...

Or add to ~/.toolchat/.env:
   {self.ENV_KEY}=gsk_..."""
