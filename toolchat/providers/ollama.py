"""Ollama provider (local or remote Ollama server)."""

import os
from typing import List

import httpx
import ollama

from .base import BaseProvider, Message


class OllamaProvider(BaseProvider):
    """Ollama chat API provider."""

    name = "ollama"
    DEFAULT_MODEL = "qwen3:4b"

    # Reasoning models that need longer timeouts
    REASONING_MODELS = ["gpt-oss", "deepseek-r1", "qwq"]

    def __init__(self, model: str = None, api_key: str = None, **kwargs):
        super().__init__(model=model, api_key=api_key, **kwargs)
        self.base_url = kwargs.get("base_url") or os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

        headers = kwargs.get("headers") or {}
        if self.api_key:
            headers = {**headers, "Authorization": f"Bearer {self.api_key}"}

        is_reasoning = any(r in (self.model or "").lower() for r in self.REASONING_MODELS)
        timeout = 600.0 if is_reasoning else 120.0  # 10 min for reasoning, 2 min default

        self.client = ollama.Client(
            host=self.base_url,
            timeout=httpx.Timeout(timeout, connect=30.0),
            headers=headers or None,
        )

    def chat(self, messages: List[Message], system: str = None) -> str:
        response = self.client.chat(
            model=self.model,
            messages=self.to_wire(messages, system),
            stream=False,
            options={"temperature": self.temperature},
        )
        if hasattr(response, "message"):
            return getattr(response.message, "content", "") or ""
        return response["message"]["content"]

    def list_models(self) -> List[str]:
        try:
            response = self.client.list()
            if hasattr(response, "models"):
                return [m.model if hasattr(m, "model") else m.get("model", "") for m in response.models]
            elif isinstance(response, dict) and "models" in response:
                return [m.get("model", m.get("name", "")) for m in response["models"]]
            return []
        except Exception:
            return []

    def get_config_help(self) -> str:
        return """Ollama (Local)

1. Install Ollama: https://ollama.ai
2. Start server: ollama serve
3. Pull a model: ollama pull qwen3:4b

Remote server: set OLLAMA_BASE_URL"""
