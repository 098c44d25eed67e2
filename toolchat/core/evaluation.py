"""
Structured-output comparison across providers.

Sends the same query, with the tool catalog in the system prompt, to each
provider and records how the reply was classified. Useful for checking
which models follow the JSON tool-call format.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..errors import ProviderError
from .detection import detect_tool_call
from .models import DetectionResult, Message, ToolDescriptor
from .prompts import build_system_prompt

logger = logging.getLogger(__name__)

DEFAULT_SCENARIOS = [
    "Add 15 and 27",
    "What is the result of multiplying 8 by 9?",
    'Can you echo back the message "Hello World"?',
    "Tell me a joke",
]


@dataclass
class ScenarioResult:
    """One provider's answer to one query."""
    provider: str
    query: str
    llm_response: Optional[str] = None
    detection: Optional[DetectionResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StructuredOutputTester:
    """Run queries against several providers and classify the replies."""

    def __init__(self, providers: Dict[str, object], tools: Iterable[ToolDescriptor]):
        self.providers = dict(providers)
        self.tools = list(tools)
        self.system_prompt = build_system_prompt(self.tools)

    def test_scenario(self, provider_name: str, query: str) -> ScenarioResult:
        """Ask one provider; ProviderError propagates."""
        provider = self.providers.get(provider_name)
        if provider is None:
            raise KeyError(
                f"Provider '{provider_name}' not available. Available: {', '.join(self.providers)}"
            )

        messages = [Message("system", self.system_prompt), Message("user", query)]
        response = provider.generate_response(messages)
        detection = detect_tool_call(response)
        logger.info(
            "%s: tool_call=%s method=%s tool=%s",
            provider_name, detection.is_tool_call, detection.detection_method.value, detection.tool_name,
        )
        return ScenarioResult(provider_name, query, llm_response=response, detection=detection)

    def run_all(self, query: str) -> List[ScenarioResult]:
        """Same query against every provider; failures are recorded, not raised."""
        results = []
        for name in self.providers:
            try:
                results.append(self.test_scenario(name, query))
            except ProviderError as e:
                logger.warning("Error testing %s: %s", name, e)
                results.append(ScenarioResult(name, query, error=str(e)))
        return results
