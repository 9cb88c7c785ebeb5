"""Mock provider for local development and testing.

Returns canned responses. No real model calls.
"""

import logging
from collections import deque
from typing import Optional, Union

from ..config import settings
from ..domain import ModelConfiguration, ProviderConfiguration
from .base import Provider

logger = logging.getLogger(__name__)

ScriptedResponse = Union[str, Exception]


class MockProvider(Provider):
    """Provider that answers from a script, keyword table or default text."""

    provider_id = "mock"
    display_name = "Mock Provider"
    supported_models = frozenset({"mock-model"})

    def __init__(
        self, default_response: str = "Mock LLM response", history: Optional[int] = None
    ):
        super().__init__()
        self._default_response = default_response
        self._canned_responses: dict[str, str] = {}
        self._script: deque[ScriptedResponse] = deque()
        # Most recent prompts, oldest first
        self.prompts: deque[str] = deque(
            maxlen=settings.mock_prompt_history if history is None else history
        )

    def _configure(self, configuration: ProviderConfiguration) -> None:
        default_response = configuration.get_parameter("defaultResponse", str)
        if default_response is not None:
            self._default_response = default_response

    def set_response(self, prompt_contains: str, response: str) -> None:
        """Register a canned response for prompts containing a keyword."""
        self._canned_responses[prompt_contains] = response

    def queue_response(self, response: ScriptedResponse) -> None:
        """Queue a response, or an exception to raise, for the next call."""
        self._script.append(response)

    def send_request(self, prompt: str, model_config: ModelConfiguration) -> str:
        self.prompts.append(prompt)

        if self._script:
            scripted = self._script.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        for keyword, response in self._canned_responses.items():
            if keyword in prompt:
                return response
        return self._default_response
