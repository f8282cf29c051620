"""AI client factory for the plan generator."""
import logging
from dataclasses import dataclass, field
from typing import Any

import openai

from workout_plan_api.config import settings


logger = logging.getLogger(__name__)

# Default client timeout
DEFAULT_TIMEOUT = 30.0


@dataclass
class CompletionParams:
    """Sampling parameters sent with every plan completion."""

    model: str = field(default_factory=lambda: settings.OPENAI_MODEL)
    max_tokens: int = field(default_factory=lambda: settings.OPENAI_MAX_TOKENS)
    temperature: float = field(default_factory=lambda: settings.OPENAI_TEMPERATURE)
    top_p: float = field(default_factory=lambda: settings.OPENAI_TOP_P)
    frequency_penalty: float = field(default_factory=lambda: settings.OPENAI_FREQUENCY_PENALTY)
    presence_penalty: float = field(default_factory=lambda: settings.OPENAI_PRESENCE_PENALTY)

    def to_request_kwargs(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        }


class AIClientFactory:
    """Factory for creating AI clients."""

    @staticmethod
    def create_openai_client(
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> openai.AsyncOpenAI:
        """
        Create an async OpenAI client.

        The plan endpoint makes exactly one upstream call per request, so the
        SDK's built-in retries are disabled.

        Args:
            api_key: OpenAI API key from the credential cache
            timeout: Client timeout in seconds

        Raises:
            ValueError: If the API key is empty
        """
        if not api_key:
            raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY.")

        logger.debug("Creating OpenAI client (direct)")
        return openai.AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
