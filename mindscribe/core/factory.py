"""
Factory for creating inference clients.
"""

from mindscribe.config import LLMConfig
from mindscribe.core.events import EventBus
from mindscribe.core.inference.base import InferenceClient
from mindscribe.core.inference.ollama import OllamaInferenceClient
from mindscribe.core.storage.base import EntryStore
from mindscribe.utils.exceptions import ConfigurationError


class InferenceFactory:
    """Factory for creating inference clients from configuration."""

    @staticmethod
    def create(config: LLMConfig, bus: EventBus, store: EntryStore | None = None) -> InferenceClient:
        """
        Create inference client from configuration.

        Args:
            config: LLM configuration
            bus: Event bus stream events are published on
            store: Entry store for chat history context

        Returns:
            Inference client instance

        Raises:
            ConfigurationError: If provider is not supported
        """
        if config.provider == "ollama":
            return OllamaInferenceClient(
                bus=bus,
                store=store,
                host=config.base_url,
                model=config.model,
                temperature=config.temperature,
                top_p=config.top_p,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
            )
        raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")
