"""
Inference collaborator abstraction for streaming chat.

Supported providers:
- Ollama (native SDK)
"""

from mindscribe.core.inference.base import InferenceClient
from mindscribe.core.inference.ollama import OllamaInferenceClient

__all__ = [
    "InferenceClient",
    "OllamaInferenceClient",
]
