"""
Ollama inference client using the native ollama-python SDK.
"""

import asyncio

import ollama

from mindscribe.core.events import EventBus
from mindscribe.core.inference.base import InferenceClient
from mindscribe.core.storage.base import EntryStore
from mindscribe.models.chat import ChatRole, ChunkEvent, DoneEvent, ErrorEvent
from mindscribe.utils.exceptions import InferenceError
from mindscribe.utils.logger import get_logger, log_context

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are MindScribe, a private journaling companion. You help users reflect on their thoughts and feelings through gentle, thoughtful conversation.

GUIDELINES:
- Acknowledge feelings before responding
- Ask guiding questions instead of giving advice
- Reference past entries naturally when relevant
- Keep responses concise and warm (2-4 sentences typically)
- Never be judgmental or dismissive
- Respect user privacy - everything shared stays private
- If the user seems distressed, respond with empathy first

You are NOT a therapist or mental health professional. For serious concerns, gently suggest speaking with a professional."""


class OllamaInferenceClient(InferenceClient):
    """
    Streams chat completions from a local Ollama server onto the EventBus.

    One generation runs at a time. The stream is opened inside
    ``start_stream`` so connection failures surface to the caller; the
    parts are then pumped onto the bus by a background task.
    """

    def __init__(
        self,
        bus: EventBus,
        store: EntryStore | None = None,
        host: str = "http://localhost:11434",
        model: str = "gemma3:4b",
        temperature: float = 0.7,
        top_p: float = 0.9,
        max_tokens: int = 512,
        timeout: float = 120.0,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        """
        Initialize Ollama inference client.

        Args:
            bus: Event bus the stream events are published on
            store: Entry store used to read chat history for context
            host: Ollama server URL
            model: Chat model name
            temperature: Sampling temperature
            top_p: Nucleus sampling cutoff
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
            system_prompt: Persona prompt sent first
        """
        self.bus = bus
        self.store = store
        self.host = host
        self.model = model
        self.timeout = timeout
        self.system_prompt = system_prompt
        self.options = {
            "temperature": temperature,
            "top_p": top_p,
            "num_predict": max_tokens,
        }

        self.client = ollama.AsyncClient(host=host, timeout=timeout)
        self._task: asyncio.Task | None = None

    @property
    def is_generating(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start_stream(
        self,
        message: str,
        scope: str | None = None,
        context_limit: int = 5,
    ) -> None:
        if self.is_generating:
            raise InferenceError("A chat stream is already running", context={"scope": scope})

        messages = await self._build_messages(message, scope, context_limit)

        try:
            stream = await self.client.chat(
                model=self.model,
                messages=messages,
                stream=True,
                options=self.options,
            )
        except Exception as e:
            raise InferenceError(
                f"Failed to start chat: {e}",
                context={"model": self.model, "error_type": type(e).__name__},
            ) from e

        self._task = asyncio.create_task(self._pump(stream))

    async def _build_messages(
        self, message: str, scope: str | None, context_limit: int
    ) -> list[dict[str, str]]:
        """System prompt, recent history of the entry, then the user message."""
        messages = [{"role": "system", "content": self.system_prompt}]

        if scope is not None and self.store is not None and context_limit > 0:
            try:
                # One extra turn: the user's message is usually persisted already
                history = await self.store.recent_chat_history(scope, context_limit + 1)
            except Exception as e:
                raise InferenceError(
                    f"Failed to read chat history: {e}", context={"scope": scope}
                ) from e

            if history and history[-1].role == ChatRole.USER and history[-1].content == message:
                history = history[:-1]
            for record in history[-context_limit:]:
                messages.append({"role": record.role.value, "content": record.content})

        messages.append({"role": "user", "content": message})
        return messages

    async def _pump(self, stream) -> None:
        try:
            async for part in stream:
                text = part["message"]["content"]
                if text:
                    await self.bus.publish(ChunkEvent(text=text))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_context(logger, model=self.model).error(f"Chat stream failed: {e}")
            await self.bus.publish(ErrorEvent(message=str(e)))
            return

        await self.bus.publish(DoneEvent())

    async def close(self):
        """Cancel a running generation."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
