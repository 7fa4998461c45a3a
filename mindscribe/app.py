"""
Composition root wiring the coordination services from configuration.
"""

from mindscribe.config import Config
from mindscribe.core.events import EventBus
from mindscribe.core.factory import InferenceFactory
from mindscribe.core.inference.base import InferenceClient
from mindscribe.core.safety.base import SafetyClassifier
from mindscribe.core.safety.keyword import KeywordSafetyClassifier
from mindscribe.core.shutdown.base import ShutdownHost
from mindscribe.core.storage.base import EntryStore
from mindscribe.services.close_guard import CloseGuard
from mindscribe.services.editor_session import EditorSession
from mindscribe.services.message_log import MessageLog
from mindscribe.services.save_scheduler import SaveScheduler
from mindscribe.services.stream_session import StreamSession
from mindscribe.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class JournalCore:
    """
    The editor and chat services of one application instance.

    Collaborators are injected; anything not given is built from ``config``.
    """

    def __init__(
        self,
        store: EntryStore,
        config: Config | None = None,
        classifier: SafetyClassifier | None = None,
        inference: InferenceClient | None = None,
        bus: EventBus | None = None,
    ):
        self.config = config or Config()
        self.store = store
        self.bus = bus or EventBus()
        self.classifier = classifier or KeywordSafetyClassifier()
        self.inference = inference or InferenceFactory.create(self.config.llm, self.bus, store)

        self.scheduler = SaveScheduler(
            store,
            delay_ms=self.config.autosave.delay_ms,
            saved_linger_ms=self.config.autosave.saved_linger_ms,
        )
        self.editor = EditorSession(self.scheduler)
        self.close_guard = CloseGuard(self.scheduler)

        self.messages = MessageLog(store)
        self.chat = StreamSession(
            self.messages,
            self.classifier,
            self.inference,
            self.bus,
            store=store,
            context_limit=self.config.chat.context_limit,
            persist_assistant_turns=self.config.chat.persist_assistant_turns,
        )

    def attach(self, host: ShutdownHost) -> None:
        """Guard ``host`` shutdowns against unsaved edits."""
        self.close_guard.attach(host)

    async def shutdown(self) -> None:
        """Flush pending edits and release everything."""
        await self.scheduler.flush_now()
        self.scheduler.close()
        self.close_guard.detach()
        self.chat.close()
        await self.inference.close()
        await self.store.close()
        logger.info("Journal core shut down")


def create_core(
    store: EntryStore,
    config: Config | None = None,
    configure_logging: bool = True,
    **collaborators,
) -> JournalCore:
    """
    Build a JournalCore, setting up logging from the config first.

    Args:
        store: Entry store collaborator
        config: Configuration, loaded from env/YAML by the caller
        configure_logging: Apply ``config.logging`` to Loguru
        **collaborators: classifier, inference or bus overrides
    """
    config = config or Config.from_env()
    if configure_logging:
        setup_logging(**config.logging.model_dump())
    return JournalCore(store, config=config, **collaborators)
