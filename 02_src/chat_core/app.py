"""Application bootstrap and lifecycle management."""

import os
from pathlib import Path
from typing import Protocol

from .accounts import AccountService
from .attachments import AttachmentStore
from .config import resolve_db_path, resolve_uploads_dir
from .conversation import ConversationService
from .delivery import DeliveryBroker
from .live import LiveDispatcher
from .logging_config import get_logger
from .presence import PresenceRegistry
from .storage import Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Clear persisted data."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        uploads_dir: str | Path | None = None,
        public_base_url: str | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)

        env_uploads = os.getenv("UPLOADS_DIR") if uploads_dir is None else uploads_dir
        self.uploads_dir = resolve_uploads_dir(env_uploads)
        self._public_base_url = (
            os.getenv("PUBLIC_BASE_URL", "") if public_base_url is None else public_base_url
        )

        # Components (will be initialized in start())
        self._storage: Storage | None = None
        self._registry: PresenceRegistry | None = None
        self._broker: DeliveryBroker | None = None
        self._conversation: ConversationService | None = None
        self._dispatcher: LiveDispatcher | None = None
        self._accounts: AccountService | None = None
        self._attachments: AttachmentStore | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Presence registry + broker (in-memory)
        self._registry = PresenceRegistry()
        self._broker = DeliveryBroker(self._registry)
        logger.info("DeliveryBroker initialized")

        # 3. ConversationService (Storage as store and user directory)
        self._conversation = ConversationService(
            store=self._storage,
            broker=self._broker,
            users=self._storage,
        )
        self._dispatcher = LiveDispatcher(self._registry, self._conversation)
        logger.info("ConversationService initialized")

        # 4. Collaborators at the REST edge
        self._accounts = AccountService(self._storage)
        self._attachments = AttachmentStore(self.uploads_dir, self._public_base_url)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._registry:
            for session in self._registry.all_sessions():
                self._registry.leave(session)
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Clear persisted data. Live sessions stay connected."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    def _require(self, component):
        if component is None:
            raise RuntimeError("Application not started")
        return component

    @property
    def storage(self) -> Storage:
        """Get storage instance."""
        return self._require(self._storage)

    @property
    def registry(self) -> PresenceRegistry:
        """Get presence registry instance."""
        return self._require(self._registry)

    @property
    def broker(self) -> DeliveryBroker:
        """Get delivery broker instance."""
        return self._require(self._broker)

    @property
    def conversation(self) -> ConversationService:
        """Get conversation service instance."""
        return self._require(self._conversation)

    @property
    def dispatcher(self) -> LiveDispatcher:
        """Get live channel dispatcher instance."""
        return self._require(self._dispatcher)

    @property
    def accounts(self) -> AccountService:
        """Get account service instance."""
        return self._require(self._accounts)

    @property
    def attachments(self) -> AttachmentStore:
        """Get attachment store instance."""
        return self._require(self._attachments)
