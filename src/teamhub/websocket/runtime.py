# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Explicit container for the chat core collaborators."""

import logging

from attrs import field, frozen
from beartype import beartype

from ..core.config import Settings
from ..core.database import Database, PoolConfig
from ..core.security import TokenVerifier
from ..services.memory_store import InMemoryMessageStore
from ..services.message_store import MessageStore, PostgresMessageStore
from .handlers.chat import ChatProtocolHandler
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


@beartype
def build_store(settings: Settings) -> MessageStore:
    """Create the message store selected by ``chat_store_backend``."""
    if settings.chat_store_backend == "memory":
        return InMemoryMessageStore()
    return PostgresMessageStore(Database(PoolConfig.from_settings(settings)))


@frozen
class ChatRuntime:
    """Everything one process needs to serve chat connections."""

    settings: Settings = field()
    verifier: TokenVerifier = field()
    store: MessageStore = field()
    registry: RoomRegistry = field()
    handler: ChatProtocolHandler = field()

    @classmethod
    @beartype
    def build(cls, settings: Settings, store: MessageStore | None = None) -> "ChatRuntime":
        store = store if store is not None else build_store(settings)
        verifier = TokenVerifier.from_settings(settings)
        registry = RoomRegistry(store)
        handler = ChatProtocolHandler(
            verifier,
            store,
            registry,
            replay_window=settings.chat_replay_window,
            max_message_length=settings.chat_max_message_length,
            outbox_size=settings.chat_outbox_size,
            announce_departures=settings.chat_announce_departures,
        )
        return cls(
            settings=settings,
            verifier=verifier,
            store=store,
            registry=registry,
            handler=handler,
        )

    async def start(self) -> None:
        await self.store.connect()
        logger.info("Chat runtime started with %s", type(self.store).__name__)

    async def stop(self) -> None:
        await self.store.close()
        logger.info("Chat runtime stopped")
