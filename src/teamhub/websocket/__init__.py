# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Real-time chat infrastructure: sessions, rooms and the socket protocol."""

from .handlers.chat import ChatProtocolHandler
from .registry import RoomRegistry
from .runtime import ChatRuntime
from .session import ConnectionSession, ConnectionState

__all__ = [
    "ChatProtocolHandler",
    "ChatRuntime",
    "ConnectionSession",
    "ConnectionState",
    "RoomRegistry",
]
