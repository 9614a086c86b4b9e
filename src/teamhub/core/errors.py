# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Error taxonomy shared by the token verifier and the chat protocol."""

from enum import Enum
from typing import Any

from attrs import field, frozen
from beartype import beartype


class ChatErrorKind(str, Enum):
    """Machine-readable error kinds sent to clients."""

    # Handshake failures, fatal for the connection
    MISSING_CREDENTIAL = "MissingCredential"
    INVALID_CREDENTIAL = "InvalidCredential"

    # Per-event failures, reported to the originating session only
    VALIDATION_ERROR = "ValidationError"
    INVALID_MESSAGE = "InvalidMessage"
    NOT_IN_ROOM = "NotInRoom"
    PERSISTENCE_ERROR = "PersistenceError"

    @property
    def is_auth_error(self) -> bool:
        """Whether this kind terminates the connection."""
        return self in {
            ChatErrorKind.MISSING_CREDENTIAL,
            ChatErrorKind.INVALID_CREDENTIAL,
        }


@frozen
class ChatError:
    """Immutable error value carried in ``Err`` results.

    ``detail`` is for server-side logs only and is never sent to clients.
    """

    kind: ChatErrorKind = field()
    message: str = field()
    detail: str | None = field(default=None)

    @beartype
    def to_payload(self) -> dict[str, Any]:
        """Build the client-facing ``error`` event payload."""
        return {"message": self.message, "kind": self.kind.value}

    @classmethod
    def validation(cls, message: str) -> "ChatError":
        return cls(ChatErrorKind.VALIDATION_ERROR, message)

    @classmethod
    def invalid_message(cls, message: str) -> "ChatError":
        return cls(ChatErrorKind.INVALID_MESSAGE, message)

    @classmethod
    def not_in_room(cls, room_id: str) -> "ChatError":
        return cls(
            ChatErrorKind.NOT_IN_ROOM,
            f"You must join room '{room_id}' before sending messages to it",
        )

    @classmethod
    def room_deleted(cls, room_id: str) -> "ChatError":
        return cls(
            ChatErrorKind.NOT_IN_ROOM,
            f"Room '{room_id}' was deleted; join it again to keep chatting",
        )

    @classmethod
    def persistence(cls, message: str, detail: str | None = None) -> "ChatError":
        return cls(ChatErrorKind.PERSISTENCE_ERROR, message, detail)


@frozen
class AuthError(ChatError):
    """Handshake failure.

    ``reason`` separates expired, malformed and wrong-type tokens in logs;
    clients only ever see the two credential kinds.
    """

    reason: str = field(default="unspecified")

    @classmethod
    def missing(cls) -> "AuthError":
        return cls(
            ChatErrorKind.MISSING_CREDENTIAL,
            "Authentication token was not provided",
            reason="missing",
        )

    @classmethod
    def invalid(cls, reason: str, detail: str | None = None) -> "AuthError":
        return cls(
            ChatErrorKind.INVALID_CREDENTIAL,
            "Authentication token is invalid or expired",
            detail,
            reason=reason,
        )
