# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Bearer token verification for socket handshakes and REST requests."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from attrs import field, frozen
from beartype import beartype

from .config import Settings
from .errors import AuthError
from .result_types import Err, Ok


@frozen
class Identity:
    """Authenticated identity extracted from token claims."""

    user_id: str = field()
    nickname: str = field()
    email: str | None = field(default=None)
    role: str | None = field(default=None)

    @property
    def is_admin(self) -> bool:
        """Whether the identity carries the admin role."""
        return self.role == "admin"


class TokenVerifier:
    """Validate access tokens and issue new ones.

    Verification is a pure function of the token and the configured secret;
    it performs no I/O and keeps no state between calls.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiration_minutes: int = 15,
    ) -> None:
        """Initialize verifier with signing configuration."""
        self._secret = secret
        self._algorithm = algorithm
        self._expiration = timedelta(minutes=expiration_minutes)

    @classmethod
    @beartype
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        """Build a verifier from application settings."""
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expiration_minutes=settings.jwt_expiration_minutes,
        )

    @beartype
    def verify(self, credential: str | None):
        """Return ``Ok(Identity)`` or ``Err(AuthError)`` for a bearer credential."""
        if credential is None or not credential.strip():
            return Err(AuthError.missing())

        try:
            claims = jwt.decode(
                credential.strip(),
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            return Err(AuthError.invalid("expired", str(e)))
        except jwt.InvalidSignatureError as e:
            return Err(AuthError.invalid("bad_signature", str(e)))
        except jwt.InvalidTokenError as e:
            return Err(AuthError.invalid("malformed", str(e)))

        token_type = claims.get("type", "access")
        if token_type != "access":
            return Err(
                AuthError.invalid("wrong_type", f"token type '{token_type}' rejected")
            )

        return self._identity_from_claims(claims)

    @beartype
    def issue(
        self,
        identity: Identity,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Mint an access token carrying the identity claims."""
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "userId": identity.user_id,
            "sub": identity.user_id,
            "nickname": identity.nickname,
            "type": "access",
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self._expiration),
            "jti": str(uuid.uuid4()),
        }
        if identity.email is not None:
            payload["email"] = identity.email
        if identity.role is not None:
            payload["role"] = identity.role

        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    @staticmethod
    def _identity_from_claims(claims: dict[str, Any]):
        user_id = claims.get("userId") or claims.get("sub")
        if user_id is None or not str(user_id).strip():
            return Err(AuthError.invalid("missing_subject", "no userId/sub claim"))
        user_id = str(user_id)

        email = claims.get("email")
        nickname = claims.get("nickname")
        if not nickname:
            # Older access tokens only carry userId/email/role.
            nickname = email.split("@", 1)[0] if email else user_id

        return Ok(
            Identity(
                user_id=user_id,
                nickname=str(nickname),
                email=str(email) if email else None,
                role=claims.get("role"),
            )
        )
