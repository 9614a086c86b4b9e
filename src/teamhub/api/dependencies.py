# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""FastAPI dependencies for authentication and chat runtime access.

The chat runtime is built in the application lifespan and stored on
``app.state.chat``; these dependencies expose its parts to route handlers.
"""

from beartype import beartype
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.security import Identity
from ..services.message_store import MessageStore
from ..websocket.runtime import ChatRuntime

# Security scheme
security = HTTPBearer(auto_error=False)


@beartype
def get_runtime(request: Request) -> ChatRuntime:
    """Return the chat runtime attached to the running application."""
    runtime = getattr(request.app.state, "chat", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chat runtime is not initialized",
        )
    return runtime


def get_store(runtime: ChatRuntime = Depends(get_runtime)) -> MessageStore:
    return runtime.store


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(security),
    runtime: ChatRuntime = Depends(get_runtime),
) -> Identity:
    """Validate the bearer token and return the caller identity.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    verified = runtime.verifier.verify(credentials.credentials if credentials else None)
    if verified.is_err():
        # NOTE: dependencies must raise for FastAPI to short-circuit the request
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=verified.unwrap_err().message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verified.unwrap()


def require_admin(current_user: Identity = Depends(get_current_user)) -> Identity:
    """Require the admin role.

    Raises:
        HTTPException: 403 for authenticated non-admin users
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return current_user
