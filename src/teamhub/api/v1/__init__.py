# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""API v1 router aggregation.

This module combines all v1 API routers into a single router
that can be mounted on the main FastAPI application.
"""

from fastapi import APIRouter

from .chat_rooms import router as chat_rooms_router
from .chat_socket import router as chat_socket_router
from .health import router as health_router

# Create main v1 router
router = APIRouter(prefix="/api/v1")

# Include all sub-routers
router.include_router(health_router, tags=["health"])
router.include_router(chat_rooms_router, prefix="/chat", tags=["chat"])


__all__ = ["chat_socket_router", "router"]
