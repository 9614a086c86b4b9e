# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Health check endpoints for the chat service."""

import logging
import time
from datetime import datetime, timezone

from beartype import beartype
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ... import __version__
from ...websocket.runtime import ChatRuntime
from ..dependencies import get_runtime

logger = logging.getLogger(__name__)

router = APIRouter()

APP_START_TIME = datetime.now(timezone.utc)


class HealthStatus(BaseModel):
    """Health of one dependency."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: str = Field(..., pattern=r"^(healthy|unhealthy|degraded)$")
    response_time_ms: float | None = Field(
        default=None, ge=0, description="Response time in milliseconds"
    )
    message: str | None = Field(default=None, description="Additional status message")


class ChatRegistryStatus(BaseModel):
    """Live room membership counters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_rooms: int = Field(..., ge=0)
    total_sessions: int = Field(..., ge=0)
    largest_room: str | None = Field(default=None)


class HealthResponse(BaseModel):
    """Service health with store status and live chat counters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: str = Field(..., pattern=r"^(healthy|unhealthy|degraded)$")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    store: HealthStatus = Field(..., description="Message store health")
    chat: ChatRegistryStatus = Field(..., description="Room registry counters")
    uptime_seconds: float = Field(..., ge=0, description="Application uptime in seconds")


@router.get("/health", response_model=HealthResponse)
async def health_check(runtime: ChatRuntime = Depends(get_runtime)) -> HealthResponse:
    """Report store reachability and live chat counters."""
    start_time = time.perf_counter()
    store_result = await runtime.store.health_check()
    elapsed_ms = (time.perf_counter() - start_time) * 1000

    if store_result.is_ok():
        store_status = HealthStatus(
            status="healthy", response_time_ms=elapsed_ms, message="Message store reachable"
        )
    else:
        logger.error("Message store health check failed: %s", store_result.unwrap_err())
        store_status = HealthStatus(
            status="unhealthy", response_time_ms=elapsed_ms, message="Message store unavailable"
        )

    stats = runtime.registry.stats()
    return HealthResponse(
        status="healthy" if store_result.is_ok() else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=runtime.settings.api_env,
        store=store_status,
        chat=ChatRegistryStatus(
            total_rooms=stats.total_rooms,
            total_sessions=stats.total_sessions,
            largest_room=stats.largest_room,
        ),
        uptime_seconds=(datetime.now(timezone.utc) - APP_START_TIME).total_seconds(),
    )


@router.get("/health/live", response_model=HealthStatus)
@beartype
async def liveness_check() -> HealthStatus:
    """Liveness probe endpoint."""
    return HealthStatus(status="healthy", message="Application is running")
