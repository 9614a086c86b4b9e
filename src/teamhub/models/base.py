# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Base Pydantic model configuration for all domain models.

Domain models are immutable, reject unknown fields and serialize to the
camelCase keys used by the chat wire protocol and the REST API.
"""

from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseModelConfig(BaseModel):
    """Base model with strict configuration for all domain entities.

    Enforces:
    - Immutability (frozen=True)
    - No extra fields allowed (extra="forbid")
    - Validation on assignment
    - camelCase aliases, while still accepting snake_case field names
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        validate_default=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @beartype
    def to_wire(self) -> dict[str, Any]:
        """JSON-safe dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
