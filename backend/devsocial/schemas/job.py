"""Background job schema."""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Job(BaseModel):
    """A unit of background work stored on a named queue."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(..., description="Handler name the task runner dispatches on")
    payload: dict[str, Any] = Field(default_factory=dict)
    attempts: int = Field(0, ge=0, description="How many times the job has been tried")
    queued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "5b0e5b1e-7f3e-4a51-9f5c-3a9c9b4b1f0e",
                "name": "send_channel_notification",
                "payload": {"channel_id": 42, "post_id": 1337},
                "attempts": 0,
                "queued_at": "2025-09-03T15:03:40Z",
            }
        }
    }
