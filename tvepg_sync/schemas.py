from typing import Literal

from pydantic import BaseModel, Field


class IdentifierMappingResponse(BaseModel):
    """How a single stream identifier resolves to a guide slug"""
    identifier: str = Field(..., description="Stream identifier as found in the playlist (e.g. 'SRF1.ch@SD')")
    base_identifier: str = Field(..., description="Identifier without its quality qualifier")
    slug: str = Field(..., description="Guide channel slug written as tvg-id")
    source: Literal["table", "derived"] = Field(..., description="Whether the slug came from the mapping table or was derived")


class HealthResponse(BaseModel):
    """Service health"""
    status: str
    scheduler_running: bool
    sync_running: bool
    next_sync: str | None = Field(None, description="ISO8601 time of the next scheduled sync")
    last_sync: dict | None = Field(None, description="Trigger, status and timing of the most recent finished sync")
