"""Pydantic schemas for the entry event stream."""

from datetime import datetime

from pydantic import BaseModel


class StreamTokenData(BaseModel):
    """A short-lived token for opening the event stream."""

    token: str
    expires_at: datetime


class StreamTokenResponse(BaseModel):
    """Schema for stream token response."""

    data: StreamTokenData
