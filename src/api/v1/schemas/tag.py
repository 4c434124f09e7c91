"""Pydantic schemas for Tag API."""

from pydantic import BaseModel, ConfigDict


class TagStatResponse(BaseModel):
    """A tag with its usage count and the caller's legacy flag."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {"tag": "kotlin", "count": 3, "is_legacy": False},
        },
    )

    tag: str
    count: int
    is_legacy: bool


class TagStatsResponse(BaseModel):
    """Schema for tag statistics response."""

    data: list[TagStatResponse]
