"""
Task Response Schemas
=====================

Pydantic records validating non-streaming JSON bodies returned by the service.

Response Contracts (from the service):
    /caption  {"caption": str}
    /query    {"answer": str, "reasoning"?: ...}
    /detect   {"objects": [...]}
    /point    {"points": [...]}

Unknown fields are ignored. List contents are passed through untouched.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class CaptionResponse(BaseModel):
    """Body of a buffered /caption response."""

    caption: str = Field(..., description="Complete caption text")


class QueryResponse(BaseModel):
    """Body of a buffered /query response."""

    answer: str = Field(..., description="Complete answer text")
    reasoning: Optional[Any] = Field(
        default=None,
        description="Auxiliary reasoning returned when requested",
    )


class DetectResponse(BaseModel):
    """Body of a /detect response."""

    objects: List[Any] = Field(..., description="Detected bounding regions")


class PointResponse(BaseModel):
    """Body of a /point response."""

    points: List[Any] = Field(..., description="Localized points")
