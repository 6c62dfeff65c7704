"""
Task Request Schemas
====================

Pydantic records for the four task requests accepted by the client.

Each record validates caller input at the boundary and knows how to build
the JSON envelope for its endpoint. The envelope is a fresh dict per call.

Request Contracts (to the service):
    /caption  {"image_url", "length", "stream", "variant"?}
    /query    {"question", "stream", "image_url"?, "reasoning"?, "variant"?}
    /detect   {"image_url", "object", "variant"?}
    /point    {"image_url", "object", "variant"?}
"""

from typing import Any, Dict, Literal, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from moondream_vl.models.image import EncodedImage


IMAGE_TYPES = (EncodedImage, bytes, bytearray, memoryview, np.ndarray)


def _check_image(value: Any) -> Any:
    if not isinstance(value, IMAGE_TYPES):
        raise ValueError(
            f"image must be EncodedImage, bytes or numpy.ndarray, "
            f"got {type(value).__name__}"
        )
    return value


class TaskRequest(BaseModel):
    """Fields shared by every task request."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    variant: Optional[str] = Field(
        default=None,
        description="Model variant selector, forwarded verbatim",
    )

    def _finish(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.variant:
            payload["variant"] = self.variant
        return payload


class CaptionRequest(TaskRequest):
    """Request for an image caption."""

    image: Any = Field(..., description="Raw image or EncodedImage")
    length: Literal["short", "normal", "long"] = Field(
        default="normal",
        description="Requested caption length",
    )
    stream: bool = Field(default=False, description="Stream caption fragments")

    @field_validator("image")
    @classmethod
    def _validate_image(cls, value: Any) -> Any:
        return _check_image(value)

    def to_payload(self, image_url: str) -> Dict[str, Any]:
        """Build the /caption envelope."""
        return self._finish({
            "image_url": image_url,
            "length": self.length,
            "stream": self.stream,
        })


class QueryRequest(TaskRequest):
    """Free-form question, optionally grounded in an image."""

    question: str = Field(..., min_length=1, description="Question to answer")
    image: Optional[Any] = Field(default=None, description="Optional image")
    reasoning: Optional[bool] = Field(
        default=None,
        description="Ask the service for extended reasoning",
    )
    stream: bool = Field(default=False, description="Stream answer fragments")

    @field_validator("image")
    @classmethod
    def _validate_image(cls, value: Any) -> Any:
        if value is None:
            return value
        return _check_image(value)

    def to_payload(self, image_url: Optional[str] = None) -> Dict[str, Any]:
        """Build the /query envelope."""
        payload: Dict[str, Any] = {
            "question": self.question,
            "stream": self.stream,
        }
        if image_url is not None:
            payload["image_url"] = image_url
        if self.reasoning is not None:
            payload["reasoning"] = self.reasoning
        return self._finish(payload)


class LocateRequest(TaskRequest):
    """Shared shape of detect and point requests."""

    image: Any = Field(..., description="Raw image or EncodedImage")
    object: str = Field(..., min_length=1, description="Object to locate")

    @field_validator("image")
    @classmethod
    def _validate_image(cls, value: Any) -> Any:
        return _check_image(value)

    def to_payload(self, image_url: str) -> Dict[str, Any]:
        """Build the /detect or /point envelope."""
        return self._finish({
            "image_url": image_url,
            "object": self.object,
        })


class DetectRequest(LocateRequest):
    """Bounding-box detection of an object class."""
    pass


class PointRequest(LocateRequest):
    """Point localization of an object class."""
    pass
