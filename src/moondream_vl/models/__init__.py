"""
Data Models
===========

Typed records for the Moondream client.

Models:
    Image:
        - EncodedImage: data URI or external URL reference

    Requests (pydantic, validated at the boundary):
        - CaptionRequest, QueryRequest, DetectRequest, PointRequest

    Responses (pydantic, validate buffered JSON bodies):
        - CaptionResponse, QueryResponse, DetectResponse, PointResponse

    Outputs (frozen dataclasses returned to callers):
        - CaptionOutput, QueryOutput, DetectOutput, PointOutput
"""

from moondream_vl.models.image import EncodedImage
from moondream_vl.models.requests import (
    CaptionRequest,
    DetectRequest,
    PointRequest,
    QueryRequest,
)
from moondream_vl.models.responses import (
    CaptionResponse,
    DetectResponse,
    PointResponse,
    QueryResponse,
)
from moondream_vl.models.output import (
    CaptionOutput,
    DetectOutput,
    PointOutput,
    QueryOutput,
)

__all__ = [
    # Image
    "EncodedImage",
    # Requests
    "CaptionRequest",
    "QueryRequest",
    "DetectRequest",
    "PointRequest",
    # Responses
    "CaptionResponse",
    "QueryResponse",
    "DetectResponse",
    "PointResponse",
    # Outputs
    "CaptionOutput",
    "QueryOutput",
    "DetectOutput",
    "PointOutput",
]
