"""
moondream-vl
============

Async Python client for the Moondream vision-language inference service.

This package sends an image plus a task (caption, query, detect, point) to
the hosted endpoint and returns parsed results. Caption and query can stream
their output as a FragmentStream of text pieces.

Components:
    - image: Image normalization to JPEG data URIs
    - transport: HTTP POST to the service
    - stream: Incremental decoder for streamed output
    - client: Task dispatchers (MoondreamVL)

Example:
    from moondream_vl import MoondreamVL

    async with MoondreamVL(api_key="...") as model:
        output = await model.query("What is in this picture?", image=image_bytes)
        print(output.answer)
"""

__version__ = "0.1.0"

from moondream_vl.exceptions import (
    ConfigurationError,
    EncodingError,
    MoondreamError,
    ParseError,
    TransportError,
)
from moondream_vl.models import (
    CaptionOutput,
    DetectOutput,
    EncodedImage,
    PointOutput,
    QueryOutput,
)
from moondream_vl.stream import FragmentStream
from moondream_vl.client import MoondreamVL

__all__ = [
    "__version__",
    "MoondreamVL",
    "EncodedImage",
    "FragmentStream",
    "CaptionOutput",
    "QueryOutput",
    "DetectOutput",
    "PointOutput",
    "MoondreamError",
    "ConfigurationError",
    "EncodingError",
    "TransportError",
    "ParseError",
]
