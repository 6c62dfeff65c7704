"""
Moondream Vision-Language Client
================================

Task dispatchers for the hosted Moondream service.

Each task:
    1. Validates caller input with its request model
    2. Normalizes the image into an EncodedImage (if one is given)
    3. POSTs the envelope through HttpTransport
    4. Shapes the result, wrapping streamed output in a FragmentStream

Only caption and query can stream; detect and point always buffer.

Example:
    from moondream_vl import MoondreamVL

    async with MoondreamVL(api_key="...") as model:
        result = await model.detect(image_bytes, "cat")
        print(result.objects)

        output = await model.caption(image_bytes, stream=True)
        async for fragment in output.caption:
            print(fragment, end="")
"""

import asyncio
import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from moondream_vl.config import DEFAULT_ENDPOINT, ClientConfig
from moondream_vl.exceptions import ConfigurationError, ParseError
from moondream_vl.image import DEFAULT_JPEG_QUALITY, ImageCodec, ImageInput, OpenCVImageCodec, encode_image
from moondream_vl.models import (
    CaptionOutput,
    CaptionRequest,
    CaptionResponse,
    DetectOutput,
    DetectRequest,
    DetectResponse,
    EncodedImage,
    PointOutput,
    PointRequest,
    PointResponse,
    QueryOutput,
    QueryRequest,
    QueryResponse,
)
from moondream_vl.stream import FragmentStream
from moondream_vl.transport import HttpTransport


logger = logging.getLogger(__name__)


ResponseT = TypeVar("ResponseT", bound=BaseModel)


class MoondreamVL:
    """
    Client for the Moondream vision-language API.

    The client holds only immutable configuration plus one HTTP client, so
    several requests may be in flight at once. Each streaming result owns
    its own connection.

    Attributes:
        endpoint: Base URL of the service
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        *,
        timeout: float = 120.0,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        codec: Optional[ImageCodec] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Moondream API key (required for the hosted endpoint)
            endpoint: Base URL; defaults to the hosted service
            timeout: HTTP timeout in seconds
            jpeg_quality: Quality used when encoding raw images
            codec: Image codec (OpenCV by default)
            http_transport: Optional httpx transport, mainly for tests

        Raises:
            ConfigurationError: If no api_key is given for the hosted endpoint,
                or the endpoint is not an http(s) URL
        """
        self._api_key = api_key or None
        self.endpoint = (endpoint or DEFAULT_ENDPOINT).rstrip("/")

        if self._api_key is None and self.endpoint == DEFAULT_ENDPOINT:
            raise ConfigurationError("An api_key is required for cloud inference.")

        self._codec = codec or OpenCVImageCodec()
        self._jpeg_quality = jpeg_quality
        self._transport = HttpTransport(
            self.endpoint,
            api_key=self._api_key,
            timeout=timeout,
            transport=http_transport,
        )

        logger.info(f"MoondreamVL initialized: endpoint={self.endpoint}")

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "MoondreamVL":
        """Build a client from a loaded ClientConfig."""
        return cls(
            api_key=config.api_key,
            endpoint=config.endpoint,
            timeout=config.timeout_seconds,
            jpeg_quality=config.jpeg_quality,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _encode(self, image: ImageInput) -> EncodedImage:
        if isinstance(image, EncodedImage):
            return image
        # Decoding and JPEG encoding are CPU-bound; keep them off the event loop
        return await asyncio.to_thread(
            encode_image,
            image,
            codec=self._codec,
            quality=self._jpeg_quality,
        )

    @staticmethod
    def _parse(model: Type[ResponseT], body: Any, path: str) -> ResponseT:
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise ParseError(f"Unexpected response shape from {path}: {e}", e) from e

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    async def caption(
        self,
        image: ImageInput,
        length: str = "normal",
        stream: bool = False,
        variant: Optional[str] = None,
    ) -> CaptionOutput:
        """
        Caption an image.

        Args:
            image: Raw image bytes, decoded array, or EncodedImage
            length: "short", "normal" or "long"
            stream: Return a FragmentStream instead of the full caption
            variant: Optional model variant

        Returns:
            CaptionOutput
        """
        request = CaptionRequest(image=image, length=length, stream=stream, variant=variant)
        payload = request.to_payload((await self._encode(request.image)).image_url)

        response = await self._transport.send("/caption", payload, stream=request.stream)
        if request.stream:
            return CaptionOutput(caption=FragmentStream(response))

        body = self._parse(CaptionResponse, response, "/caption")
        return CaptionOutput(caption=body.caption)

    async def query(
        self,
        question: str,
        image: Optional[ImageInput] = None,
        reasoning: Optional[bool] = None,
        stream: bool = False,
        variant: Optional[str] = None,
    ) -> QueryOutput:
        """
        Ask a free-form question, optionally about an image.

        Args:
            question: Question text
            image: Optional image the question refers to
            reasoning: Request extended reasoning from the model
            stream: Return a FragmentStream instead of the full answer
            variant: Optional model variant

        Returns:
            QueryOutput; ``reasoning`` is set only for buffered responses
            that include it
        """
        request = QueryRequest(
            question=question,
            image=image,
            reasoning=reasoning,
            stream=stream,
            variant=variant,
        )
        image_url = None
        if request.image is not None:
            image_url = (await self._encode(request.image)).image_url
        payload = request.to_payload(image_url)

        response = await self._transport.send("/query", payload, stream=request.stream)
        if request.stream:
            return QueryOutput(answer=FragmentStream(response))

        body = self._parse(QueryResponse, response, "/query")
        return QueryOutput(answer=body.answer, reasoning=body.reasoning or None)

    async def detect(
        self,
        image: ImageInput,
        object: str,
        variant: Optional[str] = None,
    ) -> DetectOutput:
        """
        Detect bounding regions of an object class.

        Returns:
            DetectOutput with the service's object list unchanged
        """
        request = DetectRequest(image=image, object=object, variant=variant)
        payload = request.to_payload((await self._encode(request.image)).image_url)

        response = await self._transport.send("/detect", payload)
        body = self._parse(DetectResponse, response, "/detect")
        return DetectOutput(objects=body.objects)

    async def point(
        self,
        image: ImageInput,
        object: str,
        variant: Optional[str] = None,
    ) -> PointOutput:
        """
        Locate points for an object class.

        Returns:
            PointOutput with the service's point list unchanged
        """
        request = PointRequest(image=image, object=object, variant=variant)
        payload = request.to_payload((await self._encode(request.image)).image_url)

        response = await self._transport.send("/point", payload)
        body = self._parse(PointResponse, response, "/point")
        return PointOutput(points=body.points)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Release the HTTP client."""
        await self._transport.aclose()

    async def __aenter__(self) -> "MoondreamVL":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
