"""
Image Codec
===========

Raster codec used by the image normalizer.

The normalizer only depends on the ImageCodec protocol, so tests (or callers
preferring another library) can inject their own implementation.

Design Rules:
    - decode() returns an (H, W) or (H, W, C) uint8 array
    - encode() returns JPEG bytes at the requested quality
    - Failures raise, they never return sentinel values
"""

import logging
from typing import Protocol, runtime_checkable

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class ImageCodecError(Exception):
    """Raised when the codec cannot decode or encode an image."""
    pass


@runtime_checkable
class ImageCodec(Protocol):
    """Decode-from-bytes and quality-controlled JPEG encode."""

    def decode(self, data: bytes) -> np.ndarray:
        ...

    def encode(self, image: np.ndarray, quality: int) -> bytes:
        ...


class OpenCVImageCodec:
    """
    ImageCodec backed by OpenCV.

    Accepts anything cv2.imdecode understands (JPEG, PNG, BMP, WebP, TIFF...).
    Alpha channels are dropped on decode since JPEG cannot carry them.
    """

    def decode(self, data: bytes) -> np.ndarray:
        """
        Decode encoded image bytes to a BGR array.

        Args:
            data: Encoded image bytes in any format OpenCV supports

        Returns:
            BGR image as np.ndarray (H, W, 3), dtype=uint8

        Raises:
            ImageCodecError: If the bytes are not a decodable image
        """
        nparr = np.frombuffer(data, np.uint8)
        if nparr.size == 0:
            raise ImageCodecError("Empty image buffer")

        bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if bgr is None:
            raise ImageCodecError("cv2.imdecode returned None (corrupt or unsupported format)")

        return bgr

    def encode(self, image: np.ndarray, quality: int) -> bytes:
        """
        Encode an array as JPEG.

        Args:
            image: Grayscale (H, W) or BGR (H, W, 3) array
            quality: JPEG quality 1-100

        Returns:
            JPEG bytes

        Raises:
            ImageCodecError: If OpenCV refuses to encode the array
        """
        if image.dtype != np.uint8:
            raise ImageCodecError(f"Invalid dtype for JPEG encoding: {image.dtype}")

        # BGRA input from callers that pass arrays directly
        if image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

        ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
        if not ok:
            raise ImageCodecError(f"cv2.imencode failed for image of shape {image.shape}")

        return buffer.tobytes()
