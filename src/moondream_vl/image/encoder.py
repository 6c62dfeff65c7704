"""
Image Normalizer
================

Converts caller-supplied images into EncodedImage values.

Accepted inputs:
    - EncodedImage: returned unchanged, never re-encoded
    - bytes / bytearray / memoryview: any raster format the codec decodes
    - numpy.ndarray: an already decoded (H, W) or (H, W, C) uint8 image

Everything that is not already an EncodedImage becomes a JPEG data URI at
fixed quality.
"""

import base64
import logging
from typing import Optional, Tuple, Union

import numpy as np

from moondream_vl.exceptions import EncodingError
from moondream_vl.image.codec import ImageCodec, OpenCVImageCodec
from moondream_vl.models.image import JPEG_DATA_URI_PREFIX, EncodedImage


logger = logging.getLogger(__name__)


DEFAULT_JPEG_QUALITY = 95

ImageInput = Union[EncodedImage, bytes, bytearray, memoryview, np.ndarray]


def image_dimensions(image: np.ndarray) -> Optional[Tuple[int, int]]:
    """
    Read (width, height) of a decoded image.

    Returns:
        Tuple of (width, height), or None if the array has no usable size
    """
    if image.ndim not in (2, 3):
        return None
    height, width = image.shape[:2]
    if not width or not height:
        return None
    return int(width), int(height)


def encode_image(
    image: ImageInput,
    codec: Optional[ImageCodec] = None,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> EncodedImage:
    """
    Normalize an image into an EncodedImage.

    Args:
        image: Raw bytes, decoded array, or an existing EncodedImage
        codec: Codec used to decode/encode (OpenCV by default)
        quality: JPEG quality for re-encoding

    Returns:
        The input itself if it is an EncodedImage, else a JPEG data URI

    Raises:
        EncodingError: If the image cannot be decoded, measured or encoded
    """
    if isinstance(image, EncodedImage):
        return image

    codec = codec or OpenCVImageCodec()

    try:
        if isinstance(image, np.ndarray):
            pixels = image
        else:
            pixels = codec.decode(bytes(image))

        dimensions = image_dimensions(pixels)
        if dimensions is None:
            raise EncodingError("Unable to get image dimensions")

        jpeg = codec.encode(pixels, quality)
    except EncodingError:
        raise
    except Exception as e:
        raise EncodingError(f"Failed to convert image to JPEG: {e}", e) from e

    width, height = dimensions
    logger.debug(f"Encoded {width}x{height} image as JPEG ({len(jpeg)} bytes, quality={quality})")

    encoded = base64.b64encode(jpeg).decode("ascii")
    return EncodedImage(image_url=f"{JPEG_DATA_URI_PREFIX}{encoded}")
