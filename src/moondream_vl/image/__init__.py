"""
Image Module
============

Image normalization for outgoing requests.

This module provides:
    - ImageCodec: protocol for the raster codec collaborator
    - OpenCVImageCodec: default codec built on cv2
    - encode_image: raw image -> EncodedImage (JPEG data URI)
"""

from moondream_vl.image.codec import ImageCodec, ImageCodecError, OpenCVImageCodec
from moondream_vl.image.encoder import (
    DEFAULT_JPEG_QUALITY,
    ImageInput,
    encode_image,
    image_dimensions,
)


__all__ = [
    "ImageCodec",
    "ImageCodecError",
    "OpenCVImageCodec",
    "DEFAULT_JPEG_QUALITY",
    "ImageInput",
    "encode_image",
    "image_dimensions",
]
