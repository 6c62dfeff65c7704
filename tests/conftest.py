"""
Test Configuration
==================

Pytest fixtures and test configuration for moondream-vl.
"""

import json

import cv2
import httpx
import numpy as np
import pytest


@pytest.fixture
def sample_image() -> np.ndarray:
    """Provide a 100x100 BGR test image with some structure."""
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    image[20:80, 30:70] = (0, 128, 255)
    return image


@pytest.fixture
def png_bytes(sample_image) -> bytes:
    """Provide the sample image encoded as PNG."""
    ok, buffer = cv2.imencode(".png", sample_image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def bmp_bytes(sample_image) -> bytes:
    """Provide the sample image encoded as BMP."""
    ok, buffer = cv2.imencode(".bmp", sample_image)
    assert ok
    return buffer.tobytes()


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code: int = 200, body=None, content: bytes = None) -> None:
        self.status_code = status_code
        self.body = body
        self.content = content
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def make_handler():
    """Factory for RecordingHandler instances."""
    return RecordingHandler
