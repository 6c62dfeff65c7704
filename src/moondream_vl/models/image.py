"""
Encoded Image Model
===================

Canonical, transmission-ready reference to image content.

An EncodedImage is either:
    - a data URI embedding JPEG bytes ("data:image/jpeg;base64,...")
    - an externally hosted URL the service fetches itself

Example:
    from moondream_vl.models import EncodedImage

    hosted = EncodedImage(image_url="https://example.com/cat.jpg")
    assert not hosted.is_data_uri
"""

from pydantic import BaseModel, ConfigDict, Field


JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"


class EncodedImage(BaseModel):
    """
    Image reference ready to be sent as ``image_url``.

    Instances are frozen: once built, the URL never changes, so passing one
    back through the normalizer returns it untouched.

    Attributes:
        image_url: Data URI or external URL
    """

    model_config = ConfigDict(frozen=True)

    image_url: str = Field(
        ...,
        min_length=1,
        description="Data URI or externally hosted image URL",
    )

    @property
    def is_data_uri(self) -> bool:
        """Whether the image bytes are embedded in the URL."""
        return self.image_url.startswith("data:")

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full payload."""
        if self.is_data_uri:
            return f"EncodedImage(data_uri, {len(self.image_url)} chars)"
        return f"EncodedImage(image_url={self.image_url!r})"
