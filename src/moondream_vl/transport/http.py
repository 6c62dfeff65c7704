"""
HTTP Transport
==============

Single-shot JSON POST against the Moondream inference service.

This transport:
    - Builds one POST to ``endpoint + path`` per call
    - Sends auth, content-type, user-agent and content-length headers
    - Buffers and parses JSON bodies for regular calls
    - Hands back the live response for streaming calls

Design Rules:
    - No retries; a failure is reported once
    - Streaming responses are NOT status-checked or read here
    - Network failures surface as TransportError, bad JSON as ParseError
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from moondream_vl import __version__
from moondream_vl.exceptions import ConfigurationError, ParseError, TransportError


logger = logging.getLogger(__name__)


AUTH_HEADER = "X-Moondream-Auth"
USER_AGENT = f"moondream-python/{__version__}"


class HttpTransport:
    """
    Async HTTP transport for the inference service.

    Attributes:
        endpoint: Base URL (scheme selects HTTP or HTTPS)
        timeout: Timeout in seconds applied by httpx

    Example:
        transport = HttpTransport("https://api.moondream.ai/v1", api_key="...")
        body = await transport.send("/detect", {"image_url": url, "object": "cat"})
        await transport.aclose()
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            endpoint: Base URL of the service, e.g. https://api.moondream.ai/v1
            api_key: Value for the X-Moondream-Auth header (omitted when None)
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (e.g. httpx.MockTransport)

        Raises:
            ConfigurationError: If the endpoint is not an http(s) URL
        """
        try:
            url = httpx.URL(endpoint)
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Invalid endpoint URL: {endpoint!r}", e) from e

        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(f"Endpoint must be an http(s) URL, got {endpoint!r}")

        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _headers(self, content: bytes) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            "Content-Length": str(len(content)),
        }
        if self._api_key:
            headers[AUTH_HEADER] = self._api_key
        return headers

    async def send(self, path: str, body: Dict[str, Any], stream: bool = False) -> Any:
        """
        POST a JSON body.

        Args:
            path: Endpoint path, e.g. "/caption"
            body: JSON-serializable request envelope
            stream: Return the live response instead of parsed JSON

        Returns:
            Parsed JSON value, or an unread httpx.Response when streaming

        Raises:
            TransportError: On network failure or non-200 status
            ParseError: If a buffered body is not valid JSON
        """
        content = json.dumps(body).encode("utf-8")
        url = self.endpoint + path
        request = self._client.build_request(
            "POST",
            url,
            content=content,
            headers=self._headers(content),
        )

        logger.debug(f"POST {url} ({len(content)} bytes, stream={stream})")

        try:
            response = await self._client.send(request, stream=stream)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise TransportError(f"Request to {url} failed: {e}", e) from e

        if stream:
            return response

        if response.status_code != 200:
            logger.warning(f"POST {url} returned status {response.status_code}")
            raise TransportError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Failed to parse JSON response: {e}", e) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
