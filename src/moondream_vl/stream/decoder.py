"""
Stream Decoder
==============

Incremental decoder turning a live byte stream into text fragments.

The service streams generative output as newline-delimited frames:

    data: {"chunk": "A cat "}\\n
    data: {"chunk": "on a sofa"}\\n
    data: {"completed": true}\\n

Network chunks do not respect line boundaries, so the decoder keeps one
residual buffer holding the trailing, not-yet-terminated line.

States:
    AwaitingData -> EmittingFragment -> AwaitingData ... -> Completed | Failed

Design Rules:
    - Fragments are yielded in arrival order, nothing is buffered beyond
      the current incomplete line
    - A "completed" frame stops reading immediately
    - End of input is an implicit completion; the leftover line is flushed
    - A malformed frame fails the sequence with ParseError, no resync
"""

import codecs
import logging
import weakref
from contextlib import aclosing
from typing import AsyncIterable, AsyncIterator, List, Optional, Union

import httpx

from moondream_vl.exceptions import ParseError, TransportError
from moondream_vl.stream.frame import parse_frame


logger = logging.getLogger(__name__)


# Upper bound on a single buffered protocol line (1 MiB of text)
MAX_LINE_CHARS = 1 << 20


def _decode_text(decoder: codecs.IncrementalDecoder, chunk: Union[bytes, str], final: bool = False) -> str:
    if isinstance(chunk, str):
        return chunk
    try:
        return decoder.decode(chunk, final)
    except UnicodeDecodeError as e:
        raise ParseError(f"Stream is not valid UTF-8: {e}", e) from e


async def decode_stream(
    chunks: AsyncIterable[Union[bytes, str]],
    max_line_chars: int = MAX_LINE_CHARS,
) -> AsyncIterator[str]:
    """
    Decode framed stream chunks into text fragments.

    Args:
        chunks: Raw network chunks, split at arbitrary byte offsets
        max_line_chars: Longest unterminated line buffered before failing

    Yields:
        Text fragments in arrival order

    Raises:
        ParseError: On a malformed frame, invalid UTF-8 or an overlong line
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    # Pieces of the current unterminated line, joined only once a newline arrives
    pending: List[str] = []
    pending_chars = 0

    async for chunk in chunks:
        text = _decode_text(decoder, chunk)
        if "\n" not in text:
            pending.append(text)
            pending_chars += len(text)
            if pending_chars > max_line_chars:
                raise ParseError(f"Stream line exceeds {max_line_chars} characters without a newline")
            continue

        *lines, tail = text.split("\n")
        lines[0] = "".join(pending) + lines[0]
        pending = [tail]
        pending_chars = len(tail)
        if pending_chars > max_line_chars:
            raise ParseError(f"Stream line exceeds {max_line_chars} characters without a newline")

        for line in lines:
            frame = parse_frame(line)
            if frame is None:
                continue
            if frame.chunk is not None:
                yield frame.chunk
            if frame.completed:
                return

    pending.append(_decode_text(decoder, b"", final=True))
    remainder = "".join(pending)

    # Trailing text without a "data: " prefix is treated as noise
    frame = parse_frame(remainder) if remainder else None
    if frame is not None and frame.chunk is not None:
        yield frame.chunk


class FragmentStream:
    """
    Lazy, single-consumer sequence of text fragments for one request.

    Iterating drives network reads. The underlying response is closed when
    the sequence completes, fails, or is abandoned via ``aclose()``. A consumer
    that breaks out of ``async for`` should use ``async with`` or ``aclose()``
    to release the connection right away; otherwise it is released once the
    event loop finalizes the dropped iterator.

    Attributes:
        status_code: HTTP status of the underlying response
        closed: Whether the underlying response has been released

    Example:
        output = await client.caption(image, stream=True)

        async with output.caption as fragments:
            async for fragment in fragments:
                print(fragment, end="", flush=True)
    """

    def __init__(self, response: httpx.Response) -> None:
        """
        Wrap a streaming response.

        Args:
            response: Response opened with ``stream=True`` and not yet read
        """
        self._response = response
        # Weak, so a consumer that drops the iterator lets asyncio finalize it
        self._iterator: Optional[weakref.ref] = None
        self._closed: bool = False

    @property
    def status_code(self) -> int:
        """HTTP status of the underlying response."""
        return self._response.status_code

    @property
    def closed(self) -> bool:
        """Whether the underlying response has been released."""
        return self._closed

    def __aiter__(self) -> AsyncIterator[str]:
        if self._iterator is not None:
            raise RuntimeError("FragmentStream supports a single consumer and was already iterated")
        iterator = self._fragments()
        self._iterator = weakref.ref(iterator)
        return iterator

    async def _fragments(self) -> AsyncIterator[str]:
        count = 0
        try:
            await self._raise_for_status()
            async with aclosing(self._chunks()) as chunks, aclosing(decode_stream(chunks)) as fragments:
                async for fragment in fragments:
                    count += 1
                    yield fragment
            logger.debug(f"Stream completed after {count} fragments")
        except ParseError as e:
            logger.warning(f"Stream failed after {count} fragments: {e}")
            raise
        finally:
            await self._release()

    async def _chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to stream response: {e}", e) from e

    async def _raise_for_status(self) -> None:
        if self._response.is_success:
            return
        status = self._response.status_code
        try:
            body = await self._response.aread()
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error! status: {status}", e, status_code=status) from e
        raise TransportError(
            f"HTTP error! status: {status}: {body[:200].decode('utf-8', 'replace')}",
            status_code=status,
        )

    async def _release(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()

    async def aclose(self) -> None:
        """Stop consuming and release the connection."""
        iterator = self._iterator() if self._iterator is not None else None
        if iterator is not None:
            await iterator.aclose()
        await self._release()

    async def collect(self) -> str:
        """Drain the remaining fragments into a single string."""
        parts: List[str] = [fragment async for fragment in self]
        return "".join(parts)

    async def __aenter__(self) -> "FragmentStream":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"FragmentStream(status={self.status_code}, {state})"
