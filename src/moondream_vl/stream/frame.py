"""
Stream Frame
============

One decoded unit of the streaming wire protocol.

Wire format (one frame per line):
    data: {"chunk": "a partial ans"}
    data: {"chunk": "wer", "completed": false}
    data: {"completed": true}

Design Rules:
    - Lines without the "data: " prefix are not frames (None)
    - Malformed JSON after the prefix is a ParseError, never skipped
    - Frames are transient; nothing outside the decoder holds them
"""

import json
from dataclasses import dataclass
from typing import Optional

from moondream_vl.exceptions import ParseError


FRAME_PREFIX = "data: "

# Longest slice of a bad frame quoted in error messages
_ERROR_PREVIEW_CHARS = 200


@dataclass(frozen=True, slots=True)
class StreamFrame:
    """
    Parsed ``data:`` line.

    Attributes:
        chunk: Text fragment carried by the frame, if any
        completed: True when the server signals the end of the output
    """

    chunk: Optional[str] = None
    completed: bool = False


def parse_frame(line: str) -> Optional[StreamFrame]:
    """
    Parse one complete protocol line.

    Args:
        line: A single line without its trailing newline

    Returns:
        StreamFrame, or None if the line is not a data frame

    Raises:
        ParseError: If the payload is not a JSON object with a string chunk
    """
    if not line.startswith(FRAME_PREFIX):
        return None

    payload = line[len(FRAME_PREFIX):]
    preview = payload[:_ERROR_PREVIEW_CHARS]

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Failed to parse JSON response from server: {e} (frame: {preview!r})",
            e,
        ) from e

    if not isinstance(data, dict):
        raise ParseError(f"Stream frame is not a JSON object (frame: {preview!r})")

    chunk = data.get("chunk")
    if chunk is not None and not isinstance(chunk, str):
        raise ParseError(
            f"Stream frame chunk must be a string, got {type(chunk).__name__} "
            f"(frame: {preview!r})"
        )

    return StreamFrame(chunk=chunk, completed=data.get("completed") is True)
