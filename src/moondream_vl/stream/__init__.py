"""
Stream Module
=============

Decoding of streamed generative output.

This module provides:
    - StreamFrame: one parsed ``data:`` line
    - decode_stream: async generator from raw chunks to text fragments
    - FragmentStream: single-consumer wrapper owning the HTTP response

Example:
    from moondream_vl.stream import decode_stream

    async for fragment in decode_stream(response.aiter_bytes()):
        print(fragment, end="")
"""

from moondream_vl.stream.frame import FRAME_PREFIX, StreamFrame, parse_frame
from moondream_vl.stream.decoder import FragmentStream, decode_stream


__all__ = [
    "FRAME_PREFIX",
    "StreamFrame",
    "parse_frame",
    "decode_stream",
    "FragmentStream",
]
