"""
Task Output Records
===================

Immutable results returned by the client's task methods.

Generative tasks (caption, query) return either the complete text or, when
streaming was requested, a FragmentStream producing the text incrementally.
Detect and point results are passed through from the service untouched.

A FragmentStream holds an open connection until it is exhausted. Stopping
early should go through ``async with`` or ``await stream.aclose()``.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union

from moondream_vl.stream.decoder import FragmentStream


TextOrStream = Union[str, FragmentStream]


@dataclass(frozen=True, slots=True)
class CaptionOutput:
    """
    Result of a caption request.

    Attributes:
        caption: Complete caption, or a FragmentStream when streaming; close
            the stream with ``aclose()`` if you stop reading early
    """

    caption: TextOrStream


@dataclass(frozen=True, slots=True)
class QueryOutput:
    """
    Result of a query request.

    Attributes:
        answer: Complete answer, or a FragmentStream when streaming; close
            the stream with ``aclose()`` if you stop reading early
        reasoning: Auxiliary reasoning, present only on buffered responses
            that returned one
    """

    answer: TextOrStream
    reasoning: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class DetectOutput:
    """Bounding regions for the requested object."""

    objects: List[Any]


@dataclass(frozen=True, slots=True)
class PointOutput:
    """Point coordinates for the requested object."""

    points: List[Any]
