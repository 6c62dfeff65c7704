"""
Transport Module
================

HTTP transport to the inference service.
"""

from moondream_vl.transport.http import AUTH_HEADER, USER_AGENT, HttpTransport


__all__ = [
    "AUTH_HEADER",
    "USER_AGENT",
    "HttpTransport",
]
