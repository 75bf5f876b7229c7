"""
Upstream verification engine client.
"""

from .dispatcher import UpstreamDispatcher, UpstreamResponse

__all__ = ["UpstreamDispatcher", "UpstreamResponse"]
