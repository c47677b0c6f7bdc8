"""Response sinks and FastAPI integration."""

from .sink import BufferedSink, ResponseSink

__all__ = ["BufferedSink", "ResponseSink"]
