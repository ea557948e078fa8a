"""Archive sinks."""

from infrastructure.sinks.directory_sink import DirectorySink
from infrastructure.sinks.http_sink import HttpSink

__all__ = ["DirectorySink", "HttpSink"]
