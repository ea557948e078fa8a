"""
Archive Sink Interface (Port).

A sink receives the local path of a finished archive file and copies it
somewhere durable (a directory, an HTTP endpoint, object storage...). The
file is deleted once every sink has been attempted, so sinks must finish
reading it before send() returns.
"""

from typing import Protocol


class ArchiveSink(Protocol):
    """Abstract interface for archive destinations."""

    async def send(self, path: str) -> bool:
        """
        Upload an archive file.

        Args:
            path: Local path of the archive file

        Returns:
            True if the archive was delivered

        Raises:
            Exception: Implementations may raise; the dispatcher records the
                failure and moves on to the next sink
        """
        ...
