"""
Notification Service Interface (Port).

Notification services are told that an archive was produced. They get the
archive path (already deleted locally by the time they run) and the
archive's metadata text.
"""

from typing import Protocol


class NotificationService(Protocol):
    """Abstract interface for capture notifications."""

    async def send(self, path: str, metadata: str) -> bool:
        """
        Announce a finished archive.

        Args:
            path: Path the archive was written to
            metadata: Contents of the archive's .logpack entry

        Returns:
            True if the notification was delivered
        """
        ...
