"""NotificationService that announces archives in the application log."""

import logging
from pathlib import Path

logger = logging.getLogger("logpack.notifications")


class LoggingNotifier:
    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def send(self, path: str, metadata: str) -> bool:
        summary = ", ".join(line.strip() for line in metadata.splitlines() if line.strip())
        logger.log(self.level, "LogPack created %s (%s)", Path(path).name, summary)
        return True
