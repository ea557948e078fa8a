"""ArchiveSink that copies archives into a local (or mounted) directory."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class DirectorySink:
    """Copies each archive into ``target_dir``, keeping its file name."""

    def __init__(self, target_dir: Union[str, Path]):
        self.target_dir = Path(target_dir)

    async def send(self, path: str) -> bool:
        source = Path(path)
        destination = self.target_dir / source.name
        try:
            await asyncio.to_thread(self.target_dir.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, source, destination)
        except OSError as e:
            logger.error(f"Failed to copy {source.name} to {self.target_dir}: {e}")
            return False
        logger.info("Stored archive %s", destination)
        return True
