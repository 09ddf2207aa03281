"""
ArtworkService - Downloads tile icons from the GOG image CDN.

Responsibilities:
- Execute a batch of DownloadIcon records in a single HTTP session
- Write each image to its VisualElements path
- Log failures per icon without stopping the batch
"""

import asyncio
import logging
import os
import ssl
from typing import Dict, Optional

import aiohttp
import certifi

from gogtiles.utils.powershell import CommandBatch, DownloadIcon

logger = logging.getLogger(__name__)

# Icon fetch timeout (seconds per icon)
ICON_FETCH_TIMEOUT = 30
PARTIAL_SUFFIX = ".part"


class ArtworkService:
    """Service for fetching tile icons."""

    def __init__(self, timeout: float = ICON_FETCH_TIMEOUT):
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=1)
            self.session = aiohttp.ClientSession(connector=connector)
        return self.session

    async def download_icon(self, command: DownloadIcon) -> bool:
        """Download one icon.

        Args:
            command: URL and target file

        Returns:
            True if the image was written
        """
        session = await self._get_session()
        try:
            async with session.get(command.url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
                if response.status != 200:
                    logger.error(
                        f"[Artwork] Failed to download icon for {command.release_key}: HTTP {response.status}"
                    )
                    return False
                content = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[Artwork] Error downloading icon for {command.release_key}: {e}")
            return False

        # Only complete icons may reach the target path
        partial_path = f"{command.target}{PARTIAL_SUFFIX}"
        try:
            os.makedirs(os.path.dirname(command.target), exist_ok=True)
            with open(partial_path, "wb") as f:
                f.write(content)
            os.replace(partial_path, command.target)
        except OSError as e:
            logger.error(f"[Artwork] Could not write {command.target}: {e}")
            if os.path.exists(partial_path):
                os.remove(partial_path)
            return False

        logger.debug(f"[Artwork] Downloaded icon to {command.target}")
        return True

    async def download_batch(self, batch: "CommandBatch[DownloadIcon]") -> Dict[str, bool]:
        """Download every icon of a batch, one after another.

        Returns:
            Dict mapping release key to success
        """
        results: Dict[str, bool] = {}
        if not len(batch):
            return results

        logger.info(f"[Artwork] Downloading {len(batch)} icon(s)...")
        try:
            for command in batch:
                results[command.release_key] = await self.download_icon(command)
        finally:
            await self.close()

        failed = [key for key, ok in results.items() if not ok]
        if failed:
            logger.warning(f"[Artwork] {len(failed)} icon(s) could not be downloaded: {', '.join(failed)}")
        return results

    async def close(self) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None
