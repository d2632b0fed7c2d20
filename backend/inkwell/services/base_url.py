"""
Inkwell Backend: Base URL Registration
=======================================

What:  Makes sure the process knows the base URL it is served from.
How:   If API_BASE_URL is not configured, derives `<scheme>://<hostname>:<port>`
       from the machine's hostname and the configured port, appends
       `API_BASE_URL=<url>` to the env file so later starts pick it up, and
       updates both `settings` and `os.environ` for the running process.
When:  Once, from the lifespan handler during startup.

The registration runs under a lock and is guarded by a flag, so concurrent
or repeated calls write the env file at most once per process.
"""

import asyncio
import logging
import os
import socket
from pathlib import Path
from typing import Optional

import aiofiles

from inkwell.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class BaseUrlService:
    """One-time base-URL derivation and persistence."""

    ENV_KEY = "API_BASE_URL"

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self._registered = False
        self._lock: Optional[asyncio.Lock] = None

    @property
    def registered(self) -> bool:
        return self._registered

    def derive_base_url(self) -> str:
        return f"{self.config.public_scheme}://{socket.gethostname()}:{self.config.port}"

    async def ensure_registered(self) -> str:
        """
        Return the configured base URL, deriving and persisting one if unset.

        Raises:
            OSError: the env file could not be appended to
        """
        if self._registered:
            return self.config.api_base_url

        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if self._registered:
                return self.config.api_base_url

            if self.config.api_base_url:
                logger.info("Using configured base URL %s", self.config.api_base_url)
                self._registered = True
                return self.config.api_base_url

            base_url = self.derive_base_url()
            env_path = Path(self.config.env_file_path).resolve()

            async with aiofiles.open(env_path, mode="a", encoding="utf-8") as env_file:
                await env_file.write(f"{self.ENV_KEY}={base_url}\n")

            self.config.api_base_url = base_url
            os.environ[self.ENV_KEY] = base_url
            self._registered = True

            logger.info("Registered base URL %s in %s", base_url, env_path)
            return base_url


base_url_service = BaseUrlService()
