"""
Inkwell Backend: Tree Fetcher
==============================

What:  Recursively walks a remote repository location and returns the
       markdown and text files found at any depth.
How:   fetch_level() lists one directory and annotates each entry;
       expand() replaces every directory entry with the recursively expanded
       contents of that directory, concurrently, and flattens the result;
       the flat list is then filtered down to md/txt files.
Who:   Called by the GET /github route handler.

Traversal shape:
    readme.md            → kept
    docs/                → listed, its entries spliced into the result
      docs/intro.md      → kept
      docs/img/          → listed, recursed into
        docs/img/a.png   → dropped by the extension filter

Concurrency:
    Sibling directories are expanded concurrently. A semaphore caps how
    many listing requests are in flight at once; it is held only around the
    remote call, never while waiting on children. The first failure cancels
    the remaining siblings and propagates to the caller.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from inkwell.config import settings
from inkwell.services.content_base import ContentSource
from inkwell.services.github_service import github_service

logger = logging.getLogger(__name__)

# Listing types that take part in the traversal
ENTRY_TYPES = {"file", "dir"}

# Extensions of the files returned to the client
TEXT_EXTENSIONS = {"md", "txt"}

# Fields of a listing entry carried into the params of a deeper listing
LOCATION_FIELDS = ("path",)


def extension_of(name: str) -> str:
    """Substring after the final '.', or the whole name when there is none."""
    return name.rsplit(".", 1)[-1]


def is_text_file(entry: Dict[str, Any]) -> bool:
    return entry.get("type") == "file" and entry.get("extension") in TEXT_EXTENSIONS


class TreeFetcher:
    """
    Recursive, bounded-concurrency walker over a ContentSource.

    Args:
        source:          Where listings come from
        max_concurrency: Maximum listing requests in flight for this fetcher
    """

    def __init__(self, source: ContentSource, max_concurrency: Optional[int] = None):
        self.source = source
        self.max_concurrency = max_concurrency or settings.github_max_concurrency
        self._semaphore: Optional[asyncio.Semaphore] = None

    @property
    def semaphore(self) -> asyncio.Semaphore:
        # Created on first use so it belongs to the running event loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self._semaphore

    async def fetch_level(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        List one location and annotate its file and directory entries.

        Each kept entry is a copy of the listing item plus `extension` and
        the `params` it was listed with. Other types (symlink, submodule)
        are dropped.
        """
        async with self.semaphore:
            listing = await self.source.list_contents(params)

        return [
            {**item, "extension": extension_of(item.get("name", "")), "params": params}
            for item in listing
            if item.get("type") in ENTRY_TYPES
        ]

    async def expand(
        self, entries: List[Dict[str, Any]], params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """
        Replace each directory entry by its recursively expanded contents.

        Files pass through unchanged. A directory is listed with `params`
        merged with the directory's own path, so deeper listings keep the
        original owner/repo/ref context. Returns one flat list; the order of
        `entries` is preserved, with a directory's contents in its place.
        """
        tasks = [asyncio.ensure_future(self._expand_entry(entry, params)) for entry in entries]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        flattened: List[Dict[str, Any]] = []
        for result in results:
            flattened.extend(result)
        return flattened

    async def _expand_entry(
        self, entry: Dict[str, Any], params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        if entry["type"] == "file":
            return [entry]

        child_params = {
            **params,
            **{field: entry[field] for field in LOCATION_FIELDS if field in entry},
        }
        logger.debug("Descending into %s", child_params.get("path"))
        children = await self.fetch_level(child_params)
        return await self.expand(children, child_params)

    async def get_content_recursively(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Every md/txt file at or below the location described by `params`.

        Raises:
            RemoteFetchError: any listing failed; nothing partial is returned
        """
        entries = await self.fetch_level(params)
        expanded = await self.expand(entries, params)
        files = [entry for entry in expanded if is_text_file(entry)]

        logger.info(
            "Tree walk of %s/%s:%s found %d text files among %d entries",
            params.get("owner"),
            params.get("repo"),
            params.get("path") or "/",
            len(files),
            len(expanded),
        )
        return files


tree_fetcher = TreeFetcher(github_service)
