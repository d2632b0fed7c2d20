"""
Inkwell Backend: Abstract Remote Content Source
================================================

What:  Abstract base class for services that list the contents of a
       location in a remote source-hosting repository.
How:   Concrete implementations inherit from ContentSource and implement
       list_contents() and health_check().
Who:   TreeFetcher walks directory trees through this interface; the
       GitHub implementation lives in github_service.py and tests supply
       in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class ContentSource(ABC):
    """
    Abstract interface for listing repository contents.

    Contract:
        - list_contents() returns the raw listing items for one location
        - every item is a dict with at least `name`, `path` and `type`
        - implementation-specific failures are wrapped in RemoteFetchError
    """

    @abstractmethod
    async def list_contents(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        List the entries stored at one repository location.

        Args:
            params: Location parameters. `owner` and `repo` identify the
                    repository, `path` the directory (root when empty) and
                    `ref` an optional branch, tag or commit.

        Returns:
            The listing items. A location that is a single file yields a
            one-item list.

        Raises:
            RemoteFetchError: the listing could not be retrieved
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Returns True if the remote API is reachable, False otherwise."""
        ...
