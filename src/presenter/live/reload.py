"""Routing table reloading.

Re-reads the routing file on request or whenever it changes on disk, and
swaps the router's table. A file that fails to load leaves the previous
table in place.
"""

import asyncio
import logging
from pathlib import Path

from watchfiles import Change, awatch

from presenter.core.routing import ContentRouter, RoutingTable

logger = logging.getLogger(__name__)


class RoutingReloader:
    """Loads the routing file into a router and watches it for changes."""

    def __init__(self, content_map: Path, router: ContentRouter) -> None:
        """Initialize the reloader.

        Args:
            content_map: JSON routing file
            router: Router whose table is replaced on reload
        """
        self._content_map = content_map
        self._router = router
        self._watch_task: asyncio.Task[None] | None = None

    @property
    def content_map(self) -> Path:
        return self._content_map

    def reload(self) -> RoutingTable:
        """Load the routing file and install it.

        Returns:
            The newly installed table

        Raises:
            FileNotFoundError: If the routing file is missing
            ValueError: If the routing file is invalid
        """
        table = RoutingTable.load(self._content_map)
        self._router.reload(table)
        return table

    async def start(self) -> None:
        """Start watching the routing file."""
        if self._watch_task is not None:
            return
        self._watch_task = asyncio.create_task(self._watch_file())

    async def stop(self) -> None:
        """Stop watching the routing file."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

    async def _watch_file(self) -> None:
        """Reload whenever the routing file is written."""
        async for changes in awatch(self._content_map.parent):
            if self._is_relevant(changes):
                self._reload_quietly()

    def _is_relevant(self, changes: set[tuple[Change, str]]) -> bool:
        target = self._content_map.resolve()
        for change_type, path_str in changes:
            if change_type == Change.deleted:
                continue
            if Path(path_str).resolve() == target:
                return True
        return False

    def _reload_quietly(self) -> None:
        try:
            self.reload()
        except (OSError, ValueError) as e:
            logger.error(f"Keeping previous routing table, unable to load {self._content_map}: {e}")
