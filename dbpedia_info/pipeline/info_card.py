"""
Headless info card.

The card shows the DBpedia description and thumbnail of its term. The lookup
is started the first time the card becomes visible and runs once; a failing
lookup leaves the card empty.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Literal, Optional

from ..common.errors import DbpediaLookupError
from ..common.schemas import Card, LookupResult
from ..kg.dbpedia_query import lookup as dbpedia_lookup

logger = logging.getLogger(__name__)

CardState = Literal["idle", "loading", "loaded", "empty", "cancelled"]
LookupFn = Callable[[str], Awaitable[LookupResult]]


class DbpediaInfoCard:
    """Card displaying DBpedia information for a hinted term."""

    def __init__(self, term: str, lookup: Optional[LookupFn] = None):
        self.term = term
        self.description: Optional[str] = None
        self.image: Optional[str] = None
        self.state: CardState = "idle"
        self._lookup = lookup or dbpedia_lookup
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_card(cls, card: Card, lookup: Optional[LookupFn] = None) -> "DbpediaInfoCard":
        return cls(card.info.term, lookup=lookup)

    def on_visible(self) -> Optional[asyncio.Task]:
        """Start the lookup. Must be called from a running event loop; later calls are no-ops."""
        if self._task is None and self.state == "idle":
            self.state = "loading"
            self._task = asyncio.get_running_loop().create_task(self._load())
        return self._task

    async def _load(self) -> None:
        try:
            result = await self._lookup(self.term)
        except DbpediaLookupError as e:
            logger.info("no info for %r: %s", self.term, e.reason)
            self.state = "empty"
            return
        self.description = result.description
        self.image = result.image
        self.state = "loaded" if (result.description is not None or result.image is not None) else "empty"

    async def wait(self) -> None:
        """Wait for the pending lookup, if any."""
        if self._task is None:
            return
        # asyncio.wait does not raise when the task itself was cancelled
        await asyncio.wait([self._task])
        if not self._task.cancelled() and self._task.exception() is not None:
            raise self._task.exception()

    def teardown(self) -> None:
        """Cancel an in-flight lookup."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self.state = "cancelled"

    def as_dict(self) -> dict:
        return {
            "term": self.term,
            "description": self.description,
            "image": self.image,
            "state": self.state,
        }
