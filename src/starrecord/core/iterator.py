"""
Paged Model Iteration
"""

from typing import Iterator, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from .model import Model
    from .query import Query

logger = logging.getLogger(__name__)


class ModelIterator:
    """
    Lazy iterator over every result of a query.

    Results are fetched one page (the query's limit) at a time, starting at
    the query's offset. Each ``iter()`` call starts over from the first page
    and iteration stops at the first short page.
    """

    def __init__(self, query: 'Query'):
        self._query = query

    def __iter__(self) -> Iterator['Model']:
        page_size = self._query.get_limit()
        start = self._query.get_start()
        query = self._query.clone()

        while True:
            page = query.start(start).limit(page_size).execute()
            logger.debug(f"Fetched page at {start} with {len(page)} models")
            yield from page

            if len(page) < page_size or page_size == 0:
                break
            start += page_size

    def count(self) -> int:
        """Total number of matching records"""
        return self._query.total_records()


__all__ = ["ModelIterator"]
