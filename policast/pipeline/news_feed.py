"""
Session list of discovered headlines.
"""

import logging
from typing import List, Optional, Union

from policast.models.content import NewsItem


class NewsFeed:
    """Headlines seen during one session, newest batch first, unique by title."""

    def __init__(self) -> None:
        self.items: List[NewsItem] = []
        self.logger = logging.getLogger(__name__)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def merge(self, fetched: List[NewsItem]) -> List[NewsItem]:
        """
        Add fetched headlines whose titles have not been seen yet.

        Returns:
            The newly added items, in fetch order
        """
        existing_titles = {item.title for item in self.items}
        new_items: List[NewsItem] = []
        for item in fetched:
            if item.title in existing_titles:
                continue
            existing_titles.add(item.title)
            new_items.append(item)

        self.items = new_items + self.items
        self.logger.info(
            f"Merged headlines: {len(fetched)} fetched, {len(new_items)} new, {len(self.items)} total"
        )
        return new_items

    def get(self, key: Union[int, str]) -> Optional[NewsItem]:
        """Look up by 1-based position or by id."""
        if isinstance(key, int) or (isinstance(key, str) and key.isdigit()):
            index = int(key) - 1
            if 0 <= index < len(self.items):
                return self.items[index]
            return None
        for item in self.items:
            if item.id == key:
                return item
        return None

    def clear(self) -> None:
        self.items = []
