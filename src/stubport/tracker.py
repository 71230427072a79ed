from collections.abc import Iterator
from typing import Generic, Protocol, TypeVar

from loguru import logger
from rich.console import Console
from rich.table import Table

from stubport.console import console as _console
from stubport.exceptions import TrackerLookupError
from stubport.matching import UrlMatcher, method_matches, target_matches

__all__ = ["Trackable", "Tracker"]


class Trackable(Protocol):
    @property
    def method(self) -> str | None: ...

    @property
    def url(self) -> UrlMatcher: ...

    def describe(self) -> tuple[str, str, str]: ...


T = TypeVar("T", bound=Trackable)


class Tracker(Generic[T]):
    """
    Ordered, append-only collection of stubs or intercepted requests.

    Read accessors return ``None`` instead of raising when nothing is there,
    so callers must check before use. Removing an item that isn't tracked is
    a caller error and raises.
    """

    def __init__(self, name: str = "Tracked items") -> None:
        self.name = name
        self._items: list[T] = []

    def reset(self) -> None:
        """Stop tracking everything."""
        self._items.clear()

    def track(self, item: T) -> None:
        self._items.append(item)

    def count(self) -> int:
        return len(self._items)

    def at(self, index: int) -> T | None:
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def first(self) -> T | None:
        return self.at(0)

    def most_recent(self) -> T | None:
        return self.at(self.count() - 1)

    def get(self, method: str, url: UrlMatcher) -> T | None:
        """
        Find the first tracked item for an HTTP method and a URL or pattern.

        Args:
            method: HTTP method, compared case-insensitively.
            url: Exact URL (relative URLs compare against request paths, with or
                without the client's base path) or pattern.

        Returns:
            The first matching item, or None.
        """
        for item in self._items:
            if not method_matches(item.method, method):
                continue
            path = getattr(item, "path", None)
            if target_matches(item.url, path, url, getattr(item, "base_path", None)):
                return item
        return None

    def remove(self, method: str, url: UrlMatcher) -> T:
        """
        Stop tracking the first item matching a method and URL, and return it.

        Raises:
            TrackerLookupError: If no tracked item matches.
        """
        item = self.get(method, url)
        if item is None:
            shown = url if isinstance(url, str) else url.pattern
            raise TrackerLookupError(f"{self.name}: nothing tracked for {method.upper()} {shown}")
        # identity, not equality: duplicate-looking entries are distinct
        index = next(i for i, tracked in enumerate(self._items) if tracked is item)
        del self._items[index]
        return item

    def debug(self, console: Console | None = None) -> None:
        """Dump the tracked items as a table and to the debug log."""
        table = Table(title=self.name)
        table.add_column("Method", style="cyan")
        table.add_column("URL", style="magenta")
        table.add_column("Detail", style="green")

        for item in self._items:
            method, url, detail = item.describe()
            table.add_row(method.lower(), url, detail)
            logger.debug(f"{self.name}: {method.lower()}, {url}, {detail}")

        (console or _console).print(table)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        # iterate a snapshot so callbacks may register items mid-scan
        return iter(list(self._items))
