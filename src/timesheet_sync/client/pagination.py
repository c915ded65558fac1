"""Uniform multi-page retrieval for paginated source APIs."""

import logging
from collections.abc import Callable, Sized
from dataclasses import dataclass, field, replace
from typing import Any

from timesheet_sync.errors import FetchError
from timesheet_sync.worklog import Entry

logger = logging.getLogger(__name__)

# 50 items per page is accepted by every supported source
DEFAULT_PAGE_SIZE = 50
DEFAULT_PAGE_PARAM = "page"
DEFAULT_PAGE_SIZE_PARAM = "per_page"
# Guards against APIs that never return an empty page
DEFAULT_MAX_PAGES = 1000


@dataclass(frozen=True)
class PageRequest:
    """Describes one page of a paginated listing."""

    path: str
    params: dict[str, Any] = field(default_factory=dict)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    page_param: str = DEFAULT_PAGE_PARAM
    # None when the API does not accept a page size
    page_size_param: str | None = DEFAULT_PAGE_SIZE_PARAM

    def for_page(self, page: int, page_size: int) -> "PageRequest":
        return replace(self, page=page, page_size=page_size)

    @property
    def query(self) -> dict[str, Any]:
        """Query parameters including the page selection."""
        query = {**self.params, self.page_param: self.page}
        if self.page_size_param:
            query[self.page_size_param] = self.page_size
        return query


@dataclass(frozen=True)
class PageMeta:
    """Pagination details reported by the API, when it reports any."""

    entries_per_page: int | None = None
    total_entries: int | None = None


FetchPage = Callable[[PageRequest], tuple[Any, PageMeta]]
ParsePage = Callable[[Any], list[Entry]]


def paginated_fetch(
    seed: PageRequest,
    fetch_page: FetchPage,
    parse_page: ParsePage,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Entry]:
    """Fetch and parse pages until the source runs out of entries.

    Pages are requested one at a time. The loop stops on an empty page, or
    once the reported total is covered by the pages fetched so far.

    Args:
        seed: Request of the first page; later pages only change the page number.
        fetch_page: Retrieves the raw payload and pagination details of a page.
        parse_page: Converts a raw payload into entries.
        max_pages: Maximum number of pages requested.

    Returns:
        Entries of every page, in page order.

    Raises:
        FetchError: If fetching or parsing any page fails, or the source did
            not run out of pages within ``max_pages``.
    """
    entries: list[Entry] = []
    page_size = seed.page_size if seed.page_size > 0 else DEFAULT_PAGE_SIZE

    for current_page in range(1, max_pages + 1):
        request = seed.for_page(current_page, page_size)
        logger.debug(f"Fetching page {current_page} of {seed.path}")

        try:
            raw_entries, meta = fetch_page(request)
            if _is_empty(raw_entries):
                return entries
            entries.extend(parse_page(raw_entries))
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(f"failed to fetch entries from {seed.path} (page {current_page}): {e}") from e

        if meta.entries_per_page:
            page_size = meta.entries_per_page

        if meta.total_entries and meta.total_entries - page_size * current_page <= 0:
            return entries

    raise FetchError(f"failed to fetch entries from {seed.path}: no last page after {max_pages} pages")


def _is_empty(raw_entries: Any) -> bool:
    if raw_entries is None:
        return True
    return isinstance(raw_entries, Sized) and len(raw_entries) == 0
