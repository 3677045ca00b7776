"""
Cursor pagination over offset/limit slices.

The appliance only exposes (limit, offset) windows. These helpers walk a
collection slice by slice to serve either the whole collection or the items
after a continuation token.

The continuation token is the path of the last item of the previous page. It
is only meaningful while the collection keeps the same order between calls:
items added or removed between two calls can be skipped or repeated, and if
the token item itself is removed the listing ends with no items.
"""

import logging
from typing import Callable, List, Sequence, Tuple, TypeVar

from .errors import NefValidationError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 100

T = TypeVar('T')

SliceFetcher = Callable[[str, int, int], Sequence[T]]


def validate_slice(name: str, limit: int, offset: int, page_limit: int = DEFAULT_PAGE_LIMIT):
    """
    Check slice bounds before anything is sent.

    Raises:
        NefValidationError: If not 1 <= limit < page_limit, or offset < 0
    """
    if limit <= 0 or limit >= page_limit:
        raise NefValidationError(
            f"{name}(): parameter 'limit' must be greater than 0 and less than {page_limit}, got: {limit}"
        )
    if offset < 0:
        raise NefValidationError(
            f"{name}(): parameter 'offset' must be greater or equal to 0, got: {offset}"
        )


def window(items: Sequence[T], limit: int, offset: int) -> List[T]:
    """Client-side [offset, offset+limit) window of a full listing."""
    return list(items[offset:offset + limit])


def list_all(fetch_slice: SliceFetcher, parent: str, page_limit: int = DEFAULT_PAGE_LIMIT) -> List[T]:
    """
    Load a whole collection with slice requests.

    A slice shorter than page_limit - 1 marks the end of the collection.
    """
    slice_limit = page_limit - 1
    items: List[T] = []
    offset = 0

    while True:
        chunk = fetch_slice(parent, slice_limit, offset)
        items.extend(chunk)
        offset += len(chunk)
        if len(chunk) < slice_limit:
            break

    logger.debug(f"loaded {len(items)} items of '{parent}' in slices of {slice_limit}")
    return items


def list_after_token(
    fetch_slice: SliceFetcher,
    parent: str,
    token: str = "",
    limit: int = 0,
    page_limit: int = DEFAULT_PAGE_LIMIT,
    key: Callable[[T], str] = lambda item: item.path
) -> Tuple[List[T], str]:
    """
    Return the items that follow the token, and the token for the next page.

    Args:
        fetch_slice: Slice fetcher, called as fetch_slice(parent, limit, offset)
        parent: Parent path of the collection
        token: Path of the item to start AFTER, empty to start from the first item
        limit: Maximum count of items to return, 0 for no limit
        page_limit: Appliance page size maximum
        key: Item identity used for token matching

    Returns:
        (items, next_token); next_token is empty when nothing is left. A token
        that matches no item yields no items.
    """
    if limit < 0:
        raise NefValidationError(f"parameter 'limit' must be greater or equal to 0, got: {limit}")

    slice_limit = page_limit - 1
    token_found = not token
    items: List[T] = []
    offset = 0

    while True:
        chunk = fetch_slice(parent, slice_limit, offset)
        offset += len(chunk)
        end_of_collection = len(chunk) < slice_limit

        for index, item in enumerate(chunk):
            if not token_found:
                token_found = key(item) == token
                continue

            items.append(item)
            if limit and len(items) == limit:
                if index < len(chunk) - 1:
                    return items, key(item)
                if end_of_collection:
                    return items, ""
                more = fetch_slice(parent, 1, offset)
                return items, key(item) if more else ""

        if end_of_collection:
            return items, ""
