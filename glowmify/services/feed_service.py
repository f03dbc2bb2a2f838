"""Offset-paginated feed accumulation.

State is an immutable ``FeedState``; every transition returns a new one.
The load status is a single tagged value (``Idle``, ``Loading``, ``Success``
or ``Error``) so "loading and failed at once" cannot be represented.

Nothing here guards against overlapping requests or discards responses that
resolve after a reset: a page that arrives is merged according to its own
offset. Callers own the in-flight guard (see ``glowmify.stores.feed_store``).
"""
import logging
from dataclasses import dataclass, field, replace

from glowmify.models.dto.feed import FeedItem

logger = logging.getLogger(__name__)

FIRST_OFFSET = 1


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    offset: int


@dataclass(frozen=True)
class Success:
    offset: int
    received: int


@dataclass(frozen=True)
class Error:
    message: str


LoadState = Idle | Loading | Success | Error


@dataclass(frozen=True)
class FeedState:
    items: tuple[FeedItem, ...] = ()
    offset: int = FIRST_OFFSET
    has_more: bool = True
    load: LoadState = field(default_factory=Idle)

    @property
    def is_loading(self) -> bool:
        return isinstance(self.load, Loading)

    @property
    def error(self) -> str | None:
        return self.load.message if isinstance(self.load, Error) else None

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]


def initial_state() -> FeedState:
    return FeedState()


def reset(state: FeedState | None = None) -> FeedState:
    """Empty feed at the first offset, regardless of ``state``."""
    return FeedState()


def begin_page(state: FeedState, offset: int) -> FeedState:
    if offset < FIRST_OFFSET:
        raise ValueError(f"offset must be >= {FIRST_OFFSET}, got {offset}")
    return replace(state, load=Loading(offset))


def merge_unique(existing: tuple[FeedItem, ...], page: list[FeedItem]) -> tuple[FeedItem, ...]:
    """Append items of ``page`` whose id is not in ``existing``, keeping order.

    Only ids already held count as seen; repeats inside ``page`` are kept.
    """
    seen = {item.id for item in existing}
    return (*existing, *(item for item in page if item.id not in seen))


def apply_page(
    state: FeedState,
    offset: int,
    page: list[FeedItem],
    page_size: int,
    replace_items: bool = False,
    received: int | None = None,
) -> FeedState:
    """Merge a successful page response fetched at ``offset``.

    Offset 1 (or ``replace_items``) replaces the items outright; later
    offsets append only unseen ids. ``has_more`` is inferred from whether
    the raw page was full: ``received`` is the number of rows the server
    sent, which can exceed ``len(page)`` when unusable rows were skipped.
    """
    if received is None:
        received = len(page)
    if replace_items or offset <= FIRST_OFFSET:
        items = tuple(page)
    else:
        items = merge_unique(state.items, page)
        dropped = len(state.items) + len(page) - len(items)
        if dropped:
            logger.debug("Dropped %d duplicate feed items at offset %d", dropped, offset)

    return FeedState(
        items=items,
        offset=offset,
        has_more=received >= page_size,
        load=Success(offset=offset, received=received),
    )


def apply_error(state: FeedState, message: str) -> FeedState:
    """Record a failed fetch; items, offset and has_more are kept as they were."""
    return replace(state, load=Error(message))


def next_offset(state: FeedState) -> int:
    return state.offset + 1
