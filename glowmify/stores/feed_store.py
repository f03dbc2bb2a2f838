import logging

from glowmify.core.config import settings
from glowmify.core.exceptions import ShopApiError
from glowmify.integrations.shop_api.client import ShopApiClientProtocol
from glowmify.models.dto.feed import FeedCriteria, FeedItem
from glowmify.services import feed_service
from glowmify.services.feed_service import FIRST_OFFSET, FeedState

logger = logging.getLogger(__name__)


class FeedStore:
    """Holds the "For You" feed state and drives page fetches.

    The in-flight flag is the only re-entrancy guard. ``reset()`` does not
    cancel a running fetch: when it resolves it still merges into the reset
    state according to its own offset.
    """

    def __init__(self, client: ShopApiClientProtocol, page_size: int | None = None) -> None:
        self._client = client
        self.page_size = page_size or settings.feed_page_size
        self.state: FeedState = feed_service.initial_state()
        self.criteria: FeedCriteria | None = None
        self._in_flight = False

    @property
    def items(self) -> tuple[FeedItem, ...]:
        return self.state.items

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def reset(self) -> None:
        self.state = feed_service.reset(self.state)

    async def request_page(self, criteria: FeedCriteria, offset: int, append: bool = True) -> bool:
        """Fetch one page and merge it. Returns False if skipped or failed.

        With ``append=False`` the page replaces the current items whatever
        its offset.
        """
        if self._in_flight:
            logger.debug("Feed request for offset %d skipped: request in flight", offset)
            return False

        self.state = feed_service.begin_page(self.state, offset)
        self.criteria = criteria
        self._in_flight = True
        try:
            page = await self._client.fetch_feed_page(criteria, offset, self.page_size)
        except ShopApiError as e:
            logger.warning("Feed page %d failed: %s", offset, e)
            self.state = feed_service.apply_error(self.state, e.message)
            return False
        finally:
            self._in_flight = False

        self.state = feed_service.apply_page(
            self.state, offset, page.items, self.page_size,
            replace_items=not append, received=page.received,
        )
        return True

    async def load_more(self) -> bool:
        if self.criteria is None or not self.state.has_more or self._in_flight:
            return False
        return await self.request_page(self.criteria, feed_service.next_offset(self.state))

    async def refresh(self, criteria: FeedCriteria, force: bool = False) -> bool:
        """Load the first page, resetting first when the criteria changed."""
        if force or criteria != self.criteria:
            self.reset()
        return await self.request_page(criteria, FIRST_OFFSET, append=False)
