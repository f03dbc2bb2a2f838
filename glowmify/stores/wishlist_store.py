import logging

from glowmify.core.config import settings
from glowmify.core.exceptions import ShopApiError, UnauthorizedError
from glowmify.integrations.shop_api.client import ShopApiClientProtocol
from glowmify.models.dto.wishlist import WishlistAdd, WishlistItem
from glowmify.services import wishlist_service

logger = logging.getLogger(__name__)


class WishlistStore:
    """Keeps liked product ids in sync with the remote wishlist.

    Toggles are optimistic: local state changes first and is restored when
    the remote call fails.
    """

    def __init__(self, client: ShopApiClientProtocol, user_id: str | None = None) -> None:
        self._client = client
        self.user_id = user_id
        self.items: list[WishlistItem] = []
        self.liked_ids: list[str] = []
        self.external_ids: list[str] = []
        self.loading = False
        self.error: str | None = None

    def _clear(self) -> None:
        self.items = []
        self.liked_ids = []
        self.external_ids = []

    def set_user(self, user_id: str | None) -> None:
        if user_id != self.user_id:
            self._clear()
        self.user_id = user_id

    def contains(self, product_id: str, external_id: str | None = None) -> bool:
        return wishlist_service.is_in_wishlist(
            [*self.liked_ids, *self.external_ids], product_id, external_id,
        )

    async def refresh(self) -> bool:
        if not self.user_id:
            self._clear()
            return False
        self.loading = True
        try:
            items = await self._client.fetch_wishlist()
        except ShopApiError as e:
            logger.warning("Failed to load wishlist: %s", e)
            self.error = "Failed to load wishlist"
            return False
        finally:
            self.loading = False
        self.items = items
        self.liked_ids = wishlist_service.liked_ids_from_items(items)
        self.external_ids = [i.external_id for i in items if i.external_id]
        self.error = None
        return True

    async def toggle(
        self,
        product_id: str,
        *,
        external_id: str | None = None,
        title: str = "",
        price: float = 0.0,
        image_url: str = "",
        source: str = "1688",
    ) -> bool:
        """Add or remove a product; returns whether it is liked afterwards."""
        if not self.user_id:
            raise UnauthorizedError("Please login to add items to wishlist")

        external_id = external_id or product_id
        snapshot = (list(self.items), list(self.liked_ids), list(self.external_ids))

        if self.contains(product_id, external_id):
            self.liked_ids = wishlist_service.without_ids(self.liked_ids, product_id, external_id)
            self.items = [i for i in self.items if i.id not in (product_id, external_id)]
            try:
                await self._client.remove_from_wishlist(external_id)
            except ShopApiError as e:
                self.items, self.liked_ids, self.external_ids = snapshot
                self.error = "Failed to remove item from wishlist"
                logger.warning("Wishlist remove of %s failed: %s", external_id, e)
                raise
            self.external_ids = wishlist_service.without_ids(self.external_ids, product_id, external_id)
            await self.refresh()
            return False

        for liked in (product_id, external_id):
            if liked not in self.liked_ids:
                self.liked_ids.append(liked)
        if not any(i.id in (product_id, external_id) for i in self.items):
            self.items.append(WishlistItem(
                id=product_id, external_id=external_id, title=title, price=price, image_url=image_url,
            ))
        request = WishlistAdd(
            external_id=external_id, source=source, country=settings.default_country,
            image_url=image_url, price=price, title=title,
        )
        try:
            stored = await self._client.add_to_wishlist(request)
        except ShopApiError as e:
            if wishlist_service.is_already_in_wishlist_error(e.message):
                logger.info("Product %s already in wishlist", external_id)
                return True
            self.items, self.liked_ids, self.external_ids = snapshot
            self.error = e.message or "Failed to add item to wishlist"
            logger.warning("Wishlist add of %s failed: %s", external_id, e)
            raise
        if stored and stored not in self.external_ids:
            self.external_ids.append(stored)
        await self.refresh()
        return True
