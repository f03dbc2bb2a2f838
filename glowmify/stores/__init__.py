from glowmify.stores.cart_store import CartStore
from glowmify.stores.feed_store import FeedStore
from glowmify.stores.wishlist_store import WishlistStore

__all__ = ["CartStore", "FeedStore", "WishlistStore"]
