from collections.abc import Iterable

from glowmify.models.dto.wishlist import WishlistItem

ALREADY_IN_WISHLIST_MARKERS = ("already in wishlist", "PRODUCT_ALREADY_IN_WISHLIST")


def liked_ids_from_items(items: Iterable[WishlistItem]) -> list[str]:
    """Every id a product may be looked up by: its own id and its external id."""
    ids: list[str] = []
    for item in items:
        for candidate in (item.id, item.external_id):
            if candidate and candidate not in ids:
                ids.append(candidate)
    return ids


def is_in_wishlist(liked_ids: Iterable[str], product_id: str, external_id: str | None = None) -> bool:
    liked = set(liked_ids)
    return product_id in liked or bool(external_id and external_id in liked)


def without_ids(liked_ids: Iterable[str], *ids: str) -> list[str]:
    drop = set(ids)
    return [i for i in liked_ids if i not in drop]


def is_already_in_wishlist_error(message: str) -> bool:
    return any(marker in message for marker in ALREADY_IN_WISHLIST_MARKERS)
