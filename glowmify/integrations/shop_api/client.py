import asyncio
import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from glowmify.core.config import settings
from glowmify.core.exceptions import ShopApiError
from glowmify.models.dto.cart import (
    CartLine,
    CartLineAdd,
    CartLineUpdate,
    CheckoutItem,
    CheckoutRequest,
    OrderConfirmation,
)
from glowmify.models.dto.feed import FeedCriteria, FeedItem, FeedPage
from glowmify.models.dto.wishlist import WishlistAdd, WishlistItem
from glowmify.services.cart_service import flatten_cart_payload

logger = logging.getLogger(__name__)


@runtime_checkable
class ShopApiClientProtocol(Protocol):
    async def fetch_cart_lines(self) -> list[CartLine]: ...
    async def add_cart_line(
        self, product_id: str, quantity: int = 1, variation_index: int = 0, option_index: int = 0,
    ) -> None: ...
    async def update_cart_line(
        self, line_id: str, quantity: int, variation_index: int, option_index: int,
    ) -> None: ...
    async def remove_cart_line(self, line_id: str) -> None: ...
    async def fetch_feed_page(self, criteria: FeedCriteria, offset: int, page_size: int) -> FeedPage: ...
    async def checkout(
        self, selected_line_ids: list[str], total_amount: float, address_id: str,
        items: list[CheckoutItem] | None = None,
    ) -> OrderConfirmation: ...
    async def fetch_wishlist(self) -> list[WishlistItem]: ...
    async def add_to_wishlist(self, item: WishlistAdd) -> str | None: ...
    async def remove_from_wishlist(self, external_id: str) -> None: ...


def _error_message(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback


def _parse_feed_payload(data: Any) -> list[dict]:
    """Feed endpoints return a JSON string, ``{"products": [...]}`` or a bare list."""
    if isinstance(data, str):
        if not data.strip():
            return []
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ShopApiError("Invalid products data format") from e
    if isinstance(data, dict):
        data = data.get("products", data.get("data"))
    if not isinstance(data, list):
        raise ShopApiError("Invalid products data format")
    return data


class ShopApiClient:
    """Async client for the shop REST API.

    Every call opens a short-lived ``httpx.AsyncClient``; ``transport`` is
    passed through so tests can plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if base_url is None:
            settings.validate_api()
        self._token = token
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str | None) -> None:
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        body: dict | None = None,
    ) -> Any:
        """Send a request and return the unwrapped ``data`` member of the envelope."""
        attempts = settings.api_max_retries
        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(
                    base_url=self._base_url,
                    timeout=settings.api_timeout,
                    transport=self._transport,
                ) as client:
                    resp = await client.request(
                        method, path, params=params, json=body, headers=self._headers(),
                    )
            except httpx.TimeoutException as e:
                logger.warning("Shop API %s %s timeout (attempt %d)", method, path, attempt + 1)
                if attempt < attempts - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise ShopApiError("Request timed out. Please try again.") from e
            except httpx.HTTPError as e:
                logger.warning("Shop API %s %s network error: %s", method, path, e)
                raise ShopApiError("Network error. Please check your connection and try again.") from e

            if resp.status_code == 429 and attempt < attempts - 1:
                wait = 2 ** attempt
                logger.warning("Shop API rate limit on %s %s, retrying in %ds", method, path, wait)
                await asyncio.sleep(wait)
                continue

            if resp.status_code >= 400:
                message = _error_message(resp, f"Request failed with status {resp.status_code}")
                logger.error("Shop API %s %s failed (%d): %s", method, path, resp.status_code, message)
                raise ShopApiError(message, resp.status_code)

            if not resp.content:
                return None
            try:
                payload = resp.json()
            except ValueError as e:
                raise ShopApiError("Invalid response from server. Please try again.", resp.status_code) from e

            if isinstance(payload, dict):
                if payload.get("status") == "error" or payload.get("success") is False:
                    raise ShopApiError(str(payload.get("message") or "Request failed"), resp.status_code)
                if "data" in payload:
                    return payload["data"]
            return payload

        raise ShopApiError("Rate limit exceeded", 429)

    # -- cart --------------------------------------------------------------

    async def fetch_cart_lines(self) -> list[CartLine]:
        data = await self._request("GET", "/cart")
        if isinstance(data, dict):
            data = data.get("cart", data.get("items"))
        lines = flatten_cart_payload(data)
        logger.info("Fetched %d cart lines", len(lines))
        return lines

    async def add_cart_line(
        self, product_id: str, quantity: int = 1, variation_index: int = 0, option_index: int = 0,
    ) -> None:
        body = CartLineAdd(
            item_id=product_id, quantity=quantity,
            variation=variation_index, option=option_index,
        )
        await self._request("POST", "/cart", body=body.model_dump())

    async def update_cart_line(
        self, line_id: str, quantity: int, variation_index: int, option_index: int,
    ) -> None:
        body = CartLineUpdate(quantity=quantity, variation=variation_index, option=option_index)
        await self._request("PUT", f"/cart/{line_id}", body=body.model_dump())

    async def remove_cart_line(self, line_id: str) -> None:
        await self._request("DELETE", f"/cart/{line_id}")

    async def checkout(
        self,
        selected_line_ids: list[str],
        total_amount: float,
        address_id: str,
        items: list[CheckoutItem] | None = None,
    ) -> OrderConfirmation:
        body = CheckoutRequest(
            cart_ids=list(selected_line_ids),
            total_amount=total_amount,
            address_id=address_id,
            items=items or [],
        )
        data = await self._request("POST", "/orders", body=body.model_dump())
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            data = data["order"]
        try:
            return OrderConfirmation.model_validate(data)
        except ValidationError as e:
            raise ShopApiError("Invalid order confirmation received") from e

    # -- feed --------------------------------------------------------------

    async def fetch_feed_page(self, criteria: FeedCriteria, offset: int, page_size: int) -> FeedPage:
        data = await self._request(
            "GET", "/products/most-reviewed", params=criteria.to_params(offset, page_size),
        )
        rows = _parse_feed_payload(data)
        items = []
        for row in rows:
            try:
                items.append(FeedItem.model_validate(row))
            except ValidationError:
                logger.warning("Skipping feed item without id at offset %d", offset)
        logger.info("Fetched feed page offset=%d: %d of %d rows usable", offset, len(items), len(rows))
        return FeedPage(items=items, received=len(rows))

    # -- wishlist ----------------------------------------------------------

    async def fetch_wishlist(self) -> list[WishlistItem]:
        data = await self._request("GET", "/users/wishlist")
        rows = data.get("wishlist", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            return []
        items = []
        for row in rows:
            try:
                items.append(WishlistItem.model_validate(row))
            except ValidationError:
                logger.warning("Skipping malformed wishlist entry")
        return items

    async def add_to_wishlist(self, item: WishlistAdd) -> str | None:
        """Add an item; returns the external id the server stored, if it says."""
        data = await self._request("POST", "/users/wishlist", body=item.model_dump(by_alias=True))
        if isinstance(data, dict):
            stored = data.get("wishlistItem") or {}
            if isinstance(stored, dict) and stored.get("externalId"):
                return str(stored["externalId"])
        return None

    async def remove_from_wishlist(self, external_id: str) -> None:
        await self._request("DELETE", f"/users/wishlist/{external_id}")
