import asyncio
import logging

from glowmify.core.exceptions import BadRequestError, ShopApiError
from glowmify.integrations.shop_api.client import ShopApiClientProtocol
from glowmify.models.dto.cart import CartLine, CartSummary, LineSelection, OrderConfirmation
from glowmify.services import cart_service

logger = logging.getLogger(__name__)

ITEM_ALREADY_IN_CART = "Item already exists in cart"


class CartStore:
    """Owns the cart lines and the screen's ephemeral selection state.

    Pricing is delegated to ``cart_service``; this class only keeps the
    state and talks to the shop API. Collaborator failures are stored in
    ``error`` and leave the previous lines untouched.
    """

    def __init__(self, client: ShopApiClientProtocol) -> None:
        self._client = client
        self.lines: list[CartLine] = []
        self.selected_line_ids: set[str] = set()
        self.selected_option_by_line: dict[str, LineSelection] = {}
        self.local_quantity_by_line: dict[str, int] = {}
        self.promo_code: str | None = None
        self.error: str | None = None
        self.notice: str | None = None
        self._fetch_lock = asyncio.Lock()

    # -- server state ------------------------------------------------------

    def _line(self, line_id: str) -> CartLine | None:
        return next((line for line in self.lines if line.id == line_id), None)

    def _fail(self, action: str, exc: ShopApiError) -> None:
        logger.warning("Cart %s failed: %s", action, exc)
        self.error = exc.message

    async def refresh(self) -> bool:
        """Reload the lines; skipped when a fetch is already running."""
        if self._fetch_lock.locked():
            return False
        return await self._reload()

    async def _reload(self) -> bool:
        # Mutations wait for a running fetch and then fetch again.
        async with self._fetch_lock:
            try:
                lines = await self._client.fetch_cart_lines()
            except ShopApiError as e:
                self._fail("fetch", e)
                return False
            self.lines = lines
        self.error = None
        return True

    async def add(
        self, product_id: str, quantity: int = 1, variation_index: int = 0, option_index: int = 0,
    ) -> bool:
        if quantity < 1:
            raise BadRequestError("Quantity must be greater than zero")
        try:
            await self._client.add_cart_line(product_id, quantity, variation_index, option_index)
        except ShopApiError as e:
            if e.message == ITEM_ALREADY_IN_CART:
                self.notice = "Item already exist in Cart."
                return True
            self._fail("add", e)
            return False
        await self._reload()
        return True

    async def save_line(self, line_id: str) -> bool:
        """Persist the local quantity and option choice of a line."""
        line = self._line(line_id)
        if line is None:
            return False
        selection = self.selected_option_by_line.get(line_id) or LineSelection(
            variation_index=line.variation_index, option_index=line.option_index,
        )
        quantity = cart_service.effective_quantity(line, self.local_quantity_by_line)
        try:
            await self._client.update_cart_line(
                line_id, quantity, selection.variation_index, selection.option_index,
            )
        except ShopApiError as e:
            self._fail("update", e)
            return False
        self.local_quantity_by_line.pop(line_id, None)
        await self._reload()
        return True

    async def remove(self, line_id: str) -> bool:
        try:
            await self._client.remove_cart_line(line_id)
        except ShopApiError as e:
            self._fail("remove", e)
            return False
        self._forget(line_id)
        await self._reload()
        return True

    def _forget(self, line_id: str) -> None:
        self.selected_line_ids.discard(line_id)
        self.selected_option_by_line.pop(line_id, None)
        self.local_quantity_by_line.pop(line_id, None)

    # -- selection ---------------------------------------------------------

    def _select(self, line: CartLine) -> None:
        self.selected_line_ids.add(line.id)
        self.selected_option_by_line.setdefault(
            line.id,
            LineSelection(variation_index=line.variation_index, option_index=line.option_index),
        )

    def toggle_line(self, line_id: str) -> bool:
        """Flip selection of one line; returns whether it is now selected."""
        if line_id in self.selected_line_ids:
            self.selected_line_ids.discard(line_id)
            return False
        line = self._line(line_id)
        if line is None:
            return False
        self._select(line)
        return True

    def toggle_store(self, store_id: str) -> None:
        """Deselect the store's lines if any is selected, else select them all."""
        store_lines = [line for line in self.lines if line.store_id == store_id]
        if any(line.id in self.selected_line_ids for line in store_lines):
            for line in store_lines:
                self.selected_line_ids.discard(line.id)
        else:
            for line in store_lines:
                self._select(line)

    @property
    def all_selected(self) -> bool:
        return bool(self.lines) and all(line.id in self.selected_line_ids for line in self.lines)

    def toggle_all(self) -> None:
        if self.all_selected:
            self.selected_line_ids.clear()
        else:
            for line in self.lines:
                self._select(line)

    def select_option(self, line_id: str, variation_index: int, option_index: int) -> None:
        self.selected_option_by_line[line_id] = LineSelection(
            variation_index=variation_index, option_index=option_index,
        )

    def set_local_quantity(self, line_id: str, quantity: int) -> None:
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")
        self.local_quantity_by_line[line_id] = quantity

    # -- totals ------------------------------------------------------------

    def apply_promo(self, code: str) -> bool:
        code = code.strip()
        if not code:
            return False
        self.promo_code = code
        return True

    def remove_promo(self) -> None:
        self.promo_code = None

    def summary(self) -> CartSummary:
        return cart_service.summarize(
            self.lines,
            self.selected_line_ids,
            self.selected_option_by_line,
            self.local_quantity_by_line,
            promo_applied=self.promo_code is not None,
        )

    async def checkout(self, address_id: str) -> OrderConfirmation | None:
        summary = self.summary()
        if summary.selected_count == 0:
            raise BadRequestError("No items selected")
        purchased = [line.line_id for line in summary.lines]
        items = cart_service.selected_line_payload(
            self.lines, self.selected_line_ids,
            self.selected_option_by_line, self.local_quantity_by_line,
        )
        try:
            confirmation = await self._client.checkout(purchased, summary.total, address_id, items)
        except ShopApiError as e:
            self._fail("checkout", e)
            return None
        logger.info("Order %s placed for %d cart lines", confirmation.order_id, len(purchased))
        for line_id in purchased:
            self._forget(line_id)
        self.promo_code = None
        await self._reload()
        return confirmation
