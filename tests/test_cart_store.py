"""Tests for the cart store: selection bookkeeping and collaborator calls."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from glowmify.core.exceptions import BadRequestError, ShopApiError
from glowmify.models.dto.cart import LineSelection
from glowmify.stores.cart_store import CartStore
from tests.factories import FakeShopApiClient, make_line, make_variations

COLORS = make_variations(("Color", [("Red", 12), ("Blue", 20)]))


class GatedCartClient(FakeShopApiClient):
    """Snapshots the cart when a fetch starts and holds it until ``release`` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    async def fetch_cart_lines(self):
        self.calls.append(("fetch_cart_lines",))
        snapshot = list(self.lines)
        self.started.set()
        await self.release.wait()
        return snapshot


@pytest.fixture
def client():
    return FakeShopApiClient(lines=[
        make_line(line_id="a", price=10, quantity=2, variation=COLORS, store_id="s1"),
        make_line(line_id="b", price=15, quantity=1, store_id="s1"),
        make_line(line_id="c", price=5, quantity=1, store_id="s2"),
    ])


@pytest.fixture
def store(client):
    cart = CartStore(client)
    cart.lines = list(client.lines)
    return cart


class TestRefresh:
    @pytest.mark.asyncio
    async def test_loads_lines(self, store):
        assert await store.refresh() is True
        assert [line.id for line in store.lines] == ["a", "b", "c"]
        assert store.error is None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_lines(self, store, client):
        client.fail_with["fetch_cart_lines"] = ShopApiError("No cart data received")
        assert await store.refresh() is False
        assert [line.id for line in store.lines] == ["a", "b", "c"]
        assert store.error == "No cart data received"


class TestSelection:
    @pytest.mark.asyncio
    async def test_toggle_line_seeds_default_option(self, store):
        assert store.toggle_line("a") is True
        assert store.selected_option_by_line["a"] == LineSelection(variation_index=0, option_index=0)
        assert store.toggle_line("a") is False
        assert "a" not in store.selected_line_ids

    @pytest.mark.asyncio
    async def test_toggle_unknown_line(self, store):
        assert store.toggle_line("nope") is False
        assert store.selected_line_ids == set()

    @pytest.mark.asyncio
    async def test_toggle_store(self, store):
        store.toggle_store("s1")
        assert store.selected_line_ids == {"a", "b"}
        store.toggle_store("s1")
        assert store.selected_line_ids == set()

    @pytest.mark.asyncio
    async def test_toggle_store_with_partial_selection_deselects(self, store):
        store.toggle_line("a")
        store.toggle_store("s1")
        assert store.selected_line_ids == set()

    @pytest.mark.asyncio
    async def test_toggle_all(self, store):
        store.toggle_all()
        assert store.all_selected is True
        store.toggle_all()
        assert store.selected_line_ids == set()

    @pytest.mark.asyncio
    async def test_quantity_must_be_positive(self, store):
        with pytest.raises(BadRequestError, match="at least 1"):
            store.set_local_quantity("a", 0)


class TestSummary:
    @pytest.mark.asyncio
    async def test_selected_option_and_local_quantity(self, store):
        store.toggle_line("a")
        store.toggle_line("b")
        store.select_option("a", 0, 1)
        store.set_local_quantity("b", 3)

        summary = store.summary()
        assert summary.subtotal == 20 * 2 + 15 * 3
        assert summary.discount == 0

    @pytest.mark.asyncio
    async def test_promo(self, store):
        store.toggle_line("a")
        store.toggle_line("b")
        assert store.apply_promo("  WELCOME10 ") is True

        summary = store.summary()
        assert summary.subtotal == 39
        assert summary.discount == pytest.approx(3.9)
        assert summary.total == pytest.approx(35.1)

        store.remove_promo()
        assert store.summary().total == 39

    @pytest.mark.asyncio
    async def test_blank_promo_rejected(self, store):
        assert store.apply_promo("   ") is False
        assert store.promo_code is None


class TestMutations:
    @pytest.mark.asyncio
    async def test_save_line_sends_local_state(self, store, client):
        store.select_option("a", 0, 1)
        store.set_local_quantity("a", 4)

        assert await store.save_line("a") is True
        assert ("update_cart_line", "a", 4, 0, 1) in client.calls
        assert "a" not in store.local_quantity_by_line

    @pytest.mark.asyncio
    async def test_save_line_failure(self, store, client):
        client.fail_with["update_cart_line"] = ShopApiError("Failed to update cart item", 500)
        store.set_local_quantity("a", 4)

        assert await store.save_line("a") is False
        assert store.error == "Failed to update cart item"
        assert store.local_quantity_by_line["a"] == 4

    @pytest.mark.asyncio
    async def test_remove_drops_selection(self, store, client):
        store.toggle_line("a")
        store.set_local_quantity("a", 2)

        assert await store.remove("a") is True
        assert "a" not in store.selected_line_ids
        assert "a" not in store.selected_option_by_line
        assert [line.id for line in store.lines] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_add_existing_item_is_a_notice(self, store, client):
        client.fail_with["add_cart_line"] = ShopApiError("Item already exists in cart", 400)
        assert await store.add("p-1") is True
        assert store.notice == "Item already exist in Cart."
        assert store.error is None

    @pytest.mark.asyncio
    async def test_add_rejects_zero_quantity(self, store):
        with pytest.raises(BadRequestError):
            await store.add("p-1", quantity=0)


class TestCheckout:
    @pytest.mark.asyncio
    async def test_requires_selection(self, store):
        with pytest.raises(BadRequestError, match="No items selected"):
            await store.checkout("addr-1")

    @pytest.mark.asyncio
    async def test_sends_selected_lines_and_total(self, store, client):
        store.toggle_line("a")
        store.toggle_line("b")
        store.apply_promo("SAVE")

        confirmation = await store.checkout("addr-1")
        assert confirmation is not None
        assert confirmation.order_id == "order-1"
        _, ids, amount, address_id, items = next(c for c in client.calls if c[0] == "checkout")
        assert ids == ["a", "b"]
        assert amount == pytest.approx(35.1)
        assert address_id == "addr-1"
        assert [i.option_value for i in items] == ["Red", None]
        assert store.selected_line_ids == set()
        assert store.promo_code is None

    @pytest.mark.asyncio
    async def test_failure_keeps_selection(self, store, client):
        client.fail_with["checkout"] = ShopApiError("Failed to create order", 500)
        store.toggle_line("a")

        assert await store.checkout("addr-1") is None
        assert store.selected_line_ids == {"a"}
        assert store.error == "Failed to create order"


class TestCollaboratorCalls:
    @pytest.mark.asyncio
    async def test_add_then_refresh(self):
        client = AsyncMock()
        client.fetch_cart_lines.return_value = [make_line(line_id="z")]
        store = CartStore(client)

        assert await store.add("p-9", quantity=2) is True
        client.add_cart_line.assert_awaited_once_with("p-9", 2, 0, 0)
        assert [line.id for line in store.lines] == ["z"]



class TestOverlappingFetches:
    @pytest.mark.asyncio
    async def test_refresh_skipped_while_fetching(self):
        client = GatedCartClient(lines=[make_line(line_id="a")])
        store = CartStore(client)

        first = asyncio.create_task(store.refresh())
        await client.started.wait()
        assert await store.refresh() is False

        client.release.set()
        assert await first is True
        assert client.calls == [("fetch_cart_lines",)]

    @pytest.mark.asyncio
    async def test_overlapping_mutations_both_reload(self):
        client = GatedCartClient(lines=[
            make_line(line_id="a"), make_line(line_id="b"), make_line(line_id="c"),
        ])
        store = CartStore(client)

        first = asyncio.create_task(store.remove("a"))
        await client.started.wait()
        second = asyncio.create_task(store.remove("b"))
        for _ in range(3):
            await asyncio.sleep(0)

        client.release.set()
        assert await first is True
        assert await second is True
        assert [line.id for line in store.lines] == ["c"]
        assert client.calls.count(("fetch_cart_lines",)) == 2
