import logging
from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from glowmify.core.config import settings
from glowmify.models.dto.cart import CartLine, CartSummary, CheckoutItem, LineSelection, PricedLine
from glowmify.services.pricing import resolve_price, resolve_selected

logger = logging.getLogger(__name__)


def flatten_cart_payload(payload: object) -> list[CartLine]:
    """Turn a ``GET /cart`` payload into lines, in server order.

    The server answers either with store groups
    (``[{"store_id", "store_name", "carts": [...]}]``) or a flat list of
    lines. Rows that do not validate are skipped.
    """
    if not isinstance(payload, list):
        if payload is not None:
            logger.warning("Unexpected cart payload type: %s", type(payload).__name__)
        return []

    lines: list[CartLine] = []
    for entry in payload:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object cart entry: %r", entry)
            continue
        if isinstance(entry.get("carts"), list):
            store = {"store_id": entry.get("store_id"), "store_name": entry.get("store_name")}
            rows = [{**store, **row} for row in entry["carts"] if isinstance(row, dict)]
        else:
            rows = [entry]
        for row in rows:
            try:
                lines.append(CartLine.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed cart line %r: %d validation errors",
                    row.get("id"), e.error_count(),
                )
    return lines


def effective_quantity(line: CartLine, local_quantity_by_line: Mapping[str, int]) -> int:
    local = local_quantity_by_line.get(line.id)
    return line.quantity if local is None else local


def selected_lines(all_lines: Iterable[CartLine], selected_line_ids: Iterable[str]) -> list[CartLine]:
    wanted = set(selected_line_ids)
    return [line for line in all_lines if line.id in wanted]


def subtotal(
    lines: Iterable[CartLine],
    selected_option_by_line: Mapping[str, LineSelection],
    local_quantity_by_line: Mapping[str, int],
) -> float:
    return sum(
        (
            resolve_price(line, selected_option_by_line.get(line.id))
            * effective_quantity(line, local_quantity_by_line)
            for line in lines
        ),
        0.0,
    )


def discount(amount: float, promo_applied: bool, rate: float | None = None) -> float:
    """Flat promo discount; no code registry, no stacking."""
    if not promo_applied:
        return 0
    return amount * (settings.promo_discount_rate if rate is None else rate)


def total(amount: float, discount_amount: float) -> float:
    # Shipping is not part of the total.
    return amount - discount_amount


def summarize(
    all_lines: Iterable[CartLine],
    selected_line_ids: Iterable[str],
    selected_option_by_line: Mapping[str, LineSelection],
    local_quantity_by_line: Mapping[str, int],
    promo_applied: bool = False,
) -> CartSummary:
    chosen = selected_lines(all_lines, selected_line_ids)
    priced = []
    for line in chosen:
        unit_price = resolve_price(line, selected_option_by_line.get(line.id))
        quantity = effective_quantity(line, local_quantity_by_line)
        priced.append(PricedLine(
            line_id=line.id,
            unit_price=unit_price,
            quantity=quantity,
            line_total=unit_price * quantity,
        ))

    sub = subtotal(chosen, selected_option_by_line, local_quantity_by_line)
    off = discount(sub, promo_applied)
    return CartSummary(
        lines=priced,
        subtotal=sub,
        discount=off,
        total=total(sub, off),
        promo_applied=promo_applied,
        selected_count=len(chosen),
    )


def selected_line_payload(
    all_lines: Iterable[CartLine],
    selected_line_ids: Iterable[str],
    selected_option_by_line: Mapping[str, LineSelection],
    local_quantity_by_line: Mapping[str, int],
) -> list[CheckoutItem]:
    """Describe each selected line with its chosen variation for checkout."""
    items = []
    for line in selected_lines(all_lines, selected_line_ids):
        selection = selected_option_by_line.get(line.id)
        group, option = resolve_selected(line, selection)
        items.append(CheckoutItem(
            cart_id=line.id,
            product_id=line.product_id,
            name=line.name,
            quantity=effective_quantity(line, local_quantity_by_line),
            unit_price=resolve_price(line, selection),
            variation_name=group.name if group is not None and option is not None else None,
            option_value=option.value if option is not None else None,
            option_image=option.image if option is not None else None,
        ))
    return items
