"""Price resolution for cart lines carrying variation/option trees.

Cart lines arrive with ``variation`` as a JSON-encoded list of variation
groups. Decoding is an explicit step returning either ``Decoded`` or
``DecodeError``; callers apply the base-price fallback themselves.
"""
import json
import logging
import math
from dataclasses import dataclass

from pydantic import TypeAdapter, ValidationError

from glowmify.models.dto.cart import CartLine, LineSelection, Option, VariationGroup

logger = logging.getLogger(__name__)

_groups_adapter = TypeAdapter(list[VariationGroup])


@dataclass(frozen=True)
class Decoded:
    groups: list[VariationGroup]


@dataclass(frozen=True)
class DecodeError:
    reason: str


def decode_variations(raw: str | list | None) -> Decoded | DecodeError:
    """Decode a line's ``variation`` field. Never raises."""
    if raw is None:
        return Decoded(groups=[])
    if isinstance(raw, str):
        if not raw.strip():
            return Decoded(groups=[])
        try:
            raw = json.loads(raw)
        except ValueError as e:
            return DecodeError(f"invalid JSON: {e}")
    if not isinstance(raw, list):
        return DecodeError(f"expected a list of variations, got {type(raw).__name__}")
    try:
        return Decoded(groups=_groups_adapter.validate_python(raw))
    except ValidationError as e:
        return DecodeError(f"invalid variation structure: {e.error_count()} errors")


def usable_price(value: object) -> float | None:
    """Return ``value`` as a positive finite price, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def _at(seq: list, index: int):
    if 0 <= index < len(seq):
        return seq[index]
    return None


def effective_selection(line: CartLine, selection: LineSelection | None = None) -> LineSelection:
    if selection is not None:
        return selection
    return LineSelection(variation_index=line.variation_index, option_index=line.option_index)


def resolve_selected(
    line: CartLine, selection: LineSelection | None = None,
) -> tuple[VariationGroup | None, Option | None]:
    decoded = decode_variations(line.variation)
    if isinstance(decoded, DecodeError):
        logger.debug("Cart line %s has undecodable variations: %s", line.id, decoded.reason)
        return None, None

    chosen = effective_selection(line, selection)
    group = _at(decoded.groups, chosen.variation_index)
    if group is None:
        return None, None
    return group, _at(group.options, chosen.option_index)


def resolve_option(line: CartLine, selection: LineSelection | None = None) -> Option | None:
    return resolve_selected(line, selection)[1]


def resolve_price(line: CartLine, selection: LineSelection | None = None) -> float:
    """Unit price of ``line`` under ``selection`` (or the line's default).

    Falls back to ``line.price`` when the variations cannot be decoded, the
    indices point nowhere, or the option has no usable price.
    """
    option = resolve_option(line, selection)
    if option is None:
        return line.price
    price = usable_price(option.price)
    return line.price if price is None else price
