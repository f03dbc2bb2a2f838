"""Tests for variation decoding and price resolution."""
import json
import math

import pytest

from glowmify.models.dto.cart import LineSelection
from glowmify.services.pricing import (
    DecodeError,
    Decoded,
    decode_variations,
    resolve_option,
    resolve_price,
    usable_price,
)
from tests.factories import make_line, make_variations

COLORS = make_variations(("Color", [("Red", 12.0), ("Blue", 14.5)]))
COLOR_AND_SIZE = make_variations(
    ("Color", [("Red", 12.0)]),
    ("Size", [("S", 9.0), ("L", 11.0)]),
)


class TestDecodeVariations:
    def test_json_string(self):
        result = decode_variations(COLORS)
        assert isinstance(result, Decoded)
        assert [g.name for g in result.groups] == ["Color"]
        assert [o.value for o in result.groups[0].options] == ["Red", "Blue"]

    def test_already_decoded_list(self):
        result = decode_variations(json.loads(COLORS))
        assert isinstance(result, Decoded)
        assert result.groups[0].options[1].price == 14.5

    def test_none_and_blank_mean_no_variations(self):
        assert decode_variations(None) == Decoded(groups=[])
        assert decode_variations("   ") == Decoded(groups=[])

    def test_invalid_json(self):
        assert isinstance(decode_variations("not json"), DecodeError)

    def test_json_that_is_not_a_list(self):
        result = decode_variations('{"name": "Color"}')
        assert isinstance(result, DecodeError)
        assert "dict" in result.reason

    def test_wrong_shape_inside_list(self):
        assert isinstance(decode_variations('[{"name": "Color", "options": 5}]'), DecodeError)

    def test_option_image_kept(self):
        raw = '[{"name": "Color", "options": [{"value": "Red", "price": 3, "image": "red.jpg"}]}]'
        result = decode_variations(raw)
        assert result.groups[0].options[0].image == "red.jpg"


class TestUsablePrice:
    @pytest.mark.parametrize("value,expected", [
        (12, 12.0),
        (12.5, 12.5),
        ("7.25", 7.25),
    ])
    def test_usable(self, value, expected):
        assert usable_price(value) == expected

    @pytest.mark.parametrize("value", [None, 0, -1, "", "abc", True, float("nan"), float("inf"), [], {}])
    def test_unusable(self, value):
        assert usable_price(value) is None


class TestResolvePrice:
    def test_selected_option_price(self):
        line = make_line(price=10, quantity=2, variation=make_variations(("Color", [("Red", 12)])))
        assert resolve_price(line, LineSelection(variation_index=0, option_index=0)) == 12

    def test_default_indices_used_without_selection(self):
        line = make_line(price=10, variation=COLORS, variation_index=0, option_index=1)
        assert resolve_price(line) == 14.5

    def test_selection_overrides_line_default(self):
        line = make_line(price=10, variation=COLORS, option_index=1)
        assert resolve_price(line, LineSelection(variation_index=0, option_index=0)) == 12.0

    def test_second_variation_group(self):
        line = make_line(price=10, variation=COLOR_AND_SIZE)
        assert resolve_price(line, LineSelection(variation_index=1, option_index=1)) == 11.0

    def test_unparseable_variation_falls_back(self):
        line = make_line(price=10, variation="not json")
        assert resolve_price(line) == 10
        assert resolve_price(line, LineSelection(variation_index=0, option_index=0)) == 10

    def test_missing_variation_falls_back(self):
        line = make_line(price=10, variation=None)
        assert resolve_price(line) == 10

    def test_variation_index_out_of_range(self):
        line = make_line(price=10, variation=COLORS)
        assert resolve_price(line, LineSelection(variation_index=3, option_index=0)) == 10

    def test_option_index_out_of_range(self):
        line = make_line(price=10, variation=COLORS)
        assert resolve_price(line, LineSelection(variation_index=0, option_index=9)) == 10

    def test_negative_index_is_not_wrapped(self):
        line = make_line(price=10, variation=COLORS)
        assert resolve_price(line, LineSelection(variation_index=0, option_index=-1)) == 10

    def test_option_without_price(self):
        line = make_line(price=10, variation='[{"name": "Color", "options": [{"value": "Red"}]}]')
        assert resolve_price(line) == 10

    def test_zero_price_option_falls_back(self):
        line = make_line(price=10, variation=make_variations(("Color", [("Red", 0)])))
        assert resolve_price(line) == 10

    def test_string_price_option(self):
        line = make_line(price=10, variation='[{"name": "Color", "options": [{"value": "Red", "price": "12.5"}]}]')
        assert resolve_price(line) == 12.5

    @pytest.mark.parametrize("raw", [
        "not json", "", "null", "42", '"text"', "[1, 2]", '[{"options": "x"}]', "[[]]", "{}",
    ])
    def test_never_raises_and_never_nan(self, raw):
        line = make_line(price=7.5, variation=raw)
        price = resolve_price(line, LineSelection(variation_index=0, option_index=0))
        assert price == 7.5
        assert not math.isnan(price)


class TestResolveOption:
    def test_returns_selected_option(self):
        line = make_line(variation=COLORS)
        option = resolve_option(line, LineSelection(variation_index=0, option_index=1))
        assert option is not None
        assert option.value == "Blue"

    def test_none_when_missing(self):
        assert resolve_option(make_line(variation="not json")) is None
