from decimal import Decimal
from types import SimpleNamespace

import pytest
from hypothesis import given
from hypothesis import strategies as st

from menuhub.core.errors import InvalidPricingState, ValidationError
from menuhub.services.pricing import (
    CartLine,
    FlatPrice,
    LegacySizes,
    Variant,
    VariantPrices,
    compose_cart,
    compose_line_price,
    pricing_from_item,
    pricing_from_payload,
)

MILK = {
    "id": "milk",
    "type": "single",
    "options": [
        {"id": "regular", "price_modifier": Decimal("0.00")},
        {"id": "almond", "price_modifier": Decimal("3.00")},
    ],
}

money = st.decimals(min_value=Decimal("-50"), max_value=Decimal("200"), places=2, allow_nan=False, allow_infinity=False)
base_prices = st.decimals(min_value=Decimal("0"), max_value=Decimal("500"), places=2, allow_nan=False, allow_infinity=False)


def _group(prices):
    return {
        "id": "g",
        "type": "multiple",
        "options": [{"id": f"o{index}", "price_modifier": price} for index, price in enumerate(prices)],
    }


def test_flat_item_with_almond_milk_for_two():
    line = compose_line_price(
        FlatPrice(Decimal("65")),
        selected_option_ids=["almond"],
        modifier_groups=[MILK],
        quantity=2,
    )

    assert line.unit_price == Decimal("68.00")
    assert line.total_price == Decimal("136.00")


def test_variant_selected_by_name_is_case_insensitive():
    pricing = VariantPrices((Variant(1, "Medium", Decimal("80")), Variant(2, "Grande", Decimal("85"))))

    line = compose_line_price(pricing, selection="grande", quantity=1)

    assert line.unit_price == Decimal("85.00")
    assert line.surcharge == Decimal("0.00")


def test_variant_selected_by_id():
    pricing = VariantPrices((Variant(1, "Medium", Decimal("80")), Variant(2, "Grande", Decimal("85"))))

    assert compose_line_price(pricing, selection=1).unit_price == Decimal("80.00")


def test_legacy_sizes_use_medium_and_grande():
    pricing = LegacySizes(medium=Decimal("10.5"), grande=Decimal("12"))

    assert compose_line_price(pricing, selection="Medium").base_price == Decimal("10.5")
    assert compose_line_price(pricing, selection="GRANDE").base_price == Decimal("12")


@pytest.mark.parametrize(
    "pricing, selection",
    [
        (LegacySizes(medium=Decimal("1"), grande=Decimal("2")), None),
        (LegacySizes(medium=Decimal("1"), grande=Decimal("2")), "small"),
        (VariantPrices((Variant(1, "Medium", Decimal("80")),)), "  "),
        (VariantPrices((Variant(1, "Medium", Decimal("80")),)), "Venti"),
    ],
)
def test_missing_or_unknown_selection_is_rejected(pricing, selection):
    with pytest.raises(InvalidPricingState):
        compose_line_price(pricing, selection=selection)


def test_flat_pricing_ignores_selection():
    assert compose_line_price(FlatPrice(Decimal("4")), selection="grande").unit_price == Decimal("4.00")


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
def test_quantity_must_be_positive_integer(quantity):
    with pytest.raises(ValidationError):
        compose_line_price(FlatPrice(Decimal("4")), quantity=quantity)


def test_pricing_from_item_requires_the_mode_columns():
    item = SimpleNamespace(pricing_mode="legacy_sizes", price=None, price_medium=Decimal("5"), price_grande=None)

    with pytest.raises(InvalidPricingState):
        pricing_from_item(item)


def test_pricing_from_payload_reads_assembled_variants():
    node = {
        "pricing_mode": "variants",
        "variants": [{"id": 3, "name": "Small", "price": Decimal("2.50")}],
    }

    assert pricing_from_payload(node) == VariantPrices((Variant(3, "Small", Decimal("2.50")),))


def test_rounding_is_half_up_to_cents():
    line = compose_line_price(FlatPrice(Decimal("0.005")), quantity=3)

    assert line.unit_price == Decimal("0.01")
    assert line.total_price == Decimal("0.03")


@given(base=base_prices, prices=st.lists(money, min_size=0, max_size=6), data=st.data())
def test_surcharge_is_sum_of_selected_options_in_any_order(base, prices, data):
    group = _group(prices)
    option_ids = [option["id"] for option in group["options"]]
    selected = data.draw(st.lists(st.sampled_from(option_ids), unique=True) if option_ids else st.just([]))
    shuffled = data.draw(st.permutations(selected))

    line = compose_line_price(FlatPrice(base), selected_option_ids=selected, modifier_groups=[group])
    reordered = compose_line_price(FlatPrice(base), selected_option_ids=shuffled, modifier_groups=[group])

    expected = base + sum((prices[option_ids.index(option_id)] for option_id in selected), Decimal("0"))
    assert line.surcharge == reordered.surcharge
    assert line.unit_price == max(expected, Decimal("0")).quantize(Decimal("0.01"))


@given(base=base_prices, unknown=st.lists(st.text(min_size=1, max_size=8), max_size=4))
def test_options_outside_bound_groups_add_nothing(base, unknown):
    selected = [f"unbound-{value}" for value in unknown]

    line = compose_line_price(FlatPrice(base), selected_option_ids=selected, modifier_groups=[MILK])

    assert line.surcharge == Decimal("0.00")


@given(
    base=base_prices,
    prices=st.lists(money, min_size=1, max_size=5),
    quantity=st.integers(min_value=1, max_value=50),
)
def test_total_is_never_negative(base, prices, quantity):
    group = _group(prices)
    selected = [option["id"] for option in group["options"]]

    line = compose_line_price(FlatPrice(base), selected_option_ids=selected, modifier_groups=[group], quantity=quantity)

    assert line.unit_price >= 0
    assert line.total_price >= 0
    assert line.total_price == line.unit_price * quantity


def test_negative_surcharge_clamps_per_unit():
    discount = _group([Decimal("-10")])

    line = compose_line_price(FlatPrice(Decimal("4")), selected_option_ids=["o0"], modifier_groups=[discount], quantity=3)

    assert line.unit_price == Decimal("0.00")
    assert line.total_price == Decimal("0.00")


def test_cart_merges_identical_lines():
    pricing = FlatPrice(Decimal("65"))
    lines = [
        CartLine(item_id=1, pricing=pricing, modifier_groups=[MILK], selected_option_ids=["almond"], quantity=1),
        CartLine(item_id=1, pricing=pricing, modifier_groups=[MILK], selected_option_ids=["almond"], quantity=2),
        CartLine(item_id=1, pricing=pricing, modifier_groups=[MILK], selected_option_ids=["regular"], quantity=1),
    ]

    quote = compose_cart(lines)

    assert len(quote.lines) == 2
    merged = quote.lines[0]
    assert merged.price.quantity == 3
    assert merged.price.total_price == Decimal("204.00")
    assert quote.total_price == Decimal("269.00")


def test_cart_keeps_different_exclusions_apart():
    pricing = FlatPrice(Decimal("40"))

    quote = compose_cart(
        [
            CartLine(item_id=2, pricing=pricing, excluded_ingredient_ids=[11]),
            CartLine(item_id=2, pricing=pricing),
            CartLine(item_id=2, pricing=pricing, excluded_ingredient_ids=[11, 11], quantity=2),
        ]
    )

    assert [(line.excluded_ingredient_ids, line.price.quantity) for line in quote.lines] == [((11,), 3), ((), 1)]
    assert quote.total_price == Decimal("160.00")

def test_cart_keeps_different_variants_apart():
    pricing = VariantPrices((Variant(1, "Medium", Decimal("80")), Variant(2, "Grande", Decimal("85"))))

    quote = compose_cart(
        [
            CartLine(item_id=5, pricing=pricing, selection="Medium"),
            CartLine(item_id=5, pricing=pricing, selection="grande"),
            CartLine(item_id=5, pricing=pricing, selection="GRANDE"),
        ]
    )

    assert [line.price.quantity for line in quote.lines] == [1, 2]
    assert quote.total_price == Decimal("250.00")
