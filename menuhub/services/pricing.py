"""Server-side price composition for menu items.

A stored item carries exactly one pricing mode. ``pricing_from_item`` and
``pricing_from_payload`` turn the item (ORM row or assembled node) into one of
``FlatPrice``, ``LegacySizes`` or ``VariantPrices``; ``compose_line_price``
adds the surcharges of the selected options and multiplies by quantity.

Negative surcharges are clamped per unit: ``unit_price`` never drops below
zero, so ``total_price`` never does either.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence, Union

from menuhub.core.errors import InvalidPricingState, ValidationError
from menuhub.models.menu_item import PRICING_FLAT, PRICING_LEGACY_SIZES, PRICING_VARIANTS

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
LEGACY_SIZE_NAMES = ("medium", "grande")


def to_money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FlatPrice:
    price: Decimal
    mode: str = field(default=PRICING_FLAT, init=False)


@dataclass(frozen=True)
class LegacySizes:
    medium: Decimal
    grande: Decimal
    mode: str = field(default=PRICING_LEGACY_SIZES, init=False)


@dataclass(frozen=True)
class Variant:
    id: int | None
    name: str
    price: Decimal


@dataclass(frozen=True)
class VariantPrices:
    variants: tuple[Variant, ...]
    mode: str = field(default=PRICING_VARIANTS, init=False)


Pricing = Union[FlatPrice, LegacySizes, VariantPrices]


@dataclass(frozen=True)
class LinePrice:
    base_price: Decimal
    surcharge: Decimal
    unit_price: Decimal
    total_price: Decimal
    quantity: int


def _required_price(value: Any, label: str) -> Decimal:
    if value is None:
        raise InvalidPricingState(f"Missing {label}")
    return to_money(value)


def pricing_from_item(item: Any, variants: Iterable[Any] = ()) -> Pricing:
    """Build the pricing of a stored ``MenuItem`` row and its variant rows."""
    mode = getattr(item, "pricing_mode", None)
    if mode == PRICING_FLAT:
        return FlatPrice(_required_price(item.price, "price"))
    if mode == PRICING_LEGACY_SIZES:
        return LegacySizes(
            medium=_required_price(item.price_medium, "medium price"),
            grande=_required_price(item.price_grande, "grande price"),
        )
    if mode == PRICING_VARIANTS:
        return VariantPrices(
            tuple(Variant(id=row.id, name=row.name, price=to_money(row.price)) for row in variants)
        )
    raise InvalidPricingState(f"Unknown pricing mode: {mode!r}")


def pricing_from_payload(node: Mapping[str, Any]) -> Pricing:
    """Build the pricing of an assembled item node."""
    mode = node.get("pricing_mode")
    if mode == PRICING_FLAT:
        return FlatPrice(_required_price(node.get("price"), "price"))
    if mode == PRICING_LEGACY_SIZES:
        return LegacySizes(
            medium=_required_price(node.get("price_medium"), "medium price"),
            grande=_required_price(node.get("price_grande"), "grande price"),
        )
    if mode == PRICING_VARIANTS:
        return VariantPrices(
            tuple(
                Variant(id=variant.get("id"), name=variant["name"], price=to_money(variant["price"]))
                for variant in node.get("variants") or []
            )
        )
    raise InvalidPricingState(f"Unknown pricing mode: {mode!r}")


def base_price(pricing: Pricing, selection: Any = None) -> Decimal:
    if isinstance(pricing, FlatPrice):
        return pricing.price

    if selection is None or (isinstance(selection, str) and not selection.strip()):
        raise InvalidPricingState("A size or variant must be selected")

    if isinstance(pricing, LegacySizes):
        size = str(selection).strip().lower()
        if size == "medium":
            return pricing.medium
        if size == "grande":
            return pricing.grande
        raise InvalidPricingState(f"Unknown size: {selection!r}")

    wanted = str(selection).strip()
    for variant in pricing.variants:
        if variant.id is not None and str(variant.id) == wanted:
            return variant.price
    for variant in pricing.variants:
        if variant.name.strip().lower() == wanted.lower():
            return variant.price
    raise InvalidPricingState(f"Unknown variant: {selection!r}")


def option_prices(modifier_groups: Iterable[Mapping[str, Any]]) -> dict[str, Decimal]:
    prices: dict[str, Decimal] = {}
    for group in modifier_groups:
        for option in group.get("options") or []:
            prices[str(option["id"])] = to_money(option.get("price_modifier") or 0)
    return prices


def surcharge_for(modifier_groups: Iterable[Mapping[str, Any]], selected_option_ids: Iterable[Any]) -> Decimal:
    prices = option_prices(modifier_groups)
    total = ZERO
    for option_id in {str(option_id) for option_id in selected_option_ids}:
        # options outside the item's bound groups add nothing
        total += prices.get(option_id, ZERO)
    return total


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be a whole number of at least 1")
    return quantity


def compose_line_price(
    pricing: Pricing,
    *,
    selection: Any = None,
    selected_option_ids: Iterable[Any] = (),
    modifier_groups: Iterable[Mapping[str, Any]] = (),
    quantity: int = 1,
) -> LinePrice:
    quantity = _validate_quantity(quantity)
    base = base_price(pricing, selection)
    surcharge = surcharge_for(modifier_groups, selected_option_ids)
    unit_price = max(to_money(base + surcharge), ZERO)
    return LinePrice(
        base_price=base,
        surcharge=surcharge,
        unit_price=unit_price,
        total_price=to_money(unit_price * quantity),
        quantity=quantity,
    )


@dataclass
class CartLine:
    item_id: int
    pricing: Pricing
    modifier_groups: Sequence[Mapping[str, Any]] = ()
    selection: Any = None
    selected_option_ids: Sequence[Any] = ()
    excluded_ingredient_ids: Sequence[int] = ()
    quantity: int = 1

    def merge_key(self) -> tuple:
        selection = None
        if not isinstance(self.pricing, FlatPrice) and self.selection is not None:
            selection = str(self.selection).strip().lower()
        return (
            self.item_id,
            selection,
            frozenset(str(option_id) for option_id in self.selected_option_ids),
            frozenset(self.excluded_ingredient_ids),
        )


@dataclass(frozen=True)
class PricedCartLine:
    item_id: int
    selection: Any
    selected_option_ids: tuple[str, ...]
    excluded_ingredient_ids: tuple[int, ...]
    price: LinePrice


@dataclass(frozen=True)
class CartQuote:
    lines: tuple[PricedCartLine, ...]
    total_price: Decimal


def compose_cart(lines: Iterable[CartLine]) -> CartQuote:
    """Price a cart, folding identical lines into one with the summed quantity."""
    merged: dict[tuple, CartLine] = {}
    for line in lines:
        _validate_quantity(line.quantity)
        key = line.merge_key()
        existing = merged.get(key)
        if existing is None:
            merged[key] = CartLine(
                item_id=line.item_id,
                pricing=line.pricing,
                modifier_groups=line.modifier_groups,
                selection=line.selection,
                selected_option_ids=list(line.selected_option_ids),
                excluded_ingredient_ids=list(line.excluded_ingredient_ids),
                quantity=line.quantity,
            )
        else:
            existing.quantity += line.quantity

    priced: list[PricedCartLine] = []
    total = ZERO
    for line in merged.values():
        price = compose_line_price(
            line.pricing,
            selection=line.selection,
            selected_option_ids=line.selected_option_ids,
            modifier_groups=line.modifier_groups,
            quantity=line.quantity,
        )
        total += price.total_price
        priced.append(
            PricedCartLine(
                item_id=line.item_id,
                selection=line.selection,
                selected_option_ids=tuple(sorted({str(option_id) for option_id in line.selected_option_ids})),
                excluded_ingredient_ids=tuple(sorted(set(line.excluded_ingredient_ids))),
                price=price,
            )
        )
    return CartQuote(lines=tuple(priced), total_price=to_money(total))
