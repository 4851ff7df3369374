# pricing.py
# price math for the order step: packs, extras and the "cheapest extra is free" promotion.
# Everything is integer cents. Euros only appear in format_eur, at the display boundary.

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging

import config
from errors import ValidationError

logger = logging.getLogger(__name__)


def clamp_quantity(value, low=config.QUANTITY_MIN, high=config.QUANTITY_MAX):
    """
    Turn whatever the quantity box gave us into an int in [low, high].

    Example: "" -> 1, "abc" -> 1, 0 -> 1, -4 -> 1, "7" -> 7, 150 -> 99
    """
    try:
        q = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return low
    return max(low, min(high, q))


@dataclass(frozen=True)
class OrderLine:
    item_id: str
    name: str
    quantity: int
    unit_price_cents: int
    free_units: int = 0

    @property
    def line_total_cents(self):
        return self.unit_price_cents * (self.quantity - self.free_units)

    def label(self):
        return f"{self.name} (x{self.quantity})"


@dataclass(frozen=True)
class PricingResult:
    pack_subtotal: int
    extras_subtotal: int
    total: int
    offered_item_id: str | None = None
    pack_lines: tuple = field(default_factory=tuple)
    extra_lines: tuple = field(default_factory=tuple)

    @property
    def discount_cents(self):
        gross = sum(line.unit_price_cents * line.quantity for line in self.extra_lines)
        return gross - self.extras_subtotal


# --- PROMOTION POLICIES ---

class PromotionPolicy(ABC):
    """Decides which selected extra, if any, gets one unit for free."""

    @abstractmethod
    def offered_item(self, extra_lines):
        pass

    @staticmethod
    def _cheapest(extra_lines):
        # min() keeps the first of equal prices, and lines follow catalog order
        return min(extra_lines, key=lambda line: line.unit_price_cents).item_id


class CheapestFreeOverUnits(PromotionPolicy):
    """More than `threshold` extra units in total: one unit of the cheapest extra is free."""

    def __init__(self, threshold=config.PROMOTION_THRESHOLD):
        self.threshold = threshold

    def offered_item(self, extra_lines):
        units = sum(line.quantity for line in extra_lines)
        if units <= self.threshold:
            return None
        return self._cheapest(extra_lines)


class CheapestFreeOnDistinctExtras(PromotionPolicy):
    """Exactly `count` different extras chosen: one unit of the cheapest is free."""

    def __init__(self, count=config.PROMOTION_DISTINCT_EXTRAS):
        self.count = count

    def offered_item(self, extra_lines):
        if len(extra_lines) != self.count:
            return None
        return self._cheapest(extra_lines)


class NoPromotion(PromotionPolicy):
    def offered_item(self, extra_lines):
        return None


def policy_from_name(name):
    if name == "cheapest_free_over_units":
        return CheapestFreeOverUnits(config.PROMOTION_THRESHOLD)
    if name == "cheapest_free_on_distinct":
        return CheapestFreeOnDistinctExtras(config.PROMOTION_DISTINCT_EXTRAS)
    if name == "none":
        return NoPromotion()
    raise ValueError(f"Unknown promotion policy: {name}")


def default_policy():
    return policy_from_name(config.PROMOTION_POLICY)


# --- CALCULATOR ---

def _lines(items, chosen, ignore=None):
    # walk the catalog, not the selection, so line order is catalog order
    lines = []
    for item in items:
        qty = chosen.get(item.id)
        if qty:
            lines.append(OrderLine(item.id, item.name, qty, item.price_cents))
    unknown = set(chosen) - {item.id for item in items} - {ignore}
    if unknown:
        logger.warning("Ignoring selected ids missing from catalog: %s", sorted(unknown))
    return lines


def price_selection(selection, catalog, policy=None):
    """
    do all price math:
      1) pack lines, price * qty
      2) extra lines, price * qty
      3) ask the promotion policy for the offered extra, one unit off
      4) total = packs + extras
    """
    policy = policy or default_policy()

    # the extras-only pseudo-pack may not exist in the CMS, it prices at zero
    pack_lines = _lines(catalog.packs, selection.packs, ignore=selection.exclusive_pack_id)
    extra_lines = _lines(catalog.extras, selection.extras)

    offered = policy.offered_item(extra_lines) if extra_lines else None
    if offered is not None:
        extra_lines = [
            OrderLine(l.item_id, l.name, l.quantity, l.unit_price_cents, free_units=1)
            if l.item_id == offered else l
            for l in extra_lines
        ]

    pack_subtotal = sum(line.line_total_cents for line in pack_lines)
    extras_subtotal = sum(line.line_total_cents for line in extra_lines)

    return PricingResult(
        pack_subtotal=pack_subtotal,
        extras_subtotal=extras_subtotal,
        total=pack_subtotal + extras_subtotal,
        offered_item_id=offered,
        pack_lines=tuple(pack_lines),
        extra_lines=tuple(extra_lines),
    )


@dataclass(frozen=True)
class SelectionRules:
    extras_only_pack_id: str | None = config.EXTRAS_ONLY_PACK_ID
    extras_only_min_extras: int | None = config.EXTRAS_ONLY_MIN_EXTRAS


def validate_selection(selection, rules=None):
    rules = rules or SelectionRules()

    # the extras-only pseudo-pack on its own is not something to order
    real_packs = set(selection.packs) - {rules.extras_only_pack_id, selection.exclusive_pack_id}
    if not real_packs and not selection.extras:
        raise ValidationError("Selecione pelo menos um pack ou um extra.", field="selection")

    if (
        rules.extras_only_pack_id is not None
        and rules.extras_only_min_extras is not None
        and rules.extras_only_pack_id in selection.packs
        and len(selection.extras) < rules.extras_only_min_extras
    ):
        raise ValidationError(
            f"Selecione pelo menos {rules.extras_only_min_extras} extras "
            f"quando escolhe \"{rules.extras_only_pack_id}\".",
            field="extras",
        )


def format_eur(cents):
    """pt-PT money: 123450 -> '1.234,50 €'"""
    sign = "-" if cents < 0 else ""
    euros, rest = divmod(abs(int(cents)), 100)
    whole = f"{euros:,}".replace(",", ".")
    return f"{sign}{whole},{rest:02d} €"
