# services/billing.py
"""Order bill computation.

Every place that shows or checks an order amount goes through this module:
order forms, payment checks, receivables and printed totals. Finishing
allowances are reported as production size only; they do not enter the
billed area.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from config import settings
from models import Order, OrderItem
from services.errors import UnresolvedReferenceError
from services.pricebook import price_for

ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value) -> Decimal:
    """Round half-up to the smallest currency unit."""
    return to_decimal(value).quantize(settings.money_quantum, rounding=ROUND_HALF_UP)


def billed_area(length, width) -> Decimal:
    l, w = to_decimal(length), to_decimal(width)
    if l > 0 and w > 0:
        return l * w
    return ONE


def _line_parts(item: OrderItem, tier: Optional[str]):
    """(unit price, billed area, unrounded amount) of one item."""
    area = billed_area(item.length, item.width)
    if tier is None or item.material is None:
        return ZERO, area, ZERO
    unit = price_for(item.material, tier)
    return unit, area, unit * area * int(item.qty or 0)


def _line_amount(item: OrderItem, tier: Optional[str]) -> Decimal:
    return _line_parts(item, tier)[2]


def total_for_lines(customer, items: Iterable[OrderItem]) -> Decimal:
    # lines stay unrounded; the order total is the only rounding point
    tier = customer.tier if customer is not None else None
    total = sum((_line_amount(it, tier) for it in items), ZERO)
    return quantize_money(total)


def total_for(order: Order) -> Decimal:
    """Billable total of an order; 0 when the customer is unresolved."""
    return total_for_lines(order.customer, order.items)


def production_size(item: OrderItem) -> Dict[str, Optional[Decimal]]:
    """Cut size for the shop floor: item dimensions plus finishing allowance."""
    if not (to_decimal(item.length) > 0 and to_decimal(item.width) > 0):
        return {"length": None, "width": None}
    extra_l = to_decimal(item.finishing.extra_length) if item.finishing else ZERO
    extra_w = to_decimal(item.finishing.extra_width) if item.finishing else ZERO
    return {
        "length": to_decimal(item.length) + extra_l,
        "width": to_decimal(item.width) + extra_w,
    }


def bill_lines(order: Order) -> List[dict]:
    tier = order.customer.tier if order.customer is not None else None
    lines = []
    for it in order.items:
        unit, area, amount = _line_parts(it, tier)
        size = production_size(it)
        lines.append(
            {
                "item_id": it.id,
                "material_id": it.material_id,
                "material_name": it.material.name if it.material is not None else None,
                "unit_price": unit,
                "billed_area": area,
                "qty": it.qty,
                "line_total": amount,
                "production_length": size["length"],
                "production_width": size["width"],
            }
        )
    return lines


def is_billable(order: Order) -> bool:
    """True when a non-degenerate total can be computed."""
    if order.customer is None:
        return False
    return any(it.material is not None for it in order.items)


def compute_total(db: Session, order_id: int) -> Decimal:
    order = db.get(Order, order_id)
    if order is None:
        raise UnresolvedReferenceError(f"order {order_id} not found", invariant="order_exists")
    return total_for(order)
