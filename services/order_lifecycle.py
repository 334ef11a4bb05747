# services/order_lifecycle.py
"""Order intake and the two-level status machine.

Order status follows the fulfillment stage of the whole order; each item has
its own production status. Transitions are looked up in explicit tables and
checked by a guard before anything is written.
"""
import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from models import (
    Customer,
    Employee,
    Finishing,
    Material,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    ProductionStatus,
)
from services.billing import is_billable, to_decimal, total_for, total_for_lines
from services.errors import (
    IllegalTransitionError,
    OverpaymentError,
    UnresolvedReferenceError,
    ValidationError,
)
from services.nota_sequencer import next_invoice_number
from services.order_store import commit_order, load_order_for_update, resolve, touch, utcnow
from services.payment_ledger import paid_to_date, refresh_payment_status

logger = logging.getLogger(__name__)

S = OrderStatus
P = ProductionStatus

# (from, event) -> to
ORDER_TRANSITIONS: Dict[Tuple[str, str], str] = {
    (S.PENDING.value, "start"): S.PROCESSING.value,
    (S.PROCESSING.value, "mark_ready"): S.READY_FOR_PICKUP.value,
    (S.READY_FOR_PICKUP.value, "deliver"): S.DELIVERED.value,
    # administrative reversal, one stage back
    (S.PROCESSING.value, "revert"): S.PENDING.value,
    (S.READY_FOR_PICKUP.value, "revert"): S.PROCESSING.value,
    (S.DELIVERED.value, "revert"): S.READY_FOR_PICKUP.value,
}

ITEM_TRANSITIONS: Dict[Tuple[str, str], str] = {
    (P.NOT_STARTED.value, "start"): P.IN_PROGRESS.value,
    (P.IN_PROGRESS.value, "finish"): P.READY.value,
    (P.IN_PROGRESS.value, "revert"): P.NOT_STARTED.value,
    (P.READY.value, "revert"): P.IN_PROGRESS.value,
}

ORDER_EVENTS = sorted({ev for (_, ev) in ORDER_TRANSITIONS})
ITEM_EVENTS = sorted({ev for (_, ev) in ITEM_TRANSITIONS})


def resolve_operator(db: Session, operator_id, *, required: bool = False, action: str = "") -> Optional[Employee]:
    if operator_id is None:
        if required:
            raise ValidationError(
                f"an operator is required to {action}".strip(),
                invariant="transition_records_operator",
            )
        return None
    return resolve(db, Employee, operator_id, "operator")


# ---------- item validation ----------

def _positive_or_absent(value, field: str, idx: int):
    if value is None:
        return None
    d = to_decimal(value)
    if d < 0:
        raise ValidationError(f"item {idx}: {field} must not be negative", invariant="item_geometry")
    return d


def build_items(db: Session, items_data: Iterable[Mapping]) -> List[OrderItem]:
    """Validate raw item payloads and turn them into unsaved OrderItem rows.

    Raises before anything is added to the session.
    """
    items_data = list(items_data or [])
    if not items_data:
        raise ValidationError("an order needs at least one item", invariant="order_has_items")

    built: List[OrderItem] = []
    for idx, data in enumerate(items_data, start=1):
        material_id = data.get("material_id")
        if material_id is None:
            raise ValidationError(f"item {idx}: material_id is required", invariant="item_required_fields")

        qty = data.get("qty", 1)
        try:
            qty = int(qty)
        except (TypeError, ValueError):
            raise ValidationError(f"item {idx}: qty must be an integer", invariant="item_qty_positive")
        if qty < 1:
            raise ValidationError(f"item {idx}: qty must be at least 1", invariant="item_qty_positive")

        length = _positive_or_absent(data.get("length"), "length", idx)
        width = _positive_or_absent(data.get("width"), "width", idx)
        has_l = bool(length) and length > 0
        has_w = bool(width) and width > 0
        if has_l != has_w:
            raise ValidationError(
                f"item {idx}: length and width must both be given or both be empty",
                invariant="item_geometry",
            )
        if not has_l:
            length = width = None

        material = resolve(db, Material, material_id, "material")
        finishing = resolve(db, Finishing, data.get("finishing_id"), "finishing")

        built.append(
            OrderItem(
                material=material,
                finishing=finishing,
                description=data.get("description"),
                length=length,
                width=width,
                qty=qty,
                production_status=P.NOT_STARTED.value,
            )
        )
    return built


# ---------- create / update / delete ----------

def create_order(
    db: Session,
    *,
    customer_id: int,
    items: Iterable[Mapping],
    order_date: Optional[date] = None,
    created_by_id: Optional[int] = None,
) -> Order:
    customer = resolve(db, Customer, customer_id, "customer")
    if customer is None:
        raise ValidationError("customer_id is required", invariant="order_has_customer")
    creator = resolve_operator(db, created_by_id)
    new_items = build_items(db, items)

    # all validation done; the nota number is consumed inside this transaction
    order = Order(
        nota_no=next_invoice_number(db),
        order_date=order_date or date.today(),
        customer=customer,
        created_by=creator,
        status=S.PENDING.value,
        payment_status=PaymentStatus.UNPAID.value,
        items=new_items,
    )
    db.add(order)
    db.flush()
    total = total_for(order)
    db.commit()
    db.refresh(order)
    logger.info(
        "order created nota=%s customer=%s items=%d total=%s",
        order.nota_no, customer.id, len(new_items), total,
    )
    return order


def update_order(
    db: Session,
    order_id: int,
    *,
    customer_id: Optional[int] = None,
    items: Optional[Iterable[Mapping]] = None,
    order_date: Optional[date] = None,
    expected_version: Optional[int] = None,
) -> Order:
    """Edit billable content. Only allowed while the order is pending."""
    order = load_order_for_update(db, order_id, expected_version)
    if order.status != S.PENDING.value:
        raise IllegalTransitionError(
            f"cannot edit: order {order.nota_no} already in {order.status}",
            invariant="order_editable_only_when_pending",
        )

    customer = resolve(db, Customer, customer_id, "customer")
    new_items = build_items(db, items) if items is not None else None

    # work out the new bill before touching the order
    paid = paid_to_date(order)
    new_total = total_for_lines(
        customer if customer is not None else order.customer,
        new_items if new_items is not None else order.items,
    )
    if new_total < paid:
        raise OverpaymentError(
            f"cannot edit: new total {new_total} of order {order.nota_no} is below "
            f"the {paid} already paid",
            invariant="payments_never_exceed_bill",
        )

    if customer is not None:
        order.customer = customer
    if order_date is not None:
        order.order_date = order_date
    if new_items is not None:
        order.items = new_items

    refresh_payment_status(order)
    touch(order)
    commit_order(db, order)
    logger.info("order updated nota=%s version=%s", order.nota_no, order.version)
    return order


def delete_order(db: Session, order_id: int, *, confirm: bool = False) -> None:
    """Delete an order with its items and payments, from any status.

    Destroys payment history, so an order with payments needs confirm=True.
    """
    order = load_order_for_update(db, order_id)
    n_payments = len(order.payments)
    if n_payments and not confirm:
        raise ValidationError(
            f"order {order.nota_no} has {n_payments} payment(s); deleting it destroys "
            "payment history and needs confirmation",
            invariant="delete_requires_confirmation",
        )
    logger.warning(
        "deleting order nota=%s status=%s items=%d payments=%d",
        order.nota_no, order.status, len(order.items), n_payments,
    )
    db.delete(order)
    db.commit()


# ---------- order status machine ----------

def _guard_start(db: Session, order: Order, operator: Optional[Employee]) -> None:
    if not is_billable(order):
        raise IllegalTransitionError(
            f"cannot start: order {order.nota_no} has no billable item "
            "(customer and at least one material must resolve)",
            invariant="start_requires_billable_order",
        )


def _guard_mark_ready(db: Session, order: Order, operator: Optional[Employee]) -> None:
    pending = [it.id for it in order.items if it.production_status != P.READY.value]
    if pending or not order.items:
        raise IllegalTransitionError(
            f"cannot mark ready: order {order.nota_no} has items not ready {pending}",
            invariant="ready_requires_all_items_ready",
        )


def _guard_revert_to_pending(db: Session, order: Order, operator: Optional[Employee]) -> None:
    started = [it.id for it in order.items if it.production_status != P.NOT_STARTED.value]
    if started:
        raise IllegalTransitionError(
            f"cannot revert: order {order.nota_no} has items already in production {started}",
            invariant="pending_requires_no_started_items",
        )


ORDER_GUARDS: Dict[Tuple[str, str], Callable] = {
    (S.PENDING.value, "start"): _guard_start,
    (S.PROCESSING.value, "mark_ready"): _guard_mark_ready,
    (S.PROCESSING.value, "revert"): _guard_revert_to_pending,
}

# events that must name the operator responsible
OPERATOR_EVENTS = {"start", "deliver"}


def _apply_order_effects(order: Order, from_status: str, event: str, operator: Optional[Employee]) -> None:
    now = utcnow()
    if event == "start":
        order.executor = operator
        order.processing_at = now
    elif event == "mark_ready":
        order.ready_at = now
    elif event == "deliver":
        order.deliverer = operator
        order.delivered_at = now
    elif event == "revert":
        if from_status == S.PROCESSING.value:
            order.executor = None
            order.processing_at = None
        elif from_status == S.READY_FOR_PICKUP.value:
            order.ready_at = None
        elif from_status == S.DELIVERED.value:
            order.deliverer = None
            order.delivered_at = None


def advance_order_status(
    db: Session,
    order_id: int,
    event: str,
    *,
    operator_id: Optional[int] = None,
    expected_version: Optional[int] = None,
) -> Order:
    if event not in ORDER_EVENTS:
        raise ValidationError(
            f"unknown order event {event!r}, expected one of {ORDER_EVENTS}",
            invariant="order_transition_table",
        )
    order = load_order_for_update(db, order_id, expected_version)
    key = (order.status, event)
    to_status = ORDER_TRANSITIONS.get(key)
    if to_status is None:
        raise IllegalTransitionError(
            f"cannot {event}: order {order.nota_no} is {order.status}",
            invariant="order_transition_table",
        )

    operator = resolve_operator(db, operator_id, required=event in OPERATOR_EVENTS, action=event)
    guard = ORDER_GUARDS.get(key)
    if guard:
        guard(db, order, operator)

    from_status = order.status
    order.status = to_status
    _apply_order_effects(order, from_status, event, operator)
    touch(order)
    commit_order(db, order)
    logger.info(
        "order status nota=%s %s -[%s]-> %s operator=%s",
        order.nota_no, from_status, event, to_status, operator_id,
    )
    return order


# ---------- item status machine ----------

def advance_item_status(
    db: Session,
    order_id: int,
    item_id: int,
    event: str,
    *,
    expected_version: Optional[int] = None,
) -> OrderItem:
    if event not in ITEM_EVENTS:
        raise ValidationError(
            f"unknown item event {event!r}, expected one of {ITEM_EVENTS}",
            invariant="item_transition_table",
        )
    order = load_order_for_update(db, order_id, expected_version)
    item = next((it for it in order.items if it.id == item_id), None)
    if item is None:
        raise UnresolvedReferenceError(
            f"item {item_id} not found in order {order.nota_no}", invariant="item_belongs_to_order"
        )

    to_status = ITEM_TRANSITIONS.get((item.production_status, event))
    if to_status is None:
        raise IllegalTransitionError(
            f"cannot {event} item {item_id}: it is {item.production_status}",
            invariant="item_transition_table",
        )
    # items move only while the whole order is in production
    if order.status != S.PROCESSING.value:
        raise IllegalTransitionError(
            f"cannot {event} item {item_id}: order {order.nota_no} is {order.status}, "
            f"items change only while {S.PROCESSING.value}",
            invariant="item_progress_requires_processing_order",
        )

    from_status = item.production_status
    item.production_status = to_status
    touch(order)
    commit_order(db, order)
    db.refresh(item)
    logger.info(
        "item status nota=%s item=%s %s -[%s]-> %s",
        order.nota_no, item_id, from_status, event, to_status,
    )
    return item
