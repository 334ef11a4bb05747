# services/payment_ledger.py
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import settings
from models import Bank, Employee, Order, Payment, PaymentStatus
from services.billing import ZERO, quantize_money, to_decimal, total_for
from services.errors import OverpaymentError, ValidationError, UnresolvedReferenceError
from services.order_store import commit_order, load_order_for_update, resolve, touch

logger = logging.getLogger(__name__)


def paid_to_date(order: Order) -> Decimal:
    return sum((to_decimal(p.amount) for p in order.payments), ZERO)


def payment_status_for(total, paid) -> PaymentStatus:
    """Pure function of (total, paid): 0 -> unpaid, (0, total) -> partial, >= total -> paid."""
    total, paid = to_decimal(total), to_decimal(paid)
    if paid <= 0:
        return PaymentStatus.UNPAID
    if paid >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def remaining_balance(order: Order) -> Decimal:
    return max(ZERO, total_for(order) - paid_to_date(order))


def balance_for(order: Order) -> dict:
    total = total_for(order)
    paid = paid_to_date(order)
    return {
        "total": total,
        "paid": paid,
        "remaining": max(ZERO, total - paid),
        "payment_status": payment_status_for(total, paid).value,
    }


def refresh_payment_status(order: Order) -> str:
    order.payment_status = payment_status_for(total_for(order), paid_to_date(order)).value
    return order.payment_status


def _clean_amount(amount) -> Decimal:
    try:
        raw = to_decimal(amount)
        value = quantize_money(raw)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"invalid payment amount {amount!r}", invariant="payment_amount_positive")
    if value <= 0:
        raise ValidationError("payment amount must be greater than 0", invariant="payment_amount_positive")
    if raw != value:
        raise ValidationError(
            f"payment amount {amount} is not a whole {settings.currency} unit",
            invariant="payment_amount_currency_unit",
        )
    return value


def apply_payment(
    db: Session,
    order_id: int,
    amount,
    *,
    payment_date: Optional[date] = None,
    operator_id: Optional[int] = None,
    bank_id: Optional[int] = None,
    expected_version: Optional[int] = None,
) -> Payment:
    """Record one payment; never more than the remaining balance."""
    value = _clean_amount(amount)
    order = load_order_for_update(db, order_id, expected_version)
    operator = resolve(db, Employee, operator_id, "operator")
    bank = resolve(db, Bank, bank_id, "bank")

    remaining = remaining_balance(order)
    if value > remaining:
        raise OverpaymentError(
            f"payment {value} exceeds remaining balance {remaining} of order {order.nota_no}",
            invariant="payments_never_exceed_bill",
        )

    payment = Payment(
        amount=value,
        payment_date=payment_date or date.today(),
        operator=operator,
        bank=bank,
    )
    order.payments.append(payment)
    refresh_payment_status(order)
    touch(order)
    commit_order(db, order)
    db.refresh(payment)
    logger.info(
        "payment recorded nota=%s amount=%s source=%s status=%s",
        order.nota_no, value, bank.category if bank else "Cash", order.payment_status,
    )
    return payment


def apply_bulk_payment(
    db: Session,
    order_ids: Iterable[int],
    total_amount,
    *,
    payment_date: Optional[date] = None,
    operator_id: Optional[int] = None,
    bank_id: Optional[int] = None,
) -> List[Payment]:
    """Spread one amount over several orders in the given priority order.

    Each order gets at most its remaining balance; settled orders are skipped.
    An amount larger than the total outstanding is rejected, nothing is stored
    as credit.
    """
    ids = list(order_ids or [])
    if not ids:
        raise ValidationError("bulk payment needs at least one order", invariant="bulk_payment_targets")
    if len(set(ids)) != len(ids):
        raise ValidationError("bulk payment lists an order more than once", invariant="bulk_payment_targets")
    value = _clean_amount(total_amount)

    # lock in id order, allocate in caller order
    rows = db.execute(
        select(Order).where(Order.id.in_(ids)).order_by(Order.id).with_for_update()
    ).scalars().all()
    by_id = {o.id: o for o in rows}
    missing = [i for i in ids if i not in by_id]
    if missing:
        raise UnresolvedReferenceError(f"orders not found: {missing}", invariant="order_exists")
    operator = resolve(db, Employee, operator_id, "operator")
    bank = resolve(db, Bank, bank_id, "bank")

    outstanding = sum((remaining_balance(by_id[i]) for i in ids), ZERO)
    if value > outstanding:
        raise OverpaymentError(
            f"bulk payment {value} exceeds total outstanding {outstanding} of the selected orders",
            invariant="payments_never_exceed_bill",
        )

    batch_ref = uuid4().hex
    pay_date = payment_date or date.today()
    left = value
    created: List[Payment] = []
    for oid in ids:
        if left <= 0:
            break
        order = by_id[oid]
        due = remaining_balance(order)
        if due <= 0:
            continue
        portion = min(left, due)
        payment = Payment(
            amount=portion,
            payment_date=pay_date,
            operator=operator,
            bank=bank,
            batch_ref=batch_ref,
        )
        order.payments.append(payment)
        refresh_payment_status(order)
        touch(order)
        created.append(payment)
        left -= portion

    first = by_id[ids[0]]
    commit_order(db, first)
    for p in created:
        db.refresh(p)
    logger.info(
        "bulk payment batch=%s amount=%s orders=%s",
        batch_ref, value, [p.order_id for p in created],
    )
    return created
