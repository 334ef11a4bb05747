# services/revenue.py
# Read-side projections over payments and balances. No writes, no locks.
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from models import Bank, BankCategory, Order, OrderItem, Payment, PaymentStatus
from services.billing import ZERO, to_decimal
from services.payment_ledger import balance_for

CASH = "Cash"


def revenue_by_source(
    db: Session,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Dict[str, Decimal]:
    """Sum of payments per funding source; every payment lands in exactly one bucket."""
    buckets: Dict[str, Decimal] = {CASH: ZERO}
    for cat in BankCategory:
        buckets[cat.value] = ZERO

    # bank_id NULL -> category NULL -> cash
    stmt = (
        select(Bank.category, func.coalesce(func.sum(Payment.amount), 0))
        .select_from(Payment)
        .outerjoin(Bank, Bank.id == Payment.bank_id)
        .group_by(Bank.category)
    )
    if date_from is not None:
        stmt = stmt.where(Payment.payment_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Payment.payment_date <= date_to)

    for category, amount in db.execute(stmt).all():
        name = category or CASH
        buckets[name] = buckets.get(name, ZERO) + to_decimal(amount)
    return buckets


def receivables(db: Session) -> dict:
    """Orders that still have something to pay, with the grand total outstanding."""
    orders = (
        db.execute(
            select(Order)
            .where(Order.payment_status != PaymentStatus.PAID.value)
            .options(
                joinedload(Order.customer),
                selectinload(Order.items).joinedload(OrderItem.material),
                selectinload(Order.payments),
            )
            .order_by(Order.order_date.asc(), Order.id.asc())
        )
        .unique()
        .scalars()
        .all()
    )
    rows = []
    grand = ZERO
    for o in orders:
        bal = balance_for(o)
        if bal["remaining"] <= 0:
            continue
        grand += bal["remaining"]
        rows.append(
            {
                "order_id": o.id,
                "nota_no": o.nota_no,
                "order_date": o.order_date,
                "customer_id": o.customer_id,
                "customer_name": o.customer.name if o.customer else None,
                **bal,
            }
        )
    return {"items": rows, "total_outstanding": grand}
