# services/order_store.py
# Per-order write boundary shared by the lifecycle and the payment ledger.
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from models import Order
from services.errors import ConcurrentModificationError, UnresolvedReferenceError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve(db: Session, model, ref_id, label: str):
    """db.get() that raises UnresolvedReferenceError; None passes through."""
    if ref_id is None:
        return None
    obj = db.get(model, ref_id)
    if obj is None:
        raise UnresolvedReferenceError(f"{label} {ref_id} not found", invariant=f"{label}_exists")
    return obj


def load_order_for_update(db: Session, order_id: int, expected_version: Optional[int] = None) -> Order:
    """Fetch an order with its row locked (where supported) and check the version."""
    order = db.execute(
        select(Order).where(Order.id == order_id).with_for_update()
    ).scalar_one_or_none()
    if order is None:
        raise UnresolvedReferenceError(f"order {order_id} not found", invariant="order_exists")
    if expected_version is not None and order.version != expected_version:
        raise ConcurrentModificationError(
            f"order {order.nota_no} was modified concurrently "
            f"(expected version {expected_version}, found {order.version})",
            invariant="single_writer_per_order",
        )
    return order


def touch(order: Order) -> None:
    """Force an UPDATE of the order row so the version check always applies."""
    order.updated_at = utcnow()


def commit_order(db: Session, order: Order) -> Order:
    nota_no = order.nota_no
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConcurrentModificationError(
            f"order {nota_no} was modified concurrently, reload and retry",
            invariant="single_writer_per_order",
        )
    db.refresh(order)
    return order
