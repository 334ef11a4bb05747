# routers/v1/orders.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from database import get_db
from models import Customer, Order, OrderItem
from schemas import (
    ItemEventIn,
    OrderCreate,
    OrderEventIn,
    OrderOut,
    OrderPage,
    OrderTotalOut,
    OrderUpdate,
)
from services.billing import bill_lines, compute_total
from services.order_lifecycle import (
    advance_item_status,
    advance_order_status,
    create_order,
    delete_order,
    update_order,
)
from services.payment_ledger import balance_for

router = APIRouter(prefix="/orders", tags=["orders"])


def order_out(order: Order, with_lines: bool = True) -> dict:
    """Order row + computed bill, shaped for OrderOut / OrderListRow."""
    bal = balance_for(order)
    data = {
        "id": order.id,
        "nota_no": order.nota_no,
        "order_date": order.order_date,
        "customer": order.customer,
        "status": order.status,
        "payment_status": order.payment_status,
        "created_by_id": order.created_by_id,
        "executor_id": order.executor_id,
        "deliverer_id": order.deliverer_id,
        "processing_at": order.processing_at,
        "ready_at": order.ready_at,
        "delivered_at": order.delivered_at,
        "version": order.version,
        "items": order.items,
        "payments": order.payments,
        "total": bal["total"],
        "paid": bal["paid"],
        "remaining": bal["remaining"],
    }
    if with_lines:
        data["lines"] = bill_lines(order)
    return data


def _get_order_or_404(db: Session, order_id: int) -> Order:
    order = (
        db.query(Order)
        .options(
            joinedload(Order.customer),
            selectinload(Order.items).joinedload(OrderItem.material),
            selectinload(Order.items).joinedload(OrderItem.finishing),
            selectinload(Order.payments),
        )
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# ---------- list + pagination ----------
@router.get("", response_model=OrderPage)
def list_orders(
    q: Optional[str] = Query(None, description="Search by nota no or customer name"),
    status_: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    base_q = db.query(Order).join(Customer, Customer.id == Order.customer_id)
    if q:
        like = f"%{q}%"
        base_q = base_q.filter(or_(Order.nota_no.ilike(like), Customer.name.ilike(like)))
    if status_:
        base_q = base_q.filter(Order.status == status_)
    if payment_status:
        base_q = base_q.filter(Order.payment_status == payment_status)
    if customer_id is not None:
        base_q = base_q.filter(Order.customer_id == customer_id)
    if date_from:
        base_q = base_q.filter(Order.order_date >= date_from)
    if date_to:
        base_q = base_q.filter(Order.order_date <= date_to)

    total = base_q.count()
    rows = (
        base_q.options(
            joinedload(Order.customer),
            selectinload(Order.items).joinedload(OrderItem.material),
            selectinload(Order.payments),
        )
        .order_by(Order.order_date.desc(), Order.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    pages = (total + per_page - 1) // per_page if per_page else 1
    return {
        "items": [order_out(o, with_lines=False) for o in rows],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": max(pages, 1),
    }


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return order_out(_get_order_or_404(db, order_id))


@router.get("/{order_id}/total", response_model=OrderTotalOut)
def get_order_total(order_id: int, db: Session = Depends(get_db)):
    total = compute_total(db, order_id)
    order = db.get(Order, order_id)
    return {"order_id": order.id, "nota_no": order.nota_no, "total": total}


# ---------- create / update / delete ----------
@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order_endpoint(payload: OrderCreate, db: Session = Depends(get_db)):
    order = create_order(
        db,
        customer_id=payload.customer_id,
        items=[it.model_dump() for it in payload.items],
        order_date=payload.order_date,
        created_by_id=payload.created_by_id,
    )
    return order_out(order)


@router.put("/{order_id}", response_model=OrderOut)
def update_order_endpoint(order_id: int, payload: OrderUpdate, db: Session = Depends(get_db)):
    order = update_order(
        db,
        order_id,
        customer_id=payload.customer_id,
        items=[it.model_dump() for it in payload.items] if payload.items is not None else None,
        order_date=payload.order_date,
        expected_version=payload.expected_version,
    )
    return order_out(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order_endpoint(
    order_id: int,
    confirm: bool = Query(False, description="Required when the order already has payments"),
    db: Session = Depends(get_db),
):
    delete_order(db, order_id, confirm=confirm)
    return None


# ---------- status ----------
@router.post("/{order_id}/status", response_model=OrderOut)
def post_order_event(order_id: int, payload: OrderEventIn, db: Session = Depends(get_db)):
    order = advance_order_status(
        db,
        order_id,
        payload.event,
        operator_id=payload.operator_id,
        expected_version=payload.expected_version,
    )
    return order_out(order)


@router.post("/{order_id}/items/{item_id}/status", response_model=OrderOut)
def post_item_event(order_id: int, item_id: int, payload: ItemEventIn, db: Session = Depends(get_db)):
    advance_item_status(db, order_id, item_id, payload.event, expected_version=payload.expected_version)
    return order_out(_get_order_or_404(db, order_id))
