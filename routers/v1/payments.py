# routers/v1/payments.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models import Order, Payment
from schemas import (
    BulkPaymentCreate,
    BulkPaymentOut,
    PaymentCreate,
    PaymentOut,
    PaymentReceiptOut,
)
from services.payment_ledger import apply_bulk_payment, apply_payment, balance_for

router = APIRouter(tags=["payments"])


@router.get("/orders/{order_id}/payments", response_model=List[PaymentOut])
def list_order_payments(order_id: int, db: Session = Depends(get_db)):
    if not db.get(Order, order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return (
        db.query(Payment)
        .filter(Payment.order_id == order_id)
        .order_by(Payment.id.asc())
        .all()
    )


@router.post(
    "/orders/{order_id}/payments",
    response_model=PaymentReceiptOut,
    status_code=status.HTTP_201_CREATED,
)
def create_payment(order_id: int, payload: PaymentCreate, db: Session = Depends(get_db)):
    payment = apply_payment(
        db,
        order_id,
        payload.amount,
        payment_date=payload.payment_date,
        operator_id=payload.operator_id,
        bank_id=payload.bank_id,
        expected_version=payload.expected_version,
    )
    return {"payment": payment, **balance_for(payment.order)}


@router.post("/payments/bulk", response_model=BulkPaymentOut, status_code=status.HTTP_201_CREATED)
def create_bulk_payment(payload: BulkPaymentCreate, db: Session = Depends(get_db)):
    payments = apply_bulk_payment(
        db,
        payload.order_ids,
        payload.total_amount,
        payment_date=payload.payment_date,
        operator_id=payload.operator_id,
        bank_id=payload.bank_id,
    )
    return {
        "batch_ref": payments[0].batch_ref if payments else None,
        "total_amount": sum((p.amount for p in payments), 0),
        "payments": payments,
    }
