from __future__ import annotations

from typing import Optional, Literal, List
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator

from models import BankCategory, CustomerTier

# =========================
# ===== Base (Pydantic v2)
# =========================
class APIBase(BaseModel):
    """
    Base for every response schema:
    - from_attributes=True: build straight from SQLAlchemy rows
    - json_encoders: Decimal -> float for JSON output
    """
    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={Decimal: float}
    )

# =========================================
# ================ Catalog ================
# =========================================
class CustomerCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tier: CustomerTier = CustomerTier.END_CUSTOMER

class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tier: Optional[CustomerTier] = None

class MaterialCreate(BaseModel):
    name: str
    price_end_customer: Decimal = Decimal("0")
    price_retail: Decimal = Decimal("0")
    price_wholesale: Decimal = Decimal("0")
    price_reseller: Decimal = Decimal("0")
    price_corporate: Decimal = Decimal("0")
    stock_qty: Optional[Decimal] = None

class MaterialUpdate(BaseModel):
    name: Optional[str] = None
    price_end_customer: Optional[Decimal] = None
    price_retail: Optional[Decimal] = None
    price_wholesale: Optional[Decimal] = None
    price_reseller: Optional[Decimal] = None
    price_corporate: Optional[Decimal] = None
    stock_qty: Optional[Decimal] = None

class FinishingCreate(BaseModel):
    name: str
    extra_length: Decimal = Decimal("0")
    extra_width: Decimal = Decimal("0")

class FinishingUpdate(BaseModel):
    name: Optional[str] = None
    extra_length: Optional[Decimal] = None
    extra_width: Optional[Decimal] = None

class BankCreate(BaseModel):
    name: str
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    category: BankCategory = BankCategory.BANK

class BankUpdate(BaseModel):
    name: Optional[str] = None
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    category: Optional[BankCategory] = None

class EmployeeCreate(BaseModel):
    name: str
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

# =========================================
# ================= Orders ================
# =========================================
OrderStatusLiteral = Literal["pending", "processing", "ready_for_pickup", "delivered"]
ProductionStatusLiteral = Literal["not_started", "in_progress", "ready"]
PaymentStatusLiteral = Literal["unpaid", "partially_paid", "paid"]

class OrderItemIn(BaseModel):
    # range checks live in the engine so every rejection names its rule
    material_id: int
    description: Optional[str] = None
    length: Optional[Decimal] = None
    width: Optional[Decimal] = None
    qty: int = 1
    finishing_id: Optional[int] = None

class OrderCreate(BaseModel):
    customer_id: int
    order_date: Optional[date] = None
    created_by_id: Optional[int] = None
    items: List[OrderItemIn]

class OrderUpdate(BaseModel):
    customer_id: Optional[int] = None
    order_date: Optional[date] = None
    items: Optional[List[OrderItemIn]] = None
    expected_version: Optional[int] = None

class OrderEventIn(BaseModel):
    event: str
    operator_id: Optional[int] = None
    expected_version: Optional[int] = None

    @field_validator("event", mode="before")
    @classmethod
    def _norm_event(cls, v):
        return (v or "").strip().lower()

class ItemEventIn(BaseModel):
    event: str
    expected_version: Optional[int] = None

    @field_validator("event", mode="before")
    @classmethod
    def _norm_event(cls, v):
        return (v or "").strip().lower()

class CustomerBrief(APIBase):
    id: int
    name: str
    tier: str

class OrderItemOut(APIBase):
    id: int
    material_id: int
    description: Optional[str] = None
    length: Optional[Decimal] = None
    width: Optional[Decimal] = None
    qty: int
    finishing_id: Optional[int] = None
    production_status: ProductionStatusLiteral

class PaymentOut(APIBase):
    id: int
    order_id: int
    amount: Decimal
    payment_date: date
    operator_id: Optional[int] = None
    bank_id: Optional[int] = None
    batch_ref: Optional[str] = None
    created_at: Optional[datetime] = None

class BillLineOut(APIBase):
    item_id: Optional[int] = None
    material_id: Optional[int] = None
    material_name: Optional[str] = None
    unit_price: Decimal
    billed_area: Decimal
    qty: int
    line_total: Decimal
    production_length: Optional[Decimal] = None
    production_width: Optional[Decimal] = None

class OrderOut(APIBase):
    id: int
    nota_no: str
    order_date: date
    customer: Optional[CustomerBrief] = None
    status: OrderStatusLiteral
    payment_status: PaymentStatusLiteral
    created_by_id: Optional[int] = None
    executor_id: Optional[int] = None
    deliverer_id: Optional[int] = None
    processing_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    version: int
    items: List[OrderItemOut]
    payments: List[PaymentOut]
    lines: List[BillLineOut] = []
    total: Decimal
    paid: Decimal
    remaining: Decimal

class OrderListRow(APIBase):
    id: int
    nota_no: str
    order_date: date
    customer: Optional[CustomerBrief] = None
    status: OrderStatusLiteral
    payment_status: PaymentStatusLiteral
    total: Decimal
    paid: Decimal
    remaining: Decimal

class OrderPage(APIBase):
    items: List[OrderListRow]
    total: int
    page: int
    per_page: int
    pages: int

class OrderTotalOut(APIBase):
    order_id: int
    nota_no: str
    total: Decimal

# =========================================
# ================ Payments ===============
# =========================================
class PaymentCreate(BaseModel):
    amount: Decimal
    payment_date: Optional[date] = None
    operator_id: Optional[int] = None
    bank_id: Optional[int] = None
    expected_version: Optional[int] = None

class BulkPaymentCreate(BaseModel):
    order_ids: List[int]            # priority order: first listed is paid first
    total_amount: Decimal
    payment_date: Optional[date] = None
    operator_id: Optional[int] = None
    bank_id: Optional[int] = None

class BulkPaymentOut(APIBase):
    batch_ref: Optional[str] = None
    total_amount: Decimal
    payments: List[PaymentOut]

# =========================================
# ============== Nota setting =============
# =========================================
class NotaSettingOut(APIBase):
    prefix: str
    start_number_str: str
    width: int
    next_number: Optional[str] = None

class NotaSettingUpdate(BaseModel):
    prefix: Optional[str] = None
    start_number_str: Optional[str] = None

# =========================================
# ================ Reports ================
# =========================================
class ReceivableRow(APIBase):
    order_id: int
    nota_no: str
    order_date: date
    customer_id: int
    customer_name: Optional[str] = None
    total: Decimal
    paid: Decimal
    remaining: Decimal
    payment_status: PaymentStatusLiteral

class ReceivablesOut(APIBase):
    items: List[ReceivableRow]
    total_outstanding: Decimal

class PaymentReceiptOut(APIBase):
    payment: PaymentOut
    total: Decimal
    paid: Decimal
    remaining: Decimal
    payment_status: PaymentStatusLiteral
