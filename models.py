# models.py
from datetime import date
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import relationship

from database import Base


# =========================================
# ============ Status values ==============
# =========================================

class CustomerTier(str, Enum):
    END_CUSTOMER = "end_customer"
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    RESELLER = "reseller"
    CORPORATE = "corporate"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    READY_FOR_PICKUP = "ready_for_pickup"
    DELIVERED = "delivered"


class ProductionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    READY = "ready"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class BankCategory(str, Enum):
    BANK = "Bank"
    DIGITAL_WALLET = "Digital Wallet"
    QRIS = "Qris"


def _in_list(column: str, enum_cls) -> str:
    values = ", ".join(f"'{m.value}'" for m in enum_cls)
    return f"{column} IN ({values})"


# =========================================
# =============== Master ==================
# =========================================

class Customer(Base):
    __tablename__ = "customers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    tier = Column(String, nullable=False, default=CustomerTier.END_CUSTOMER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    orders = relationship("Order", back_populates="customer")

    def __repr__(self):
        return f"<Customer(id={self.id}, name={self.name}, tier={self.tier})>"


class Material(Base):
    """Bahan: printable substrate with one unit price per customer tier."""
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    price_end_customer = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    price_retail = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    price_wholesale = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    price_reseller = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    price_corporate = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    stock_qty = Column(Numeric(18, 3), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Material(id={self.id}, name={self.name})>"


class Finishing(Base):
    __tablename__ = "finishings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    extra_length = Column(Numeric(10, 3), nullable=False, default=0, server_default=text("0"))  # meters
    extra_width = Column(Numeric(10, 3), nullable=False, default=0, server_default=text("0"))   # meters
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Finishing(id={self.id}, name={self.name})>"


class Bank(Base):
    """Funding source of a payment. Payments without a bank are cash."""
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    account_holder = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    category = Column(String, nullable=False, default=BankCategory.BANK.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("category", BankCategory), name="ck_banks_category"),
    )

    def __repr__(self):
        return f"<Bank(id={self.id}, name={self.name}, category={self.category})>"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    position = Column(String, nullable=True)  # Admin / Kasir / Office / Produksi
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.name})>"


# =========================================
# ================ Orders =================
# =========================================

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    nota_no = Column(String, unique=True, index=True, nullable=False)
    order_date = Column(Date, nullable=False, default=date.today)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    payment_status = Column(String, nullable=False, default=PaymentStatus.UNPAID.value)

    created_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    executor_id = Column(Integer, ForeignKey("employees.id"), nullable=True)   # pending -> processing
    deliverer_id = Column(Integer, ForeignKey("employees.id"), nullable=True)  # ready -> delivered

    processing_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    version = Column(Integer, nullable=False)

    customer = relationship("Customer", back_populates="orders")
    created_by = relationship("Employee", foreign_keys=[created_by_id])
    executor = relationship("Employee", foreign_keys=[executor_id])
    deliverer = relationship("Employee", foreign_keys=[deliverer_id])

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(_in_list("status", OrderStatus), name="ck_orders_status"),
        CheckConstraint(_in_list("payment_status", PaymentStatus), name="ck_orders_payment_status"),
        Index("ix_orders_status_payment", "status", "payment_status"),
    )

    def __repr__(self):
        return f"<Order(nota_no={self.nota_no}, status={self.status}, payment_status={self.payment_status})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False, index=True)
    description = Column(Text, nullable=True)
    length = Column(Numeric(10, 3), nullable=True)  # meters; NULL/0 = unit billing
    width = Column(Numeric(10, 3), nullable=True)
    qty = Column(Integer, nullable=False, default=1)
    finishing_id = Column(Integer, ForeignKey("finishings.id", ondelete="SET NULL"), nullable=True)
    production_status = Column(String, nullable=False, default=ProductionStatus.NOT_STARTED.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="items")
    material = relationship("Material")
    finishing = relationship("Finishing")

    __table_args__ = (
        CheckConstraint("qty >= 1", name="ck_order_items_qty_positive"),
        CheckConstraint(_in_list("production_status", ProductionStatus), name="ck_order_items_production_status"),
        Index("ix_order_items_status", "production_status"),
    )

    def __repr__(self):
        return f"<OrderItem(order_id={self.order_id}, material_id={self.material_id}, status={self.production_status})>"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(18, 2), nullable=False)
    payment_date = Column(Date, nullable=False, default=date.today)
    operator_id = Column(Integer, ForeignKey("employees.id"), nullable=True)   # kasir
    bank_id = Column(Integer, ForeignKey("banks.id", ondelete="RESTRICT"), nullable=True)  # NULL = cash
    batch_ref = Column(String, nullable=True, index=True)  # shared by rows of one bulk payment
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="payments")
    operator = relationship("Employee")
    bank = relationship("Bank")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        Index("ix_payments_date", "payment_date"),
    )

    def __repr__(self):
        return f"<Payment(order_id={self.order_id}, amount={self.amount})>"


# =========================================
# ============ Nota numbering =============
# =========================================

class NotaSetting(Base):
    __tablename__ = "nota_settings"

    id = Column(Integer, primary_key=True)  # single row, id = 1
    prefix = Column(String, nullable=False)
    start_number_str = Column(String, nullable=False)
    width = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<NotaSetting(prefix={self.prefix}, width={self.width})>"


class DocCounter(Base):
    __tablename__ = "doc_counters"
    doc_type = Column(String, primary_key=True)   # "NOTA"
    seq = Column(Integer, nullable=False, default=0)  # last issued value

    def __repr__(self):
        return f"<DocCounter(doc_type={self.doc_type}, seq={self.seq})>"
