# routers/v1/catalog.py
# Master data the order engine reads: customers, materials, finishings, banks, employees.
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy.orm import Session

from generic_router import make_crud_router
from models import Bank, Customer, Employee, Finishing, Material
from schemas import (
    BankCreate, BankUpdate,
    CustomerCreate, CustomerUpdate,
    EmployeeCreate, EmployeeUpdate,
    FinishingCreate, FinishingUpdate,
    MaterialCreate, MaterialUpdate,
)
from services.pricebook import TIER_PRICE_FIELD

PRICE_FIELDS = list(TIER_PRICE_FIELD.values())


def _no_negatives(data: dict, fields) -> None:
    for f in fields:
        v = data.get(f)
        if v is not None and Decimal(str(v)) < 0:
            raise HTTPException(status_code=422, detail=f"{f} must not be negative")


def _check_name(data: dict, required: bool) -> None:
    if "name" in data or required:
        if not (data.get("name") or "").strip():
            raise HTTPException(status_code=422, detail="name is required")
        data["name"] = data["name"].strip()


# ---------- hooks ----------
def _customer_create(db: Session, data: dict):
    _check_name(data, required=True)

def _customer_update(db: Session, obj, data: dict):
    _check_name(data, required=False)

def _material_create(db: Session, data: dict):
    _check_name(data, required=True)
    _no_negatives(data, PRICE_FIELDS + ["stock_qty"])

def _material_update(db: Session, obj, data: dict):
    _check_name(data, required=False)
    _no_negatives(data, PRICE_FIELDS + ["stock_qty"])

def _finishing_create(db: Session, data: dict):
    _check_name(data, required=True)
    _no_negatives(data, ["extra_length", "extra_width"])

def _finishing_update(db: Session, obj, data: dict):
    _check_name(data, required=False)
    _no_negatives(data, ["extra_length", "extra_width"])


customers_router = make_crud_router(
    Customer, "customers",
    list_order_by=Customer.name,
    create_schema=CustomerCreate, update_schema=CustomerUpdate,
    before_create=_customer_create, before_update=_customer_update,
)

materials_router = make_crud_router(
    Material, "materials",
    list_order_by=Material.name,
    unique_fields=["name"],
    create_schema=MaterialCreate, update_schema=MaterialUpdate,
    before_create=_material_create, before_update=_material_update,
)

finishings_router = make_crud_router(
    Finishing, "finishings",
    list_order_by=Finishing.name,
    unique_fields=["name"],
    create_schema=FinishingCreate, update_schema=FinishingUpdate,
    before_create=_finishing_create, before_update=_finishing_update,
)

banks_router = make_crud_router(
    Bank, "banks",
    list_order_by=Bank.name,
    create_schema=BankCreate, update_schema=BankUpdate,
)

employees_router = make_crud_router(
    Employee, "employees",
    list_order_by=Employee.name,
    create_schema=EmployeeCreate, update_schema=EmployeeUpdate,
)

routers = [customers_router, materials_router, finishings_router, banks_router, employees_router]
