# routers/v1/__init__.py
from fastapi import APIRouter

from . import catalog, orders, payments, nota, reports

api_v1 = APIRouter()
# master data (generic CRUD)
for r in catalog.routers:
    api_v1.include_router(r)

api_v1.include_router(orders.router)
api_v1.include_router(payments.router)
api_v1.include_router(nota.router)
api_v1.include_router(reports.router)

__all__ = ["api_v1"]
