# tests/conftest.py
import os

# must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CURRENCY"] = "IDR"
os.environ["CURRENCY_DECIMALS"] = "0"
os.environ["NOTA_PREFIX"] = "INV"
os.environ["NOTA_START"] = "001"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models import Bank, BankCategory, Customer, CustomerTier, Employee, Finishing, Material


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _fk_on(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def catalog(db):
    """Minimal master data: one retail customer, two materials, staff, a bank and a wallet."""
    retail = Customer(name="Toko Maju", tier=CustomerTier.RETAIL.value)
    corporate = Customer(name="PT Sinar", tier=CustomerTier.CORPORATE.value)
    banner = Material(
        name="Flexi 280g",
        price_end_customer=Decimal("60000"),
        price_retail=Decimal("50000"),
        price_wholesale=Decimal("45000"),
        price_reseller=Decimal("40000"),
        price_corporate=Decimal("55000"),
    )
    sticker = Material(
        name="Sticker Vinyl",
        price_end_customer=Decimal("30000"),
        price_retail=Decimal("25000"),
        price_wholesale=Decimal("22000"),
        price_reseller=Decimal("20000"),
        price_corporate=Decimal("27500"),
    )
    eyelet = Finishing(name="Mata ayam", extra_length=Decimal("0.1"), extra_width=Decimal("0.1"))
    operator = Employee(name="Budi", position="Produksi")
    cashier = Employee(name="Sari", position="Kasir")
    bca = Bank(name="BCA", account_holder="Printshop", account_number="123", category=BankCategory.BANK.value)
    ovo = Bank(name="OVO", category=BankCategory.DIGITAL_WALLET.value)
    db.add_all([retail, corporate, banner, sticker, eyelet, operator, cashier, bca, ovo])
    db.commit()
    return {
        "retail": retail,
        "corporate": corporate,
        "banner": banner,
        "sticker": sticker,
        "eyelet": eyelet,
        "operator": operator,
        "cashier": cashier,
        "bca": bca,
        "ovo": ovo,
    }


@pytest.fixture()
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
