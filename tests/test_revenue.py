# tests/test_revenue.py
from datetime import date
from decimal import Decimal

from services.order_lifecycle import create_order
from services.payment_ledger import apply_payment
from services.revenue import CASH, receivables, revenue_by_source


def _unit_order(db, catalog, qty):
    return create_order(db, customer_id=catalog["retail"].id, items=[{"material_id": catalog["banner"].id, "qty": qty}])


def test_every_payment_lands_in_one_bucket(db, catalog):
    a = _unit_order(db, catalog, 4)  # 200,000
    apply_payment(db, a.id, Decimal("50000"))
    apply_payment(db, a.id, Decimal("70000"), bank_id=catalog["bca"].id)
    apply_payment(db, a.id, Decimal("30000"), bank_id=catalog["ovo"].id)

    buckets = revenue_by_source(db)
    assert buckets[CASH] == Decimal("50000")
    assert buckets["Bank"] == Decimal("70000")
    assert buckets["Digital Wallet"] == Decimal("30000")
    assert buckets["Qris"] == Decimal("0")
    assert sum(buckets.values()) == Decimal("150000")


def test_revenue_date_window(db, catalog):
    a = _unit_order(db, catalog, 4)
    apply_payment(db, a.id, Decimal("10000"), payment_date=date(2024, 1, 10))
    apply_payment(db, a.id, Decimal("20000"), payment_date=date(2024, 2, 10))

    jan = revenue_by_source(db, date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))
    assert jan[CASH] == Decimal("10000")
    assert revenue_by_source(db, date_from=date(2024, 3, 1))[CASH] == Decimal("0")


def test_receivables_lists_only_open_balances(db, catalog):
    paid = _unit_order(db, catalog, 1)      # 50,000
    partial = _unit_order(db, catalog, 2)   # 100,000
    untouched = _unit_order(db, catalog, 3)  # 150,000
    apply_payment(db, paid.id, Decimal("50000"))
    apply_payment(db, partial.id, Decimal("40000"))

    out = receivables(db)
    by_nota = {row["nota_no"]: row for row in out["items"]}
    assert set(by_nota) == {partial.nota_no, untouched.nota_no}
    assert by_nota[partial.nota_no]["remaining"] == Decimal("60000")
    assert by_nota[partial.nota_no]["payment_status"] == "partially_paid"
    assert out["total_outstanding"] == Decimal("210000")
