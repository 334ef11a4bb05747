# tests/test_billing.py
from decimal import Decimal

from models import Customer, Finishing, Material, Order, OrderItem
from services.billing import bill_lines, billed_area, is_billable, quantize_money, total_for
from services.pricebook import price_for


def _material(**prices):
    base = dict(
        price_end_customer=Decimal("60000"),
        price_retail=Decimal("50000"),
        price_wholesale=Decimal("45000"),
        price_reseller=Decimal("40000"),
        price_corporate=Decimal("55000"),
    )
    base.update(prices)
    return Material(id=1, name="Flexi", **base)


def _order(tier, *items):
    return Order(nota_no="INV-001", customer=Customer(name="C", tier=tier), items=list(items))


def test_price_for_each_tier():
    m = _material()
    assert price_for(m, "end_customer") == Decimal("60000")
    assert price_for(m, "retail") == Decimal("50000")
    assert price_for(m, "wholesale") == Decimal("45000")
    assert price_for(m, "reseller") == Decimal("40000")
    assert price_for(m, "corporate") == Decimal("55000")


def test_price_for_unknown_tier_is_zero_and_logged(caplog):
    m = _material()
    with caplog.at_level("WARNING", logger="services.pricebook"):
        assert price_for(m, "vip") == Decimal("0")
    assert "unknown customer tier" in caplog.text


def test_billed_area_falls_back_to_one_unit():
    assert billed_area(Decimal("2"), Decimal("3")) == Decimal("6")
    assert billed_area(None, None) == Decimal("1")
    assert billed_area(Decimal("0"), Decimal("0")) == Decimal("1")


def test_total_retail_area_times_qty():
    item = OrderItem(material=_material(), length=Decimal("2"), width=Decimal("3"), qty=2)
    assert total_for(_order("retail", item)) == Decimal("600000")


def test_total_unit_item_uses_qty_only():
    item = OrderItem(material=_material(), qty=3)
    assert total_for(_order("wholesale", item)) == Decimal("135000")


def test_total_is_zero_without_customer():
    order = Order(nota_no="INV-002", items=[OrderItem(material=_material(), qty=1)])
    assert total_for(order) == Decimal("0")
    assert not is_billable(order)


def test_item_without_material_contributes_nothing():
    good = OrderItem(material=_material(), qty=1)
    orphan = OrderItem(material=None, qty=5)
    assert total_for(_order("retail", good, orphan)) == Decimal("50000")


def test_total_rounds_half_up_to_currency_unit():
    m = _material(price_retail=Decimal("10000.50"))
    item = OrderItem(material=m, qty=1)
    assert total_for(_order("retail", item)) == Decimal("10001")
    assert quantize_money(Decimal("2.5")) == Decimal("3")


def test_finishing_does_not_change_bill_but_shows_production_size():
    eyelet = Finishing(name="Mata ayam", extra_length=Decimal("0.1"), extra_width=Decimal("0.2"))
    plain = OrderItem(material=_material(), length=Decimal("2"), width=Decimal("3"), qty=1)
    finished = OrderItem(
        material=_material(), length=Decimal("2"), width=Decimal("3"), qty=1, finishing=eyelet
    )
    assert total_for(_order("retail", plain)) == total_for(_order("retail", finished))

    line = bill_lines(_order("retail", finished))[0]
    assert line["billed_area"] == Decimal("6")
    assert line["line_total"] == Decimal("300000")
    assert line["production_length"] == Decimal("2.1")
    assert line["production_width"] == Decimal("3.2")


def test_unit_item_has_no_production_size():
    line = bill_lines(_order("retail", OrderItem(material=_material(), qty=2)))[0]
    assert line["production_length"] is None
    assert line["unit_price"] == Decimal("50000")
    assert line["line_total"] == Decimal("100000")


def test_lines_add_up_to_order_total():
    m = _material(price_retail=Decimal("1000"))
    items = [OrderItem(material=m, length=Decimal("1.2345"), width=Decimal("1"), qty=1) for _ in range(2)]
    order = _order("retail", *items)

    lines = bill_lines(order)
    assert [ln["line_total"] for ln in lines] == [Decimal("1234.5"), Decimal("1234.5")]
    assert quantize_money(sum(ln["line_total"] for ln in lines)) == total_for(order)
    assert total_for(order) == Decimal("2469")


def test_lines_without_customer_are_zero():
    order = Order(nota_no="INV-003", items=[OrderItem(material=_material(), qty=2)])
    line = bill_lines(order)[0]
    assert (line["unit_price"], line["line_total"]) == (Decimal("0"), Decimal("0"))
