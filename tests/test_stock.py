from schemas import Menuitem
from stock import decrement_guard, in_stock, new_menu_document


def test_in_stock_projection():
    assert in_stock(1)
    assert not in_stock(0)


def test_new_menu_document_derives_in_stock():
    doc = new_menu_document(Menuitem(name="Chai", category="Beverages", price=10, count=0))
    assert doc["count"] == 0
    assert doc["inStock"] is False
    assert doc["createdAt"].tzinfo is not None

    doc = new_menu_document(Menuitem(name="Chai", category="Beverages", price=10, count=4))
    assert doc["inStock"] is True


def test_decrement_guard():
    assert decrement_guard(3) == {"count": {"$gte": 3}}
