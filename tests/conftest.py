import threading
import uuid
from copy import deepcopy
from datetime import datetime, timezone

import pytest

from errors import InfrastructureError, ValidationError
from schemas import CartItemRef, CartLine
from stock import in_stock


class MemoryStore:
    """In-memory stand-in for CanteenStore.

    Each method holds one lock for its whole body, which gives the same
    per-record atomicity as a single-document conditional write.
    """

    def __init__(self):
        self.menu = {}
        self.orders = {}
        self.users = {}
        self.available = True
        self.fail_inserts = False
        self._lock = threading.Lock()

    def _require(self):
        if not self.available:
            raise InfrastructureError("Database not available")

    def add_item(self, name, price, count, category="Snacks"):
        item_id = uuid.uuid4().hex
        self.menu[item_id] = {
            "_id": item_id,
            "name": name,
            "price": price,
            "category": category,
            "count": count,
            "inStock": in_stock(count),
            "createdAt": datetime.now(timezone.utc),
        }
        return item_id

    def list_menu_items(self):
        self._require()
        return sorted(deepcopy(list(self.menu.values())), key=lambda d: d["createdAt"], reverse=True)

    def create_menu_item(self, document):
        self._require()
        item_id = uuid.uuid4().hex
        self.menu[item_id] = {"_id": item_id, **document}
        return item_id

    def delete_menu_item(self, item_id):
        self._require()
        return self.menu.pop(item_id, None) is not None

    def decrement_stock(self, lines):
        self._require()
        matched = []
        for line in lines:
            with self._lock:
                doc = self.menu.get(line.item_id)
                if doc is not None and doc["count"] >= line.quantity:
                    doc["count"] -= line.quantity
                    doc["inStock"] = in_stock(doc["count"])
                    matched.append(True)
                else:
                    matched.append(False)
        return matched

    def restore_stock(self, lines):
        self._require()
        with self._lock:
            for line in lines:
                doc = self.menu.get(line.item_id)
                if doc is not None:
                    doc["count"] += line.quantity
                    doc["inStock"] = in_stock(doc["count"])

    def insert_order(self, document):
        self._require()
        if self.fail_inserts:
            raise InfrastructureError("Failed to insert into orders")
        order_id = uuid.uuid4().hex
        with self._lock:
            self.orders[order_id] = {"_id": order_id, **deepcopy(document)}
        return order_id

    def list_orders(self):
        self._require()
        return sorted(deepcopy(list(self.orders.values())), key=lambda d: d["createdAt"], reverse=True)

    def get_order(self, order_id):
        self._require()
        if len(order_id) != 32:
            raise ValidationError("Invalid id")
        order = self.orders.get(order_id)
        return deepcopy(order) if order else None

    def find_student_orders(self, student_name, roll_number):
        return [
            o for o in self.list_orders()
            if o["studentName"] == student_name and o["rollNumber"] == roll_number
        ]

    def orders_between(self, start, end):
        self._require()
        return [deepcopy(o) for o in self.orders.values() if start <= o["createdAt"] <= end]

    def set_order_status(self, order_id, from_statuses, status):
        self._require()
        with self._lock:
            order = self.orders.get(order_id)
            if order is None or order["status"] not in from_statuses:
                return False
            order["status"] = status
            return True

    def find_user(self, email):
        self._require()
        return self.users.get(email)

    def collection_names(self):
        self._require()
        return ["menuItems", "orders", "users"]


def cart_line(store, item_id, quantity):
    doc = store.menu[item_id]
    return CartLine(item=CartItemRef(id=item_id, name=doc["name"], price=doc["price"]), quantity=quantity)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def stocked_store(store):
    store.samosa = store.add_item("Samosa", 15.0, 5)
    store.dosa = store.add_item("Masala Dosa", 60.0, 2)
    store.lassi = store.add_item("Mango Lassi", 50.0, 10, category="Beverages")
    return store
