"""
MongoDB record store for the canteen.

Collections:
- "menuItems": stock-bearing menu documents
- "orders": placed orders with line item snapshots
- "users": admin credentials

The rest of the app talks to CanteenStore only; pymongo failures and a missing
connection surface as InfrastructureError.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient, UpdateOne
from pymongo.errors import PyMongoError

import config
from errors import InfrastructureError, ValidationError
from stock import StockLine, decrement_guard, decrement_update, restore_update


logger = logging.getLogger(__name__)

MENU = "menuItems"
ORDERS = "orders"
USERS = "users"


def connect(url: Optional[str] = config.DATABASE_URL, name: str = config.DATABASE_NAME):
    if not url:
        logger.warning("DATABASE_URL not set, database not available")
        return None, None
    try:
        mongo = MongoClient(url, tz_aware=True, serverSelectionTimeoutMS=5000)
        return mongo, mongo[name]
    except PyMongoError as e:
        logger.error(f"Could not configure MongoDB client: {e}")
        return None, None


client, db = connect()


def object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise ValidationError("Invalid id")


def serialize_document(value: Any) -> Any:
    """Replace ObjectIds with their string form, recursively."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: serialize_document(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_document(v) for v in value]
    return value


@contextmanager
def store_errors(action: str):
    try:
        yield
    except PyMongoError as e:
        logger.error(f"Failed to {action}: {e}")
        raise InfrastructureError(f"Failed to {action}") from e


class CanteenStore:
    def __init__(self, database=None):
        self._db = database

    @property
    def available(self) -> bool:
        return self._db is not None

    def _collection(self, name: str):
        if self._db is None:
            raise InfrastructureError("Database not available")
        return self._db[name]

    # Generic helpers

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        collection = self._collection(collection_name)
        with store_errors(f"insert into {collection_name}"):
            result = collection.insert_one(dict(data))
        return str(result.inserted_id)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        newest_first: bool = True,
    ) -> List[Dict[str, Any]]:
        collection = self._collection(collection_name)
        with store_errors(f"read {collection_name}"):
            cursor = collection.find(filter_dict or {})
            if newest_first:
                cursor = cursor.sort("createdAt", DESCENDING)
            return [serialize_document(doc) for doc in cursor]

    # Menu

    def list_menu_items(self) -> List[Dict[str, Any]]:
        return self.get_documents(MENU)

    def create_menu_item(self, document: Dict[str, Any]) -> str:
        return self.create_document(MENU, document)

    def delete_menu_item(self, item_id: str) -> bool:
        collection = self._collection(MENU)
        with store_errors("delete menu item"):
            result = collection.delete_one({"_id": object_id(item_id)})
        return result.deleted_count > 0

    # Stock

    def decrement_stock(self, lines: List[StockLine]) -> List[bool]:
        """Conditionally decrement every line, reporting per line whether it matched.

        Each line is one atomic single-document write guarded by
        count >= quantity. A store failure part way through hands back the
        units already taken before raising.
        """
        collection = self._collection(MENU)
        ids = [object_id(line.item_id) for line in lines]
        matched: List[bool] = []
        # bulk_write only reports totals, so each line is its own guarded
        # update_one: N round trips, and units taken by earlier lines are
        # unavailable to other orders until this call returns.
        try:
            for oid, line in zip(ids, lines):
                result = collection.update_one(
                    {"_id": oid, **decrement_guard(line.quantity)},
                    decrement_update(line.quantity),
                )
                matched.append(result.matched_count == 1)
        except PyMongoError as e:
            logger.error(f"Stock decrement interrupted: {e}")
            taken = [line for line, ok in zip(lines, matched) if ok]
            if taken:
                self.restore_stock(taken)
            raise InfrastructureError("Failed to reserve stock") from e
        return matched

    def restore_stock(self, lines: Iterable[StockLine]):
        operations = [
            UpdateOne({"_id": object_id(line.item_id)}, restore_update(line.quantity))
            for line in lines
        ]
        if not operations:
            return
        collection = self._collection(MENU)
        with store_errors("restore stock"):
            collection.bulk_write(operations, ordered=False)

    # Orders

    def insert_order(self, document: Dict[str, Any]) -> str:
        items = [{**item, "itemId": object_id(item["itemId"])} for item in document["items"]]
        return self.create_document(ORDERS, {**document, "items": items})

    def list_orders(self) -> List[Dict[str, Any]]:
        return self.get_documents(ORDERS)

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        collection = self._collection(ORDERS)
        with store_errors("fetch order"):
            doc = collection.find_one({"_id": object_id(order_id)})
        return serialize_document(doc) if doc else None

    def find_student_orders(self, student_name: str, roll_number: str) -> List[Dict[str, Any]]:
        return self.get_documents(ORDERS, {"studentName": student_name, "rollNumber": roll_number})

    def orders_between(self, start, end) -> List[Dict[str, Any]]:
        return self.get_documents(ORDERS, {"createdAt": {"$gte": start, "$lte": end}}, newest_first=False)

    def set_order_status(self, order_id: str, from_statuses: List[str], status: str) -> bool:
        """Compare-and-set: only moves orders currently in one of from_statuses."""
        collection = self._collection(ORDERS)
        with store_errors("update order status"):
            result = collection.update_one(
                {"_id": object_id(order_id), "status": {"$in": from_statuses}},
                {"$set": {"status": status}},
            )
        return result.matched_count == 1

    # Users

    def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        collection = self._collection(USERS)
        with store_errors("look up user"):
            return collection.find_one({"email": email})

    def collection_names(self) -> List[str]:
        if self._db is None:
            raise InfrastructureError("Database not available")
        with store_errors("list collections"):
            return self._db.list_collection_names()


store = CanteenStore(db)


def get_store() -> CanteenStore:
    return store
