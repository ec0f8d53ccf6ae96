"""
Stock ledger helpers.

A menu item's ``count`` is the authoritative quantity and ``inStock`` is a
projection of it. Every write that touches ``count`` recomputes ``inStock``
in the same single-document update, so no reader ever sees count == 0 with
inStock == true.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List

from schemas import Menuitem


@dataclass(frozen=True)
class StockLine:
    item_id: str
    quantity: int


def in_stock(count: int) -> bool:
    return count > 0


def _recompute_in_stock() -> Dict[str, Any]:
    return {"$set": {"inStock": {"$gt": ["$count", 0]}}}


def decrement_update(quantity: int) -> List[Dict[str, Any]]:
    """Update pipeline removing ``quantity`` units.

    Only safe together with a ``{"count": {"$gte": quantity}}`` filter; the
    filter is the guard, the pipeline is the write.
    """
    return [
        {"$set": {"count": {"$subtract": ["$count", quantity]}}},
        _recompute_in_stock(),
    ]


def restore_update(quantity: int) -> List[Dict[str, Any]]:
    """Update pipeline handing ``quantity`` reserved units back."""
    return [
        {"$set": {"count": {"$add": ["$count", quantity]}}},
        _recompute_in_stock(),
    ]


def decrement_guard(quantity: int) -> Dict[str, Any]:
    return {"count": {"$gte": quantity}}


def new_menu_document(item: Menuitem) -> Dict[str, Any]:
    return {
        "name": item.name,
        "price": float(item.price),
        "category": item.category,
        "count": int(item.count),
        "inStock": in_stock(item.count),
        "createdAt": datetime.now(timezone.utc),
    }
