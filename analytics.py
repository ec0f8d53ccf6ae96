"""
Daily sales analytics.

A pure reduction over order documents: realized revenue from completed
orders, order count, and the best selling and most profitable items of a
local calendar day.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Dict, Iterable, Optional, Tuple

from schemas import AnalyticsResponse, MostProfitableItem, OrderStatus, TopSellingItem


@dataclass
class ItemTally:
    item_id: str
    name: str
    quantity: int = 0
    revenue: float = 0.0


@dataclass
class DailySummary:
    total_revenue: float
    total_orders: int
    top_selling_item: Optional[ItemTally]
    most_profitable_item: Optional[ItemTally]

    def to_response(self) -> AnalyticsResponse:
        top = self.top_selling_item
        best = self.most_profitable_item
        return AnalyticsResponse(
            total_revenue_today=_cents(self.total_revenue),
            total_orders_today=self.total_orders,
            top_selling_item=TopSellingItem(name=top.name, quantity=top.quantity) if top else None,
            most_profitable_item=MostProfitableItem(name=best.name, revenue=_cents(best.revenue)) if best else None,
        )


def day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """First and last instant of day in tz, both inclusive, as UTC datetimes."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _created_at(order: Dict[str, Any]) -> Optional[datetime]:
    value = order.get("createdAt")
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _cents(amount: float) -> float:
    return round(amount, 2)


def _pick(tallies: Iterable[ItemTally], key) -> Optional[ItemTally]:
    # highest value wins; ties go to the lexicographically smallest item id
    best = None
    for tally in tallies:
        if best is None or key(tally) > key(best) or (
            key(tally) == key(best) and tally.item_id < best.item_id
        ):
            best = tally
    return best


def aggregate(orders: Iterable[Dict[str, Any]], day: date, tz: tzinfo) -> DailySummary:
    revenue = 0.0
    count = 0
    tallies: Dict[str, ItemTally] = {}

    for order in orders:
        created = _created_at(order)
        if created is None or created.astimezone(tz).date() != day:
            continue
        count += 1
        if order.get("status") == OrderStatus.COMPLETED.value:
            revenue += float(order.get("totalPrice") or 0)

        for item in order.get("items", []):
            item_id = str(item["itemId"])
            tally = tallies.get(item_id)
            if tally is None:
                tally = tallies[item_id] = ItemTally(item_id=item_id, name=item.get("name", ""))
            quantity = int(item.get("quantity", 0))
            tally.quantity += quantity
            tally.revenue += float(item.get("price", 0)) * quantity

    return DailySummary(
        total_revenue=revenue,
        total_orders=count,
        top_selling_item=_pick(tallies.values(), lambda t: t.quantity),
        most_profitable_item=_pick(tallies.values(), lambda t: _cents(t.revenue)),
    )


def daily_summary(store, day: date, tz: tzinfo) -> DailySummary:
    start, end = day_bounds(day, tz)
    return aggregate(store.orders_between(start, end), day, tz)
