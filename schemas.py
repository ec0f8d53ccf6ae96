"""
Database Schemas for the School Canteen

Each Pydantic model represents a MongoDB collection or a request body.
Documents are stored with camelCase keys (studentName, inStock, createdAt);
Python attributes are snake_case and map onto them through aliases.

This app manages:
- Menu items (name, category, price, stock count)
- Orders (student, line item snapshots, total, status)
"""

from enum import Enum
from typing import Optional, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    PLACED = "Placed"
    COMPLETED = "Completed"


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Menuitem(CamelModel):
    """
    Canteen menu items
    Collection name: "menuItems"
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="Dish name")
    category: str = Field(..., description="Free-form label like Snacks, Beverages")
    price: float = Field(..., ge=0, description="Unit price")
    count: int = Field(..., ge=0, description="Units available to order")


class Orderitem(CamelModel):
    """
    Embedded order line (not a collection). Name and price are snapshots
    taken when the order was placed.
    """
    item_id: str = Field(..., alias="itemId", description="Menu item _id as string")
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class Order(CamelModel):
    """
    Orders placed by students
    Collection name: "orders"
    """
    student_name: str = Field(..., alias="studentName")
    roll_number: str = Field(..., alias="rollNumber")
    items: List[Orderitem]
    total_price: float = Field(..., alias="totalPrice", description="Client-supplied total")
    status: OrderStatus = OrderStatus.PLACED


# Request bodies

class CartItemRef(CamelModel):
    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    name: str
    price: float = Field(..., ge=0)


class CartLine(CamelModel):
    item: CartItemRef
    quantity: int


class PlaceOrderRequest(CamelModel):
    student_name: Optional[str] = Field(None, alias="studentName")
    roll_number: Optional[str] = Field(None, alias="rollNumber")
    cart: List[CartLine] = Field(default_factory=list)
    total_price: Optional[float] = Field(None, alias="totalPrice")


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class StudentLookup(CamelModel):
    student_name: Optional[str] = Field(None, alias="studentName")
    roll_number: Optional[str] = Field(None, alias="rollNumber")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# Response bodies

class TopSellingItem(BaseModel):
    name: str
    quantity: int


class MostProfitableItem(BaseModel):
    name: str
    revenue: float


class AnalyticsResponse(CamelModel):
    total_revenue_today: float = Field(..., alias="totalRevenueToday")
    total_orders_today: int = Field(..., alias="totalOrdersToday")
    top_selling_item: Optional[TopSellingItem] = Field(None, alias="topSellingItem")
    most_profitable_item: Optional[MostProfitableItem] = Field(None, alias="mostProfitableItem")
