"""
Order Service

Write paths for the ``orderReceipts`` collection and the list filters of
the order screen. The only status transition exposed is ``pending -> done``.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.database.documents import DocumentCollection
from backoffice.reporting.primitives import OrderStatus

logger = structlog.get_logger(__name__)


class OrderTab(str, Enum):
    """Order list tabs"""
    ALL = "all"
    PENDING = "pending"
    DONE = "done"


class CustomerInfo(BaseModel):
    """Customer details captured on a receipt"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    phone: str = ""
    address: str = ""
    id: Optional[str] = None
    email: Optional[str] = None


class OrderLineInput(BaseModel):
    """One purchased product"""

    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str
    name: str = ""
    category: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)

    def to_document(self) -> Dict[str, Any]:
        document = {"productId": self.product_id, "price": self.price, "qty": self.quantity}
        if self.name:
            document["name"] = self.name
        if self.category:
            document["category"] = self.category
        return document


class OrderInput(BaseModel):
    """A new order receipt"""

    model_config = ConfigDict(str_strip_whitespace=True)

    receipt_id: Optional[str] = None
    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    items: List[OrderLineInput] = Field(default_factory=list)
    total_amount: Optional[float] = Field(default=None, ge=0)
    status: str = OrderStatus.PENDING.value
    discount: Optional[str] = None

    @field_validator("items")
    @classmethod
    def validate_items(cls, v: List[OrderLineInput]) -> List[OrderLineInput]:
        if not v:
            raise ValueError("An order needs at least one item")
        return v

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "receiptId": self.receipt_id or f"RCPT-{int(time.time() * 1000)}",
            "customer": self.customer.model_dump(exclude_none=True),
            "items": [item.to_document() for item in self.items],
            "status": self.status or OrderStatus.PENDING.value,
        }
        if self.total_amount is not None:
            document["totalAmount"] = self.total_amount
        if self.discount:
            document["discount"] = self.discount
        if self.customer.id:
            document["customerId"] = self.customer.id
        if self.customer.email:
            document["customerEmail"] = self.customer.email
        if self.customer.phone:
            document["customerPhone"] = self.customer.phone
        return document


class OrderUpdate(BaseModel):
    """Partial order changes; unset fields are left untouched"""

    model_config = ConfigDict(str_strip_whitespace=True)

    customer: Optional[CustomerInfo] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    discount: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        if self.customer is not None:
            changes["customer"] = self.customer.model_dump(exclude_none=True)
        if self.total_amount is not None:
            changes["totalAmount"] = self.total_amount
        if self.discount is not None:
            changes["discount"] = self.discount
        return changes


def display_status(order: Dict[str, Any]) -> str:
    """Status as the order list reads it: missing status counts as pending."""
    return str(order.get("status") or OrderStatus.PENDING.value).lower()


def filter_orders(
    orders: Sequence[Dict[str, Any]],
    tab: OrderTab = OrderTab.ALL,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Orders in ``tab`` whose receipt id, customer name or phone contains ``search``."""
    query = (search or "").strip().lower()
    matches = []
    for order in orders:
        status = display_status(order)
        if tab is OrderTab.PENDING and status != OrderStatus.PENDING.value:
            continue
        if tab is OrderTab.DONE and status != OrderStatus.DONE.value:
            continue

        if query:
            customer = order.get("customer") if isinstance(order.get("customer"), dict) else {}
            haystack = (
                str(order.get("receiptId") or ""),
                str(customer.get("name") or ""),
                str(customer.get("phone") or ""),
            )
            if not any(query in value.lower() for value in haystack):
                continue
        matches.append(order)
    return matches


def count_orders(orders: Sequence[Dict[str, Any]]) -> Dict[str, int]:
    """Tab counts; anything not done is counted as pending."""
    done = sum(1 for order in orders if display_status(order) == OrderStatus.DONE.value)
    return {"all": len(orders), "pending": len(orders) - done, "done": done}


class OrderService:
    """Order write paths"""

    def __init__(self, orders: DocumentCollection):
        self.orders = orders

    async def create(self, order: OrderInput) -> Dict[str, Any]:
        document = order.to_document()
        order_id = await self.orders.add(document)
        logger.info("Order created", order_id=order_id, receipt_id=document["receiptId"])
        return {"id": order_id, **document}

    async def update(self, order_id: str, changes: OrderUpdate) -> Dict[str, Any]:
        """
        Raises:
            DocumentNotFoundError: If the order does not exist
        """
        return await self.orders.update(order_id, changes.to_changes())

    async def delete(self, order_id: str) -> Dict[str, Any]:
        """
        Raises:
            DocumentNotFoundError: If the order does not exist
        """
        document = await self.orders.delete(order_id)
        logger.info("Order deleted", order_id=order_id)
        return document

    async def mark_done(self, order_id: str) -> Dict[str, Any]:
        """
        Overwrite the status with ``done``. No check against the status the
        caller last saw; the last write wins.

        Raises:
            DocumentNotFoundError: If the order does not exist
        """
        document = await self.orders.update(order_id, {"status": OrderStatus.DONE.value})
        logger.info("Order marked done", order_id=order_id)
        return document
