"""
Orders API Endpoints

Order list with tab and search filters, and the mark-done transition.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from backoffice.reporting import format_lkr, order_revenue
from backoffice.serving.api.dependencies import Services, get_services, require_session
from backoffice.services.orders import (
    OrderInput,
    OrderTab,
    OrderUpdate,
    count_orders,
    filter_orders,
)

router = APIRouter(dependencies=[Depends(require_session)])


class OrderCounts(BaseModel):
    """Tab counts"""
    all: int
    pending: int
    done: int


class OrderListResponse(BaseModel):
    """Filtered order list, newest first"""
    items: List[Dict[str, Any]]
    total: int
    counts: OrderCounts


def _with_display(order: Dict[str, Any]) -> Dict[str, Any]:
    return {**order, "totalLabel": format_lkr(order_revenue(order))}


@router.get("", response_model=OrderListResponse)
async def list_orders(
    tab: OrderTab = OrderTab.ALL,
    search: Optional[str] = None,
    services: Services = Depends(get_services),
) -> OrderListResponse:
    """
    List orders from the live snapshot.

    Supports filtering by:
    - Tab (all, pending, done)
    - Receipt id, customer name or phone
    """
    snapshot = services.orders.snapshot
    items = filter_orders(snapshot, tab=tab, search=search)
    return OrderListResponse(
        items=[_with_display(order) for order in items],
        total=len(items),
        counts=OrderCounts(**count_orders(snapshot)),
    )


@router.get("/{order_id}")
async def get_order(order_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Get one order."""
    order = services.orders.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _with_display(order)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderInput, services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Record an order receipt."""
    return await services.order_service.create(payload)


@router.patch("/{order_id}")
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Change customer details, total or discount of an order."""
    return await services.order_service.update(order_id, payload)


@router.post("/{order_id}/done")
async def mark_order_done(order_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Mark an order as done."""
    return await services.order_service.mark_done(order_id)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: str, services: Services = Depends(get_services)) -> None:
    """Delete an order."""
    await services.order_service.delete(order_id)
