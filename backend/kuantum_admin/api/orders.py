"""
Orders API Endpoints
Order listing, statistics and operator actions (status, reject, trash,
fees, customer messages)

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from contextlib import contextmanager
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from kuantum_admin.api.dependencies import (
    get_lifecycle_service,
    get_order_repository,
    get_stats_service,
)
from kuantum_admin.core.table_store import StoreConfigurationError, StoreError
from kuantum_admin.domain.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    OrderTransitionError,
    OrderTrashedError,
    OrderValidationError,
)
from kuantum_admin.domain.order import (
    CustomerNotificationRequest,
    ExtraFeeRequest,
    OrderStatus,
    RejectionRequest,
    ShippingFeeRequest,
    StatusChangeRequest,
)
from kuantum_admin.repositories import OrderRepository
from kuantum_admin.services.order_lifecycle_service import OrderLifecycleService
from kuantum_admin.services.order_stats_service import OrderStatsService

router = APIRouter()


@contextmanager
def order_errors(action: str):
    """Translate order and store errors into HTTP errors"""
    try:
        yield
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (OrderTrashedError, InvalidTransitionError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (StoreError, StoreConfigurationError, OrderTransitionError) as e:
        raise HTTPException(status_code=500, detail=f"Error {action}: {str(e)}")


@router.get("/")
def get_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    include_trashed: bool = Query(False, description="Include trashed orders"),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    repo: OrderRepository = Depends(get_order_repository)
):
    """Get orders, newest first, with their items"""
    with order_errors("fetching orders"):
        orders = repo.find_all(
            status=status.value if status else None,
            include_trashed=include_trashed,
            limit=limit,
            offset=offset
        )

    return {
        "status": "success",
        "limit": limit,
        "offset": offset,
        "count": len(orders),
        "data": [order.to_dict() for order in orders]
    }


@router.get("/stats")
def get_order_stats(stats: OrderStatsService = Depends(get_stats_service)):
    """
    Get order statistics

    Returns:
    - Total orders (trashed excluded)
    - Orders by status
    - Delivered revenue
    """
    with order_errors("fetching stats"):
        data = stats.get_stats()

    return {"status": "success", "data": data}


@router.get("/analytics")
def get_analytics(
    group_by: str = Query('day', description="Group by: day, week, or month"),
    stats: OrderStatsService = Depends(get_stats_service)
):
    """Orders and delivered revenue per day (14), week (8) or month (12)"""
    if group_by not in ['day', 'week', 'month']:
        raise HTTPException(status_code=400, detail="group_by must be 'day', 'week', or 'month'")

    with order_errors("fetching analytics"):
        data = stats.get_period_series(group_by)

    return {"status": "success", "data": data}


@router.get("/{order_id}")
def get_order(order_id: str, repo: OrderRepository = Depends(get_order_repository)):
    with order_errors("fetching order"):
        order = repo.get(order_id)

    return {"status": "success", "data": order.to_dict()}


@router.patch("/{order_id}/status")
def change_order_status(
    order_id: str,
    body: StatusChangeRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service)
):
    """
    Change order status

    Delivering an order decrements stock and records income; moving a
    delivered order away restores stock and removes the income entry.
    """
    with order_errors("updating order status"):
        result = service.set_status(
            order_id,
            body.status,
            preparation_time=body.preparation_time,
            preparation_unit=body.preparation_unit
        )

    return {"status": "success", "data": result.to_dict()}


@router.post("/{order_id}/reject")
def reject_order(
    order_id: str,
    body: RejectionRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service)
):
    with order_errors("rejecting order"):
        result = service.reject(order_id, body.reason)

    return {"status": "success", "data": result.to_dict()}


@router.post("/{order_id}/trash")
def trash_order(order_id: str, service: OrderLifecycleService = Depends(get_lifecycle_service)):
    with order_errors("trashing order"):
        result = service.trash(order_id)

    return {"status": "success", "data": result.to_dict()}


@router.post("/{order_id}/restore")
def restore_order(order_id: str, service: OrderLifecycleService = Depends(get_lifecycle_service)):
    with order_errors("restoring order"):
        result = service.restore(order_id)

    return {"status": "success", "data": result.to_dict()}


@router.put("/{order_id}/shipping-fee")
def set_shipping_fee(
    order_id: str,
    body: ShippingFeeRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service)
):
    with order_errors("setting shipping fee"):
        result = service.set_shipping_fee(order_id, body.fee)

    return {"status": "success", "data": result.to_dict()}


@router.post("/{order_id}/extra-fee")
def request_extra_fee(
    order_id: str,
    body: ExtraFeeRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service)
):
    with order_errors("requesting extra fee"):
        result = service.request_extra_fee(order_id, body.fee, body.reason)

    return {"status": "success", "data": result.to_dict()}


@router.post("/{order_id}/notify")
def notify_customer(
    order_id: str,
    body: CustomerNotificationRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service)
):
    with order_errors("notifying customer"):
        notification = service.notify_customer(order_id, body.message)

    return {"status": "success", "data": notification.model_dump(mode="json")}
