# storefront/api/routes/orders.py
from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from storefront.api.deps import get_current_user, get_db, get_order_engine, get_order_queries, require_admin
from storefront.api.schemas.order import (
    CancelRequest,
    NotesUpdate,
    OrderCreate,
    OrderMessage,
    OrderOut,
    OrderPageOut,
    PaymentUpdate,
    StatusUpdate,
    TrackingUpdate,
)
from storefront.config import settings
from storefront.core.errors import OrderError
from storefront.database import FileBackedDB
from storefront.models.order import Order
from storefront.models.user import User
from storefront.services.order_queries import OrderQueryService
from storefront.services.order_status import OrderStatusEngine

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _http_error(exc: OrderError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


def _owner_index(db: FileBackedDB) -> Dict[str, Dict[str, Any]]:
    return {str(row.get("id")): User.from_dict(row).summary() for row in db.list_records("users")}


def _with_owner(order: Order, owners: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    out = order.to_public()
    out["user"] = owners.get(str(order.owner_id))
    return out


def _mutation_response(message: str, order: Order) -> Dict[str, Any]:
    return {"message": message, "order": order.to_public()}


@router.post("/", status_code=201, response_model=OrderOut)
def create_order(
    payload: OrderCreate = Body(...),
    current_user: Dict[str, Any] = Depends(get_current_user),
    queries: OrderQueryService = Depends(get_order_queries),
):
    """
    Checkout. The body carries the cart's line items, the shipping address,
    the payment method and the cart total. The total is stored as submitted.
    """
    try:
        order = queries.create_order(
            owner_id=current_user["id"],
            line_items=[it.model_dump() for it in payload.line_items],
            shipping_address=payload.shipping_address.model_dump(),
            payment_method=payload.payment_method,
            total_amount=payload.total_amount,
        )
    except OrderError as e:
        raise _http_error(e)
    logger.info("Order %s placed by user %s", order.id, current_user["id"])
    return order.to_public()


@router.get("/myorders", response_model=List[OrderOut])
def list_my_orders(
    current_user: Dict[str, Any] = Depends(get_current_user),
    queries: OrderQueryService = Depends(get_order_queries),
):
    """Orders placed by the current user, newest first."""
    return [o.to_public() for o in queries.list_for_owner(current_user["id"])]


@router.get("/by-id/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    queries: OrderQueryService = Depends(get_order_queries),
    db: FileBackedDB = Depends(get_db),
):
    try:
        order = queries.get_by_id(order_id, current_user)
    except OrderError as e:
        raise _http_error(e)
    return _with_owner(order, _owner_index(db))


@router.get("/", response_model=OrderPageOut, dependencies=[Depends(require_admin)])
def list_orders(
    status: Optional[str] = Query(None, description="Exact status value, or 'all'"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_by: str = Query("createdAt", alias="sortBy"),
    order: str = Query("desc", description="'asc' or 'desc'"),
    queries: OrderQueryService = Depends(get_order_queries),
    db: FileBackedDB = Depends(get_db),
):
    """
    Admin-only: one page of all orders, optionally filtered by status.
    Query: ?status=Delivered&page=2&limit=10&sortBy=createdAt&order=asc
    """
    page_size = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    result = queries.list_all(status=status, page=page, page_size=page_size, sort_field=sort_by, sort_direction=order)
    owners = _owner_index(db)
    return {"orders": [_with_owner(o, owners) for o in result.orders], "pagination": result.pagination()}


@router.put("/status/{order_id}", response_model=OrderMessage)
def update_order_status(
    order_id: str,
    payload: StatusUpdate = Body(...),
    admin: Dict[str, Any] = Depends(require_admin),
    engine: OrderStatusEngine = Depends(get_order_engine),
):
    """
    Admin-only: set order.status. Payload: { "status": "Order Shipped", "note": "..." }
    """
    try:
        order = engine.set_status(order_id, payload.status, note=payload.note, actor=admin["id"])
    except OrderError as e:
        logger.warning("Status update on order %s rejected: %s", order_id, e)
        raise _http_error(e)
    logger.info("Order %s status set to %s by %s", order_id, order.status.value, admin["id"])
    return _mutation_response("Order status updated", order)


@router.put("/{order_id}/payment", response_model=OrderMessage)
def update_payment_status(
    order_id: str,
    payload: PaymentUpdate = Body(...),
    admin: Dict[str, Any] = Depends(require_admin),
    engine: OrderStatusEngine = Depends(get_order_engine),
):
    """
    Admin-only: flip the payment flag. Payload: { "isPaid": true, "paymentId": "...", "paymentDetails": {...} }
    """
    try:
        order = engine.set_payment_status(
            order_id,
            payload.is_paid,
            payment_reference=payload.payment_reference,
            payment_metadata=payload.payment_metadata,
            actor=admin["id"],
        )
    except OrderError as e:
        raise _http_error(e)
    logger.info("Order %s marked %s by %s", order_id, "paid" if order.is_paid else "unpaid", admin["id"])
    return _mutation_response("Payment status updated", order)


@router.put("/{order_id}/tracking", response_model=OrderMessage)
def update_tracking(
    order_id: str,
    payload: TrackingUpdate = Body(...),
    admin: Dict[str, Any] = Depends(require_admin),
    engine: OrderStatusEngine = Depends(get_order_engine),
):
    """
    Admin-only: replace the courier record. Adding a carrier and tracking number
    to an order that has not shipped yet moves it to Order Shipped.
    """
    try:
        order = engine.set_tracking(
            order_id,
            payload.carrier,
            payload.tracking_number,
            payload.tracking_url,
            actor=admin["id"],
        )
    except OrderError as e:
        raise _http_error(e)
    logger.info("Order %s tracking updated by %s", order_id, admin["id"])
    return _mutation_response("Tracking information updated", order)


@router.put("/{order_id}/notes", response_model=OrderMessage)
def update_order_notes(
    order_id: str,
    payload: NotesUpdate = Body(...),
    admin: Dict[str, Any] = Depends(require_admin),
    engine: OrderStatusEngine = Depends(get_order_engine),
):
    try:
        order = engine.set_admin_notes(order_id, payload.admin_notes)
    except OrderError as e:
        raise _http_error(e)
    logger.info("Order %s notes updated by %s", order_id, admin["id"])
    return _mutation_response("Order notes updated", order)


@router.put("/{order_id}/cancel", response_model=OrderMessage)
def cancel_order(
    order_id: str,
    payload: Optional[CancelRequest] = Body(None),
    admin: Dict[str, Any] = Depends(require_admin),
    engine: OrderStatusEngine = Depends(get_order_engine),
):
    """
    Admin-only: cancel an order that has not been delivered. Payload: { "reason": "..." } (optional)
    """
    try:
        order = engine.cancel(order_id, reason=payload.reason if payload else None, actor=admin["id"])
    except OrderError as e:
        logger.warning("Cancel of order %s rejected: %s", order_id, e)
        raise _http_error(e)
    logger.info("Order %s cancelled by %s", order_id, admin["id"])
    return _mutation_response("Order cancelled", order)
