from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union
import math

from storefront.core.errors import InvalidOrderData, NotAuthorized
from storefront.core.state_machine import OrderStatus, utcnow
from storefront.models.order import LineItem, Order, ShippingAddress
from storefront.services.order_store import OrderStore
from storefront.utils.coerce import as_bool, as_float

SEED_NOTE = "Order has been successfully placed."
DEFAULT_SORT_FIELD = "created_at"

# wire names used by the storefront frontend -> stored column names
SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "totalPrice": "total_amount",
    "totalAmount": "total_amount",
    "status": "status",
    "isPaid": "is_paid",
    "isDelivered": "is_delivered",
    "paidAt": "paid_at",
    "deliveredAt": "delivered_at",
    "paymentMethod": "payment_method",
}
_SORTABLE_COLUMNS = set(SORT_FIELDS.values())


def resolve_sort_field(field: Optional[str]) -> str:
    """Map a wire or column name to a sortable column; anything else sorts by creation time."""
    if not field:
        return DEFAULT_SORT_FIELD
    if field in SORT_FIELDS:
        return SORT_FIELDS[field]
    if field in _SORTABLE_COLUMNS:
        return field
    return DEFAULT_SORT_FIELD


@dataclass
class OrderPage:
    orders: List[Order]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {"total": self.total, "page": self.page, "pages": self.pages, "limit": self.limit}


class OrderQueryService:
    """Checkout and read access to orders."""

    def __init__(self, store: OrderStore):
        self.store = store

    def create_order(
        self,
        owner_id: str,
        line_items: Iterable[Union[LineItem, Dict[str, Any]]],
        shipping_address: Union[ShippingAddress, Dict[str, Any], None],
        payment_method: str,
        total_amount: Any,
    ) -> Order:
        """
        Create an order in Order Confirmed with its seed history entry.
        `total_amount` is stored as submitted; it is not checked against the line items.
        """
        items = [it if isinstance(it, LineItem) else LineItem.from_dict(it) for it in (line_items or [])]
        if not items:
            raise InvalidOrderData("No order items")
        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress.from_dict(shipping_address)

        order = Order(
            owner_id=str(owner_id),
            line_items=items,
            shipping_address=shipping_address,
            payment_method=payment_method or "",
            total_amount=as_float(total_amount),
        )
        order.record(OrderStatus.ORDER_CONFIRMED, SEED_NOTE, at=utcnow())
        return self.store.insert(order)

    def get_by_id(self, order_id: str, requester: Dict[str, Any]) -> Order:
        order = self.store.get(order_id)
        if as_bool(requester.get("is_admin")) or order.is_owned_by(requester.get("id")):
            return order
        raise NotAuthorized()

    def list_for_owner(self, owner_id: str) -> List[Order]:
        orders, _ = self.store.find({"owner_id": str(owner_id)}, sort_by="created_at", ascending=False)
        return orders

    def list_all(
        self,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
        sort_field: Optional[str] = "createdAt",
        sort_direction: str = "desc",
    ) -> OrderPage:
        """
        One page of all orders. `status` is an exact match on the stored value;
        None, "" and "all" disable the filter.
        """
        page = max(int(page), 1)
        page_size = max(int(page_size), 1)
        filters = {}
        if status and status != "all":
            filters["status"] = status
        orders, total = self.store.find(
            filters,
            sort_by=resolve_sort_field(sort_field),
            ascending=(sort_direction or "").lower() == "asc",
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        return OrderPage(orders=orders, total=total, page=page, limit=page_size)
