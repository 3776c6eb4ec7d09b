# storefront/models/order.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from datetime import datetime

from storefront.core.state_machine import OrderStatus, StateMachine, StatusEntry
from storefront.utils.coerce import as_bool, as_datetime, as_float, dump_json, load_json


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class LineItem:
    name: str
    quantity: int = 1
    unit_price: float = 0.0
    product_id: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LineItem":
        # accepts the storefront frontend's names (qty, price, product) as well as ours
        return cls(
            name=str(d.get("name") or d.get("title") or ""),
            quantity=int(float(d.get("quantity") or d.get("qty") or 1)),
            unit_price=as_float(d.get("unit_price", d.get("price"))),
            product_id=d.get("product_id") or d.get("product") or None,
            image=d.get("image") or d.get("image_url") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "quantity": int(self.quantity),
            "unit_price": float(self.unit_price),
            "product_id": self.product_id,
            "image": self.image,
        }


@dataclass
class ShippingAddress:
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ShippingAddress":
        return cls(
            address=str(d.get("address") or ""),
            city=str(d.get("city") or ""),
            postal_code=str(d.get("postal_code") or d.get("postalCode") or ""),
            country=str(d.get("country") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "city": self.city, "postal_code": self.postal_code, "country": self.country}


@dataclass
class Tracking:
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Tracking":
        return cls(
            carrier=d.get("carrier") or None,
            tracking_number=d.get("tracking_number") or d.get("trackingNumber") or None,
            tracking_url=d.get("tracking_url") or d.get("trackingUrl") or None,
            updated_at=as_datetime(d.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "carrier": self.carrier,
            "tracking_number": self.tracking_number,
            "tracking_url": self.tracking_url,
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Order:
    """
    Order domain model. Line items, shipping address, payment method and total
    are fixed at checkout; everything else is driven by OrderStatusEngine.
    """
    owner_id: str
    line_items: List[LineItem] = field(default_factory=list)
    shipping_address: Optional[ShippingAddress] = None
    payment_method: str = ""
    total_amount: float = 0.0
    id: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_metadata: Optional[Dict[str, Any]] = None
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    status: OrderStatus = OrderStatus.ORDER_CONFIRMED
    status_history: List[StatusEntry] = field(default_factory=list)
    tracking: Optional[Tracking] = None
    admin_notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_owned_by(self, user_id: Any) -> bool:
        return user_id is not None and str(self.owner_id) == str(user_id)

    def transition_to(self, new_status: Any, note: Optional[str] = None, actor: Optional[str] = None,
                      at: Optional[datetime] = None,
                      allowed_transitions: Optional[Dict[OrderStatus, List[OrderStatus]]] = None) -> StatusEntry:
        """
        Move to `new_status` through a StateMachine and append the history entry.
        Raises InvalidStatus, or InvalidTransition when `allowed_transitions` forbids the move.
        """
        sm = StateMachine(self.status, history=self.status_history, allowed_transitions=allowed_transitions)
        entry = sm.apply(new_status, note=note, actor=actor, at=at)
        self.status = sm.state
        self.status_history = sm.history
        return entry

    def record(self, status: OrderStatus, note: str, actor: Optional[str] = None,
               at: Optional[datetime] = None) -> StatusEntry:
        """Append a history entry without changing the current status."""
        sm = StateMachine(self.status, history=self.status_history)
        entry = sm.record(OrderStatus.parse(status), note, actor=actor, at=at)
        self.status_history = sm.history
        return entry

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Order":
        if d is None:
            raise ValueError("Cannot construct Order from None")

        items = [LineItem.from_dict(it) for it in load_json(d.get("line_items"), []) if isinstance(it, dict)]
        address_raw = load_json(d.get("shipping_address"))
        tracking_raw = load_json(d.get("tracking"))
        history = [StatusEntry.from_dict(e) for e in load_json(d.get("status_history"), []) if isinstance(e, dict)]

        return cls(
            id=d.get("id") or None,
            owner_id=str(d.get("owner_id") or ""),
            line_items=items,
            shipping_address=ShippingAddress.from_dict(address_raw) if isinstance(address_raw, dict) else None,
            payment_method=str(d.get("payment_method") or ""),
            payment_reference=d.get("payment_reference") or None,
            payment_metadata=load_json(d.get("payment_metadata")),
            total_amount=as_float(d.get("total_amount")),
            is_paid=as_bool(d.get("is_paid")),
            paid_at=as_datetime(d.get("paid_at")),
            is_delivered=as_bool(d.get("is_delivered")),
            delivered_at=as_datetime(d.get("delivered_at")),
            status=OrderStatus.parse(d.get("status") or OrderStatus.ORDER_CONFIRMED),
            status_history=history,
            tracking=Tracking.from_dict(tracking_raw) if isinstance(tracking_raw, dict) else None,
            admin_notes=str(d.get("admin_notes") or ""),
            created_at=as_datetime(d.get("created_at")),
            updated_at=as_datetime(d.get("updated_at")),
        )

    def to_public(self) -> Dict[str, Any]:
        """Nested, JSON-ready representation used in API responses."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "line_items": [it.to_dict() for it in self.line_items],
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "payment_metadata": self.payment_metadata,
            "total_amount": float(self.total_amount),
            "is_paid": bool(self.is_paid),
            "paid_at": _iso(self.paid_at),
            "is_delivered": bool(self.is_delivered),
            "delivered_at": _iso(self.delivered_at),
            "status": self.status.value,
            "status_history": [e.to_dict() for e in self.status_history],
            "tracking": self.tracking.to_dict() if self.tracking else None,
            "admin_notes": self.admin_notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Flat dict suitable for CSV writing. Nested values are serialized as JSON strings.
        """
        out = self.to_public()
        for key in ("line_items", "shipping_address", "payment_metadata", "status_history", "tracking"):
            out[key] = dump_json(out[key])
        return out
