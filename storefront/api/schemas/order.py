from datetime import datetime
from typing import List, Optional, Any, Dict
from pydantic import AliasChoices, BaseModel, Field

# Request bodies accept the storefront frontend's camelCase names as well as snake_case.


class LineItemIn(BaseModel):
    name: str = Field(..., min_length=1, description="Product name snapshot")
    quantity: int = Field(..., ge=1, validation_alias=AliasChoices("quantity", "qty"))
    unit_price: float = Field(..., ge=0.0, validation_alias=AliasChoices("unit_price", "price"),
                              description="Unit price at time of ordering")
    product_id: Optional[str] = Field(None, validation_alias=AliasChoices("product_id", "product"))
    image: Optional[str] = Field(None, validation_alias=AliasChoices("image", "image_url"))


class ShippingAddressIn(BaseModel):
    address: str
    city: str
    postal_code: str = Field(..., validation_alias=AliasChoices("postal_code", "postalCode"))
    country: str


class OrderCreate(BaseModel):
    line_items: List[LineItemIn] = Field(
        default_factory=list, validation_alias=AliasChoices("line_items", "orderItems", "items")
    )
    shipping_address: ShippingAddressIn = Field(
        ..., validation_alias=AliasChoices("shipping_address", "shippingAddress")
    )
    payment_method: str = Field(..., validation_alias=AliasChoices("payment_method", "paymentMethod"))
    # stored as submitted, never recomputed from line_items
    total_amount: float = Field(
        ..., validation_alias=AliasChoices("total_amount", "totalPrice", "totalAmount")
    )


class StatusUpdate(BaseModel):
    # plain str: unknown values are rejected by the engine with a 400, not by the schema
    status: str
    note: Optional[str] = None


class PaymentUpdate(BaseModel):
    is_paid: bool = Field(..., validation_alias=AliasChoices("is_paid", "isPaid"))
    payment_reference: Optional[str] = Field(
        None, validation_alias=AliasChoices("payment_reference", "paymentId", "payment_id")
    )
    payment_metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("payment_metadata", "paymentDetails")
    )


class TrackingUpdate(BaseModel):
    carrier: Optional[str] = None
    tracking_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("tracking_number", "trackingNumber")
    )
    tracking_url: Optional[str] = Field(None, validation_alias=AliasChoices("tracking_url", "trackingUrl"))


class NotesUpdate(BaseModel):
    admin_notes: Optional[str] = Field("", validation_alias=AliasChoices("admin_notes", "adminNotes"))


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class LineItemOut(BaseModel):
    name: str
    quantity: int
    unit_price: float
    product_id: Optional[str] = None
    image: Optional[str] = None


class ShippingAddressOut(BaseModel):
    address: str
    city: str
    postal_code: str
    country: str


class StatusEntryOut(BaseModel):
    status: str
    timestamp: datetime
    note: str = ""
    updated_by: Optional[str] = None


class TrackingOut(BaseModel):
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    updated_at: Optional[datetime] = None


class OwnerSummary(BaseModel):
    id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None


class OrderOut(BaseModel):
    id: str
    owner_id: str
    user: Optional[OwnerSummary] = None
    line_items: List[LineItemOut]
    shipping_address: Optional[ShippingAddressOut] = None
    payment_method: str
    payment_reference: Optional[str] = None
    payment_metadata: Optional[Dict[str, Any]] = None
    total_amount: float
    is_paid: bool
    paid_at: Optional[datetime] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    status: str
    status_history: List[StatusEntryOut]
    tracking: Optional[TrackingOut] = None
    admin_notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderMessage(BaseModel):
    message: str
    order: OrderOut


class Pagination(BaseModel):
    total: int
    page: int
    pages: int
    limit: int


class OrderPageOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination
