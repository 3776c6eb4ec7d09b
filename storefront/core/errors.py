from typing import Optional


class OrderError(Exception):
    """Base class for order domain errors. `status_code` is the HTTP answer the API layer gives."""

    status_code = 500


class OrderNotFound(OrderError):
    status_code = 404

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")


class NotAuthorized(OrderError):
    status_code = 403

    def __init__(self, message: str = "Not authorized to view this order"):
        super().__init__(message)


class InvalidOrderData(OrderError, ValueError):
    status_code = 400


class InvalidStatus(InvalidOrderData):
    def __init__(self, value: Optional[str]):
        self.value = value
        super().__init__(f"Invalid order status: {value!r}")


class InvalidOperation(OrderError):
    status_code = 400


class InvalidTransition(InvalidOperation):
    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition: {from_status} -> {to_status}")
