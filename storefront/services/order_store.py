from typing import Any, Dict, List, Optional, Tuple

from storefront.core.errors import OrderNotFound
from storefront.core.state_machine import utcnow
from storefront.database import FileBackedDB
from storefront.models.order import Order


class OrderStore:
    """
    Data-access object for the `orders` table. Owns the created_at / updated_at
    timestamps. Every call is one read or one read-modify-write of the table file.
    """

    TABLE = "orders"

    def __init__(self, db: FileBackedDB):
        self.db = db

    def get(self, order_id: str) -> Order:
        row = self.db.get_record(self.TABLE, "id", order_id)
        if not row:
            raise OrderNotFound(order_id)
        return Order.from_dict(row)

    def insert(self, order: Order) -> Order:
        now = utcnow()
        order.created_at = now
        order.updated_at = now
        saved = self.db.create_record(self.TABLE, order.to_dict(), id_field="id")
        order.id = saved["id"]
        return order

    def save(self, order: Order) -> Order:
        order.updated_at = utcnow()
        updated = self.db.update_record(self.TABLE, "id", order.id, order.to_dict())
        if not updated:
            raise OrderNotFound(str(order.id))
        return order

    def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: str = "created_at",
        ascending: bool = False,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Order], int]:
        rows, total = self.db.query_records(
            self.TABLE, filters, sort_by=sort_by, ascending=ascending, skip=skip, limit=limit
        )
        return [Order.from_dict(r) for r in rows], total
