# storefront/models/user.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Dict, Any

from storefront.utils.coerce import as_bool, as_datetime


@dataclass
class User:
    """
    Domain model for a shopper or administrator.
    The FileBackedDB stores values as strings; from_dict normalizes them.
    """
    username: str
    email: str
    hashed_password: str
    is_admin: bool = False
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "User":
        if d is None:
            raise ValueError("Cannot construct User from None")
        return cls(
            username=str(d.get("username") or ""),
            email=str(d.get("email") or ""),
            hashed_password=str(d.get("hashed_password") or d.get("password_hash") or ""),
            is_admin=as_bool(d.get("is_admin", False)),
            full_name=d.get("full_name") or None,
            created_at=as_datetime(d.get("created_at")),
            id=d.get("id") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to plain dict suitable for writing back to CSV/Excel.
        Note: hashed_password is included (necessary for persistence); strip it in APIs.
        """
        out = asdict(self)
        out["created_at"] = self.created_at.isoformat() if self.created_at else ""
        out["is_admin"] = bool(self.is_admin)
        return out

    def mask_secret(self) -> Dict[str, Any]:
        """
        Return a representation safe to expose on API responses (no hashed_password).
        """
        d = self.to_dict()
        d.pop("hashed_password", None)
        return d

    def summary(self) -> Dict[str, Any]:
        """Who placed an order, as shown next to it in admin views."""
        return {"id": self.id, "username": self.username, "email": self.email}
