# storefront/api/deps.py
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer

from storefront.core.security import decode_access_token
from storefront.database import FileBackedDB
from storefront.models.user import User
from storefront.services.order_queries import OrderQueryService
from storefront.services.order_status import OrderStatusEngine

OAUTH2_TOKEN_URL = "/api/auth/token"

# auto_error=False so the cookie fallback below gets a chance
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=OAUTH2_TOKEN_URL, auto_error=False)


def get_db(request: Request) -> FileBackedDB:
    """
    Dependency that returns the file-backed DB opened by the application lifespan.
    Usage:
        db = Depends(get_db)
    """
    return request.app.state.db


def get_order_engine(request: Request) -> OrderStatusEngine:
    return request.app.state.order_engine


def get_order_queries(request: Request) -> OrderQueryService:
    return request.app.state.order_queries


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: FileBackedDB = Depends(get_db),
) -> Dict[str, Any]:
    """
    Resolve current user from Authorization header (Bearer) or from cookie 'access_token'.
    Returns the user row as a dict without the password hash. Raises 401 if not authenticated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw = token or request.cookies.get("access_token")
    user_id = decode_access_token(raw) if raw else None
    if not user_id:
        raise credentials_exception

    row = db.get_record("users", "id", user_id)
    if not row:
        raise credentials_exception
    return User.from_dict(row).mask_secret()


def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """
    Dependency to require admin privileges. Raises 403 if user is not admin.
    """
    if not current_user.get("is_admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return current_user
