# storefront/api/routes/auth.py
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status, Response, Form
from fastapi.security import OAuth2PasswordRequestForm
import logging

from storefront.api.deps import get_current_user, get_db
from storefront.api.schemas.user import TokenResponse, UserCreate, UserOut
from storefront.core.security import create_access_token, hash_password, verify_password
from storefront.database import FileBackedDB
from storefront.models.user import User

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _authenticate(db: FileBackedDB, login: str, password: str) -> User:
    """Look a user up by username or email and check the password. Raises 401."""
    row = db.get_record("users", "username", login) or db.get_record("users", "email", login)
    if not row:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    user = User.from_dict(row)
    if not user.hashed_password or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return user


@router.post("/register", response_model=UserOut, status_code=201)
def register(payload: UserCreate, db: FileBackedDB = Depends(get_db)):
    """
    Create a shopper account. Administrators are created with scripts/create_admin.py.
    """
    if db.get_record("users", "username", payload.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already registered")
    if db.get_record("users", "email", payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    user = User(
        username=payload.username,
        email=str(payload.email),
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        created_at=datetime.now(timezone.utc),
    )
    row = db.create_record("users", user.to_dict(), id_field="id")
    logger.info("Registered user %s (%s)", row["id"], user.username)
    return User.from_dict(row).mask_secret()


@router.post("/token", response_model=TokenResponse)
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: FileBackedDB = Depends(get_db)):
    """
    Token endpoint used by OAuth2PasswordRequestForm clients. Returns a signed JWT whose
    subject is the user id.
    """
    user = _authenticate(db, form_data.username, form_data.password)
    return {"access_token": create_access_token(subject=str(user.id)), "token_type": "bearer"}


@router.post("/login", response_model=UserOut)
def login_form(response: Response, username: str = Form(...), password: str = Form(...),
               db: FileBackedDB = Depends(get_db)):
    """
    Browser-style form login: sets an 'access_token' cookie and returns the user.
    """
    user = _authenticate(db, username, password)
    access_token = create_access_token(subject=str(user.id))
    response.set_cookie(key="access_token", value=access_token, httponly=True, samesite="lax")
    return user.mask_secret()


@router.get("/profile", response_model=UserOut)
def profile(current_user: Dict[str, Any] = Depends(get_current_user)):
    return current_user
