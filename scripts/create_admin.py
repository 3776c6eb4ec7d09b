"""Creates (or promotes) an administrator account in the users table.

    python scripts/create_admin.py admin admin@example.com 'a-strong-password'
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from storefront.config import settings  # noqa: E402
from storefront.core.security import hash_password  # noqa: E402
from storefront.database import FileBackedDB  # noqa: E402
from storefront.models.user import User  # noqa: E402


def create_admin(db: FileBackedDB, username: str, email: str, password: str) -> dict:
    existing = db.get_record("users", "username", username)
    if existing:
        return db.update_record(
            "users", "id", existing["id"], {"is_admin": True, "hashed_password": hash_password(password)}
        )
    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        is_admin=True,
        created_at=datetime.now(timezone.utc),
    )
    return db.create_record("users", user.to_dict(), id_field="id")


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print(__doc__)
        sys.exit(1)
    db = FileBackedDB(settings.DATA_DIR, {"users": settings.USERS_FILE}).connect()
    row = create_admin(db, *sys.argv[1:])
    print(f"Administrator {row['username']} ready (id {row['id']})")
