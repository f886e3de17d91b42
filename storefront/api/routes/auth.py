# storefront/api/routes/auth.py
from datetime import datetime, timedelta, timezone
import logging
import os

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import jwt

from storefront.api.deps import get_db, JWT_SECRET, JWT_ALGORITHM
from storefront.api.schemas.user import TokenResponse, UserCreate, UserOut
from storefront.core.security import hash_password, verify_password
from storefront.database import FileBackedDB

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

# token lifetime (minutes)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))


def _create_access_token(subject: str, expires_delta: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = {"sub": subject, "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_delta)}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: FileBackedDB = Depends(get_db)):
    """
    Create a user account. The password is stored only as 'password_hash'.
    A guest who registers keeps their guest cart until the client calls /api/cart/merge.
    """
    if db.get_record("users", "username", user.username) or db.get_record("users", "email", user.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username or email already registered")
    row = db.create_record(
        "users",
        {
            "username": user.username,
            "email": user.email,
            "password_hash": hash_password(user.password),
            "full_name": user.full_name or "",
            "created_at": datetime.now(timezone.utc).isoformat(sep=" "),
        },
        id_field="id",
    )
    logger.info("registered user %s", row["id"])
    return {
        "id": row["id"],
        "username": row["username"],
        "email": row["email"],
        "full_name": row.get("full_name") or None,
    }


@router.post("/token", response_model=TokenResponse)
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: FileBackedDB = Depends(get_db)):
    """
    Token endpoint used by OAuth2PasswordRequestForm clients.
    Returns a signed JWT whose subject is the user id.
    """
    user = db.get_record("users", "username", form_data.username) or db.get_record("users", "email", form_data.username)
    stored_hash = (user or {}).get("password_hash") or (user or {}).get("hashed_password")
    invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not stored_hash:
        raise invalid
    try:
        if not verify_password(form_data.password, stored_hash):
            raise invalid
    except ValueError:
        # unrecognised hash format
        raise invalid
    return {"access_token": _create_access_token(subject=str(user["id"])), "token_type": "bearer"}
