# storefront/api/deps.py
from typing import Optional, Dict, Any
import os

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from storefront.database import db
from storefront.services.cart_engine import CartEngine
from storefront.services.cart_store import CartStore
from storefront.services.products import ProductLookup

# Configuration / secrets (env overrides allowed)
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
OAUTH2_TOKEN_URL = os.getenv("OAUTH2_TOKEN_URL", "/api/auth/token")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=OAUTH2_TOKEN_URL, auto_error=False)


def get_db():
    """
    Dependency that returns the file-backed DB object.
    Usage:
        db = Depends(get_db)
    """
    return db


def get_product_lookup() -> ProductLookup:
    return ProductLookup(db)


def get_cart_engine() -> CartEngine:
    """Cart engine wired to the shared DB; override in tests via app.dependency_overrides."""
    return CartEngine(store=CartStore(db), products=ProductLookup(db))


def _decode_token(token: str) -> Optional[str]:
    """Decode a signed JWT and return its 'sub' (user id), or None when it does not verify."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


async def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Resolve current user from Authorization header (Bearer) or from cookie 'access_token'.
    Returns the user row as a dict (as stored in the file-backed DB). Raises 401 if not authenticated.

    Only tokens issued by /api/auth/token are accepted: the signature must verify
    and the 'sub' claim must name an existing user id.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = _decode_token(token) if token else None
    if user_id is None:
        user_id = _decode_token(request.cookies.get("access_token") or "")
    if not user_id:
        raise credentials_exception

    user_row = db.get_record("users", "id", user_id)
    if not user_row:
        raise credentials_exception

    user_row.pop("hashed_password", None)
    user_row.pop("password_hash", None)
    return user_row
