from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from jobly import config
from jobly.errors import UnauthorizedError

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.bcrypt_work_factor())
_bearer = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plaintext password."""
    return _pwd_context.hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a stored hash."""
    return _pwd_context.verify(password, password_hash)


# PUBLIC_INTERFACE
def create_token(username: str, is_admin: bool = False) -> str:
    """Create a signed JWT for a user; the payload carries username and admin flag."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.jwt_expires_minutes())
    payload = {"sub": username, "username": username, "isAdmin": bool(is_admin), "exp": expire}
    return jwt.encode(payload, config.jwt_secret(), algorithm=config.jwt_algorithm())


# PUBLIC_INTERFACE
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[Dict[str, Any]]:
    """
    Dependency returning the token payload, or None when no valid token was sent.

    An invalid token is not an error here; routes that need a user say so with
    one of the ``ensure_*`` dependencies.
    """
    if credentials is None:
        return None
    try:
        payload = jwt.decode(credentials.credentials, config.jwt_secret(), algorithms=[config.jwt_algorithm()])
    except JWTError:
        return None
    if not payload.get("username"):
        return None
    return payload


# PUBLIC_INTERFACE
def ensure_logged_in(user: Optional[Dict[str, Any]] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency that requires any authenticated user."""
    if user is None:
        raise UnauthorizedError()
    return user


# PUBLIC_INTERFACE
def ensure_admin(user: Optional[Dict[str, Any]] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency that requires an admin user."""
    if user is None or not user.get("isAdmin"):
        raise UnauthorizedError()
    return user


# PUBLIC_INTERFACE
def ensure_correct_user_or_admin(
    username: str,
    user: Optional[Dict[str, Any]] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Dependency that requires the user named in the path, or an admin."""
    if user is None:
        raise UnauthorizedError()
    if not (user.get("isAdmin") or user.get("username") == username):
        raise UnauthorizedError()
    return user
