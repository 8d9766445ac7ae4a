from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from ..config import settings
from ..schemas.user import User


class InvalidTokenError(Exception):
    pass


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token for *user*; used by tooling and tests, the app only verifies."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode = {"sub": user.id, "email": user.email, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> User:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise InvalidTokenError("token is missing sub or email")
    return User(id=user_id, email=email)
