import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from store_ratings.services.errors import InvalidInput
from store_ratings.settings import Settings

PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Z])(?=.*[!@#$%^&*])[a-zA-Z0-9!@#$%^&*]{8,16}$")
PASSWORD_POLICY_MESSAGE = (
    "Password must be 8-16 characters with at least one uppercase letter "
    "and one special character"
)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def check_password_policy(password: str) -> None:
    if not isinstance(password, str) or not PASSWORD_PATTERN.match(password):
        raise InvalidInput(PASSWORD_POLICY_MESSAGE)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Optional[dict]:
    """Returns the token claims, or None when the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
