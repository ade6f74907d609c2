import os
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import jwt

SECRET_ENV = "LIFECYCLE_SECRET_KEY"
SECRET_KEY = os.environ.get(SECRET_ENV, "dev-secret-unsafe")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
    secret_key: str | None = None,
) -> str:
    """
    Create a JWT carrying principal claims (sub, email, role, organizationId).

    Args:
        data: Claims to encode in the token
        expires_delta: Optional custom expiration delta
        now_utc: Current UTC time (for testing/determinism). Defaults to datetime.now(UTC).
        secret_key: Signing secret. Defaults to the LIFECYCLE_SECRET_KEY environment value.
    """
    to_encode = data.copy()
    current_time = now_utc if now_utc is not None else datetime.now(UTC)

    if expires_delta:
        expire = current_time + expires_delta
    else:
        expire = current_time + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt: str = jwt.encode(to_encode, secret_key or SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(
    token: str, secret_key: str | None = None, algorithm: str = ALGORITHM
) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, secret_key or SECRET_KEY, algorithms=[algorithm])
        return cast(dict[str, Any], payload)
    except jwt.JWTError:
        return None
