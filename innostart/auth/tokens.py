"""HS256 bearer tokens shared with the auth service.

The auth service issues tokens signed with SECRET_KEY whose ``sub`` claim is the
numeric user id. This API only verifies them; ``create_access_token`` exists for
tooling and tests.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from innostart.core.config import settings

ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    pass


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.ACCESS_TOKEN_TTL_HOURS)
    )
    return jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.SECRET_KEY,
        algorithm=ALGORITHM,
    )


def decode_access_token(token: str) -> int:
    """Return the user id carried by a valid token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    subject = payload.get("sub")
    if subject is None:
        raise InvalidTokenError("Token missing subject claim")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Token subject is not a user id") from e
