from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from marketplace.core.config import get_settings
from marketplace.core.errors import UnauthorizedError
from marketplace.schemas.user import TokenPayload


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": str(user_id), "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Session expired, please log in again") from exc
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Not authorized to access this route") from exc
    if not payload.get("sub"):
        raise UnauthorizedError("Not authorized to access this route")
    return TokenPayload(sub=payload["sub"], exp=payload.get("exp", 0))
