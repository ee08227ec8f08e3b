from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace.core.errors import UnauthorizedError
from marketplace.database.connection import mongo_db_dependency
from marketplace.repositories.user_repository import UserRepository
from marketplace.utils.ids import to_object_id
from marketplace.utils.security import decode_access_token


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db = Depends(mongo_db_dependency),
) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authorized to access this route")
    payload = decode_access_token(credentials.credentials)
    user_oid = to_object_id(payload.sub)
    user = await UserRepository(db).get_user_by_id(user_oid) if user_oid is not None else None
    if not user:
        raise UnauthorizedError("Not authorized to access this route")
    user["_id"] = str(user["_id"])  # normalize to string for API layer
    return user
