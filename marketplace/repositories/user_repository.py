from typing import Any, Dict, Iterable, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from marketplace.models.user import USER_SUMMARY_FIELDS


class UserRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("users")

    async def get_user_by_id(self, user_id: ObjectId) -> Optional[dict]:
        return await self._collection.find_one({"_id": user_id})

    async def get_summaries(self, user_ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        projection = {field: 1 for field in USER_SUMMARY_FIELDS}
        cursor = self._collection.find({"_id": {"$in": ids}}, projection)
        return {doc["_id"]: doc for doc in await cursor.to_list(length=None)}
