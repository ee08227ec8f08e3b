from typing import Any, Dict, Iterable, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from marketplace.models.item import ITEM_SUMMARY_FIELDS


class ItemRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("items")

    async def get_item_by_id(self, item_id: ObjectId) -> Optional[dict]:
        return await self._collection.find_one({"_id": item_id}, {field: 1 for field in ITEM_SUMMARY_FIELDS})

    async def get_summaries(self, item_ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
        ids = list(set(item_ids))
        if not ids:
            return {}
        projection = {field: 1 for field in ITEM_SUMMARY_FIELDS}
        cursor = self._collection.find({"_id": {"$in": ids}}, projection)
        return {doc["_id"]: doc for doc in await cursor.to_list(length=None)}
