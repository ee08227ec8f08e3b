from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("conversation_id", ASCENDING), ("created_at", ASCENDING)])

    async def save_message(self, conversation_id: ObjectId, sender_id: ObjectId, content: str) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "conversation_id": conversation_id,
            "sender_id": sender_id,
            "content": content,
            "read_by": [sender_id],
            "created_at": datetime.now(timezone.utc),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def get_messages_by_conversation(self, conversation_id: ObjectId) -> List[Dict[str, Any]]:
        cursor = self.collection.find({"conversation_id": conversation_id}).sort(
            [("created_at", ASCENDING), ("_id", ASCENDING)]
        )
        return await cursor.to_list(length=None)

    async def get_by_ids(self, message_ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
        ids = list(set(message_ids))
        if not ids:
            return {}
        cursor = self.collection.find({"_id": {"$in": ids}})
        return {doc["_id"]: doc for doc in await cursor.to_list(length=None)}

    def _unread_query(self, conversation_id: ObjectId, user_id: ObjectId) -> Dict[str, Any]:
        return {
            "conversation_id": conversation_id,
            "sender_id": {"$ne": user_id},
            "read_by": {"$nin": [user_id]},
        }

    async def count_unread(self, conversation_id: ObjectId, user_id: ObjectId) -> int:
        return await self.collection.count_documents(self._unread_query(conversation_id, user_id))

    async def mark_read(self, conversation_id: ObjectId, user_id: ObjectId) -> int:
        result = await self.collection.update_many(
            self._unread_query(conversation_id, user_id),
            {"$addToSet": {"read_by": user_id}},
        )
        return result.modified_count or 0
