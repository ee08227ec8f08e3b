from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from marketplace.models.conversation import NO_ITEM_KEY


def participant_key(participants: Iterable[ObjectId]) -> str:
    return ":".join(sorted({str(p) for p in participants}))


def item_key(item_id: Optional[ObjectId]) -> str:
    return str(item_id) if item_id is not None else NO_ITEM_KEY


class ConversationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["conversations"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("participants", ASCENDING)])
        await self.collection.create_index([("updated_at", DESCENDING)])
        await self.collection.create_index(
            [("participant_key", ASCENDING), ("item_key", ASCENDING)],
            unique=True,
        )

    async def get_by_id(self, conversation_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"_id": conversation_id})

    async def get_or_create(self, participants: List[ObjectId], item_id: Optional[ObjectId]) -> Dict[str, Any]:
        ordered = sorted(set(participants), key=str)
        key = {"participant_key": participant_key(ordered), "item_key": item_key(item_id)}
        now = datetime.now(timezone.utc)
        try:
            return await self.collection.find_one_and_update(
                key,
                {
                    "$setOnInsert": {
                        "participants": ordered,
                        "item_id": item_id,
                        "last_message_id": None,
                        "created_at": now,
                        "updated_at": now,
                    }
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # a concurrent upsert for the same pair and item won the insert
            return await self.collection.find_one(key)

    async def update_on_new_message(self, conversation_id: ObjectId, message_id: ObjectId, at: datetime) -> None:
        await self.collection.update_one(
            {"_id": conversation_id},
            {"$set": {"last_message_id": message_id, "updated_at": at}},
        )

    async def list_for_user(self, user_id: ObjectId) -> List[Dict[str, Any]]:
        cursor = self.collection.find({"participants": user_id}).sort(
            [("updated_at", DESCENDING), ("_id", DESCENDING)]
        )
        return await cursor.to_list(length=None)
