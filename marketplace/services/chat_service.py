import asyncio
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId

from marketplace.core.errors import BadRequestError, ForbiddenError, NotFoundError
from marketplace.models.conversation import is_participant
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.item_repository import ItemRepository
from marketplace.repositories.message_repository import MessageRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.utils.ids import id_str, to_object_id
from marketplace.utils.serializers import (
    serialize_item_summary,
    serialize_last_message,
    serialize_message,
    serialize_user_summary,
)


logger = logging.getLogger(__name__)


class ChatService:
    """Conversation and message operations for an authenticated user.

    Every conversation-scoped call loads the conversation first and checks the
    acting user against its participants before reading or writing messages.
    """

    def __init__(
        self,
        message_repo: MessageRepository,
        conversation_repo: ConversationRepository,
        user_repo: UserRepository,
        item_repo: ItemRepository,
    ) -> None:
        self._message_repo = message_repo
        self._conversation_repo = conversation_repo
        self._user_repo = user_repo
        self._item_repo = item_repo

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        viewer = self._user_oid(user_id)
        conversations = await self._conversation_repo.list_for_user(viewer)
        return await self._populate(conversations, viewer=viewer)

    async def get_conversation(self, conversation_id: str, user_id: str) -> Dict[str, Any]:
        conversation = await self._load_for_participant(conversation_id, user_id)
        populated = await self._populate([conversation])
        return populated[0]

    async def create_conversation(
        self,
        requester_id: str,
        receiver_id: Optional[str],
        item_id: Optional[str],
        initial_message: Optional[str],
    ) -> Dict[str, Any]:
        if not receiver_id or not initial_message or not initial_message.strip():
            raise BadRequestError("Please provide a receiver and initial message")

        requester = self._user_oid(requester_id)
        receiver = to_object_id(receiver_id)
        if receiver is None or await self._user_repo.get_user_by_id(receiver) is None:
            raise NotFoundError(f"User not found with id of {receiver_id}")
        if receiver == requester:
            raise BadRequestError("Cannot start a conversation with yourself")

        item = None
        if item_id:
            item = to_object_id(item_id)
            if item is None or await self._item_repo.get_item_by_id(item) is None:
                raise NotFoundError(f"Item not found with id of {item_id}")

        # upsert keyed on participants + item, so a retried call reuses the conversation
        conversation = await self._conversation_repo.get_or_create([requester, receiver], item)
        message = await self._append_message(conversation["_id"], requester, initial_message)
        logger.info(
            "Message %s started in conversation %s by user %s",
            message["_id"],
            conversation["_id"],
            requester,
        )

        refreshed = await self._conversation_repo.get_by_id(conversation["_id"])
        populated = await self._populate([refreshed or conversation])
        return {"conversation": populated[0], "message": serialize_message(message)}

    async def list_messages(self, conversation_id: str, user_id: str) -> List[Dict[str, Any]]:
        conversation = await self._load_for_participant(conversation_id, user_id)
        messages = await self._message_repo.get_messages_by_conversation(conversation["_id"])
        # reading the thread marks it read for the caller
        modified = await self._message_repo.mark_read(conversation["_id"], self._user_oid(user_id))
        if modified:
            logger.debug("Marked %d messages read in %s for %s", modified, conversation["_id"], user_id)
        return [serialize_message(m) for m in messages]

    async def mark_read(self, conversation_id: str, user_id: str) -> int:
        conversation = await self._load_for_participant(conversation_id, user_id)
        modified = await self._message_repo.mark_read(conversation["_id"], self._user_oid(user_id))
        logger.debug("Marked %d messages read in %s for %s", modified, conversation["_id"], user_id)
        return modified

    async def send_message(self, conversation_id: Optional[str], sender_id: str, content: Optional[str]) -> Dict[str, Any]:
        if not conversation_id:
            raise BadRequestError("Please provide conversation ID and message content")
        conversation = await self._load_for_participant(conversation_id, sender_id)
        if not content or not content.strip():
            raise BadRequestError("Please provide conversation ID and message content")
        message = await self._append_message(conversation["_id"], self._user_oid(sender_id), content)
        logger.info("Message %s sent to conversation %s by user %s", message["_id"], conversation["_id"], sender_id)
        return serialize_message(message)

    async def _append_message(self, conversation_id: ObjectId, sender: ObjectId, content: str) -> Dict[str, Any]:
        message = await self._message_repo.save_message(conversation_id, sender, content.strip())
        await self._conversation_repo.update_on_new_message(conversation_id, message["_id"], message["created_at"])
        return message

    async def _load_for_participant(self, conversation_id: str, user_id: str) -> Dict[str, Any]:
        oid = to_object_id(conversation_id)
        conversation = await self._conversation_repo.get_by_id(oid) if oid is not None else None
        if conversation is None:
            raise NotFoundError(f"Conversation not found with id of {conversation_id}")
        if not is_participant(conversation, user_id):
            raise ForbiddenError(f"User {user_id} is not a participant in conversation {conversation_id}")
        return conversation

    def _user_oid(self, user_id: str) -> ObjectId:
        oid = to_object_id(user_id)
        if oid is None:
            raise BadRequestError(f"Invalid user id {user_id}")
        return oid

    async def _populate(self, conversations: List[Dict[str, Any]], viewer: Optional[ObjectId] = None) -> List[Dict[str, Any]]:
        if not conversations:
            return []

        last_messages = await self._message_repo.get_by_ids(
            c["last_message_id"] for c in conversations if c.get("last_message_id")
        )
        user_ids = {p for c in conversations for p in c.get("participants", [])}
        user_ids.update(m["sender_id"] for m in last_messages.values())
        users = await self._user_repo.get_summaries(user_ids)
        items = await self._item_repo.get_summaries(c["item_id"] for c in conversations if c.get("item_id"))

        unread_counts: List[Optional[int]] = [None] * len(conversations)
        if viewer is not None:
            unread_counts = await asyncio.gather(
                *(self._message_repo.count_unread(c["_id"], viewer) for c in conversations)
            )

        views = []
        for conversation, unread in zip(conversations, unread_counts):
            last = last_messages.get(conversation.get("last_message_id"))
            view = {
                "_id": id_str(conversation["_id"]),
                "participants": [
                    serialize_user_summary(users.get(p, {"_id": p})) for p in conversation.get("participants", [])
                ],
                "item": serialize_item_summary(items.get(conversation.get("item_id"))),
                "lastMessage": serialize_last_message(last, users.get(last["sender_id"]) if last else None),
                "createdAt": conversation.get("created_at"),
                "updatedAt": conversation.get("updated_at"),
            }
            if unread is not None:
                view["unreadCount"] = unread
            views.append(view)
        return views
