from fastapi import APIRouter, Depends, status

from marketplace.database.connection import mongo_db_dependency
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.item_repository import ItemRepository
from marketplace.repositories.message_repository import MessageRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.schemas.messaging import ConversationCreate
from marketplace.services.chat_service import ChatService
from marketplace.utils.dependencies import get_current_user
from marketplace.utils.responses import success


router = APIRouter(prefix="/conversations", tags=["chat"])


def get_chat_service(db = Depends(mongo_db_dependency)) -> ChatService:
    return ChatService(
        MessageRepository(db),
        ConversationRepository(db),
        UserRepository(db),
        ItemRepository(db),
    )


@router.get("")
async def list_conversations(current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    conversations = await service.list_conversations(current_user["_id"])
    return success(conversations, count=len(conversations))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_conversation(body: ConversationCreate, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    result = await service.create_conversation(
        current_user["_id"],
        receiver_id=body.receiver_id,
        item_id=body.item_id,
        initial_message=body.initial_message,
    )
    return success(result)


@router.get("/{conversation_id}")
async def get_conversation(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    return success(await service.get_conversation(conversation_id, current_user["_id"]))


@router.post("/{conversation_id}/read")
async def mark_read(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    modified = await service.mark_read(conversation_id, current_user["_id"])
    return {"success": True, "message": f"{modified} messages marked as read.", "modifiedCount": modified}
