from fastapi import APIRouter, Depends, status

from marketplace.routers.conversations import get_chat_service
from marketplace.schemas.messaging import MessageCreate
from marketplace.services.chat_service import ChatService
from marketplace.utils.dependencies import get_current_user
from marketplace.utils.responses import success


router = APIRouter(prefix="/messages", tags=["chat"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(body: MessageCreate, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    message = await service.send_message(body.conversation_id, current_user["_id"], body.content)
    return success(message)


@router.get("/conversation/{conversation_id}")
async def list_messages(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    messages = await service.list_messages(conversation_id, current_user["_id"])
    return success(messages, count=len(messages))
