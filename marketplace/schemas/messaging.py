from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ConversationCreate(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    receiver_id: Optional[str] = Field(default=None, alias="receiverId")
    item_id: Optional[str] = Field(default=None, alias="itemId")
    initial_message: Optional[str] = Field(default=None, alias="initialMessage")


class MessageCreate(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    content: Optional[str] = None
