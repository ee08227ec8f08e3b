from datetime import datetime
from typing import List, Optional, TypedDict

from bson import ObjectId


# item_key value for conversations that are not about a catalog item
NO_ITEM_KEY = "none"


class ConversationDocument(TypedDict, total=False):
    _id: ObjectId
    participants: List[ObjectId]
    # sorted participant ids joined by ":"; unique together with item_key
    participant_key: str
    item_id: Optional[ObjectId]
    item_key: str
    last_message_id: Optional[ObjectId]
    created_at: datetime
    updated_at: datetime


def is_participant(conversation: ConversationDocument, user_id) -> bool:
    """Membership test shared by every conversation/message authorization check.

    Identifiers are compared by their string form so raw ObjectIds, hex strings
    and token subjects all agree.
    """
    if user_id is None:
        return False
    return str(user_id) in {str(p) for p in conversation.get("participants", [])}
