from datetime import datetime
from typing import List, TypedDict

from bson import ObjectId


class MessageDocument(TypedDict, total=False):
    _id: ObjectId
    conversation_id: ObjectId
    sender_id: ObjectId
    content: str
    # add-only; always holds sender_id
    read_by: List[ObjectId]
    created_at: datetime
