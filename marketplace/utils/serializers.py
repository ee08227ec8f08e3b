from typing import Any, Dict, Optional

from marketplace.models.item import ITEM_SUMMARY_FIELDS
from marketplace.models.user import USER_SUMMARY_FIELDS
from marketplace.utils.ids import id_str


def serialize_message(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": id_str(doc.get("_id")),
        "conversationId": id_str(doc.get("conversation_id")),
        "senderId": id_str(doc.get("sender_id")),
        "content": doc.get("content"),
        "readBy": [str(u) for u in doc.get("read_by", [])],
        "createdAt": doc.get("created_at"),
    }


def serialize_user_summary(doc: Dict[str, Any]) -> Dict[str, Any]:
    summary = {"_id": id_str(doc.get("_id"))}
    for field in USER_SUMMARY_FIELDS:
        summary[field] = doc.get(field)
    return summary


def serialize_item_summary(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    summary = {"_id": id_str(doc.get("_id"))}
    for field in ITEM_SUMMARY_FIELDS:
        summary[field] = doc.get(field)
    return summary


def serialize_last_message(doc: Optional[Dict[str, Any]], sender: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    sender_view = {"_id": id_str(doc.get("sender_id")), "firstName": None, "lastName": None}
    if sender is not None:
        sender_view["firstName"] = sender.get("firstName")
        sender_view["lastName"] = sender.get("lastName")
    return {
        "_id": id_str(doc.get("_id")),
        "content": doc.get("content"),
        "createdAt": doc.get("created_at"),
        "readBy": [str(u) for u in doc.get("read_by", [])],
        "sender": sender_view,
    }
