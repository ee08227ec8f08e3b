from __future__ import annotations

import asyncio

from bson import ObjectId

from marketplace.models.conversation import NO_ITEM_KEY, is_participant
from marketplace.repositories.conversation_repository import ConversationRepository, item_key, participant_key
from marketplace.repositories.message_repository import MessageRepository


def test_participant_key_ignores_order_and_duplicates():
    a, b = ObjectId(), ObjectId()

    assert participant_key([a, b]) == participant_key([b, a])
    assert participant_key([a, b, a]) == participant_key([a, b])


def test_item_key_uses_stable_sentinel_for_no_item():
    item = ObjectId()

    assert item_key(None) == NO_ITEM_KEY
    assert item_key(item) == str(item)


def test_is_participant_compares_identifier_strings():
    a, b = ObjectId(), ObjectId()
    conversation = {"participants": [a, b]}

    assert is_participant(conversation, a)
    assert is_participant(conversation, str(b))
    assert not is_participant(conversation, str(ObjectId()))
    assert not is_participant(conversation, None)
    assert not is_participant({}, str(a))


def test_get_or_create_reuses_conversation_for_unordered_pair(db):
    repo = ConversationRepository(db)
    a, b = ObjectId(), ObjectId()

    async def _run():
        await repo.ensure_indexes()
        first = await repo.get_or_create([a, b], None)
        second = await repo.get_or_create([b, a], None)
        total = await repo.collection.count_documents({})
        return first, second, total

    first, second, total = asyncio.run(_run())

    assert first["_id"] == second["_id"]
    assert total == 1
    assert first["item_key"] == NO_ITEM_KEY
    assert first["item_id"] is None
    assert first["last_message_id"] is None


def test_get_or_create_separates_item_contexts(db):
    repo = ConversationRepository(db)
    a, b, item = ObjectId(), ObjectId(), ObjectId()

    async def _run():
        await repo.ensure_indexes()
        general = await repo.get_or_create([a, b], None)
        about_item = await repo.get_or_create([a, b], item)
        again = await repo.get_or_create([b, a], item)
        return general, about_item, again

    general, about_item, again = asyncio.run(_run())

    assert general["_id"] != about_item["_id"]
    assert about_item["_id"] == again["_id"]
    assert about_item["item_id"] == item


def test_saved_message_is_read_by_its_sender(db):
    repo = MessageRepository(db)
    conversation_id, sender = ObjectId(), ObjectId()

    message = asyncio.run(repo.save_message(conversation_id, sender, "hello"))

    assert message["read_by"] == [sender]
    assert isinstance(message["_id"], ObjectId)


def test_mark_read_counts_only_other_authors_and_is_idempotent(db):
    repo = MessageRepository(db)
    conversation_id, a, b = ObjectId(), ObjectId(), ObjectId()

    async def _run():
        await repo.save_message(conversation_id, a, "one")
        await repo.save_message(conversation_id, a, "two")
        await repo.save_message(conversation_id, b, "reply")
        unread_before = await repo.count_unread(conversation_id, b)
        first = await repo.mark_read(conversation_id, b)
        second = await repo.mark_read(conversation_id, b)
        unread_after = await repo.count_unread(conversation_id, b)
        unread_for_a = await repo.count_unread(conversation_id, a)
        return unread_before, first, second, unread_after, unread_for_a

    unread_before, first, second, unread_after, unread_for_a = asyncio.run(_run())

    assert unread_before == 2
    assert first == 2
    assert second == 0
    assert unread_after == 0
    assert unread_for_a == 1


def test_mark_read_only_grows_read_set(db):
    repo = MessageRepository(db)
    conversation_id, a, b, c = ObjectId(), ObjectId(), ObjectId(), ObjectId()

    async def _run():
        message = await repo.save_message(conversation_id, a, "hi all")
        await repo.mark_read(conversation_id, b)
        await repo.mark_read(conversation_id, c)
        await repo.mark_read(conversation_id, b)
        return await repo.collection.find_one({"_id": message["_id"]})

    stored = asyncio.run(_run())

    assert stored["read_by"] == [a, b, c]


def test_messages_are_listed_oldest_first(db):
    repo = MessageRepository(db)
    conversation_id, other, a = ObjectId(), ObjectId(), ObjectId()

    async def _run():
        for text in ("first", "second", "third"):
            await repo.save_message(conversation_id, a, text)
        await repo.save_message(other, a, "elsewhere")
        return await repo.get_messages_by_conversation(conversation_id)

    messages = asyncio.run(_run())

    assert [m["content"] for m in messages] == ["first", "second", "third"]

