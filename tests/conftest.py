from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from marketplace.database.connection import mongo_db_dependency
from marketplace.main import app
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.item_repository import ItemRepository
from marketplace.repositories.message_repository import MessageRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.services.chat_service import ChatService
from marketplace.utils.security import create_access_token


async def _seed(db) -> SimpleNamespace:
    await ConversationRepository(db).ensure_indexes()
    await MessageRepository(db).ensure_indexes()

    alice, bob, carol = ObjectId(), ObjectId(), ObjectId()
    await db["users"].insert_many(
        [
            {"_id": alice, "firstName": "Alice", "lastName": "Ng", "email": "alice@example.com", "profilePhoto": None},
            {"_id": bob, "firstName": "Bob", "lastName": "Ruiz", "email": "bob@example.com", "profilePhoto": "bob.jpg"},
            {"_id": carol, "firstName": "Carol", "lastName": "Ito", "email": "carol@example.com", "profilePhoto": None},
        ]
    )
    bike = ObjectId()
    await db["items"].insert_one(
        {"_id": bike, "title": "Road bike", "photos": ["bike-1.jpg"], "category": "other", "price": 120}
    )
    return SimpleNamespace(alice=str(alice), bob=str(bob), carol=str(carol), bike=str(bike))


@pytest.fixture
def db():
    return AsyncMongoMockClient()["marketplace_test"]


@pytest.fixture
def ids(db):
    return asyncio.run(_seed(db))


@pytest.fixture
def service(db, ids):
    return ChatService(
        MessageRepository(db),
        ConversationRepository(db),
        UserRepository(db),
        ItemRepository(db),
    )


@pytest.fixture
def override_db(db, ids):
    async def _override_db():
        return db

    app.dependency_overrides[mongo_db_dependency] = _override_db
    yield db
    app.dependency_overrides.clear()


@pytest.fixture
def api(override_db):
    return TestClient(app)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def auth():
    return auth_headers
