"""
Test configuration and fixtures for the realty API.
Provides an in-memory document store behind the repository interfaces,
a fake media host, test data factories and an application wired to them.
"""

import copy
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import DESCENDING

from realty_api.config import Settings
from realty_api.database import Database
from realty_api.main import create_app
from realty_api.models.property import Property
from realty_api.models.user import User
from realty_api.repositories.property import PropertySearchFilters, CREATOR_SUMMARY_FIELDS, ALL_PROPERTY_TYPES
from realty_api.services.media import MediaService
from realty_api.services.property import PropertyService
from realty_api.services.user import UserService
from realty_api.utils.dependencies import get_property_service, get_user_service
from realty_api.utils.exceptions import UpstreamError
from realty_api.utils.validators import ValidationUtils


PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="


def make_settings(**overrides) -> Settings:
    """Settings built from keyword arguments only, never from .env."""
    values = {
        "port": 8080,
        "mongodb_url": "mongodb://localhost:27017/realty_test",
        "cloudinary_cloud_name": "demo",
        "cloudinary_api_key": "test-key",
        "cloudinary_api_secret": "test-secret",
        "environment": "testing",
        "max_request_size": 64 * 1024,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class InMemoryStore:
    """Both collections as dicts keyed by ObjectId."""

    def __init__(self):
        self.users: Dict[ObjectId, Dict[str, Any]] = {}
        self.properties: Dict[ObjectId, Dict[str, Any]] = {}

    def snapshot(self) -> Tuple[Dict, Dict]:
        return copy.deepcopy(self.users), copy.deepcopy(self.properties)

    def restore(self, snapshot: Tuple[Dict, Dict]) -> None:
        self.users, self.properties = snapshot


class FakeDatabase(Database):
    """
    Database gateway over an InMemoryStore.
    A transaction snapshots the store and puts it back if the block raises.
    """

    def __init__(self, settings: Settings, store: InMemoryStore):
        super().__init__(settings)
        self.store = store
        self.available = True
        self.transactions_started = 0
        self.transactions_aborted = 0

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def ping(self) -> bool:
        return self.available

    @asynccontextmanager
    async def transaction(self):
        self.transactions_started += 1
        snapshot = self.store.snapshot()
        try:
            yield object()
        except Exception:
            self.transactions_aborted += 1
            self.store.restore(snapshot)
            raise


class FakeUserRepository:
    """UserRepository interface over the in-memory store."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def _expand(self, user: Dict[str, Any]) -> Dict[str, Any]:
        user = copy.deepcopy(user)
        user["allProperties"] = [
            copy.deepcopy(self.store.properties[property_id])
            for property_id in user.get("allProperties", [])
            if property_id in self.store.properties
        ]
        return user

    async def create_user(self, user_obj: User) -> Dict[str, Any]:
        document = {"_id": ObjectId(), **user_obj.to_document()}
        self.store.users[document["_id"]] = document
        return copy.deepcopy(document)

    async def get_by_email(self, email: str, session=None) -> Optional[Dict[str, Any]]:
        for user in self.store.users.values():
            if user["email"] == email:
                return copy.deepcopy(user)
        return None

    async def add_owned_property(self, user_id: ObjectId, property_id: ObjectId, session=None) -> bool:
        user = self.store.users.get(user_id)
        if user is None:
            return False
        user["allProperties"].append(property_id)
        return True

    async def list_users_with_properties(self) -> List[Dict[str, Any]]:
        return [self._expand(user) for _, user in sorted(self.store.users.items())]

    async def get_user_with_properties(self, user_id) -> Optional[Dict[str, Any]]:
        object_id = ValidationUtils.parse_object_id(user_id)
        if object_id is None or object_id not in self.store.users:
            return None
        return self._expand(self.store.users[object_id])


class FakePropertyRepository:
    """PropertyRepository interface over the in-memory store."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.last_search: Optional[Dict[str, Any]] = None

    def _with_creator(self, document: Dict[str, Any], summary: bool) -> Dict[str, Any]:
        document = copy.deepcopy(document)
        creator = self.store.users.get(document.get("creator"))
        if creator is None:
            document.pop("creator", None)
        elif summary:
            document["creator"] = {"_id": creator["_id"], **{f: creator.get(f) for f in CREATOR_SUMMARY_FIELDS}}
        else:
            document["creator"] = copy.deepcopy(creator)
        return document

    @staticmethod
    def _matches(document: Dict[str, Any], filters: PropertySearchFilters) -> bool:
        if filters.property_type and filters.property_type != ALL_PROPERTY_TYPES:
            if document["propertyType"] != filters.property_type:
                return False
        if filters.title_like and filters.title_like.lower() not in document["title"].lower():
            return False
        if filters.creator:
            creator_id = ValidationUtils.parse_object_id(filters.creator)
            if document["creator"] != (creator_id or filters.creator):
                return False
        return True

    async def create_property(self, property_obj: Property, session=None) -> ObjectId:
        property_id = ObjectId()
        self.store.properties[property_id] = {"_id": property_id, **property_obj.to_document()}
        return property_id

    async def search_properties(self, filters, skip=0, limit=10, sort_by="_id", sort_direction=1):
        self.last_search = {
            "filters": filters,
            "skip": skip,
            "limit": limit,
            "sort_by": sort_by,
            "sort_direction": sort_direction,
        }
        matches = [doc for doc in self.store.properties.values() if self._matches(doc, filters)]
        matches.sort(
            key=lambda doc: (doc.get(sort_by), doc["_id"]),
            reverse=sort_direction == DESCENDING
        )
        page = matches[skip:skip + limit]
        return [self._with_creator(doc, summary=True) for doc in page], len(matches)

    async def get_property_with_creator(self, property_id) -> Optional[Dict[str, Any]]:
        object_id = ValidationUtils.parse_object_id(property_id)
        if object_id is None or object_id not in self.store.properties:
            return None
        return self._with_creator(self.store.properties[object_id], summary=False)

    async def update_property(self, property_id, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        object_id = ValidationUtils.parse_object_id(property_id)
        if object_id is None or object_id not in self.store.properties:
            return None
        self.store.properties[object_id].update({k: v for k, v in update_data.items() if v is not None})
        return await self.get_property_with_creator(object_id)

    async def delete_property(self, property_id) -> bool:
        object_id = ValidationUtils.parse_object_id(property_id)
        if object_id is None:
            return False
        return self.store.properties.pop(object_id, None) is not None


class FakeMediaService(MediaService):
    """Records uploads and hands back predictable hosted URLs."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.uploads: List[str] = []
        self.fail_with: Optional[str] = None

    async def upload(self, payload: str) -> str:
        if self.fail_with:
            raise UpstreamError("Image upload failed", reason=self.fail_with)
        self.uploads.append(payload)
        return f"https://res.cloudinary.com/demo/image/upload/v1/photo_{len(self.uploads)}.png"


class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        name: str = "Test User",
        email: Optional[str] = None,
        avatar: Optional[str] = "https://example.com/avatar.png"
    ) -> Dict[str, Any]:
        return {
            "name": name,
            "email": email or f"user_{uuid.uuid4().hex[:8]}@example.com",
            "avatar": avatar,
        }

    @staticmethod
    def create_user(store: InMemoryStore, **kwargs) -> Dict[str, Any]:
        user = User(**UserFactory.create_user_data(**kwargs))
        document = {"_id": ObjectId(), **user.to_document()}
        store.users[document["_id"]] = document
        return document


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        email: Optional[str] = "owner@example.com",
        title: str = "Lake House",
        property_type: str = "House",
        price: float = 250000,
        photo: Optional[str] = PNG_DATA_URI,
        **kwargs
    ) -> Dict[str, Any]:
        data = {
            "title": title,
            "description": "Quiet cabin with a private dock.",
            "propertyType": property_type,
            "location": "Lake Tahoe, CA",
            "price": price,
            "photo": photo,
            "email": email,
        }
        data.update(kwargs)
        return data

    @staticmethod
    def create_property(
        store: InMemoryStore,
        creator: Dict[str, Any],
        title: str = "Lake House",
        property_type: str = "House",
        price: float = 250000,
        photo: str = "https://res.cloudinary.com/demo/image/upload/v1/seed.png"
    ) -> Dict[str, Any]:
        property_obj = Property(
            title=title,
            description="Quiet cabin with a private dock.",
            property_type=property_type,
            location="Lake Tahoe, CA",
            price=price,
            photo=photo,
            creator=creator["_id"]
        )
        document = {"_id": ObjectId(), **property_obj.to_document()}
        store.properties[document["_id"]] = document
        store.users[creator["_id"]]["allProperties"].append(document["_id"])
        return document


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def database(settings: Settings, store: InMemoryStore) -> FakeDatabase:
    return FakeDatabase(settings, store)


@pytest.fixture
def media_service(settings: Settings) -> FakeMediaService:
    return FakeMediaService(settings)


@pytest.fixture
def property_repository(store: InMemoryStore) -> FakePropertyRepository:
    return FakePropertyRepository(store)


@pytest.fixture
def user_repository(store: InMemoryStore) -> FakeUserRepository:
    return FakeUserRepository(store)


@pytest.fixture
def property_service(database, media_service, property_repository, user_repository) -> PropertyService:
    """Create a property service over the in-memory store."""
    return PropertyService(
        database,
        media_service,
        default_page_size=10,
        property_repo=property_repository,
        user_repo=user_repository
    )


@pytest.fixture
def user_service(database, user_repository) -> UserService:
    """Create a user service over the in-memory store."""
    return UserService(database, user_repo=user_repository)


@pytest.fixture
def app(settings, database, media_service, property_service, user_service):
    application = create_app(settings, database=database, media_service=media_service)
    application.dependency_overrides[get_property_service] = lambda: property_service
    application.dependency_overrides[get_user_service] = lambda: user_service
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """Test client; the lifespan is not entered so no MongoDB is needed."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def test_owner(store: InMemoryStore) -> Dict[str, Any]:
    return UserFactory.create_user(store, name="Olivia Owner", email="owner@example.com")


@pytest.fixture
def test_property(store: InMemoryStore, test_owner: Dict[str, Any]) -> Dict[str, Any]:
    return PropertyFactory.create_property(store, test_owner)
