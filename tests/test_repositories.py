"""
Tests for repository classes.
The pymongo collection is mocked so these check the filters, pipelines and
update documents sent to MongoDB.
"""

import pytest
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from unittest.mock import AsyncMock, MagicMock, Mock

from realty_api.models.property import Property
from realty_api.models.user import User
from realty_api.repositories.base import BaseRepository
from realty_api.repositories.property import PropertyRepository, PropertySearchFilters
from realty_api.repositories.user import UserRepository


def make_collection(aggregate_results=None, count=0):
    """Mock AsyncCollection whose aggregate cursor yields the given documents."""
    cursor = Mock()
    cursor.to_list = AsyncMock(return_value=aggregate_results or [])

    collection = MagicMock()
    collection.aggregate = AsyncMock(return_value=cursor)
    collection.count_documents = AsyncMock(return_value=count)
    collection.insert_one = AsyncMock(return_value=Mock(inserted_id=ObjectId()))
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock(return_value=Mock(deleted_count=1))
    collection.update_one = AsyncMock(return_value=Mock(matched_count=1))
    return collection


def make_database(collection):
    database = Mock()
    database.collection.return_value = collection
    return database


class TestPropertySearchFilters:
    """Filter document construction."""

    def test_empty_filters(self):
        assert PropertySearchFilters().to_query() == {}

    def test_all_type_is_no_filter(self):
        assert PropertySearchFilters(property_type="All").to_query() == {}

    def test_exact_type(self):
        assert PropertySearchFilters(property_type="Villa").to_query() == {"propertyType": "Villa"}

    def test_title_is_case_insensitive_literal_substring(self):
        query = PropertySearchFilters(title_like="2+beds(new)").to_query()

        assert query["title"] == {"$regex": r"2\+beds\(new\)", "$options": "i"}

    def test_creator_is_object_id(self):
        creator_id = ObjectId()

        query = PropertySearchFilters(creator=str(creator_id)).to_query()

        assert query == {"creator": creator_id}

    def test_unparsable_creator_is_compared_verbatim(self):
        assert PropertySearchFilters(creator="nobody").to_query() == {"creator": "nobody"}


class TestPropertyRepository:
    """Property listing, detail and update pipelines."""

    @pytest.mark.asyncio
    async def test_search_counts_with_same_filter(self):
        collection = make_collection(aggregate_results=[{"_id": ObjectId()}], count=7)
        repository = PropertyRepository(make_database(collection))
        filters = PropertySearchFilters(property_type="House", title_like="lake")

        properties, total = await repository.search_properties(filters, skip=5, limit=2)

        assert total == 7
        assert len(properties) == 1
        count_filter = collection.count_documents.call_args.args[0]
        pipeline = collection.aggregate.call_args.args[0]
        assert pipeline[0] == {"$match": count_filter}
        assert pipeline[1] == {"$sort": {"_id": ASCENDING}}
        assert pipeline[2] == {"$skip": 5}
        assert pipeline[3] == {"$limit": 2}

    @pytest.mark.asyncio
    async def test_search_sort_has_id_tiebreaker(self):
        collection = make_collection()
        repository = PropertyRepository(make_database(collection))

        await repository.search_properties(
            PropertySearchFilters(), sort_by="price", sort_direction=DESCENDING
        )

        pipeline = collection.aggregate.call_args.args[0]
        assert pipeline[1] == {"$sort": {"price": DESCENDING, "_id": DESCENDING}}

    @pytest.mark.asyncio
    async def test_search_joins_creator_summary(self):
        collection = make_collection()
        repository = PropertyRepository(make_database(collection))

        await repository.search_properties(PropertySearchFilters())

        pipeline = collection.aggregate.call_args.args[0]
        lookup = pipeline[4]["$lookup"]
        assert lookup["from"] == User.collection_name
        assert lookup["pipeline"][-1] == {"$project": {"name": 1, "email": 1, "avatar": 1}}
        assert pipeline[5] == {"$unwind": {"path": "$creator", "preserveNullAndEmptyArrays": True}}

    @pytest.mark.asyncio
    async def test_get_property_with_full_creator(self):
        property_id = ObjectId()
        document = {"_id": property_id, "title": "Lake House"}
        collection = make_collection(aggregate_results=[document])
        repository = PropertyRepository(make_database(collection))

        result = await repository.get_property_with_creator(str(property_id))

        assert result == document
        pipeline = collection.aggregate.call_args.args[0]
        assert pipeline[0] == {"$match": {"_id": property_id}}
        assert pipeline[2]["$lookup"]["localField"] == "creator"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("property_id", ["not-an-id", "undefined", ""])
    async def test_get_property_invalid_id(self, property_id):
        collection = make_collection()
        repository = PropertyRepository(make_database(collection))

        assert await repository.get_property_with_creator(property_id) is None
        collection.aggregate.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_property_in_session(self):
        collection = make_collection()
        repository = PropertyRepository(make_database(collection))
        creator_id = ObjectId()
        session = object()
        property_obj = Property(
            title="Lake House",
            description="Quiet cabin",
            property_type="House",
            location="Lake Tahoe, CA",
            price=250000,
            photo="https://res.cloudinary.com/demo/x.png",
            creator=creator_id
        )

        property_id = await repository.create_property(property_obj, session=session)

        assert property_id == collection.insert_one.return_value.inserted_id
        document = collection.insert_one.call_args.args[0]
        assert document["propertyType"] == "House"
        assert document["creator"] == creator_id
        assert collection.insert_one.call_args.kwargs["session"] is session

    @pytest.mark.asyncio
    async def test_update_property_sets_fields_and_refetches(self):
        property_id = ObjectId()
        collection = make_collection(aggregate_results=[{"_id": property_id, "title": "New"}])
        collection.find_one_and_update = AsyncMock(return_value={"_id": property_id, "title": "New"})
        repository = PropertyRepository(make_database(collection))

        result = await repository.update_property(str(property_id), {"title": "New", "photo": None})

        assert result["title"] == "New"
        args, kwargs = collection.find_one_and_update.call_args
        assert args[0] == {"_id": property_id}
        assert args[1] == {"$set": {"title": "New"}}
        assert kwargs["return_document"] == ReturnDocument.AFTER

    @pytest.mark.asyncio
    async def test_update_property_not_found(self):
        collection = make_collection()
        repository = PropertyRepository(make_database(collection))

        assert await repository.update_property(str(ObjectId()), {"title": "New"}) is None
        collection.aggregate.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_property(self):
        collection = make_collection()
        repository = PropertyRepository(make_database(collection))
        property_id = ObjectId()

        assert await repository.delete_property(str(property_id)) is True
        collection.delete_one.assert_awaited_once_with({"_id": property_id}, session=None)

        collection.delete_one = AsyncMock(return_value=Mock(deleted_count=0))
        assert await repository.delete_property(str(property_id)) is False

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self):
        collection = make_collection()
        collection.count_documents = AsyncMock(side_effect=RuntimeError("boom"))
        repository = PropertyRepository(make_database(collection))

        with pytest.raises(RuntimeError):
            await repository.search_properties(PropertySearchFilters())


class TestUserRepository:
    """User lookups and owned-property bookkeeping."""

    @pytest.mark.asyncio
    async def test_create_user(self):
        collection = make_collection()
        repository = UserRepository(make_database(collection))

        user = await repository.create_user(User(name="Ada", email="ada@example.com"))

        assert user["_id"] == collection.insert_one.return_value.inserted_id
        assert user["allProperties"] == []
        assert user["avatar"] is None

    @pytest.mark.asyncio
    async def test_get_by_email(self):
        collection = make_collection()
        collection.find_one = AsyncMock(return_value={"_id": ObjectId(), "email": "ada@example.com"})
        repository = UserRepository(make_database(collection))
        session = object()

        user = await repository.get_by_email("ada@example.com", session=session)

        assert user["email"] == "ada@example.com"
        collection.find_one.assert_awaited_once_with({"email": "ada@example.com"}, session=session)

    @pytest.mark.asyncio
    async def test_add_owned_property_appends(self):
        collection = make_collection()
        repository = UserRepository(make_database(collection))
        user_id, property_id = ObjectId(), ObjectId()
        session = object()

        assert await repository.add_owned_property(user_id, property_id, session=session) is True
        collection.update_one.assert_awaited_once_with(
            {"_id": user_id},
            {"$push": {"allProperties": property_id}},
            session=session
        )

    @pytest.mark.asyncio
    async def test_get_user_keeps_creation_order_and_drops_deleted(self):
        first, second, deleted = ObjectId(), ObjectId(), ObjectId()
        user_id = ObjectId()
        joined = {
            "_id": user_id,
            "name": "Ada",
            "allProperties": [second, deleted, first],
            "_ownedPropertyDocs": [{"_id": first, "title": "A"}, {"_id": second, "title": "B"}],
        }
        collection = make_collection(aggregate_results=[joined])
        repository = UserRepository(make_database(collection))

        user = await repository.get_user_with_properties(str(user_id))

        assert [p["title"] for p in user["allProperties"]] == ["B", "A"]
        assert "_ownedPropertyDocs" not in user
        lookup = collection.aggregate.call_args.args[0][2]["$lookup"]
        assert lookup["from"] == Property.collection_name
        assert lookup["localField"] == "allProperties"

    @pytest.mark.asyncio
    async def test_get_user_not_found(self):
        collection = make_collection(aggregate_results=[])
        repository = UserRepository(make_database(collection))

        assert await repository.get_user_with_properties(str(ObjectId())) is None
        assert await repository.get_user_with_properties("undefined") is None
        assert collection.aggregate.await_count == 1

    @pytest.mark.asyncio
    async def test_list_users(self):
        users = [
            {"_id": ObjectId(), "name": "A", "allProperties": [], "_ownedPropertyDocs": []},
            {"_id": ObjectId(), "name": "B"},
        ]
        collection = make_collection(aggregate_results=users)
        repository = UserRepository(make_database(collection))

        result = await repository.list_users_with_properties()

        assert [u["allProperties"] for u in result] == [[], []]


class TestBaseRepository:
    """Shared CRUD behaviour."""

    @pytest.mark.asyncio
    async def test_update_with_no_values_returns_current(self):
        collection = make_collection()
        collection.find_one = AsyncMock(return_value={"_id": ObjectId()})
        repository = BaseRepository(make_database(collection))

        result = await repository.update(str(ObjectId()), {"title": None})

        assert result is not None
        collection.find_one_and_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_count(self):
        collection = make_collection(count=3)
        repository = BaseRepository(make_database(collection))

        assert await repository.count() == 3
        collection.count_documents.assert_awaited_once_with({})
