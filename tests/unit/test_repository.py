"""
Unit tests for docstore/repositories/base.py

Runs the generic Repository against the in-memory store (deterministic
clock, one second per tick) and checks:
- Timestamp injection on add/set/update
- Identifier exclusion from write bodies
- Absent vs null payload fields
- Not-found contract for single, batch and filtered reads
- Idempotent delete
- Filter conjunction, ordering and limits
"""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from bson.datetime_ms import DatetimeMS

from docstore import (
    UNSET,
    DocumentNotFoundError,
    Filter,
    MissingDocumentError,
    Query,
    Repository,
    increment,
)
from docstore.documents.field_values import SERVER_TIMESTAMP


def _spy(store, method):
    """Wrap a store coroutine so its calls can be inspected."""
    spy = AsyncMock(wraps=getattr(store, method))
    setattr(store, method, spy)
    return spy


# =============================================================================
# WRITES
# =============================================================================


class TestAdd:

    @pytest.mark.asyncio
    async def test_add_returns_new_id(self, users):
        user_id = await users.add({"name": "Ada"})

        user = await users.get_by_id(user_id)

        assert user.id == user_id
        assert user.name == "Ada"

    @pytest.mark.asyncio
    async def test_add_injects_server_timestamp_and_null_updated_at(self, store, users):
        create = _spy(store, "create")

        user_id = await users.add({"name": "Ada"})

        body = create.await_args.args[1]
        assert body["created_at"] is SERVER_TIMESTAMP
        assert body["updated_at"] is None

        user = await users.get_by_id(user_id)
        assert user.created_at == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert user.updated_at is None

    @pytest.mark.asyncio
    async def test_add_never_writes_id(self, store, users):
        create = _spy(store, "create")

        user_id = await users.add({"id": "client-chosen", "name": "Ada"})

        assert "id" not in create.await_args.args[1]
        assert user_id != "client-chosen"

    @pytest.mark.asyncio
    async def test_add_without_timestamps(self, store, raw_users):
        user_id = await raw_users.add({"name": "Ada"}, timestamps=False)

        stored = (await store.get("users", user_id)).data

        assert stored == {"name": "Ada"}

    @pytest.mark.asyncio
    async def test_add_accepts_model_payload(self, users, user_model):
        user_id = await users.add(user_model(name="Ada", status="active"))

        user = await users.get_by_id(user_id)

        assert user.status == "active"
        assert user.age is None

    @pytest.mark.asyncio
    async def test_add_rejects_scalar_payload(self, users):
        with pytest.raises(TypeError):
            await users.add("Ada")


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_sets_newer_updated_at_and_keeps_created_at(self, users):
        user_id = await users.add({"name": "Ada"})
        created = (await users.get_by_id(user_id)).created_at

        await users.update({"id": user_id, "name": "Ada L."})

        user = await users.get_by_id(user_id)
        assert user.name == "Ada L."
        assert user.created_at == created
        assert user.updated_at > user.created_at

    @pytest.mark.asyncio
    async def test_update_ignores_created_at_in_payload(self, store, users):
        user_id = await users.add({"name": "Ada"})
        update = _spy(store, "update")

        await users.update({
            "id": user_id,
            "created_at": datetime(1999, 1, 1, tzinfo=timezone.utc),
        })

        body = update.await_args.args[2]
        assert "created_at" not in body
        assert "id" not in body
        assert body["updated_at"] is SERVER_TIMESTAMP

    @pytest.mark.asyncio
    async def test_update_distinguishes_absent_from_null(self, users):
        user_id = await users.add({"name": "Ada", "status": "active", "age": 36})

        await users.update({"id": user_id, "status": None, "age": UNSET})

        user = await users.get_by_id(user_id)
        assert user.status is None
        assert user.age == 36

    @pytest.mark.asyncio
    async def test_update_without_timestamps(self, store, users):
        user_id = await users.add({"name": "Ada"})

        await users.update({"id": user_id, "name": "B"}, timestamps=False)

        assert (await store.get("users", user_id)).data["updated_at"] is None

    @pytest.mark.asyncio
    async def test_update_with_increment(self, users):
        user_id = await users.add({"name": "Ada", "age": 36})

        await users.update({"id": user_id, "age": increment()})

        assert (await users.get_by_id(user_id)).age == 37

    @pytest.mark.asyncio
    async def test_update_requires_id(self, users):
        with pytest.raises(ValueError, match="update requires"):
            await users.update({"name": "Ada"})

    @pytest.mark.asyncio
    async def test_update_missing_document_propagates_store_error(self, users):
        with pytest.raises(MissingDocumentError):
            await users.update({"id": "ghost", "name": "Ada"})

    @pytest.mark.asyncio
    async def test_update_missing_document_logs_warning(self, users, caplog):
        with caplog.at_level(logging.WARNING, logger="docstore.repositories.base"):
            with pytest.raises(MissingDocumentError):
                await users.update({"id": "ghost", "name": "Ada"})

        assert "[collection:users] Update of missing document ghost" in caplog.text


class TestSet:

    @pytest.mark.asyncio
    async def test_set_creates_at_known_id(self, users):
        await users.set({"id": "ada", "name": "Ada"})

        user = await users.get_by_id("ada")

        assert user.name == "Ada"
        assert user.created_at is not None
        assert user.updated_at is None

    @pytest.mark.asyncio
    async def test_set_replaces(self, users):
        await users.set({"id": "ada", "name": "Ada", "status": "active"})
        await users.set({"id": "ada", "name": "Ada"})

        assert (await users.get_by_id("ada")).status is None

    @pytest.mark.asyncio
    async def test_set_merge_keeps_other_fields(self, users):
        await users.set({"id": "ada", "name": "Ada", "status": "active"})
        await users.set({"id": "ada", "age": 36}, merge=True, timestamps=False)

        user = await users.get_by_id("ada")
        assert user.status == "active"
        assert user.age == 36

    @pytest.mark.asyncio
    async def test_set_never_writes_id(self, store, users):
        set_ = _spy(store, "set")

        await users.set({"id": "ada", "name": "Ada"})

        assert set_.await_args.args[1] == "ada"
        assert "id" not in set_.await_args.args[2]

    @pytest.mark.asyncio
    async def test_set_requires_id(self, users):
        with pytest.raises(ValueError, match="set requires"):
            await users.set({"name": "Ada"})


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_twice_succeeds(self, users):
        user_id = await users.add({"name": "Ada"})

        await users.delete(user_id)
        await users.delete(user_id)

        with pytest.raises(DocumentNotFoundError):
            await users.get_by_id(user_id)


# =============================================================================
# READS
# =============================================================================


class TestGetById:

    @pytest.mark.asyncio
    async def test_missing_raises_not_found(self, users):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await users.get_by_id("ghost")

        assert exc_info.value.code == "application/document-not-found"
        assert exc_info.value.message == "Document not found."

    @pytest.mark.asyncio
    async def test_raw_read_keeps_store_timestamps(self, raw_users):
        user_id = await raw_users.add({"name": "Ada"})

        raw = await raw_users.get_by_id(user_id, timestamps=False)

        assert isinstance(raw["created_at"], DatetimeMS)
        assert raw["id"] == user_id

    @pytest.mark.asyncio
    async def test_dict_records_without_model(self, raw_users):
        user_id = await raw_users.add({"name": "Ada"})

        record = await raw_users.get_by_id(user_id)

        assert record == {
            "id": user_id,
            "name": "Ada",
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
            "updated_at": None,
        }

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self, store, users):
        store.get = AsyncMock(side_effect=ConnectionError("store down"))

        with pytest.raises(ConnectionError, match="store down"):
            await users.get_by_id("ada")


class TestGetByIds:

    @pytest.mark.asyncio
    async def test_preserves_input_order(self, users):
        for name in ("a", "b", "c"):
            await users.set({"id": name, "name": name.upper()})

        records = await users.get_by_ids(["c", "a", "b"])

        assert [r.id for r in records] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_any_missing_fails_without_partial_result(self, users):
        await users.set({"id": "A", "name": "present"})

        with pytest.raises(DocumentNotFoundError):
            await users.get_by_ids(["A", "B"])

    @pytest.mark.asyncio
    async def test_empty_ids(self, users):
        assert await users.get_by_ids([]) == []


class TestGetAll:

    @pytest.mark.asyncio
    async def test_empty_collection_is_empty_list(self, users):
        assert await users.get_all() == []

    @pytest.mark.asyncio
    async def test_returns_every_record(self, users):
        await users.add({"name": "Ada"})
        await users.add({"name": "Bob"})

        assert sorted(u.name for u in await users.get_all()) == ["Ada", "Bob"]


class TestFilteredReads:

    @pytest_asyncio.fixture
    async def populated(self, users):
        rows = [
            ("ann", "active", 30),
            ("bob", "active", 17),
            ("cid", "blocked", 45),
            ("dee", "active", 18),
        ]
        for user_id, status, age in rows:
            await users.set({"id": user_id, "name": user_id, "status": status, "age": age})
        return users

    @pytest.mark.asyncio
    async def test_get_where(self, populated):
        records = await populated.get_where("status", "==", "blocked")

        assert [r.id for r in records] == ["cid"]

    @pytest.mark.asyncio
    async def test_get_where_empty_returns_list_by_default(self, populated):
        assert await populated.get_where("status", "==", "gone") == []

    @pytest.mark.asyncio
    async def test_get_where_raise_if_empty(self, populated):
        with pytest.raises(DocumentNotFoundError):
            await populated.get_where("status", "==", "gone", raise_if_empty=True)

    @pytest.mark.asyncio
    async def test_get_where_many_raise_if_empty(self, populated):
        with pytest.raises(DocumentNotFoundError):
            await populated.get_where_many(
                [("status", "==", "active"), ("age", ">", 99)],
                raise_if_empty=True,
            )

    @pytest.mark.asyncio
    async def test_get_where_many_is_intersection(self, populated):
        active = {r.id for r in await populated.get_where("status", "==", "active")}
        adult = {r.id for r in await populated.get_where("age", ">=", 18)}

        both = await populated.get_where_many([
            Filter("status", "==", "active"),
            ("age", ">=", 18),
        ])

        assert {r.id for r in both} == active & adult == {"ann", "dee"}

    @pytest.mark.asyncio
    async def test_get_where_many_empty_filters_scans_collection(self, populated):
        assert len(await populated.get_where_many([])) == 4

    @pytest.mark.asyncio
    async def test_order_and_limit(self, populated):
        records = await populated.get_where("status", "==", "active", limit=2, order_by="age", direction="desc")

        assert [r.id for r in records] == ["ann", "dee"]

    @pytest.mark.asyncio
    async def test_get_one_where(self, populated):
        youngest = await populated.get_one_where("status", "==", "active", order_by="age")

        assert youngest.id == "bob"

    @pytest.mark.asyncio
    async def test_get_one_where_none(self, populated):
        assert await populated.get_one_where("status", "==", "gone") is None

    @pytest.mark.asyncio
    async def test_get_one_where_many(self, populated):
        record = await populated.get_one_where_many(
            [("status", "==", "active"), ("age", ">=", 18)],
            order_by="age",
            direction="desc",
        )

        assert record.id == "ann"

    @pytest.mark.asyncio
    async def test_get_one_where_many_none(self, populated):
        assert await populated.get_one_where_many([("age", ">", 99)]) is None

    @pytest.mark.asyncio
    async def test_order_by_field_holding_mixed_types(self, raw_users):
        await raw_users.set({"id": "1", "rank": 3})
        await raw_users.set({"id": "2", "rank": "high"})

        records = await raw_users.get_where_many([], order_by="rank")

        assert [r["id"] for r in records] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_null_filter_skips_documents_without_field(self, raw_users):
        await raw_users.set({"id": "cleared", "nickname": None})
        await raw_users.set({"id": "absent"})

        records = await raw_users.get_where("nickname", "==", None)

        assert [r["id"] for r in records] == ["cleared"]

    @pytest.mark.asyncio
    async def test_prebuilt_query(self, populated):
        records = await populated.query(Query.build(("age", "<", 18)))

        assert [r.id for r in records] == ["bob"]


class TestComposition:
    """Collection-specific lookups wrap a Repository instead of subclassing it."""

    class ActiveUsers:
        def __init__(self, repository: Repository):
            self._repository = repository

        async def adults(self):
            return await self._repository.get_where_many(
                [("status", "==", "active"), ("age", ">=", 18)],
                order_by="age",
            )

    @pytest.mark.asyncio
    async def test_wrapper_uses_shared_filters(self, users):
        await users.set({"id": "a", "name": "a", "status": "active", "age": 40})
        await users.set({"id": "b", "name": "b", "status": "active", "age": 20})
        await users.set({"id": "c", "name": "c", "status": "active", "age": 10})

        adults = await self.ActiveUsers(users).adults()

        assert [u.id for u in adults] == ["b", "a"]

    def test_collection_resolved_by_name(self, store, users):
        assert users.collection_name == "users"
        assert users.store is store
