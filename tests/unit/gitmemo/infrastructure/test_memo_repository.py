"""
Unit tests for GitHubMemoRepository (the document store) over an
in-memory object client.
"""

import json
from datetime import datetime

import pytest

from gitmemo.domain.errors import ConflictError, NotFoundError, ValidationError
from gitmemo.domain.memos.repositories import AssetCleanupReport
from gitmemo.infrastructure.memos import GitHubMemoRepository

MARCH = "data/memos/memos-202403.json"
FEBRUARY = "data/memos/memos-202402.json"


def shard_json(*records):
    return json.dumps(list(records), ensure_ascii=False, indent=2) + "\n"


def record(memo_id, created, content="note", images=None, **extra):
    data = {"id": memo_id, "content": content, "images": images or [], "createdTime": created}
    data.update(extra)
    return data


class RecordingCleaner:
    def __init__(self):
        self.calls = []

    async def delete_many(self, paths, trace_id=None):
        self.calls.append(list(paths))
        return AssetCleanupReport(deleted=list(paths))


@pytest.fixture
def cleaner():
    return RecordingCleaner()


@pytest.fixture
def repository(fake_client, resolver, layout, cleaner):
    return GitHubMemoRepository(fake_client, resolver, layout, asset_cleaner=cleaner)


@pytest.fixture
def checked_repository(fake_client, resolver, layout, cleaner):
    return GitHubMemoRepository(
        fake_client, resolver, layout, asset_cleaner=cleaner,
        write_mode="version_checked", conflict_retries=2,
    )


class TestReads:
    @pytest.mark.asyncio
    async def test_absent_shard_reads_as_empty(self, repository):
        shard = await repository.get_shard("202403")
        assert shard.records == []
        assert shard.exists is False

    @pytest.mark.asyncio
    async def test_empty_existing_shard_is_not_an_error(self, repository, fake_client):
        fake_client.seed(MARCH, "[]\n")
        shard = await repository.get_shard("202403")

        assert shard.records == []
        assert shard.exists is True

    @pytest.mark.asyncio
    async def test_records_sorted_descending(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(
            record("m1", "2024-03-01 10:00:00"),
            record("m3", "2024-03-20 10:00:00"),
            record("m2", "2024-03-05 10:00:00"),
        ))

        memos = await repository.list_month("202403")
        assert [m.id for m in memos] == ["m3", "m2", "m1"]

    @pytest.mark.asyncio
    async def test_malformed_shard_is_validation_error(self, repository, fake_client):
        fake_client.seed(MARCH, "{not json")
        with pytest.raises(ValidationError, match="Malformed shard") as exc_info:
            await repository.get_shard("202403")
        assert exc_info.value.context["shard"] == "202403"

    @pytest.mark.asyncio
    async def test_invalid_key(self, repository):
        assert await repository.list_month("2024-3") == []
        with pytest.raises(ValidationError, match="Invalid shard key"):
            await repository.get_shard("202499")

    @pytest.mark.asyncio
    async def test_list_months_keeps_key_order(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("m3", "2024-03-02 10:00:00")))
        fake_client.seed(FEBRUARY, shard_json(record("m2", "2024-02-02 10:00:00")))

        result = await repository.list_months(["202403", "202402", "202401"])

        assert list(result) == ["202403", "202402", "202401"]
        assert result["202401"] == []
        assert result["202402"][0].id == "m2"


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_into_new_shard(self, repository, fake_client):
        memo = await repository.create("hello", memo_id="memo_1")

        assert memo.created_time == "2024-03-01 10:00:00"
        stored = json.loads(fake_client.text(MARCH))
        assert stored == [{"id": "memo_1", "content": "hello", "images": [], "createdTime": "2024-03-01 10:00:00"}]
        assert fake_client.messages == [f"docs: update {MARCH}"]

    @pytest.mark.asyncio
    async def test_create_prepends_and_keeps_existing(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("old", "2024-03-01 09:00:00")))

        await repository.create("newer", memo_id="new")

        assert [r["id"] for r in json.loads(fake_client.text(MARCH))] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_generated_id(self, repository):
        memo = await repository.create("hello")

        prefix, stamp, suffix = memo.id.split("_")
        assert prefix == "memo"
        assert stamp == "20240301100000"
        assert len(suffix) == 4

    @pytest.mark.asyncio
    async def test_shard_follows_server_clock(self, repository, fake_client, clock):
        clock.moment = datetime(2024, 2, 29, 23, 59, 59)
        await repository.create("leap", memo_id="leap")

        assert FEBRUARY in fake_client.objects
        assert MARCH not in fake_client.objects

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("memo_1", "2024-03-01 09:00:00")))
        with pytest.raises(ValidationError, match="already exists"):
            await repository.create("again", memo_id="memo_1")

    @pytest.mark.asyncio
    async def test_unicode_content_written_verbatim(self, repository, fake_client):
        await repository.create("你好", memo_id="m")
        assert '"content": "你好"' in fake_client.text(MARCH)


class TestUpdate:
    @pytest.mark.asyncio
    async def test_removed_images_scenario(self, repository, clock):
        await repository.create("hello", memo_id="memo_1")
        clock.moment = datetime(2024, 3, 2, 8, 0, 0)

        first = await repository.update("memo_1", "2024-03-01 10:00:00", "hello", ["a.webp"])
        second = await repository.update("memo_1", "2024-03-01 10:00:00", "hello", [])

        assert first.removed_images == []
        assert second.removed_images == ["a.webp"]
        assert second.memo.images == []
        assert second.memo.updated_time == "2024-03-02 08:00:00"
        assert second.memo.created_time == "2024-03-01 10:00:00"

    @pytest.mark.asyncio
    async def test_update_keeps_position_and_images_when_omitted(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(
            record("m2", "2024-03-05 10:00:00"),
            record("m1", "2024-03-01 10:00:00", images=["x.webp"]),
        ))

        result = await repository.update("m1", "2024-03-01 10:00:00", "edited")

        stored = json.loads(fake_client.text(MARCH))
        assert [r["id"] for r in stored] == ["m2", "m1"]
        assert stored[1]["content"] == "edited"
        assert stored[1]["images"] == ["x.webp"]
        assert stored[1]["updatedTime"] == "2024-03-01 10:00:00"
        assert result.removed_images == []

    @pytest.mark.asyncio
    async def test_update_missing_memo(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 10:00:00")))
        with pytest.raises(NotFoundError) as exc_info:
            await repository.update("nope", "2024-03-01 10:00:00", "x")

        assert exc_info.value.context["operation"] == "update_memo"
        assert ("put", MARCH) not in fake_client.calls

    @pytest.mark.asyncio
    async def test_bad_created_time(self, repository):
        with pytest.raises(ValidationError) as exc_info:
            await repository.update("m1", "not a time", "x")
        assert exc_info.value.context["memo_id"] == "m1"

    @pytest.mark.asyncio
    async def test_update_with_assets_cascades(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 10:00:00", images=["a.webp", "b.webp"])))

        result = await repository.update_with_assets("m1", "2024-03-01 10:00:00", "x", ["b.webp"])

        assert cleaner.calls == [["a.webp"]]
        assert result.cleanup.deleted == ["a.webp"]

    @pytest.mark.asyncio
    async def test_no_cleanup_when_nothing_removed(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 10:00:00", images=["a.webp"])))

        result = await repository.update_with_assets("m1", "2024-03-01 10:00:00", "x", ["a.webp", "c.webp"])

        assert cleaner.calls == []
        assert result.cleanup is None


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_record(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(
            record("m2", "2024-03-05 10:00:00"),
            record("m1", "2024-03-01 10:00:00", images=["a.webp"]),
        ))

        removed = await repository.delete("m1", "2024-03-01 10:00:00")

        assert removed.images == ["a.webp"]
        assert [m.id for m in await repository.list_month("202403")] == ["m2"]

    @pytest.mark.asyncio
    async def test_delete_nonexistent(self, repository):
        with pytest.raises(NotFoundError):
            await repository.delete("ghost", "2024-03-01 10:00:00")

    @pytest.mark.asyncio
    async def test_delete_with_assets(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 10:00:00", images=["a.webp", "b.webp"])))

        result = await repository.delete_with_assets("m1", "2024-03-01 10:00:00")

        assert result.memo.id == "m1"
        assert cleaner.calls == [["a.webp", "b.webp"]]

    @pytest.mark.asyncio
    async def test_delete_without_images_skips_cleanup(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 10:00:00")))

        result = await repository.delete_with_assets("m1", "2024-03-01 10:00:00")

        assert result.cleanup is None
        assert cleaner.calls == []


class TestWriteModes:
    @pytest.mark.asyncio
    async def test_last_write_wins_overwrites_concurrent_change(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 09:00:00")))
        fake_client.before_put = lambda path: fake_client.seed(
            path, shard_json(record("sneaky", "2024-03-01 09:30:00"), record("m1", "2024-03-01 09:00:00"))
        )

        await repository.create("mine", memo_id="mine")

        ids = [r["id"] for r in json.loads(fake_client.text(MARCH))]
        assert ids == ["mine", "m1"]

    @pytest.mark.asyncio
    async def test_version_checked_reapplies_after_conflict(self, checked_repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 09:00:00")))
        fake_client.before_put = lambda path: fake_client.seed(
            path, shard_json(record("sneaky", "2024-03-01 09:30:00"), record("m1", "2024-03-01 09:00:00"))
        )

        await checked_repository.create("mine", memo_id="mine")

        ids = [r["id"] for r in json.loads(fake_client.text(MARCH))]
        assert ids == ["mine", "sneaky", "m1"]
        assert fake_client.calls.count(("put", MARCH)) == 2

    @pytest.mark.asyncio
    async def test_version_checked_create_only_for_new_shard(self, checked_repository, fake_client):
        fake_client.before_put = lambda path: fake_client.seed(
            path, shard_json(record("other", "2024-03-01 09:30:00"))
        )

        await checked_repository.create("mine", memo_id="mine")

        ids = [r["id"] for r in json.loads(fake_client.text(MARCH))]
        assert ids == ["mine", "other"]

    @pytest.mark.asyncio
    async def test_version_checked_gives_up_after_retries(self, fake_client, resolver, layout):
        repository = GitHubMemoRepository(
            fake_client, resolver, layout, write_mode="version_checked", conflict_retries=1
        )
        fake_client.seed(MARCH, "[]")

        async def always_conflict(path, content, message, expected_version=None):
            fake_client.calls.append(("put", path))
            raise ConflictError("Version conflict", status=409)

        fake_client.put_text = always_conflict

        with pytest.raises(ConflictError) as exc_info:
            await repository.create("x", memo_id="x")

        assert exc_info.value.context["attempts"] == 2
        assert exc_info.value.context["operation"] == "create_memo"
        assert fake_client.calls.count(("put", MARCH)) == 2

    def test_unknown_write_mode(self, fake_client):
        with pytest.raises(ValueError, match="write_mode"):
            GitHubMemoRepository(fake_client, write_mode="eventually")


def commit_then_conflict(fake_client, path):
    """First write to path commits but reports a conflict, like a PUT retried after a lost response."""
    original_put = fake_client.put_text
    lost = []

    async def put_text(put_path, content, message, expected_version=None):
        version = await original_put(put_path, content, message, expected_version)
        if put_path == path and not lost:
            lost.append(version)
            raise ConflictError("Version conflict: sha mismatch", status=409, context={"path": put_path})
        return version

    fake_client.put_text = put_text
    return lost


class TestCommittedWriteWithLostResponse:
    @pytest.mark.asyncio
    async def test_delete_reports_success_and_cleans_assets(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(
            record("m1", "2024-03-01 09:00:00", images=["assets/memos/m1_a.webp"]),
        ))
        lost = commit_then_conflict(fake_client, MARCH)

        result = await repository.delete_with_assets("m1", "2024-03-01 09:00:00")

        assert lost
        assert result.memo.id == "m1"
        assert json.loads(fake_client.text(MARCH)) == []
        assert cleaner.calls == [["assets/memos/m1_a.webp"]]

    @pytest.mark.asyncio
    async def test_version_checked_create_is_not_applied_twice(self, checked_repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 09:00:00")))
        commit_then_conflict(fake_client, MARCH)

        memo = await checked_repository.create("mine", memo_id="mine")

        assert memo.id == "mine"
        ids = [r["id"] for r in json.loads(fake_client.text(MARCH))]
        assert ids == ["mine", "m1"]
        assert fake_client.calls.count(("put", MARCH)) == 1

    @pytest.mark.asyncio
    async def test_update_returns_removed_images(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(
            record("m1", "2024-03-01 09:00:00", images=["assets/memos/m1_a.webp", "assets/memos/m1_b.webp"]),
        ))
        commit_then_conflict(fake_client, MARCH)

        result = await repository.update_with_assets(
            "m1", "2024-03-01 09:00:00", content="edited", images=["assets/memos/m1_a.webp"]
        )

        assert result.memo.content == "edited"
        assert result.removed_images == ["assets/memos/m1_b.webp"]
        assert cleaner.calls == [["assets/memos/m1_b.webp"]]

    @pytest.mark.asyncio
    async def test_foreign_change_still_conflicts(self, repository, fake_client, cleaner):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 09:00:00")))

        async def rejected(path, content, message, expected_version=None):
            fake_client.calls.append(("put", path))
            raise ConflictError("Version conflict", status=409)

        fake_client.put_text = rejected

        with pytest.raises(ConflictError) as exc_info:
            await repository.delete_with_assets("m1", "2024-03-01 09:00:00")

        assert exc_info.value.context["operation"] == "delete_memo"
        assert exc_info.value.context["attempts"] == 1
        assert cleaner.calls == []


class TestStrayRecords:
    STRAY = record("old", "2024-02-28 23:00:00")

    @pytest.mark.asyncio
    async def test_reads_keep_stray_record(self, repository, fake_client):
        fake_client.seed(MARCH, shard_json(record("m1", "2024-03-01 09:00:00"), self.STRAY))

        memos = await repository.list_month("202403")

        assert [m.id for m in memos] == ["m1", "old"]

    @pytest.mark.asyncio
    async def test_mutation_refuses_shard(self, repository, fake_client):
        original = shard_json(record("m1", "2024-03-01 09:00:00"), self.STRAY)
        fake_client.seed(MARCH, original)

        with pytest.raises(ValidationError) as exc_info:
            await repository.create("new")

        assert exc_info.value.context["memo_id"] == "old"
        assert exc_info.value.context["operation"] == "create_memo"
        assert fake_client.text(MARCH) == original
        assert ("put", MARCH) not in fake_client.calls
