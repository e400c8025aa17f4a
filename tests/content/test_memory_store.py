"""Tests for the in-process content store."""

import pytest

from hunt_admin.content import (
    CommitError,
    CommitFile,
    ConflictError,
    MemoryStore,
    NotFoundError,
)
from hunt_admin.content.store import blob_sha


def test_blob_sha_matches_git():
    # `printf 'hello\n' | git hash-object --stdin`
    assert blob_sha("hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"


async def test_get_missing_is_none(store):
    assert await store.get_file("public/config.json") is None


async def test_put_then_get(store):
    result = await store.put_file("public/config.json", "{}\n", "m")
    stored = await store.get_file("public/config.json")
    assert stored.content == "{}\n"
    assert stored.sha == result.sha == blob_sha("{}\n")
    assert store.commits[-1]["message"] == "m"


async def test_put_with_stale_prior_sha(store):
    await store.put_file("public/config.json", "{}\n", "m")
    with pytest.raises(ConflictError):
        await store.put_file("public/config.json", "[]\n", "m", prior_sha="stale")
    assert store.files["public/config.json"] == "{}\n"


async def test_delete(store):
    await store.put_file("public/config.json", "{}\n", "m")
    await store.delete_file("public/config.json", "rm")
    assert store.files == {}
    with pytest.raises(NotFoundError):
        await store.delete_file("public/config.json", "rm")


async def test_list_dirs():
    store = MemoryStore({
        "public/games/b/config.json": "{}",
        "public/games/a/draft/config.json": "{}",
        "public/games/index.json": "[]",
    })
    assert await store.list_dirs("public/games") == ["a", "b"]
    assert await store.list_dirs("public/nothing") == []


async def test_commit_files_single_commit(store):
    before = (await store.resolve_branch()).sha
    result = await store.commit_files(
        [CommitFile(path="a.json", content="1\n"), CommitFile(path="b.json", content="2\n")],
        "both",
    )
    assert store.files == {"a.json": "1\n", "b.json": "2\n"}
    assert len(store.commits) == 1
    assert result.sha != before
    assert (await store.resolve_branch()).sha == result.sha


async def test_commit_to_unknown_branch_applies_nothing(store):
    with pytest.raises(CommitError):
        await store.commit_files([CommitFile(path="a.json", content="1\n")], "m", ref="other")
    assert store.files == {}


async def test_empty_commit_rejected(store):
    with pytest.raises(CommitError):
        await store.commit_files([], "m")
