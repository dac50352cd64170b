"""Tests for the RevisionStore primitives."""

import os

import pytest

from pagestore import (
    AlreadyInitialized,
    CommitFailure,
    NotFound,
    NotInitialized,
    RevisionStore,
    Signature,
)
from pagestore.config import StoreConfig
from pagestore.kv.memory import Memory
from pagestore.objects import BLOB_KEY, blob_id

ALICE = Signature("alice", "alice@example.com")


@pytest.fixture
def revs(tmp_path):
    return RevisionStore(Memory(), tmp_path)


class TestBootstrap:
    def test_open_missing_history(self, tmp_path):
        with pytest.raises(NotInitialized):
            RevisionStore.open(tmp_path)

    def test_open_empty_history_dir(self, tmp_path):
        (tmp_path / ".history").mkdir()
        with pytest.raises(NotInitialized):
            RevisionStore.open(tmp_path)
        assert list((tmp_path / ".history").iterdir()) == []

    def test_initialize_then_open(self, tmp_path):
        store = RevisionStore.initialize(tmp_path)
        assert store.head() is None
        store.close()
        reopened = RevisionStore.open(tmp_path)
        try:
            assert reopened.head() is None
        finally:
            reopened.close()

    def test_initialize_twice(self, tmp_path):
        RevisionStore.initialize(tmp_path).close()
        with pytest.raises(AlreadyInitialized):
            RevisionStore.initialize(tmp_path)

    def test_initialize_creates_root(self, tmp_path):
        root = tmp_path / "new" / "wiki"
        store = RevisionStore.initialize(root)
        try:
            assert (root / ".history").is_dir()
        finally:
            store.close()

    def test_custom_history_dir(self, tmp_path):
        config = StoreConfig(history_dir=".revs")
        RevisionStore.initialize(tmp_path, config=config).close()
        assert (tmp_path / ".revs").is_dir()
        with pytest.raises(NotInitialized):
            RevisionStore.open(tmp_path)


class TestCommit:
    def test_first_commit_is_root(self, revs):
        assert revs.head() is None
        rev = revs.commit({"a.md": b"hello"}, None, ALICE, "init")
        assert revs.head() == rev.id
        assert rev.parent is None
        assert len(rev.id) == 40
        assert revs.parent_of(rev) is None

    def test_second_commit_links_parent(self, revs):
        r1 = revs.commit({"a.md": b"hello"}, None, ALICE, "init")
        r2 = revs.commit({"a.md": b"world"}, r1.id, ALICE, "update")
        assert revs.head() == r2.id
        assert r2.parent == r1.id
        assert revs.parent_of(r2) == r1

    def test_lookup_revision(self, revs):
        rev = revs.commit({"a.md": b"x"}, None, ALICE, "msg")
        loaded = revs.lookup_revision(rev.id)
        assert loaded == rev
        assert loaded.author == ALICE
        assert loaded.message == "msg"

    def test_lookup_missing(self, revs):
        with pytest.raises(NotFound):
            revs.lookup_revision("0" * 40)

    def test_stale_parent_rejected(self, revs):
        r1 = revs.commit({"a.md": b"1"}, None, ALICE, "one")
        with pytest.raises(CommitFailure) as excinfo:
            revs.commit({"a.md": b"2"}, None, ALICE, "stale")
        assert excinfo.value.parent is None
        assert revs.head() == r1.id

    def test_unknown_parent_rejected(self, revs):
        with pytest.raises(CommitFailure, match="does not exist"):
            revs.commit({"a.md": b"1"}, "f" * 40, ALICE, "orphan")
        assert revs.head() is None

    def test_backend_failure_wrapped(self, tmp_path):
        class Broken(Memory):
            def set_many(self, items):
                raise RuntimeError("disk full")

        revs = RevisionStore(Broken(), tmp_path)
        with pytest.raises(CommitFailure, match="disk full"):
            revs.commit({"a.md": b"1"}, None, ALICE, "init")
        assert revs.head() is None

    def test_unchanged_blob_deduplicated(self, revs):
        r1 = revs.commit({"a.md": b"same", "b.md": b"1"}, None, ALICE, "one")
        r2 = revs.commit({"a.md": b"same", "b.md": b"2"}, r1.id, ALICE, "two")
        assert revs.read_tree(r1)["a.md"] == revs.read_tree(r2)["a.md"]
        blob_keys = [k for k in revs.db.memory if k.startswith(BLOB_KEY % "")]
        assert len(blob_keys) == 3


class TestReadPath:
    def test_present(self, revs):
        rev = revs.commit({"a.md": b"hello", "d/b.md": b"nested"}, None, ALICE, "m")
        assert revs.read_path(rev, "a.md") == b"hello"
        assert revs.read_path(rev, "d/b.md") == b"nested"

    def test_absent(self, revs):
        rev = revs.commit({"a.md": b"hello"}, None, ALICE, "m")
        assert revs.read_path(rev, "b.md") is None

    def test_tree_is_full_snapshot(self, revs):
        r1 = revs.commit({"a.md": b"1"}, None, ALICE, "m")
        r2 = revs.commit({"a.md": b"1", "b.md": b"2"}, r1.id, ALICE, "m")
        assert revs.read_tree(r2) == {"a.md": blob_id(b"1"), "b.md": blob_id(b"2")}
        assert revs.read_path(r1, "b.md") is None


class TestHistory:
    def test_empty(self, revs):
        assert list(revs.history()) == []

    def test_newest_first(self, revs):
        r1 = revs.commit({"a.md": b"1"}, None, ALICE, "1")
        r2 = revs.commit({"a.md": b"2"}, r1.id, ALICE, "2")
        r3 = revs.commit({"a.md": b"3"}, r2.id, ALICE, "3")
        assert [r.id for r in revs.history()] == [r3.id, r2.id, r1.id]

    def test_from_specific_revision(self, revs):
        r1 = revs.commit({"a.md": b"1"}, None, ALICE, "1")
        r2 = revs.commit({"a.md": b"2"}, r1.id, ALICE, "2")
        revs.commit({"a.md": b"3"}, r2.id, ALICE, "3")
        assert [r.id for r in revs.history(r2.id)] == [r2.id, r1.id]


class TestSnapshotWorktree:
    def test_reads_all_pages(self, tmp_path, revs):
        (tmp_path / "a.md").write_bytes(b"a")
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "b.md").write_bytes(b"b")
        assert revs.snapshot_worktree() == {"a.md": b"a", "docs/b.md": b"b"}

    def test_skips_history_dir(self, tmp_path, revs):
        (tmp_path / ".history").mkdir()
        (tmp_path / ".history" / "cache.db").write_bytes(b"sqlite")
        (tmp_path / "a.md").write_bytes(b"a")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / ".history").mkdir()
        (tmp_path / "sub" / ".history" / "x.md").write_bytes(b"x")
        assert revs.snapshot_worktree() == {"a.md": b"a", "sub/.history/x.md": b"x"}

    def test_empty_root(self, revs):
        assert revs.snapshot_worktree() == {}

    def test_skips_symlink_outside_root(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_bytes(b"TOP SECRET")
        root = tmp_path / "root"
        root.mkdir()
        (root / "a.md").write_bytes(b"a")
        os.symlink(outside / "secret.txt", root / "leak.md")
        revs = RevisionStore(Memory(), root)
        assert revs.snapshot_worktree() == {"a.md": b"a"}

    def test_skips_symlink_into_history_dir(self, tmp_path, revs):
        (tmp_path / ".history").mkdir()
        (tmp_path / ".history" / "cache.db").write_bytes(b"sqlite")
        os.symlink(tmp_path / ".history" / "cache.db", tmp_path / "db.md")
        assert revs.snapshot_worktree() == {}

    def test_keeps_symlink_to_page(self, tmp_path, revs):
        (tmp_path / "a.md").write_bytes(b"a")
        os.symlink(tmp_path / "a.md", tmp_path / "alias.md")
        assert revs.snapshot_worktree() == {"a.md": b"a", "alias.md": b"a"}


class TestRepr:
    def test_empty(self, revs):
        assert "head=empty" in repr(revs)

    def test_short_head(self, revs):
        rev = revs.commit({"a.md": b"1"}, None, ALICE, "init")
        assert f"head={rev.id[:7]})" in repr(revs)
