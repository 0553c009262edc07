"""Unit tests for version control."""

import pytest

from packsync.models import ChangeKind
from packsync.versioning import compute_changes, next_tag


@pytest.fixture
def records(catalog, make_cf_record):
    return catalog.upsert_many(
        [
            make_cf_record(1, 10, name="Alpha"),
            make_cf_record(1, 11, name="Alpha"),
            make_cf_record(2, 20, name="Beta"),
            make_cf_record(3, 30, name="Gamma"),
        ]
    )


class TestNextTag:
    """Test tag bumping."""

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("1.0.0", "1.0.1"),
            ("2.4.9", "2.4.10"),
            ("1.2.3-rollback", "1.2.4"),
            ("1.2.3-beta.2", "1.2.4"),
            ("alpha", "alpha.1"),
            ("1.2", "1.2.1"),
        ],
    )
    def test_next_tag(self, tag, expected):
        assert next_tag(tag) == expected


class TestComputeChanges:
    """Test the membership diff."""

    def test_add_remove(self):
        changes = compute_changes(["a", "b"], [], ["b", "c"], [])
        assert [(c.kind, c.mod_id) for c in changes] == [
            (ChangeKind.ADD, "c"),
            (ChangeKind.REMOVE, "a"),
        ]

    def test_overlay_changes(self):
        changes = compute_changes(["a", "b"], ["a"], ["a", "b"], ["b"])
        assert {(c.kind, c.mod_id) for c in changes} == {
            (ChangeKind.ENABLE, "a"),
            (ChangeKind.DISABLE, "b"),
        }

    def test_added_disabled_member(self):
        changes = compute_changes([], [], ["a"], ["a"])
        assert [c.kind for c in changes] == [ChangeKind.ADD, ChangeKind.DISABLE]

    def test_removed_disabled_member(self):
        changes = compute_changes(["a"], ["a"], [], [])
        assert [c.kind for c in changes] == [ChangeKind.REMOVE]

    def test_names_resolved(self):
        changes = compute_changes([], [], ["a"], [], name_of=lambda _: "Alpha")
        assert str(changes[0]) == "add Alpha"


class TestCommit:
    """Test commits, no-op suppression and linearity."""

    def test_initialize(self, versions, pack):
        snapshot = versions.initialize(pack.id)

        assert snapshot.id == "v1"
        assert snapshot.parent_id is None
        assert snapshot.tag == "1.0.0"
        assert snapshot.changes == []
        assert versions.initialize(pack.id).id == "v1"

    def test_initialize_unknown(self, versions):
        assert versions.initialize("missing") is None
        assert versions.commit("missing", "x") is None

    def test_commit_auto_initializes(self, versions, modpacks, pack, records):
        """Without history, the first commit snapshots the live state as v1."""
        modpacks.add_member(pack.id, "cf-2-20")

        first = versions.commit(pack.id, "Add beta")

        assert first.id == "v1"
        assert first.message == "Initial version"
        assert first.member_ids == ["cf-2-20"]

        modpacks.add_member(pack.id, "cf-3-30")
        second = versions.commit(pack.id, "Add gamma")

        assert second.id == "v2"
        assert second.parent_id == "v1"
        assert second.tag == "1.0.1"
        assert [str(c) for c in second.changes] == ["add Gamma"]

    def test_commit_writes_tag_back(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_member(pack.id, "cf-2-20")
        versions.commit(pack.id, "Add beta", tag="2.0.0")
        assert modpacks.get(pack.id).version == "2.0.0"

    def test_noop_commit_returns_head(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_member(pack.id, "cf-2-20")
        head = versions.commit(pack.id, "Add beta")

        again = versions.commit(pack.id, "Nothing")

        assert again.id == head.id
        assert len(versions.history(pack.id).versions) == 2

    def test_history_is_linear(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        for mod_id in ("cf-1-10", "cf-2-20", "cf-3-30"):
            modpacks.add_member(pack.id, mod_id)
            versions.commit(pack.id, f"add {mod_id}")
        modpacks.set_enabled(pack.id, "cf-2-20", False)
        versions.commit(pack.id, "disable beta")

        history = versions.history(pack.id)
        for parent, child in zip(history.versions, history.versions[1:]):
            assert child.parent_id == parent.id
        assert history.head_id == history.versions[-1].id
        assert [v.id for v in history.versions] == ["v1", "v2", "v3", "v4", "v5"]

    def test_diff_and_pending(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_members(pack.id, ["cf-1-10", "cf-2-20"])
        versions.commit(pack.id, "two mods")
        modpacks.set_enabled(pack.id, "cf-1-10", False)

        assert [str(c) for c in versions.pending_changes(pack.id)] == ["disable Alpha"]
        assert [c.kind for c in versions.diff(pack.id, "v1", "v2")] == [
            ChangeKind.ADD,
            ChangeKind.ADD,
        ]
        assert versions.diff(pack.id, "v1", "v9") is None
        assert versions.diff("missing", "v1", "v2") is None


class TestRollback:
    """Test forward-only rollback."""

    def test_rollback_appends_commit(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_member(pack.id, "cf-2-20")
        versions.commit(pack.id, "v2")
        modpacks.add_member(pack.id, "cf-3-30")
        versions.commit(pack.id, "v3")

        assert versions.rollback(pack.id, "v2") is True

        history = versions.history(pack.id)
        head = history.head
        assert [v.id for v in history.versions] == ["v1", "v2", "v3", "v4"]
        assert head.parent_id == "v3"
        assert head.message == "Rollback to 1.0.1"
        assert head.tag == "1.0.1-rollback"
        assert modpacks.get(pack.id).member_ids == ["cf-2-20"]

    def test_rollback_restores_overlay_and_runtime(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_members(pack.id, ["cf-2-20", "cf-3-30"])
        modpacks.set_enabled(pack.id, "cf-3-30", False)
        versions.commit(pack.id, "two mods")
        modpacks.set_enabled(pack.id, "cf-3-30", True)
        modpacks.update_fields(pack.id, target_version="1.21", loader="neoforge")
        modpacks.remove_member(pack.id, "cf-2-20")
        versions.commit(pack.id, "changed")

        versions.rollback(pack.id, "v2")

        definition = modpacks.get(pack.id)
        assert definition.member_ids == ["cf-2-20", "cf-3-30"]
        assert definition.disabled_ids == ["cf-3-30"]
        assert definition.target_version == "1.20.1"
        assert definition.loader == "forge"

    def test_partial_rollback(self, versions, modpacks, catalog, pack, records):
        versions.initialize(pack.id)
        modpacks.add_members(pack.id, ["cf-2-20", "cf-3-30"])
        modpacks.set_enabled(pack.id, "cf-3-30", False)
        versions.commit(pack.id, "two mods")
        catalog.delete("cf-3-30")

        check = versions.validate_rollback(pack.id, "v2")
        assert check.available == ["cf-2-20"]
        assert check.missing == ["cf-3-30"]
        assert not check.complete

        versions.rollback(pack.id, "v2", available_mod_ids=check.available)

        definition = modpacks.get(pack.id)
        assert definition.member_ids == ["cf-2-20"]
        assert definition.disabled_ids == []

    def test_partial_rollback_message(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_members(pack.id, ["cf-2-20", "cf-3-30"])
        versions.commit(pack.id, "two mods")
        modpacks.remove_member(pack.id, "cf-2-20")
        modpacks.remove_member(pack.id, "cf-3-30")
        versions.commit(pack.id, "empty")

        versions.rollback(pack.id, "v2", available_mod_ids=["cf-2-20"])

        assert versions.head(pack.id).message == "Partial rollback to 1.0.1 (1/2 mods)"

    def test_rollback_to_head_is_noop(self, versions, modpacks, pack, records):
        versions.initialize(pack.id)
        modpacks.add_member(pack.id, "cf-2-20")
        versions.commit(pack.id, "beta")

        assert versions.rollback(pack.id, "v2") is True
        assert len(versions.history(pack.id).versions) == 2

    def test_rollback_unknown(self, versions, pack):
        versions.initialize(pack.id)
        assert versions.rollback(pack.id, "v42") is False
        assert versions.rollback("missing", "v1") is False
        assert versions.validate_rollback(pack.id, "v42") is None
