"""Unit tests for the high-level reconciler."""

import pytest

from packsync.config import SyncPolicy
from packsync.persistence import ApplyJournal
from packsync.reconcile import Reconciler


@pytest.fixture
def journal():
    with ApplyJournal(":memory:") as journal:
        yield journal


@pytest.fixture
def members(catalog, modpacks, pack, make_cf_record):
    catalog.upsert_many(
        [
            make_cf_record(1, 10, filename="alpha.jar"),
            make_cf_record(2, 20, filename="beta.jar"),
        ]
    )
    modpacks.add_members(pack.id, ["cf-1-10", "cf-2-20"])
    modpacks.set_enabled(pack.id, "cf-2-20", False)
    return pack


@pytest.fixture
def reconciler(catalog, modpacks, versions, resolver, journal):
    return Reconciler(
        catalog,
        modpacks,
        resolver,
        policy=SyncPolicy(concurrency=2),
        journal=journal,
        versions=versions,
    )


class TestReconciler:
    """Test Reconciler class."""

    @pytest.mark.asyncio
    async def test_sync_converges_and_journals(self, reconciler, journal, members, instance_dir):
        result = await reconciler.sync(members.id, instance_dir)

        assert result.success
        assert result.fetched == 2
        assert (instance_dir / "mods" / "alpha.jar").exists()
        assert (instance_dir / "mods" / "beta.jar.disabled").exists()

        [session] = journal.get_sessions()
        assert session["modpack_id"] == members.id
        assert session["total_actions"] == 2
        assert session["failed"] == 0
        assert reconciler.plan(members.id, instance_dir).is_empty

    @pytest.mark.asyncio
    async def test_failed_fetch_journaled(
        self, reconciler, journal, resolver, members, instance_dir
    ):
        resolver.failing.add("cf-1-10")

        result = await reconciler.sync(members.id, instance_dir)

        assert result.success
        assert result.skipped == 1
        [session] = journal.get_sessions()
        entries = journal.get_session_entries(session["session_id"])
        failed = [e for e in entries if not e.success]
        assert [e.mod_id for e in failed] == ["cf-1-10"]
        assert "404" in failed[0].error_message

    @pytest.mark.asyncio
    async def test_sync_snapshot(self, reconciler, versions, modpacks, members, instance_dir):
        versions.initialize(members.id)
        modpacks.remove_member(members.id, "cf-1-10")

        result = await reconciler.sync(members.id, instance_dir, version_id="v1")

        assert result.fetched == 2
        # Snapshot sync does not modify the live definition
        assert modpacks.get(members.id).member_ids == ["cf-2-20"]

    @pytest.mark.asyncio
    async def test_unknown_modpack_or_snapshot(self, reconciler, members, instance_dir):
        assert await reconciler.sync("missing", instance_dir) is None
        assert await reconciler.sync(members.id, instance_dir, version_id="v9") is None

    @pytest.mark.asyncio
    async def test_unavailable_instance(self, reconciler, journal, members, tmp_path):
        result = await reconciler.sync(members.id, tmp_path / "gone")

        assert result.success is False
        assert "Instance unavailable" in result.errors[0]
        assert journal.get_sessions() == []

    @pytest.mark.asyncio
    async def test_policy_clear_existing(self, catalog, modpacks, resolver, members, instance_dir):
        (instance_dir / "mods" / "stray.jar").write_bytes(b"s")
        reconciler = Reconciler(catalog, modpacks, resolver, SyncPolicy(clear_existing=True))

        result = await reconciler.sync(members.id, instance_dir)

        assert result.removed == 1
        assert not (instance_dir / "mods" / "stray.jar").exists()

    def test_snapshot_needs_version_control(self, catalog, modpacks, resolver, members, tmp_path):
        reconciler = Reconciler(catalog, modpacks, resolver)
        with pytest.raises(ValueError, match="VersionControl"):
            reconciler.plan(members.id, tmp_path, version_id="v1")

    def test_status(self, reconciler, members, instance_dir):
        (instance_dir / "mods" / "beta.jar").write_bytes(b"b")

        status = reconciler.status(members.id, instance_dir)

        assert (status.missing, status.toggle, status.extra) == (1, 1, 0)
        assert reconciler.status("missing", instance_dir) is None
