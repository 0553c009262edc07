"""Unit tests for config override sync."""

import pytest

from packsync.config import ConfigSyncMode
from packsync.models import ActionStatus
from packsync.reconcile import sync_overrides


@pytest.fixture
def overrides(tmp_path):
    root = tmp_path / "overrides"
    (root / "config" / "sub").mkdir(parents=True)
    (root / "config" / "jei.toml").write_text("new")
    (root / "config" / "sub" / "deep.cfg").write_text("deep")
    (root / "kubejs").mkdir()
    (root / "kubejs" / "startup.js").write_text("js")
    (root / "unrelated").mkdir()
    (root / "unrelated" / "x.txt").write_text("x")
    return root


@pytest.fixture
def instance(tmp_path):
    path = tmp_path / "instance"
    (path / "config").mkdir(parents=True)
    (path / "config" / "jei.toml").write_text("user edit")
    (path / "config" / "mine.toml").write_text("mine")
    return path


class TestSyncOverrides:
    """Test the three sync modes."""

    def test_overwrite(self, overrides, instance):
        result = sync_overrides(overrides, instance, ConfigSyncMode.OVERWRITE)

        assert result.copied == 3
        assert (instance / "config" / "jei.toml").read_text() == "new"
        assert (instance / "config" / "sub" / "deep.cfg").read_text() == "deep"
        assert (instance / "kubejs" / "startup.js").exists()

    def test_new_only_keeps_user_edits(self, overrides, instance):
        result = sync_overrides(overrides, instance, ConfigSyncMode.NEW_ONLY)

        assert result.copied == 2
        assert result.skipped == 1
        assert (instance / "config" / "jei.toml").read_text() == "user edit"
        skipped = [a.target for a in result.actions if a.status == ActionStatus.SKIPPED]
        assert skipped == ["config/jei.toml"]

    def test_skip_writes_nothing(self, overrides, instance):
        result = sync_overrides(overrides, instance, ConfigSyncMode.SKIP)

        assert result.copied == 0
        assert result.skipped == 3
        assert not (instance / "kubejs").exists()

    @pytest.mark.parametrize("mode", list(ConfigSyncMode))
    def test_never_deletes(self, overrides, instance, mode):
        sync_overrides(overrides, instance, mode)
        assert (instance / "config" / "mine.toml").read_text() == "mine"

    def test_unknown_folders_ignored(self, overrides, instance):
        sync_overrides(overrides, instance)
        assert not (instance / "unrelated").exists()

    def test_missing_overrides_dir(self, tmp_path, instance):
        result = sync_overrides(tmp_path / "nope", instance)

        assert result.copied == 0
        assert "not found" in result.warnings[0]
