"""Unit tests for source references, records and modpack definitions."""

import pydantic
import pytest

from packsync.models import (
    ContentBucket,
    CurseForgeSource,
    InstanceFile,
    LocalSource,
    ModpackDefinition,
    ModrinthSource,
    ModRecord,
    ReconciliationPlan,
    RemoteSource,
)
from packsync.models.sources import parse_source

SHA = "ab" * 32


class TestSourceRefs:
    """Test the tagged source union."""

    def test_keys(self):
        assert CurseForgeSource(project_id=238222, file_id=4712345).key == "cf-238222-4712345"
        modrinth = ModrinthSource(project_id="AANobbMI", version_id="tFw0iWAk")
        assert modrinth.key == "mr-AANobbMI-tFw0iWAk"
        assert LocalSource(sha256=SHA).key == f"local-{SHA[:16]}"

    def test_identity(self):
        """Files of one project share an identity; local files have none."""
        a = CurseForgeSource(project_id=1, file_id=10)
        b = CurseForgeSource(project_id=1, file_id=11)
        assert a.identity == b.identity == ("curseforge", "1")
        assert ModrinthSource(project_id="x", version_id="y").identity == ("modrinth", "x")
        assert LocalSource(sha256=SHA).identity is None

    def test_discriminator_dispatch(self):
        source = parse_source({"kind": "modrinth", "project_id": "sodium", "version_id": "v1"})
        assert isinstance(source, ModrinthSource)
        assert source.file_id == "v1"

    def test_unknown_kind_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            parse_source({"kind": "github", "project_id": "x"})

    @pytest.mark.parametrize(
        ("project_id", "version_id"),
        [("ab", "c-v1"), ("ab-c", "v1"), ("sodium", "mc1.20"), ("a b", "v1")],
    )
    def test_modrinth_ids_must_be_alphanumeric(self, project_id, version_id):
        """Hyphens in an id would let two different files share one key."""
        with pytest.raises(pydantic.ValidationError, match="alphanumeric"):
            ModrinthSource(project_id=project_id, version_id=version_id)

    def test_local_sha_normalized(self):
        assert LocalSource(sha256=SHA.upper()).sha256 == SHA

    @pytest.mark.parametrize("sha", ["abc", "zz" * 32, ""])
    def test_local_sha_validated(self, sha):
        with pytest.raises(pydantic.ValidationError):
            LocalSource(sha256=sha)

    def test_curseforge_ids_positive(self):
        with pytest.raises(pydantic.ValidationError):
            CurseForgeSource(project_id=0, file_id=1)

    def test_sources_are_frozen(self):
        source = CurseForgeSource(project_id=1, file_id=2)
        with pytest.raises(pydantic.ValidationError):
            source.file_id = 3


class TestModRecord:
    """Test catalog records."""

    def test_id_defaults_to_source_key(self):
        record = ModRecord(
            source=CurseForgeSource(project_id=5, file_id=6), name="JEI", filename="jei.jar"
        )
        assert record.id == "cf-5-6"
        assert record.identity == ("curseforge", "5")

    def test_id_from_raw_source_dict(self):
        record = ModRecord.model_validate(
            {
                "source": {"kind": "modrinth", "project_id": "p", "version_id": "v"},
                "name": "P",
                "filename": "p.jar",
            }
        )
        assert record.id == "mr-p-v"

    def test_mismatched_id_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="does not match"):
            ModRecord(
                id="cf-1-1",
                source=CurseForgeSource(project_id=5, file_id=6),
                name="JEI",
                filename="jei.jar",
            )

    @pytest.mark.parametrize("filename", ["../evil.jar", "sub/dir.jar", "a\\b.jar"])
    def test_filename_without_separators(self, filename):
        with pytest.raises(pydantic.ValidationError):
            ModRecord(source=CurseForgeSource(project_id=1, file_id=1), name="x", filename=filename)

    @pytest.mark.parametrize(
        ("filename", "message"),
        [
            (".hidden.jar", "hidden"),
            (".", "hidden"),
            ("..", "hidden"),
            ("old.jar.disabled", "enabled form"),
        ],
    )
    def test_filename_maps_back_from_instance(self, filename, message):
        with pytest.raises(pydantic.ValidationError, match=message):
            ModRecord(source=CurseForgeSource(project_id=1, file_id=1), name="x", filename=filename)

    def test_json_round_trip_keeps_variant(self, make_mr_record):
        record = make_mr_record("sodium", "abc")
        restored = ModRecord.model_validate_json(record.model_dump_json())
        assert restored == record
        assert isinstance(restored.source, ModrinthSource)

    def test_bucket_folders(self):
        assert ContentBucket.MOD.folder == "mods"
        assert ContentBucket.RESOURCEPACK.folder == "resourcepacks"
        assert ContentBucket.SHADER.folder == "shaderpacks"


class TestModpackDefinition:
    """Test modpack definition invariants."""

    def test_members_deduplicated_and_overlay_subset(self):
        definition = ModpackDefinition(
            id="p",
            name="P",
            member_ids=["a", "b", "a"],
            disabled_ids=["b", "ghost", "b"],
        )
        assert definition.member_ids == ["a", "b"]
        assert definition.disabled_ids == ["b"]
        assert definition.is_enabled("a")
        assert not definition.is_enabled("b")
        assert not definition.is_enabled("ghost")

    def test_extra_fields_ignored(self):
        definition = ModpackDefinition.model_validate({"id": "p", "name": "P", "icon": "x.png"})
        assert not hasattr(definition, "icon")

    def test_remote_source_requires_http(self):
        with pytest.raises(pydantic.ValidationError):
            RemoteSource(url="ftp://example.com/pack.json")
        assert RemoteSource(url=" https://example.com/p.json ").url == "https://example.com/p.json"


class TestPlanTypes:
    """Test reconciliation plan helpers."""

    def test_physical_name(self):
        enabled = InstanceFile(ContentBucket.MOD, "jei.jar", True)
        disabled = InstanceFile(ContentBucket.MOD, "jei.jar", False)
        assert enabled.physical_name() == "jei.jar"
        assert disabled.physical_name() == "jei.jar.disabled"
        assert disabled.physical_name(".off") == "jei.jar.off"

    def test_untracked_files_do_not_make_plan_dirty(self):
        plan = ReconciliationPlan(untracked=[InstanceFile(ContentBucket.MOD, "user.jar")])
        assert plan.is_empty
        assert plan.get_summary()["untracked"] == 1
