"""Unit tests for manifest parsing and export."""

import json

import pytest

from packsync.imports import export_manifest, parse_loader_id, parse_manifest
from packsync.models import ContentBucket, CurseForgeSource, ModpackDefinition, ModrinthSource
from packsync.utils.exceptions import ManifestError


def curseforge_manifest(**overrides):
    data = {
        "manifestType": "minecraftModpack",
        "manifestVersion": 1,
        "name": "All The Mods",
        "version": "0.2.1",
        "author": "someone",
        "minecraft": {
            "version": "1.20.1",
            "modLoaders": [
                {"id": "forge-47.2.0", "primary": True},
            ],
        },
        "files": [
            {"projectID": 238222, "fileID": 4712345, "required": True},
            {"projectID": 306612, "fileID": 4800000, "required": False},
        ],
        "overrides": "overrides",
    }
    data.update(overrides)
    return data


class TestLoaderIds:
    """Test loader id parsing."""

    @pytest.mark.parametrize(
        ("loader_id", "expected"),
        [
            ("forge-47.2.0", ("forge", "47.2.0")),
            ("neoforge-20.4.80", ("neoforge", "20.4.80")),
            ("fabric-0.15.7", ("fabric", "0.15.7")),
            ("fabric-loader-0.15.7", ("fabric", "0.15.7")),
            ("Quilt-0.24.0", ("quilt", "0.24.0")),
            ("vanilla", ("vanilla", None)),
        ],
    )
    def test_parse_loader_id(self, loader_id, expected):
        assert parse_loader_id(loader_id) == expected


class TestCurseForgeManifest:
    """Test CurseForge manifest parsing."""

    def test_parse(self):
        manifest = parse_manifest(curseforge_manifest())

        assert manifest.format == "curseforge"
        assert manifest.name == "All The Mods"
        assert manifest.target_version == "1.20.1"
        assert (manifest.loader, manifest.loader_version) == ("forge", "47.2.0")
        assert manifest.overrides == "overrides"
        assert [e.key for e in manifest.entries] == ["cf-238222-4712345", "cf-306612-4800000"]
        assert isinstance(manifest.entries[0].source, CurseForgeSource)

    def test_optional_files_disabled(self):
        manifest = parse_manifest(curseforge_manifest())
        assert [e.enabled for e in manifest.entries] == [True, False]

    def test_entries_lack_file_details(self):
        entry = parse_manifest(curseforge_manifest()).entries[0]
        assert entry.name is None
        assert entry.filename is None

    def test_primary_loader_preferred(self):
        minecraft = {
            "version": "1.20.1",
            "modLoaders": [{"id": "forge-1"}, {"id": "neoforge-2", "primary": True}],
        }
        manifest = parse_manifest(curseforge_manifest(minecraft=minecraft))
        assert manifest.loader == "neoforge"

    def test_duplicates_collapsed(self):
        files = [
            {"projectID": 1, "fileID": 2},
            {"projectID": 1, "fileID": 2, "required": False},
            {"projectID": 1, "fileID": 3},
        ]
        manifest = parse_manifest(curseforge_manifest(files=files))
        assert [e.key for e in manifest.entries] == ["cf-1-2", "cf-1-3"]
        assert manifest.entries[0].enabled is True

    def test_parse_from_text(self):
        manifest = parse_manifest(json.dumps(curseforge_manifest()).encode())
        assert len(manifest.entries) == 2

    @pytest.mark.parametrize(
        "bad_file",
        [{"projectID": 1}, {"projectID": "x", "fileID": 2}, {"projectID": -1, "fileID": 2}],
    )
    def test_invalid_file_entry(self, bad_file):
        with pytest.raises(ManifestError, match="Invalid file entry #0"):
            parse_manifest(curseforge_manifest(files=[bad_file]))


class TestNativeManifest:
    """Test packsync manifest parsing."""

    def test_parse(self):
        data = {
            "format": "packsync",
            "modpack": {"name": "Mine", "target_version": "1.21", "loader": "fabric"},
            "mods": [
                {
                    "source": {"kind": "modrinth", "project_id": "AANobbMI", "version_id": "v1"},
                    "name": "Sodium",
                    "filename": "sodium.jar",
                    "enabled": False,
                },
                {
                    "source": {"kind": "curseforge", "project_id": 5, "file_id": 6},
                    "bucket": "shader",
                },
            ],
        }

        manifest = parse_manifest(data)

        assert manifest.format == "packsync"
        assert manifest.loader == "fabric"
        first, second = manifest.entries
        assert isinstance(first.source, ModrinthSource)
        assert first.enabled is False
        assert first.filename == "sodium.jar"
        assert second.bucket == ContentBucket.SHADER

    def test_invalid_source_kind(self):
        data = {"format": "packsync", "mods": [{"source": {"kind": "ftp"}}]}
        with pytest.raises(ManifestError, match="Invalid packsync manifest"):
            parse_manifest(data)


class TestUnrecognised:
    """Test rejection of documents that are not manifests."""

    @pytest.mark.parametrize(
        "data",
        ["{not json", "[1, 2]", {"name": "no files"}, {"files": []}],
    )
    def test_rejected(self, data):
        with pytest.raises(ManifestError):
            parse_manifest(data)

    def test_json_error_kept(self):
        with pytest.raises(ManifestError) as exc_info:
            parse_manifest("{oops")
        assert isinstance(exc_info.value.original_error, json.JSONDecodeError)


class TestExport:
    """Test exporting a modpack as a packsync manifest."""

    def test_export_round_trips_through_parser(self, make_cf_record, make_mr_record):
        records = [make_cf_record(1, 10, name="Alpha"), make_mr_record("sodium", "v1")]
        definition = ModpackDefinition(
            id="p",
            name="Mine",
            member_ids=[r.id for r in records],
            disabled_ids=["mr-sodium-v1"],
            target_version="1.20.1",
            loader="fabric",
        )

        data = export_manifest(definition, records)
        manifest = parse_manifest(json.loads(json.dumps(data)))

        assert data["format"] == "packsync"
        assert manifest.name == "Mine"
        assert [e.key for e in manifest.entries] == ["cf-1-10", "mr-sodium-v1"]
        assert [e.enabled for e in manifest.entries] == [True, False]
        assert manifest.entries[0].name == "Alpha"

    def test_local_records_not_exported(self, make_cf_record, make_local_record):
        records = [make_cf_record(1, 10), make_local_record(b"x", "x.jar")]
        definition = ModpackDefinition(id="p", name="P", member_ids=[r.id for r in records])

        data = export_manifest(definition, records)

        assert [m["source"]["kind"] for m in data["mods"]] == ["curseforge"]
