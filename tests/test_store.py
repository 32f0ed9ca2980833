"""Tests for the Artifact Store — initialize, add, exists, list."""

import datetime as dt
import json
import logging
import os
import shutil
from pathlib import Path

import pytest

from provenskills.errors import ConflictError, StoreIOError
from provenskills.manifest import encode_manifest
from provenskills.models import Manifest, ManifestContents
from provenskills.store import ArtifactStore, resolve_store_root

BUILT_AT = dt.datetime(2026, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc)


def _manifest(name: str = "test-skill", version: str = "1.0.0", **kw) -> Manifest:
    return Manifest(
        name=name,
        version=version,
        description=kw.get("description", "A test skill"),
        author="tester",
        maintainer="Packager <p@example.com>",
        build_timestamp=BUILT_AT,
        contents=ManifestContents(skill_file="SKILL.md"),
    )


@pytest.fixture
def skill_source(tmp_path: Path) -> Path:
    """Create a skill directory with a nested file."""
    skill_dir = tmp_path / "test-skill"
    (skill_dir / "scripts").mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text("---\nname: test-skill\n---\n# Test\n")
    (skill_dir / "scripts" / "run.sh").write_text("echo hi\n")
    return skill_dir


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    """Create a store with a temp root."""
    return ArtifactStore(tmp_path / "store")


class TestResolveRoot:
    """Test store root resolution order."""

    def test_explicit_wins(self, tmp_path: Path):
        env = {"PSK_STORE": str(tmp_path / "env")}
        assert resolve_store_root(tmp_path / "cli", environ=env) == tmp_path / "cli"

    def test_environment_variable(self, tmp_path: Path):
        env = {"PSK_STORE": str(tmp_path / "env")}
        assert resolve_store_root(None, environ=env) == tmp_path / "env"

    def test_default_under_home(self):
        root = resolve_store_root(None, environ={})
        assert root == Path("~/.psk/store").expanduser()

    def test_reads_os_environ_by_default(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PSK_STORE", str(tmp_path / "from-env"))
        assert resolve_store_root() == tmp_path / "from-env"


class TestInitialize:
    """Test store initialization."""

    def test_creates_root_and_marker(self, store: ArtifactStore):
        store.initialize()
        assert store.root.is_dir()
        assert (store.root / ".store-version").read_text() == "1\n"

    def test_idempotent(self, store: ArtifactStore):
        store.initialize()
        store.initialize()
        assert (store.root / ".store-version").read_text() == "1\n"

    def test_existing_marker_untouched(self, store: ArtifactStore):
        store.root.mkdir(parents=True)
        (store.root / ".store-version").write_text("1\nkept\n")
        store.initialize()
        assert (store.root / ".store-version").read_text() == "1\nkept\n"

    def test_root_is_a_file(self, tmp_path: Path):
        blocker = tmp_path / "store"
        blocker.write_text("not a directory")
        with pytest.raises(StoreIOError, match="failed to create store directory"):
            ArtifactStore(blocker).initialize()


class TestAdd:
    """Test committing artifacts."""

    def test_add_copies_tree_and_writes_manifest(self, store: ArtifactStore, skill_source: Path):
        store.initialize()
        dest = store.add("test-skill", "1.0.0", skill_source, _manifest())
        assert dest == store.root / "test-skill" / "1.0.0"
        assert (dest / "SKILL.md").exists()
        assert (dest / "scripts" / "run.sh").read_text() == "echo hi\n"
        data = json.loads((dest / "manifest.json").read_text())
        assert data["version"] == "1.0.0"
        assert store.exists("test-skill", "1.0.0")

    def test_add_logs_commit(self, store: ArtifactStore, skill_source: Path, caplog):
        with caplog.at_level(logging.INFO, logger="provenskills.store"):
            store.add("test-skill", "1.0.0", skill_source, _manifest())
        assert "Stored test-skill@1.0.0" in caplog.text

    def test_add_leaves_no_temp_directory(self, store: ArtifactStore, skill_source: Path):
        store.add("test-skill", "1.0.0", skill_source, _manifest())
        assert sorted(p.name for p in (store.root / "test-skill").iterdir()) == ["1.0.0"]

    def test_add_duplicate_fails(self, store: ArtifactStore, skill_source: Path):
        """Adding the same pair twice without force should conflict and keep the first."""
        store.add("test-skill", "1.0.0", skill_source, _manifest(description="first"))
        with pytest.raises(ConflictError, match="already exists"):
            store.add("test-skill", "1.0.0", skill_source, _manifest(description="second"))
        assert store.list()[0].description == "first"

    def test_add_force_replaces(self, store: ArtifactStore, skill_source: Path):
        """Force should replace the whole artifact directory."""
        dest = store.add("test-skill", "1.0.0", skill_source, _manifest(description="first"))
        (dest / "stale.txt").write_text("left over")

        store.add("test-skill", "1.0.0", skill_source, _manifest(description="second"), force=True)
        assert not (dest / "stale.txt").exists()
        assert store.list()[0].description == "second"

    def test_add_force_without_existing(self, store: ArtifactStore, skill_source: Path):
        store.add("test-skill", "1.0.0", skill_source, _manifest(), force=True)
        assert store.exists("test-skill", "1.0.0")

    def test_failed_copy_leaves_store_unchanged(
        self, store: ArtifactStore, skill_source: Path, monkeypatch
    ):
        """A copy that dies halfway must not leave an artifact or temp directory."""

        def broken_copytree(src, dst, *args, **kwargs):
            Path(dst).mkdir(parents=True)
            (Path(dst) / "partial.txt").write_text("half")
            raise OSError("disk full")

        monkeypatch.setattr(shutil, "copytree", broken_copytree)

        with pytest.raises(StoreIOError, match="failed to copy skill files"):
            store.add("test-skill", "1.0.0", skill_source, _manifest())

        assert not store.exists("test-skill", "1.0.0")
        assert not (store.root / "test-skill" / "1.0.0").exists()
        assert list((store.root / "test-skill").iterdir()) == []

    def test_missing_source_fails_cleanly(self, store: ArtifactStore, tmp_path: Path):
        with pytest.raises(StoreIOError):
            store.add("test-skill", "1.0.0", tmp_path / "nowhere", _manifest())
        assert not store.exists("test-skill", "1.0.0")

    def test_failed_force_keeps_previous_artifact(
        self, store: ArtifactStore, skill_source: Path, monkeypatch
    ):
        store.add("test-skill", "1.0.0", skill_source, _manifest(description="first"))

        def broken_copytree(src, dst, *args, **kwargs):
            raise OSError("permission denied")

        monkeypatch.setattr(shutil, "copytree", broken_copytree)
        with pytest.raises(StoreIOError):
            store.add("test-skill", "1.0.0", skill_source, _manifest(description="second"), force=True)

        assert store.list()[0].description == "first"

    def test_file_at_destination_is_not_a_conflict(self, store: ArtifactStore, skill_source: Path):
        """Only a directory counts as an existing artifact; a stray file fails the move."""
        (store.root / "test-skill").mkdir(parents=True)
        (store.root / "test-skill" / "1.0.0").write_text("not an artifact")
        assert not store.exists("test-skill", "1.0.0")

        with pytest.raises(StoreIOError, match="failed to move artifact to store"):
            store.add("test-skill", "1.0.0", skill_source, _manifest())
        assert sorted(p.name for p in (store.root / "test-skill").iterdir()) == ["1.0.0"]

    def test_temp_directory_name_is_process_specific(
        self, store: ArtifactStore, skill_source: Path, monkeypatch
    ):
        seen: list[str] = []
        real_copytree = shutil.copytree

        def recording_copytree(src, dst, *args, **kwargs):
            seen.append(Path(dst).name)
            return real_copytree(src, dst, *args, **kwargs)

        monkeypatch.setattr(shutil, "copytree", recording_copytree)
        store.add("test-skill", "1.0.0", skill_source, _manifest())
        # copytree recurses through itself for subdirectories; the first call is the root.
        assert seen[0] == f"1.0.0.tmp.{os.getpid()}"


class TestList:
    """Test enumerating stored manifests."""

    def test_list_missing_root(self, store: ArtifactStore):
        assert store.list() == []

    def test_list_empty_store(self, store: ArtifactStore):
        store.initialize()
        assert store.list() == []

    def test_list_sorted_by_name_then_version(self, store: ArtifactStore, skill_source: Path):
        for name, version in [("b", "1.0.0"), ("a", "2.0.0"), ("a", "1.0.0")]:
            store.add(name, version, skill_source, _manifest(name, version))

        assert [m.key for m in store.list()] == [("a", "1.0.0"), ("a", "2.0.0"), ("b", "1.0.0")]

    def test_version_order_is_lexicographic(self, store: ArtifactStore, skill_source: Path):
        """Versions compare as plain strings: "10.0.0" sorts before "2.0.0"."""
        for version in ["2.0.0", "10.0.0"]:
            store.add("a", version, skill_source, _manifest("a", version))

        assert [m.version for m in store.list()] == ["10.0.0", "2.0.0"]

    def test_list_skips_unreadable_entries(self, store: ArtifactStore, skill_source: Path):
        store.add("good", "1.0.0", skill_source, _manifest("good"))
        (store.root / "corrupt" / "1.0.0").mkdir(parents=True)
        (store.root / "corrupt" / "1.0.0" / "manifest.json").write_text("{broken")
        (store.root / "empty" / "1.0.0").mkdir(parents=True)

        assert [m.name for m in store.list()] == ["good"]

    def test_list_ignores_stray_files(self, store: ArtifactStore, skill_source: Path):
        store.initialize()
        store.add("good", "1.0.0", skill_source, _manifest("good"))
        (store.root / "good" / "notes.txt").write_text("not a version")
        assert len(store.list()) == 1

    def test_list_trusts_directory_placement(self, store: ArtifactStore):
        """The manifest's own name/version are reported as-is."""
        entry = store.root / "dir-name" / "9.9.9"
        entry.mkdir(parents=True)
        (entry / "manifest.json").write_bytes(encode_manifest(_manifest("other", "1.0.0")))
        assert [m.key for m in store.list()] == [("other", "1.0.0")]
